from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contests', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CompetitorAggregate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('total_score', models.PositiveIntegerField(default=0)),
                ('problems_solved_count', models.PositiveIntegerField(default=0)),
                ('last_accepted_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contest', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='aggregates', to='contests.contest')),
                ('competitor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contest_aggregates', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ('contest', '-total_score', 'last_accepted_at', 'competitor'),
                'constraints': [models.UniqueConstraint(fields=('contest', 'competitor'), name='uniq_contest_competitor_aggregate')],
            },
        ),
    ]
