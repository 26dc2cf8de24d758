from django.apps import AppConfig


class JudgingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'judgecore.apps.judging'
    verbose_name = "Judging (Revisiones)"
