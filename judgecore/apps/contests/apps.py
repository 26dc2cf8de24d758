from django.apps import AppConfig


class ContestsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "judgecore.apps.contests"
    verbose_name = "Concursos"
