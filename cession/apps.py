from django.apps import AppConfig


class CessionConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cession"
    verbose_name = "Cessions de créance"
