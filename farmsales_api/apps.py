from django.apps import AppConfig


class FarmSalesApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'farmsales_api'
    verbose_name = 'Farm Sales API'

    def ready(self):
        from . import checks  # noqa: F401
