from django.apps import AppConfig


class ReportsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'allevapp.reports'

    def ready(self):
        """Import signals when app is ready"""
        import allevapp.reports.signals  # noqa: F401  # Dashboard cache invalidation
