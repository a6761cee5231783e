from django.apps import AppConfig


class BranchesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'retail_erp.branches'

    def ready(self):
        """Import signals when app is ready"""
        import retail_erp.branches.signals  # noqa: F401  # Cache invalidation signals
