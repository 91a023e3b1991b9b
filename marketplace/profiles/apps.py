from django.apps import AppConfig


class ProfilesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'marketplace.profiles'

    def ready(self):
        """Import signals when app is ready"""
        import marketplace.profiles.signals  # noqa: F401  # Creator listing cache invalidation
