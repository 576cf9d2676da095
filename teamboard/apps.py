from django.apps import apps, AppConfig
from django.core.exceptions import ImproperlyConfigured


class TeamboardConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'teamboard'

    def ready(self):
        """Identity comes from DRF token authentication, make sure it's there."""
        if not apps.is_installed('rest_framework.authtoken'):
            raise ImproperlyConfigured(
                "teamboard requires 'rest_framework.authtoken' in "
                "INSTALLED_APPS to authenticate callers."
            )
