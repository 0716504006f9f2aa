"""
Social App Configuration
"""
from django.apps import AppConfig


class SocialConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'social'
    verbose_name = 'VidStream social'

    def ready(self):
        # Register the reference sweeps
        import social.signals  # noqa
