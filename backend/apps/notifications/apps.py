"""
Django app configuration for notifications.
"""
from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """Configuration for the notifications app (emails and QR passes)."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = 'Notifications'
