"""
Django app configuration for registrations.
"""
from django.apps import AppConfig


class RegistrationsConfig(AppConfig):
    """Configuration for the registrations app."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.registrations'
    verbose_name = 'Registrations'
