"""
WSGI config for chakravyuh project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE',
                      'chakravyuh.settings.production')

application = get_wsgi_application()
