"""
Development settings - used for local development.
"""
from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True
DEBUG_PROPAGATE_EXCEPTIONS = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '.localhost']

# Database
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'chakravyuh'),
        'USER': os.environ.get('DB_USER', 'chakravyuh_user'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'chakravyuh_pass'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
    }
}

# CORS settings for local development
CORS_ALLOWED_ORIGINS = FRONTEND_ORIGINS + [
    "http://localhost:5173",  # Vite default
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

# Print emails to the console unless SMTP credentials are provided
if not EMAIL_HOST_USER:
    EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Upload storage stays local in development
MEDIA_ROOT = BASE_DIR / 'media'
