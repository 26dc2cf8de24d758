from .base import *
import os

import dj_database_url
from django.core.exceptions import ImproperlyConfigured

# Obligatorias: sin DATABASE_URL no hay bloqueo de filas real (select_for_update es no-op en SQLite)
for var in ('DATABASE_URL', 'DJANGO_SECRET_KEY'):
    if not os.environ.get(var):
        raise ImproperlyConfigured(f"{var} es obligatorio en producción.")

DEBUG = False
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY')
ALLOWED_HOSTS = [h for h in os.environ.get('ALLOWED_HOSTS', '').split(',') if h]

DATABASES = {
    'default': dj_database_url.config(conn_max_age=600, ssl_require=True),
}

# Estáticos del admin servidos por whitenoise
MIDDLEWARE.insert(1, 'whitenoise.middleware.WhiteNoiseMiddleware')
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = True
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

LOGGING['root']['level'] = os.environ.get('LOG_LEVEL', 'WARNING')
