"""
Django settings for the linkinjector_site project.

The project only hosts the stateless JSON endpoints of the linkinjector
app: there is no database, no session or authentication layer and no
static files. Engine tuning lives in an optional YAML file named by
``LINK_ENGINE_CONFIG_PATH``.

Please consult the Django documentation for additional configuration
options: https://docs.djangoproject.com/en/4.2/ref/settings/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-me')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DJANGO_DEBUG', 'false').lower() == 'true'

# PYTEST_CURRENT_TEST is only set once a test is running, after settings are imported.
RUNNING_TESTS = (
    'pytest' in sys.modules
    or os.getenv('PYTEST_CURRENT_TEST') is not None
    or os.getenv('LINKINJECTOR_TESTING') == '1'
)
if RUNNING_TESTS:
    DEBUG = True

if not DEBUG and SECRET_KEY == 'django-insecure-change-me' and not RUNNING_TESTS:
    raise ImproperlyConfigured('DJANGO_SECRET_KEY must be set when DEBUG is False.')

ALLOWED_HOSTS: list[str] = [
    host.strip()
    for host in os.getenv('DJANGO_ALLOWED_HOSTS', '127.0.0.1,localhost,testserver').split(',')
    if host.strip()
]

# Application definition
INSTALLED_APPS = [
    'linkinjector',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'linkinjector.middleware.SlidingWindowRateThrottle',
]

ROOT_URLCONF = 'linkinjector_site.urls'

WSGI_APPLICATION = 'linkinjector_site.wsgi.application'

# The endpoints are stateless.
DATABASES: dict[str, dict[str, object]] = {}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'linkinjector',
    }
}

# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True

DATA_UPLOAD_MAX_MEMORY_SIZE = int(os.getenv('LINKINJECTOR_MAX_BODY_BYTES', str(5 * 1024 * 1024)))

# Link engine
LINK_ENGINE_CONFIG_PATH = os.getenv('LINK_ENGINE_CONFIG_PATH') or None
LINK_ENGINE_BASE_URL = os.getenv('LINK_ENGINE_BASE_URL', '')

# Security headers
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'
SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True

if not DEBUG:
    SECURE_SSL_REDIRECT = os.getenv('DJANGO_SECURE_SSL_REDIRECT', 'true').lower() == 'true'
    SECURE_HSTS_SECONDS = int(os.getenv('DJANGO_SECURE_HSTS_SECONDS', '31536000'))
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
else:
    SECURE_SSL_REDIRECT = False

# Rate limiting / throttling defaults (per IP per route)
THROTTLED_ROUTES = [
    'linkinjector:inject',
    'linkinjector:candidates',
]
THROTTLE_LIMIT = int(os.getenv('LINKINJECTOR_THROTTLE_LIMIT', '60'))
THROTTLE_WINDOW = int(os.getenv('LINKINJECTOR_THROTTLE_WINDOW', '60'))
THROTTLE_IP_HEADER = os.getenv('LINKINJECTOR_THROTTLE_HEADER', 'HTTP_X_FORWARDED_FOR')


log_level = os.getenv('DJANGO_LOG_LEVEL', 'INFO').upper()
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': log_level,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': log_level,
            'propagate': False,
        },
        'linkinjector': {
            'handlers': ['console'],
            'level': os.getenv('LINKINJECTOR_LOG_LEVEL', log_level).upper(),
            'propagate': False,
        },
    },
}
