"""
Django settings for the herbal supply-chain ledger.

Environment variables override the development defaults below.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-only-insecure-key')
DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = [h for h in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'supply',
    'blockchain',
    'provenance',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'core.urls'
WSGI_APPLICATION = 'core.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('HERBAL_DB_PATH', str(BASE_DIR / 'db.sqlite3')),
        # Seconds a writer waits on a locked SQLite file before the ledger retries
        'OPTIONS': {'timeout': float(os.environ.get('HERBAL_DB_TIMEOUT', '5'))},
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# ----------------------------------------------------------------------
# Ledger
# ----------------------------------------------------------------------

# Any hashlib algorithm; 'rolling32' only to re-verify legacy chains
LEDGER_HASH_ALGORITHM = os.environ.get('LEDGER_HASH_ALGORITHM', 'sha256')
LEDGER_APPEND_MAX_ATTEMPTS = int(os.environ.get('LEDGER_APPEND_MAX_ATTEMPTS', '5'))
LEDGER_APPEND_BACKOFF_SECONDS = float(os.environ.get('LEDGER_APPEND_BACKOFF_SECONDS', '0.05'))
LEDGER_APPEND_BACKOFF_CAP_SECONDS = float(os.environ.get('LEDGER_APPEND_BACKOFF_CAP_SECONDS', '1.0'))

# ----------------------------------------------------------------------
# Logging
# ----------------------------------------------------------------------

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'herbal': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'herbal',
        },
    },
    'loggers': {
        'blockchain': {'handlers': ['console'], 'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'), 'propagate': False},
        'provenance': {'handlers': ['console'], 'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'), 'propagate': False},
        'supply': {'handlers': ['console'], 'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'), 'propagate': False},
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
}
