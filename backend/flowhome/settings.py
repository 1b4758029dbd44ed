"""
Django settings for the flowhome project.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-dev-only-key')

DEBUG = os.getenv('DJANGO_DEBUG', 'True').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [h for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h]


INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'events.apps.EventsConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
]

ROOT_URLCONF = 'flowhome.urls'

WSGI_APPLICATION = 'flowhome.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DJANGO_DB_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True


# Single-user service: no accounts, no authentication
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'UNAUTHENTICATED_USER': None,
}


# ============================================
# RECOMMENDER
# ============================================

OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')

RECOMMENDER_MODEL = os.getenv('RECOMMENDER_MODEL', 'gpt-4o-mini')
RECOMMENDER_TIMEOUT = float(os.getenv('RECOMMENDER_TIMEOUT', '20.0'))
RECOMMENDER_MAX_TOKENS = int(os.getenv('RECOMMENDER_MAX_TOKENS')) if os.getenv('RECOMMENDER_MAX_TOKENS') else None
RECOMMENDER_SHORTLIST_SIZE = int(os.getenv('RECOMMENDER_SHORTLIST_SIZE', '5'))
RECOMMENDER_USE_REMOTE = os.getenv('RECOMMENDER_USE_REMOTE', 'True').lower() in ('1', 'true', 'yes')
RECOMMENDER_RECENCY_SIZE = int(os.getenv('RECOMMENDER_RECENCY_SIZE', '10'))
# ScoringWeights overrides, e.g. {"urgency": 0.5, "horizon_days": 10}
RECOMMENDER_WEIGHTS = {}

EXPLAINER_MODEL = os.getenv('EXPLAINER_MODEL', 'gpt-4o')


LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'events': {
            'handlers': ['console'],
            'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
