"""
Django settings for the AllevApp backend.

Values are read from the environment so the same module serves local
development, tests and production.
"""
import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-allevapp-dev-key-change-me')

DEBUG = os.getenv('DJANGO_DEBUG', 'true').lower() == 'true'

ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'django_filters',
    'allevapp.core',
    'allevapp.farms',
    'allevapp.parties',
    'allevapp.reports',
    'allevapp.projects',
    'allevapp.quotes',
    'allevapp.purchasing',
    'allevapp.integrations',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'allevapp.config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'allevapp.config.wsgi.application'


# Database
# SQLite for local work and tests, PostgreSQL in production
DATABASE_ENGINE = os.getenv('DATABASE_ENGINE', 'sqlite')

if DATABASE_ENGINE == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DATABASE_NAME', 'allevapp'),
            'USER': os.getenv('DATABASE_USER', 'allevapp'),
            'PASSWORD': os.getenv('DATABASE_PASSWORD', ''),
            'HOST': os.getenv('DATABASE_HOST', 'localhost'),
            'PORT': os.getenv('DATABASE_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('DATABASE_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }


# Cache
# Redis when REDIS_URL is configured, in-process memory otherwise
REDIS_URL = os.getenv('REDIS_URL', '')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django_redis.cache.RedisCache',
            'LOCATION': REDIS_URL,
            'OPTIONS': {
                'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            },
            'KEY_PREFIX': 'allevapp',
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'allevapp-default',
        }
    }


AUTH_USER_MODEL = 'core.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=int(os.getenv('JWT_ACCESS_HOURS', '8'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.getenv('JWT_REFRESH_DAYS', '7'))),
    'AUTH_HEADER_TYPES': ('Bearer',),
}


# Internationalization
LANGUAGE_CODE = 'it-it'

TIME_ZONE = 'Europe/Rome'

USE_I18N = True

USE_TZ = True


STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Microsoft 365 / Graph (client-credentials app registration)
MICROSOFT_GRAPH = {
    'TENANT_ID': os.getenv('MICROSOFT_TENANT_ID', ''),
    'CLIENT_ID': os.getenv('MICROSOFT_CLIENT_ID', ''),
    'CLIENT_SECRET': os.getenv('MICROSOFT_CLIENT_SECRET', ''),
    'SENDER_EMAIL': os.getenv('MICROSOFT_SENDER_EMAIL', ''),
    'TIMEOUT': int(os.getenv('MICROSOFT_GRAPH_TIMEOUT', '15')),
    'CALENDAR_TIME_ZONE': os.getenv('MICROSOFT_CALENDAR_TIME_ZONE', 'Europe/Rome'),
}

# Order number prefixes per operating company
ALLEVAPP_COMPANY_PREFIXES = {
    'Zoogamma Spa': 'ZG',
    'So. Agr. Zooagri Srl': 'ZA',
    'Soc. Agr. Zooallevamenti Srl': 'ZAL',
}

# Contact block used in outgoing supplier emails
ALLEVAPP_CONTACT = {
    'COMPANY_NAME': os.getenv('ALLEVAPP_COMPANY_NAME', 'AllevApp'),
    'EMAIL': os.getenv('ALLEVAPP_CONTACT_EMAIL', 'info@allevapp.com'),
    'PHONE': os.getenv('ALLEVAPP_CONTACT_PHONE', '+39 030 9938433'),
}

DASHBOARD_CACHE_TTL = int(os.getenv('DASHBOARD_CACHE_TTL', '60'))


LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
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
        'allevapp': {
            'handlers': ['console'],
            'level': os.getenv('ALLEVAPP_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
