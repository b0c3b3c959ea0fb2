"""
Django settings for the Blorb seller dashboard backend.

Secrets and feature toggles come from the environment (a local .env file is
loaded when present).

Environment Variables:
- DJANGO_SECRET_KEY
- DJANGO_DEBUG
- DJANGO_ALLOWED_HOSTS (comma separated)
- DATABASE_PATH (sqlite file, defaults to BASE_DIR/db.sqlite3)
- PAYSTACK_SECRET_KEY, PAYSTACK_PUBLIC_KEY
- USE_MOCK_PAYSTACK, USE_MOCK_NOTIFICATIONS
- SITE_URL, DEFAULT_FROM_EMAIL
"""

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-blorb-dev-key')
DEBUG = os.getenv('DJANGO_DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'apps.users',
    'apps.sellers',
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

ROOT_URLCONF = 'BlorbMarketplace.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'BlorbMarketplace.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
        # Writers queue on the database lock instead of failing a read-to-write upgrade
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
    }
}

AUTH_USER_MODEL = 'users.CustomUser'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Africa/Lagos'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGIN_URL = '/admin/login/'


# ==========================================
# EMAIL
# ==========================================

EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.getenv('EMAIL_HOST', '')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_TLS = True
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'noreply@blorbmart.com')
ADMIN_EMAILS = [e.strip() for e in os.getenv('ADMIN_EMAILS', 'admin@blorbmart.com').split(',') if e.strip()]
SITE_URL = os.getenv('SITE_URL', 'http://localhost:8000')


# ==========================================
# SELLER PAYMENTS
# ==========================================

# All amounts are in kobo (1 Naira = 100 kobo)
SELLER_PLATFORM_FEE_RATE = Decimal(os.getenv('SELLER_PLATFORM_FEE_RATE', '0.15'))
SELLER_MINIMUM_PAYOUT = int(os.getenv('SELLER_MINIMUM_PAYOUT', '1000'))
SELLER_LEDGER_MAX_ATTEMPTS = 3
SELLER_LEDGER_RETRY_DELAY = 0.2

PAYSTACK_TIMEOUT = 30
PAYSTACK_RETRY_ATTEMPTS = 2
PAYSTACK_RETRY_DELAY = 2
PAYSTACK_SUBACCOUNT_PERCENTAGE = 15

SUBACCOUNT_BATCH_SIZE = 5
SUBACCOUNT_RETRY_ATTEMPTS = 2
SUBACCOUNT_RETRY_DELAY = 2
SUBACCOUNT_ITEM_DELAY = 1
SUBACCOUNT_BATCH_DELAY = 5


# ==========================================
# LOGGING
# ==========================================

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
        'apps': {
            'handlers': ['console'],
            'level': os.getenv('APPS_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
