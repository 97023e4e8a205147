"""
Django settings for the storefront backend.

Every deployment value comes from the environment (a local `.env` file is
loaded first). There is no SQL database: orders, products, wishlists and
notifications live in MongoDB, and sessions use signed cookies.
"""
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'dev-insecure-secret-key')
DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() in ('1', 'true', 'yes')
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]

INSTALLED_APPS = [
    'orders',
    'payments',
    'products',
    'wishlist',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'storefront_backend.urls'
WSGI_APPLICATION = 'storefront_backend.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {},
    },
]

DATABASES = {}

SESSION_ENGINE = 'django.contrib.sessions.backends.signed_cookies'
SESSION_COOKIE_HTTPONLY = True

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('STORE_TIME_ZONE', 'Africa/Lagos')
USE_I18N = False
USE_TZ = True

# --- MongoDB ---
MONGO_URI = os.getenv('MONGO_URI')
MONGO_DB_NAME = os.getenv('MONGO_DB_NAME')

# --- Paystack ---
PAYSTACK_SECRET_KEY = os.getenv('PAYSTACK_SECRET_KEY')
PAYSTACK_API_BASE = os.getenv('PAYSTACK_API_BASE', 'https://api.paystack.co')
PAYSTACK_CALLBACK_URL = os.getenv('PAYSTACK_CALLBACK_URL', 'http://localhost:8000/api/payments/callback/')
PAYSTACK_TIMEOUT = float(os.getenv('PAYSTACK_TIMEOUT', '15'))
PAYSTACK_CHANNELS = ['card', 'bank', 'ussd', 'qr', 'mobile_money', 'bank_transfer']

# Public redirect targets are built on top of this URL.
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000').rstrip('/')

# --- Pricing ---
STORE_NAME = os.getenv('STORE_NAME', 'Storefront')
STORE_CURRENCY = os.getenv('STORE_CURRENCY', 'NGN')
TAX_RATE = Decimal(os.getenv('TAX_RATE', '0.075'))
FREE_SHIPPING_THRESHOLD = Decimal(os.getenv('FREE_SHIPPING_THRESHOLD', '50000'))
FLAT_SHIPPING_FEE = Decimal(os.getenv('FLAT_SHIPPING_FEE', '2500'))
ORDER_NUMBER_PREFIX = os.getenv('ORDER_NUMBER_PREFIX', 'ORD')

# --- Logging ---
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
