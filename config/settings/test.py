"""
Test settings.

SQLite in memory, local memory cache and eager Celery so the suite runs
without PostgreSQL or Redis.
"""

from .base import *  # noqa: F403,F405

SECRET_KEY = "test-secret-key-not-for-production"

DEBUG = False

ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "retail-pos-tests",
    }
}

# Fast password hashing for tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

POS_TAX_RATE = Decimal("0.00")  # noqa: F405
POS_STOCK_SHORTFALL_POLICY = "warn"
POS_DEFAULT_LOW_STOCK_THRESHOLD = 5
POS_CURRENCY_SYMBOL = "Rs."
POS_DEFAULT_COUNTRY_CODE = "91"
POS_SHOP_NAME = "Test Store"
POS_SHOP_ADDRESS = "12 Market Road\nBengaluru"
POS_SHOP_PHONE = "080-1234567"
POS_SHOP_GSTIN = "29ABCDE1234F1Z5"
POS_RECEIPT_BASE_URL = "http://testserver"

TWILIO_ACCOUNT_SID = ""
TWILIO_AUTH_TOKEN = ""
TWILIO_WHATSAPP_NUMBER = "+14155238886"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {"class": "logging.NullHandler"},
    },
    "root": {"handlers": ["null"], "level": "WARNING"},
}
