from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STRIPE_SECRET_KEY = ''
STRIPE_WEBHOOK_SECRET = 'whsec_test'
STRIPE_USE_STUB = True
STRIPE_STUB_INTENT_STATUS = 'succeeded'
STRIPE_DEFAULT_CURRENCY = 'usd'

BOOKING_STORAGE_BACKEND = 'bookings.storage.DatabaseBookingStorage'

LOG_LEVEL = 'WARNING'
LOGGING['root']['level'] = LOG_LEVEL  # noqa: F405
