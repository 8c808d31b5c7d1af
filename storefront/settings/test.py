from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PAYMOB_HMAC_SECRET = "test-paymob-hmac-secret"
PAYMOB_SECRET_KEY = "sk_test_paymob"
PAYMOB_PUBLIC_KEY = "pk_test_paymob"
PAYMOB_INTEGRATION_ID = "4512"
PAYMOB_API_BASE = "https://accept.paymob.com"
PUBLIC_BASE_URL = "https://shop.example.com"
STOREFRONT_ORDERS_URL = ""
STOREFRONT_CHECKOUT_URL = ""
