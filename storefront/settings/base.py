from pathlib import Path
import os

import dj_database_url
from dotenv import load_dotenv

# Project root (where manage.py lives)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"

ALLOWED_HOSTS = [
    h.strip()
    for h in os.getenv("DJANGO_ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")
    if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "rest_framework",
    "drf_spectacular",

    # The storefront frontend calls the payment API from its own origin
    "corsheaders",

    "orders",
    "payments",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# -----------------
# CORS CONFIG
# -----------------


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def _normalize_origin(origin: str) -> str:
    o = origin.strip()
    if not o:
        return ""
    if "://" not in o:
        o = f"http://{o}"
    return o


CORS_ALLOW_ALL_ORIGINS = _env_bool("CORS_ORIGIN_ALLOW_ALL", default=DEBUG)

_whitelist = os.getenv("CORS_ORIGIN_WHITELIST", "")
_origins = [_normalize_origin(x) for x in _whitelist.split(",")]
CORS_ALLOWED_ORIGINS = [x for x in _origins if x]

CORS_ALLOW_CREDENTIALS = _env_bool("CORS_ALLOW_CREDENTIALS", default=True)

ROOT_URLCONF = "storefront.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "storefront.wsgi.application"

DATABASES = {
    "default": dj_database_url.config(
        default=os.getenv("DATABASE_URL", f"sqlite:///{(BASE_DIR / 'db.sqlite3').as_posix()}"),
        conn_max_age=60,
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Africa/Cairo"
USE_TZ = True
USE_I18N = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {"DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema"}

SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront API",
    "DESCRIPTION": "Storefront payment API documentation",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# -----------------
# PAYMOB
# -----------------
# PAYMOB_HMAC_SECRET signs webhook and redirect callbacks. There is no
# fallback value: without it every verification fails with a config error.
PAYMOB_HMAC_SECRET = os.getenv("PAYMOB_HMAC_SECRET", "").strip()

# Intention API (checkout initiation)
PAYMOB_SECRET_KEY = os.getenv("PAYMOB_SECRET_KEY", "").strip()
PAYMOB_PUBLIC_KEY = os.getenv("PAYMOB_PUBLIC_KEY", "").strip()
PAYMOB_INTEGRATION_ID = os.getenv("PAYMOB_INTEGRATION_ID", "").strip()
PAYMOB_API_BASE = os.getenv("PAYMOB_API_BASE", "https://accept.paymob.com").strip()

# Public site URL, used to build the gateway's redirection_url
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/")

# Storefront pages linked from the payment status page; links are hidden when empty
STOREFRONT_ORDERS_URL = os.getenv("STOREFRONT_ORDERS_URL", "").strip()
STOREFRONT_CHECKOUT_URL = os.getenv("STOREFRONT_CHECKOUT_URL", "").strip()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"console": {"class": "logging.StreamHandler"}},
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "payments": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
