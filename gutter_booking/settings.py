import json
import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name, default):
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


# =========================
# CORE
# =========================

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "DJANGO_SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    SECRET_KEY = "insecure-dev-key-change-in-production"

DEBUG = _env_bool("DJANGO_DEBUG")

ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "Accounts",
    "Bookings",
    "slots",
    "Dashboard",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "gutter_booking.urls"

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

WSGI_APPLICATION = "gutter_booking.wsgi.application"

# PostgreSQL when configured, SQLite for local development
if os.getenv("DATABASE_NAME"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DATABASE_NAME"),
            "USER": os.getenv("DATABASE_USER", ""),
            "PASSWORD": os.getenv("DATABASE_PASSWORD", ""),
            "HOST": os.getenv("DATABASE_HOST", "localhost"),
            "PORT": os.getenv("DATABASE_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
            # select_for_update is a no-op on SQLite, so every transaction
            # takes the write lock at BEGIN and waits up to `timeout` for it
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": _env_int("SQLITE_TIMEOUT", 20),
            },
        }
    }

AUTH_USER_MODEL = "Accounts.User"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-gb"
TIME_ZONE = "Europe/London"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# =========================
# REST FRAMEWORK / AUTH
# =========================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.AllowAny",
    ),
    "EXCEPTION_HANDLER": "Bookings.exceptions.api_exception_handler",
}

SIMPLE_JWT = {
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# =========================
# BOOKING RULES
# =========================

# Slot labels are generated from these three values (see slots.constants)
BOOKING_DAY_START = os.getenv("BOOKING_DAY_START", "09:00")
BOOKING_SLOT_MINUTES = _env_int("BOOKING_SLOT_MINUTES", 45)
BOOKING_SLOTS_PER_DAY = _env_int("BOOKING_SLOTS_PER_DAY", 8)

# Postcode prefix (first 4 characters) -> service group
BOOKING_POSTCODE_GROUPS = json.loads(
    os.getenv(
        "BOOKING_POSTCODE_GROUPS",
        '{"Crawley": ["RH10", "RH11", "RH6"], "Horsham": ["RH12", "RH13", "RH6"]}',
    )
)
# Postcodes starting with this 3 character prefix match every group, so
# they resolve to the first group listed above
BOOKING_GROUP_AGNOSTIC_PREFIX = os.getenv("BOOKING_GROUP_AGNOSTIC_PREFIX", "RH6")

BOOKING_LOCK_MINUTES = _env_int("BOOKING_LOCK_MINUTES", 30)
BOOKING_VAT_RATE = os.getenv("BOOKING_VAT_RATE", "0.20")
BOOKING_ADMIN_EMAIL = os.getenv("BOOKING_ADMIN_EMAIL", "admin@example.com")

# =========================
# UPLOADS
# =========================

MEDIA_URL = os.getenv("MEDIA_URL", "media/")
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", BASE_DIR / "media"))

# Customer photos sent with a booking request
BOOKING_UPLOAD_DIR = os.getenv("BOOKING_UPLOAD_DIR", "booking_photos")
BOOKING_UPLOAD_MAX_FILE_SIZE = _env_int("BOOKING_UPLOAD_MAX_FILE_SIZE", 5 * 1024 * 1024)
BOOKING_UPLOAD_MAX_FILES = _env_int("BOOKING_UPLOAD_MAX_FILES", 5)
BOOKING_UPLOAD_ALLOWED_TYPES = [
    mime.strip()
    for mime in os.getenv(
        "BOOKING_UPLOAD_ALLOWED_TYPES",
        "image/jpeg,image/png,image/gif,application/pdf",
    ).split(",")
    if mime.strip()
]

# =========================
# PAYMENTS
# =========================

PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "GBP")
PAYMENT_TIMEOUT = float(os.getenv("PAYMENT_TIMEOUT", "30"))

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET", "")
PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox")

MOLLIE_API_KEY = os.getenv("MOLLIE_API_KEY", "")

# =========================
# EMAIL
# =========================

DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "noreply@example.com")

if os.getenv("EMAIL_HOST"):
    EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    EMAIL_HOST = os.getenv("EMAIL_HOST")
    EMAIL_PORT = _env_int("EMAIL_PORT", 587)
    EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
    EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
    EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", "true")
else:
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# =========================
# LOGGING
# =========================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
