# giftsite/settings.py
"""
Giftsite Django settings

CHANGE LOG
----------
2026-10-12 • Payment gateways (PayOS + PayPal) and status timeout moved to env.
- PAYMENT_STATUS_TIMEOUT defaults to 300s (matches the checkout dialog).
- PAYPAL_BASE_FEE_USD is the flat fee charged on the international path.

2026-10-05 • Subdomain dispatch
- BASE_DOMAIN / SITE_RESOLVER / SITE_TEMPLATES_DIR.
- ALLOWED_HOSTS accepts every "<name>.<BASE_DOMAIN>" label.
"""

from pathlib import Path
import os
import re
from dotenv import load_dotenv

# ========= Base / Env =========
BASE_DIR = Path(__file__).resolve().parent.parent

ENV_CANDIDATES = [
    BASE_DIR / ".env",         # Local: project root
    BASE_DIR.parent / ".env",  # Local: repo root (if settings/ nested)
]
for _env in ENV_CANDIDATES:
    if _env.exists():
        load_dotenv(_env)
        print(f"[settings] Loaded env from: {_env}")
        break
else:
    load_dotenv()  # no-op if missing


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_list(name: str, default: str = "") -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


# ========= Secret Key =========
DEBUG = _env_bool("DEBUG")

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "")
if not SECRET_KEY:
    if not DEBUG and _env_bool("DJANGO_REQUIRE_SECRET_KEY"):
        raise ValueError("DJANGO_SECRET_KEY must be set in .env file")
    SECRET_KEY = "giftsite-insecure-dev-key"

# ========= Domain / dispatch =========
BASE_DOMAIN = os.getenv("BASE_DOMAIN", "inanhxink.com").strip().lower()

# "host" in production (wildcard DNS), "query" for local preview via ?preview=<name>
SITE_RESOLVER = os.getenv("SITE_RESOLVER", "host").strip().lower()

RESERVED_SITE_NAMES = ["order", "www"] + _env_list("RESERVED_SITE_NAMES")

SITE_TEMPLATES_DIR = Path(os.getenv("SITE_TEMPLATES_DIR", BASE_DIR / "site_templates"))

# ========= Hosts / CSRF / Security =========
ALLOWED_HOSTS = [
    "127.0.0.1",
    "localhost",
    "testserver",
    BASE_DOMAIN,
    f".{BASE_DOMAIN}",
] + _env_list("ADDITIONAL_HOSTS")

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG
SECURE_SSL_REDIRECT = _env_bool("SECURE_SSL_REDIRECT")
SECURE_CONTENT_TYPE_NOSNIFF = True

# ========= Installed apps =========
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "corsheaders",
    "rest_framework",
    "anymail",

    "catalog",
    "orders",
    "delivery",
    "payments",
]

# ========= Middleware =========
# CORS first; subdomain dispatch before sessions/CSRF so gift pages stay cookie-free.
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "delivery.middleware.SiteDispatchMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

# ========= URL / Templates / WSGI =========
ROOT_URLCONF = "giftsite.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
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

WSGI_APPLICATION = "giftsite.wsgi.application"

# ========= Database =========
if os.getenv("DB_NAME"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DB_NAME"),
            "USER": os.getenv("DB_USER", ""),
            "PASSWORD": os.getenv("DB_PASSWORD", ""),
            "HOST": os.getenv("DB_HOST", "localhost"),
            "PORT": os.getenv("DB_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
            "OPTIONS": {"timeout": 30},
        }
    }

# ========= I18N =========
LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Ho_Chi_Minh"
USE_I18N = True
USE_TZ = True

# ========= Static =========
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ========= REST framework =========
REST_FRAMEWORK = {
    "EXCEPTION_HANDLER": "giftsite.errors.api_exception_handler",
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# ========= CORS / CSRF =========
CORS_ALLOWED_ORIGINS = [
    f"https://order.{BASE_DOMAIN}",
    f"https://{BASE_DOMAIN}",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
] + _env_list("CORS_EXTRA_ORIGINS")
_BASE_DOMAIN_RE = re.escape(BASE_DOMAIN)
CORS_ALLOWED_ORIGIN_REGEXES = [rf"^https://[a-z0-9_-]+\.{_BASE_DOMAIN_RE}$"]
CSRF_TRUSTED_ORIGINS = list(CORS_ALLOWED_ORIGINS)

# ========= Pricing =========
MUSIC_PRICE = int(os.getenv("MUSIC_PRICE", "10000"))
KEYCHAIN_PRICE = int(os.getenv("KEYCHAIN_PRICE", "0"))
PAYPAL_BASE_FEE_USD = int(os.getenv("PAYPAL_BASE_FEE_USD", "5"))

# ========= Payments =========
PAYOS_CLIENT_ID = os.getenv("PAYOS_CLIENT_ID", "")
PAYOS_API_KEY = os.getenv("PAYOS_API_KEY", "")
PAYOS_CHECKSUM_KEY = os.getenv("PAYOS_CHECKSUM_KEY", "")

PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET", "")
PAYPAL_API_URL = os.getenv("PAYPAL_API_URL", "https://api-m.sandbox.paypal.com").rstrip("/")
PAYPAL_WEBHOOK_ID = os.getenv("PAYPAL_WEBHOOK_ID", "")

DEPLOY_BASE_URL = os.getenv("DEPLOY_BASE_URL", f"https://order.{BASE_DOMAIN}").rstrip("/")
PAYMENT_RETURN_URL = os.getenv("PAYMENT_RETURN_URL", f"{DEPLOY_BASE_URL}/api/payment/return")
PAYMENT_CANCEL_URL = os.getenv("PAYMENT_CANCEL_URL", f"{DEPLOY_BASE_URL}/api/payment/return")

PAYMENT_STATUS_TIMEOUT = int(os.getenv("PAYMENT_STATUS_TIMEOUT", "300"))
PAYMENT_GATEWAY_TIMEOUT = float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "15"))

# ========= Cache (in-flight payment state) =========
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "giftsite",
    }
}

# ========= Email (Mailgun via Anymail) =========
EMAIL_BACKEND = os.getenv("DJANGO_EMAIL_BACKEND", "anymail.backends.mailgun.EmailBackend")

ANYMAIL = {
    "MAILGUN_API_KEY": os.getenv("MAILGUN_API_KEY", ""),
    "MAILGUN_SENDER_DOMAIN": os.getenv("MAILGUN_DOMAIN", ""),
    "MAILGUN_API_URL": os.getenv("ANYMAIL_MAILGUN_API_URL", "https://api.mailgun.net/v3"),
}

DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", f"Giftsite <no-reply@{BASE_DOMAIN}>")

# ========= Logging =========
LOG_DIR = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "giftsite.log",
            "maxBytes": 1024 * 1024 * 15,
            "backupCount": 10,
            "formatter": "verbose",
            "encoding": "utf-8",
        },
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "giftsite": {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "catalog": {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "orders": {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "delivery": {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "payments": {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "django": {"handlers": ["file"], "level": "ERROR", "propagate": True},
    },
}
