"""
Django settings for the settlement service.

One settings module for web, celery-worker and celery-beat in every
environment; django-environ reads the values from the process environment.

Environment files:
    - .env.development: local defaults (SQLite, local-memory cache, sandbox Monime)
    - ENV_FILE: explicit path to another env file

Settlement knobs live in the "Monime", "Payment Status Polling" and
"Escrow" sections. Money is always an integer in minor units.

Reference: https://docs.djangoproject.com/en/5.2/ref/settings/
"""

import os
from datetime import timedelta
from pathlib import Path

import environ

# =============================================================================
# Path Configuration
# =============================================================================
BASE_DIR = Path(__file__).resolve().parent.parent

# =============================================================================
# Environment Configuration
# =============================================================================
env = environ.Env(
    DEBUG=(bool, False),  # Default to False for safety
    ALLOWED_HOSTS=(list, []),
    CORS_ALLOWED_ORIGINS=(list, []),
    LOG_LEVEL=(str, "INFO"),
    SETTLEMENT_LOG_LEVEL=(str, "INFO"),
)

# In Docker, env vars are passed directly; .env files are for local dev
env_file = os.environ.get("ENV_FILE", BASE_DIR.parent / ".env.development")
if Path(env_file).exists():
    environ.Env.read_env(env_file)

# =============================================================================
# Core Settings
# =============================================================================
# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env("DEBUG")

ALLOWED_HOSTS = env("ALLOWED_HOSTS")

# =============================================================================
# Application Definition
# =============================================================================
INSTALLED_APPS = [
    # Django core apps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps
    "rest_framework",
    "rest_framework_simplejwt",
    "corsheaders",
    "django_celery_beat",
    "drf_spectacular",
    # Local apps
    "core",
    "authentication",
    "notifications",
    "orders",
    "escrow",
    "disputes",
    "payments",
]

MIDDLEWARE = [
    # Security middleware (should be first)
    "django.middleware.security.SecurityMiddleware",
    # WhiteNoise for static files (after security, before all else)
    "whitenoise.middleware.WhiteNoiseMiddleware",
    # CORS headers (must be before CommonMiddleware)
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# =============================================================================
# Database Configuration
# =============================================================================
# https://docs.djangoproject.com/en/5.2/ref/settings/#databases
# Using psycopg3 (not psycopg2)
DATABASES = {
    "default": env.db(
        "DATABASE_URL",
        default="postgres://postgres:postgres@db:5432/settlement_dev",
    ),
}

# psycopg3 connection options only apply to the PostgreSQL engine
if DATABASES["default"]["ENGINE"] == "django.db.backends.postgresql":
    DATABASES["default"]["OPTIONS"] = {
        "connect_timeout": 10,
    }

# =============================================================================
# Cache Configuration
# =============================================================================
# https://docs.djangoproject.com/en/5.2/topics/cache/
# CACHE_URL (e.g. locmemcache://) replaces the Redis cache entirely
if env("CACHE_URL", default=""):
    CACHES = {"default": env.cache("CACHE_URL")}
else:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": env("REDIS_URL", default="redis://redis:6379/0"),
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                # Cache outages degrade to database reads (escrow stats)
                "IGNORE_EXCEPTIONS": True,
            },
        }
    }

# =============================================================================
# Authentication Configuration
# =============================================================================
# Custom user model (MUST be set before first migration)
AUTH_USER_MODEL = "authentication.User"

# Password validation
# https://docs.djangoproject.com/en/5.2/ref/settings/#auth-password-validators
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# =============================================================================
# Django REST Framework Configuration
# =============================================================================
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        # JWT authentication (primary for API clients)
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        # Session authentication (for browsable API and admin)
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    # Application errors carry their own HTTP status and error code
    "EXCEPTION_HANDLER": "core.exception_handlers.application_exception_handler",
    # OpenAPI schema generation
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    # Pagination
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    # Throttling (rate limiting)
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "100/hour",
        "user": "1000/hour",
    },
}

# Add browsable API in debug mode
if DEBUG:
    REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"].append(
        "rest_framework.renderers.BrowsableAPIRenderer"
    )

# =============================================================================
# drf-spectacular (OpenAPI) Configuration
# =============================================================================
SPECTACULAR_SETTINGS = {
    "TITLE": "Settlement API",
    "DESCRIPTION": "Escrow, payment reconciliation and dispute endpoints",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    # Strip /api/v1 prefix from operation paths
    "SCHEMA_PATH_PREFIX": r"/api/v[0-9]+",
    "SECURITY": [{"Bearer": []}],
    "APPEND_COMPONENTS": {
        "securitySchemes": {
            "Bearer": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }
    },
    "COMPONENT_SPLIT_REQUEST": True,
    "SORT_OPERATIONS": False,
}

# =============================================================================
# Simple JWT Configuration
# =============================================================================
# Tokens are issued by the marketplace's auth service; this service only
# validates them.
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=60),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": env("JWT_SIGNING_KEY", default=SECRET_KEY),
    "AUTH_HEADER_TYPES": ("Bearer",),
    "AUTH_HEADER_NAME": "HTTP_AUTHORIZATION",
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
}

# =============================================================================
# CORS Configuration
# =============================================================================
CORS_ALLOWED_ORIGINS = env("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True

# =============================================================================
# Celery Configuration
# =============================================================================
CELERY_BROKER_URL = env("CELERY_BROKER_URL", default="redis://redis:6379/1")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", default="redis://redis:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = "UTC"
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes
CELERY_BEAT_SCHEDULER = "django_celery_beat.schedulers:DatabaseScheduler"

# =============================================================================
# Monime Configuration (Payment Provider)
# =============================================================================
MONIME_BASE_URL = env("MONIME_BASE_URL", default="https://api.monime.io")
MONIME_API_KEY = env("MONIME_API_KEY", default="")
MONIME_SECRET_KEY = env("MONIME_SECRET_KEY", default="")
MONIME_SPACE_ID = env("MONIME_SPACE_ID", default="")

# HMAC key for X-Monime-Signature; falls back to the API secret key
MONIME_WEBHOOK_SECRET = env("MONIME_WEBHOOK_SECRET", default=MONIME_SECRET_KEY)

# sandbox | production
MONIME_ENVIRONMENT = env("MONIME_ENVIRONMENT", default="sandbox")

# API timeout in seconds (default: 30)
MONIME_TIMEOUT_SECONDS = env.int("MONIME_TIMEOUT_SECONDS", default=30)

# Transport retries for idempotent (GET) calls
MONIME_MAX_RETRIES = env.int("MONIME_MAX_RETRIES", default=3)

# Where Monime redirects the buyer after checkout
MONIME_CALLBACK_URL = env("MONIME_CALLBACK_URL", default="")

# =============================================================================
# Payment Status Polling
# =============================================================================
# 30 attempts x 10s is roughly a five minute window
PAYMENT_POLL_INTERVAL_SECONDS = env.float("PAYMENT_POLL_INTERVAL_SECONDS", default=10)
PAYMENT_POLL_MAX_ATTEMPTS = env.int("PAYMENT_POLL_MAX_ATTEMPTS", default=30)

# =============================================================================
# Escrow Configuration
# =============================================================================
# Days after funding before the long-stop date (reported, never acted on)
# and days after delivery before the buyer confirmation deadline
ESCROW_AUTO_RELEASE_AFTER_DAYS = env.int("ESCROW_AUTO_RELEASE_AFTER_DAYS", default=3)

# Fee taken from the released amount before vendor payout
ESCROW_TRANSACTION_FEE_PERCENT = env.float("ESCROW_TRANSACTION_FEE_PERCENT", default=0)

# celery-beat interval for the auto-release scheduler
ESCROW_AUTO_RELEASE_INTERVAL_MINUTES = env.int(
    "ESCROW_AUTO_RELEASE_INTERVAL_MINUTES",
    default=5,
)

ESCROW_DEFAULT_CURRENCY = env("ESCROW_DEFAULT_CURRENCY", default="SLE")

# =============================================================================
# Internationalization
# =============================================================================
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# =============================================================================
# Static Files
# =============================================================================
STATIC_URL = env("STATIC_URL", default="/static/")
STATIC_ROOT = BASE_DIR / "staticfiles"

# WhiteNoise serves the admin and schema UI assets
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

# =============================================================================
# Default Primary Key Field Type
# =============================================================================
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = env("LOG_LEVEL")

# Log file name determined by service (web, celery-worker, celery-beat)
LOG_FILE_NAME = env("LOG_FILE_NAME", default="django.log")
LOG_DIR = BASE_DIR / "logs"

# Ensure log directory exists (handles local development without Docker)
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "file": {
            "format": "[{asctime}] {levelname} {name} {module}:{lineno} - {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": {
            # Max 10MB per file, keeps 5 backups
            "level": "DEBUG",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / LOG_FILE_NAME,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "file",
            "encoding": "utf-8",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console", "file"],
            "level": "ERROR",
            "propagate": False,
        },
        "celery": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        # Ledger transitions log at INFO; records reach the root handlers
        **{
            app: {"level": env("SETTLEMENT_LOG_LEVEL")}
            for app in ("escrow", "payments", "disputes", "orders")
        },
    },
}

# =============================================================================
# Security Settings (Production Only)
# =============================================================================
if not DEBUG:
    SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

    SESSION_COOKIE_SECURE = env.bool("SESSION_COOKIE_SECURE", default=True)
    CSRF_COOKIE_SECURE = env.bool("CSRF_COOKIE_SECURE", default=True)

    SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=31536000)  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool(
        "SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True
    )
    SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=True)

    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = "DENY"
