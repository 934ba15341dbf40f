"""
Production-specific Django settings.
"""

import os

# Load environment variables from .env file
from dotenv import load_dotenv

from .base import *  # noqa: F403,F405

load_dotenv()

# Check if we're just collecting static files (during Docker build)
COLLECTSTATIC_ONLY = os.getenv("COLLECTSTATIC_ONLY", "0") == "1"

# SECURITY WARNING: Use a strong secret key in production
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY")
if not SECRET_KEY and not COLLECTSTATIC_ONLY:
    raise ValueError("DJANGO_SECRET_KEY must be set in production environment!")
elif not SECRET_KEY:
    SECRET_KEY = "temporary-key-for-collectstatic-only"

DEBUG = False

ALLOWED_HOSTS = os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",")
if (not ALLOWED_HOSTS or ALLOWED_HOSTS == [""]) and not COLLECTSTATIC_ONLY:
    raise ValueError("DJANGO_ALLOWED_HOSTS must be set in production environment!")
elif not ALLOWED_HOSTS or ALLOWED_HOSTS == [""]:
    ALLOWED_HOSTS = ["*"]

if COLLECTSTATIC_ONLY:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.dummy",
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB"),
            "USER": os.getenv("POSTGRES_USER"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD"),
            "HOST": os.getenv("POSTGRES_HOST"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
            "ATOMIC_REQUESTS": True,
            "CONN_MAX_AGE": 600,
            "OPTIONS": {
                "connect_timeout": 10,
                "options": "-c statement_timeout=30000",  # 30 second query timeout
                "sslmode": os.getenv("DB_SSLMODE", "prefer"),
            },
        }
    }

redis_host = os.getenv("REDIS_HOST", "redis")
redis_port = os.getenv("REDIS_PORT", "6379")
redis_password = os.getenv("REDIS_PASSWORD", "")
redis_url_base = (
    f"redis://:{redis_password}@{redis_host}:{redis_port}"
    if redis_password
    else f"redis://{redis_host}:{redis_port}"
)

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"{redis_url_base}/0",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "SOCKET_CONNECT_TIMEOUT": 5,
            "SOCKET_TIMEOUT": 5,
            "RETRY_ON_TIMEOUT": True,
        },
        "KEY_PREFIX": "pharmatrack",
        "TIMEOUT": 300,
    },
}

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", f"{redis_url_base}/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", f"{redis_url_base}/1")

# Logging Configuration - Production (JSON format for log aggregation)
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
        "file": {
            "level": "WARNING",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": BASE_DIR / "logs" / "django_production.log",
            "maxBytes": 1024 * 1024 * 50,  # 50 MB
            "backupCount": 20,
            "formatter": "json",
        },
        "error_file": {
            "level": "ERROR",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": BASE_DIR / "logs" / "django_errors.log",
            "maxBytes": 1024 * 1024 * 50,  # 50 MB
            "backupCount": 20,
            "formatter": "json",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console", "error_file"],
            "level": "ERROR",
            "propagate": False,
        },
        "django.security": {
            "handlers": ["console", "error_file"],
            "level": "WARNING",
            "propagate": False,
        },
        "celery": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console", "file", "error_file"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# Security Settings - Production
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
WAFFLE_SECURE = True

# SSL is terminated at the proxy
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = os.getenv("SECURE_SSL_REDIRECT", "True") == "True"
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

# Sentry - Enabled in production
SENTRY_DSN = os.getenv("SENTRY_DSN")
SENTRY_ENVIRONMENT = "production"
SENTRY_RELEASE = os.getenv("SENTRY_RELEASE")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

if SENTRY_DSN:
    from apps.core.sentry_config import initialize_sentry

    initialize_sentry(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        release=SENTRY_RELEASE,
    )
else:
    print("WARNING: SENTRY_DSN not set. Error tracking is disabled!")

if not COLLECTSTATIC_ONLY:
    validate_required_env_vars()
validate_security_settings(DEBUG)
