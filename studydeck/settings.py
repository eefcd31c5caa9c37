"""
Django settings for the studydeck review service.

Everything deployment-specific is read from ``STUDYDECK_*`` environment variables.
"""

import logging
import os
from pathlib import Path

import structlog

BASE_DIR = Path(__file__).resolve().parent.parent


def env_flag(name, default=False):
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("STUDYDECK_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = env_flag("STUDYDECK_DEBUG")
ALLOWED_HOSTS = [
    h.strip() for h in os.environ.get("STUDYDECK_ALLOWED_HOSTS", "*").split(",") if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "srs",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "studydeck.urls"
WSGI_APPLICATION = "studydeck.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("STUDYDECK_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("STUDYDECK_DB_NAME", str(BASE_DIR / "studydeck.sqlite3")),
        "USER": os.environ.get("STUDYDECK_DB_USER", ""),
        "PASSWORD": os.environ.get("STUDYDECK_DB_PASSWORD", ""),
        "HOST": os.environ.get("STUDYDECK_DB_HOST", ""),
        "PORT": os.environ.get("STUDYDECK_DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

APPEND_SLASH = False

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "srs.api.exceptions.review_exception_handler",
}

LOG_LEVEL = os.environ.get("STUDYDECK_LOG_LEVEL", "INFO").upper()
LOG_JSON = env_flag("STUDYDECK_LOG_JSON")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
}

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if LOG_JSON else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(LOG_LEVEL)
    ),
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
