"""
Django settings for the cognitive battery.

Only what the instruments and the result store need: there are no views,
templates or static files here.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "cogbattery-insecure-development-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")
ALLOWED_HOSTS: list[str] = []

INSTALLED_APPS = [
    "cogbattery.instruments",
    "cogbattery.results",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("COGBATTERY_DB_PATH", str(BASE_DIR / "cogbattery.sqlite3")),
    }
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# Dotted path to the class that persists completed sessions.
COGBATTERY_RESULT_STORE = os.environ.get(
    "COGBATTERY_RESULT_STORE", "cogbattery.results.store.DjangoResultStore"
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(levelname)s %(asctime)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"level": "WARNING", "handlers": ["console"]},
    "loggers": {
        "cogbattery": {
            "level": os.environ.get("COGBATTERY_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
