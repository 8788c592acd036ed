"""Django settings for fuel finder project."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    "fuel_finder",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# Stateless: every lookup is answered from live upstream calls.
DATABASES: dict[str, dict[str, str]] = {}

LANGUAGE_CODE = "fr-fr"
TIME_ZONE = "Europe/Paris"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

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
    "loggers": {
        "fuel_finder": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": True,
        },
    },
}

GEOCODING_BASE_URL = os.getenv("GEOCODING_BASE_URL", "https://nominatim.openstreetmap.org")
GEOCODING_USER_AGENT = os.getenv("GEOCODING_USER_AGENT", "fuel-finder/1.0")
GEOCODING_TIMEOUT_SECONDS = float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "10"))

PLACE_SEARCH_BASE_URL = os.getenv("PLACE_SEARCH_BASE_URL", "https://geo.api.gouv.fr")
PLACE_SEARCH_LIMIT = int(os.getenv("PLACE_SEARCH_LIMIT", "10"))

GEONAMES_BASE_URL = os.getenv("GEONAMES_BASE_URL", "https://secure.geonames.org")
GEONAMES_USERNAME = os.getenv("GEONAMES_USERNAME", "demo")
GEONAMES_COUNTRY = os.getenv("GEONAMES_COUNTRY", "FR")
GEONAMES_TIMEOUT_SECONDS = float(os.getenv("GEONAMES_TIMEOUT_SECONDS", "10"))
AREA_MAX_ROWS = int(os.getenv("AREA_MAX_ROWS", "100"))

FUEL_DATASET_URL = os.getenv(
    "FUEL_DATASET_URL",
    "https://data.economie.gouv.fr/api/explore/v2.1/catalog/datasets/"
    "prix-des-carburants-en-france-flux-instantane-v2/records",
)
FUEL_DATASET_TIMEOUT_SECONDS = float(os.getenv("FUEL_DATASET_TIMEOUT_SECONDS", "15"))
FUEL_DATASET_LIMIT = int(os.getenv("FUEL_DATASET_LIMIT", "100"))

ALLOWED_RADII_KM = tuple(
    int(value) for value in os.getenv("ALLOWED_RADII_KM", "5,10,15,20").split(",") if value
)
DEFAULT_RADIUS_KM = int(os.getenv("DEFAULT_RADIUS_KM", "5"))

DEFAULT_CENTER_LATITUDE = float(os.getenv("DEFAULT_CENTER_LATITUDE", "48.864716"))
DEFAULT_CENTER_LONGITUDE = float(os.getenv("DEFAULT_CENTER_LONGITUDE", "2.349014"))
