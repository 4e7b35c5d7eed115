"""
Django settings for the photobooth order service.

Everything that differs between environments is read from the process
environment; the defaults target local development with SQLite.
"""
import os
from pathlib import Path

import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-photobooth-dev-key")
DEBUG = os.getenv("DEBUG", "False").lower() == "true"

ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "orders.apps.OrdersConfig",
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

ROOT_URLCONF = "photobooth.urls"

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

ASGI_APPLICATION = "photobooth.asgi.application"

DATABASES = {
    "default": dj_database_url.config(
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=int(os.getenv("DB_CONN_MAX_AGE", "60")),
    )
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Orders
ORDER_DEFAULT_CURRENCY = os.getenv("ORDER_DEFAULT_CURRENCY", "USD")
ORDER_FLAT_FEES = {
    "album": os.getenv("ORDER_ALBUM_FEE", "5.00"),
    "collage": os.getenv("ORDER_COLLAGE_FEE", "3.00"),
}
ORDER_DEFAULT_PAGE_SIZE = int(os.getenv("ORDER_DEFAULT_PAGE_SIZE", "20"))
ORDER_MAX_PAGE_SIZE = int(os.getenv("ORDER_MAX_PAGE_SIZE", "100"))
ORDER_RETENTION_DAYS = int(os.getenv("ORDER_RETENTION_DAYS", "90"))
ORDER_TRANSITION_RETRIES = int(os.getenv("ORDER_TRANSITION_RETRIES", "3"))
# orders.infra.memory.InMemoryOrderRepository keeps orders in process memory.
ORDER_REPOSITORY = os.getenv(
    "ORDER_REPOSITORY",
    "orders.infra.repositories.OrderRepository",
)
ORDER_FULFILLMENT_STAGE = os.getenv(
    "ORDER_FULFILLMENT_STAGE",
    "orders.services.processing.PlaceholderFulfillmentStage",
)

# Uploads
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
UPLOAD_BUCKET_NAME = os.getenv("UPLOAD_BUCKET_NAME", "photobooth-uploads")
UPLOAD_MAX_FILE_SIZE_MB = int(os.getenv("MAX_UPLOAD_MB", "50"))
UPLOAD_URL_TTL_SECONDS = int(os.getenv("UPLOAD_URL_TTL_SECONDS", "3600"))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {"()": "orders.utils.logging.JsonFormatter"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.getenv("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "django.db.backends": {"level": "WARNING"},
    },
}
