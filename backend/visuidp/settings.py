import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = [host.strip() for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",") if host.strip()]
if "*" not in ALLOWED_HOSTS and "idp-api" not in ALLOWED_HOSTS:
    ALLOWED_HOSTS.append("idp-api")

# Traefik terminates TLS and forwards the original scheme/host.
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "idp_platform.apps.IdpPlatformConfig",
]

MIDDLEWARE = [
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "visuidp.middleware.PrincipalAuthMiddleware",
    "visuidp.middleware.DemoModeMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "visuidp.urls"

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
    }
]

WSGI_APPLICATION = "visuidp.wsgi.application"

if os.environ.get("IDP_DATABASE_ENGINE", "postgresql").strip().lower() == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("IDP_SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("POSTGRES_DB", "visuidp"),
            "USER": os.environ.get("POSTGRES_USER", "visuidp"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "visuidp"),
            "HOST": os.environ.get("POSTGRES_HOST", "db"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        }
    }

# Repository backend used by the application services: "postgresql" (Django ORM) or "dynamodb".
IDP_DATABASE_PROVIDER = os.environ.get("IDP_DATABASE_PROVIDER", "postgresql").strip().lower()
IDP_DYNAMODB_TABLE_PREFIX = os.environ.get("IDP_DYNAMODB_TABLE_PREFIX", "idp_")
IDP_DYNAMODB_ENDPOINT_URL = os.environ.get("IDP_DYNAMODB_ENDPOINT_URL", "").strip()
IDP_AWS_REGION = (os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or "").strip()

IDP_DEMO_MODE = os.environ.get("IDP_DEMO_MODE", "false").lower() == "true"
IDP_ADMIN_GROUP = os.environ.get("IDP_ADMIN_GROUP", "admins").strip()
IDP_ENTRA_ID_ENABLED = os.environ.get("IDP_ENTRA_ID_ENABLED", "false").lower() == "true"
IDP_ENTRA_ID_ADMIN_GROUP_ID = os.environ.get("IDP_ENTRA_ID_ADMIN_GROUP_ID", "").strip()

IDP_API_KEY_DEFAULT_EXPIRATION_DAYS = int(os.environ.get("IDP_API_KEY_DEFAULT_EXPIRATION_DAYS", "90"))
IDP_API_KEY_MAX_PER_USER = int(os.environ.get("IDP_API_KEY_MAX_PER_USER", "10"))
IDP_API_KEY_ROTATION_GRACE_HOURS = int(os.environ.get("IDP_API_KEY_ROTATION_GRACE_HOURS", "24"))
IDP_API_KEY_BCRYPT_ROUNDS = int(os.environ.get("IDP_API_KEY_BCRYPT_ROUNDS", "12"))

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

CSRF_TRUSTED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CSRF_TRUSTED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
}

IDP_LOG_LEVEL = os.environ.get("IDP_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "visuidp": {"handlers": ["console"], "level": IDP_LOG_LEVEL, "propagate": False},
        "idp_platform": {"handlers": ["console"], "level": IDP_LOG_LEVEL, "propagate": False},
    },
}
