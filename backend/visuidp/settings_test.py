from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

IDP_DATABASE_PROVIDER = "postgresql"
IDP_DEMO_MODE = False
IDP_ENTRA_ID_ENABLED = False
IDP_ADMIN_GROUP = "admins"
IDP_API_KEY_BCRYPT_ROUNDS = 4

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}
