from django.apps import AppConfig


class IdpPlatformConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "idp_platform"
    label = "idp_platform"
    verbose_name = "Internal developer platform"
