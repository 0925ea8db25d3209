import uuid

from django.db import models
from django.utils import timezone

from .constants import (
    API_KEY_TYPE_CHOICES,
    MODULE_LOCATION_TYPE_CHOICES,
    PROGRAMMING_LANGUAGE_CHOICES,
    PROPERTY_DATA_TYPE_CHOICES,
    RESOURCE_CATEGORY_CHOICES,
    STACK_TYPE_CHOICES,
)


class CloudProvider(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    enabled = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.display_name or self.name


class ResourceType(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    category = models.CharField(max_length=20, choices=RESOURCE_CATEGORY_CHOICES)
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="idx_resource_types_category"),
        ]

    def __str__(self) -> str:
        return self.name


class ResourceTypeCloudMapping(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    resource_type = models.ForeignKey(ResourceType, on_delete=models.CASCADE, related_name="cloud_mappings")
    cloud_provider = models.ForeignKey(CloudProvider, on_delete=models.CASCADE, related_name="resource_mappings")
    terraform_module_location = models.CharField(max_length=2048)
    module_location_type = models.CharField(max_length=20, choices=MODULE_LOCATION_TYPE_CHOICES)
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["resource_type", "cloud_provider"], name="uq_resource_type_cloud_provider"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.resource_type_id} @ {self.cloud_provider_id}"


class PropertySchema(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    mapping = models.ForeignKey(ResourceTypeCloudMapping, on_delete=models.CASCADE, related_name="properties")
    property_name = models.CharField(max_length=100)
    display_name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    data_type = models.CharField(max_length=20, choices=PROPERTY_DATA_TYPE_CHOICES)
    required = models.BooleanField(default=False)
    default_value = models.JSONField(null=True, blank=True)
    validation_rules = models.JSONField(null=True, blank=True)
    display_order = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["display_order", "property_name"]
        constraints = [
            models.UniqueConstraint(fields=["mapping", "property_name"], name="uq_property_name_per_mapping"),
        ]

    def __str__(self) -> str:
        return self.property_name


class Blueprint(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=500, null=True, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    supported_cloud_providers = models.ManyToManyField(
        CloudProvider, blank=True, related_name="blueprints", db_table="idp_platform_blueprint_cloud_providers"
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class BlueprintResource(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    blueprint = models.ForeignKey(Blueprint, on_delete=models.CASCADE, related_name="resources")
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, null=True, blank=True)
    resource_type = models.ForeignKey(ResourceType, on_delete=models.PROTECT, related_name="blueprint_resources")
    cloud_provider = models.ForeignKey(
        CloudProvider, null=True, blank=True, on_delete=models.SET_NULL, related_name="blueprint_resources"
    )
    cloud_type = models.CharField(max_length=50, null=True, blank=True)
    configuration = models.JSONField(default=dict, blank=True)
    cloud_specific_properties = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.name


class Team(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=500, null=True, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class StackCollection(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=500, null=True, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Domain(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Category(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    domain = models.ForeignKey(Domain, on_delete=models.CASCADE, related_name="categories")
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"
        constraints = [
            models.UniqueConstraint(fields=["name", "domain"], name="uq_category_name_domain"),
        ]

    def __str__(self) -> str:
        return self.name


class Stack(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, null=True, blank=True)
    cloud_name = models.CharField(max_length=60, unique=True)
    route_path = models.CharField(max_length=22, unique=True)
    repository_url = models.CharField(max_length=2048, null=True, blank=True)
    stack_type = models.CharField(max_length=40, choices=STACK_TYPE_CHOICES)
    programming_language = models.CharField(
        max_length=20, choices=PROGRAMMING_LANGUAGE_CHOICES, null=True, blank=True
    )
    is_public = models.BooleanField(null=True, blank=True)
    created_by = models.CharField(max_length=100)
    team = models.ForeignKey(Team, null=True, blank=True, on_delete=models.SET_NULL, related_name="stacks")
    stack_collection = models.ForeignKey(
        StackCollection, null=True, blank=True, on_delete=models.SET_NULL, related_name="stacks"
    )
    domain = models.ForeignKey(Domain, null=True, blank=True, on_delete=models.SET_NULL, related_name="stacks")
    category = models.ForeignKey(Category, null=True, blank=True, on_delete=models.SET_NULL, related_name="stacks")
    blueprint = models.ForeignKey(Blueprint, null=True, blank=True, on_delete=models.SET_NULL, related_name="stacks")
    configuration = models.JSONField(null=True, blank=True)
    ephemeral_prefix = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_by"], name="idx_stacks_created_by"),
            models.Index(fields=["stack_type"], name="idx_stacks_stack_type"),
        ]

    def __str__(self) -> str:
        return self.name


class StackResource(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stack = models.ForeignKey(Stack, on_delete=models.CASCADE, related_name="resources")
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, null=True, blank=True)
    resource_type = models.ForeignKey(
        ResourceType, null=True, blank=True, on_delete=models.SET_NULL, related_name="stack_resources"
    )
    cloud_provider = models.ForeignKey(
        CloudProvider, null=True, blank=True, on_delete=models.SET_NULL, related_name="stack_resources"
    )
    configuration = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.name


class EnvironmentEntity(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    cloud_provider = models.ForeignKey(CloudProvider, on_delete=models.PROTECT, related_name="environments")
    blueprint = models.ForeignKey(
        Blueprint, null=True, blank=True, on_delete=models.SET_NULL, related_name="environments"
    )
    description = models.CharField(max_length=500, null=True, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class EnvironmentConfig(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    environment = models.OneToOneField(EnvironmentEntity, on_delete=models.CASCADE, related_name="config")
    name = models.CharField(max_length=200)
    description = models.CharField(max_length=500, null=True, blank=True)
    configuration = models.JSONField(null=True, blank=True)
    is_active = models.BooleanField(default=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ApiKey(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key_name = models.CharField(max_length=100)
    key_hash = models.CharField(max_length=255, unique=True)
    key_prefix = models.CharField(max_length=20, db_index=True)
    key_type = models.CharField(max_length=20, choices=API_KEY_TYPE_CHOICES)
    user_email = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    created_by_email = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(null=True, blank=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    revoked_by_email = models.CharField(max_length=255, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    rotated_from = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.SET_NULL, related_name="rotations"
    )
    grace_period_ends_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(key_type="USER", user_email__isnull=False)
                    | models.Q(key_type="SYSTEM", user_email__isnull=True)
                ),
                name="chk_user_key_has_email",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.key_name} ({self.key_prefix})"


class AdminAuditLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_email = models.CharField(max_length=255, db_index=True)
    action = models.CharField(max_length=50)
    entity_type = models.CharField(max_length=100)
    entity_id = models.UUIDField(null=True, blank=True)
    changes = models.JSONField(null=True, blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="idx_audit_logs_entity"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}"
