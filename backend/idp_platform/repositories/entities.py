from dataclasses import dataclass, field
from typing import Dict, Tuple

_TIMESTAMPS = ("created_at", "updated_at")


@dataclass(frozen=True)
class EntitySpec:
    """Storage description of one entity, shared by every repository backend.

    Records are plain dicts keyed by ``fields``. Foreign keys use the ``<name>_id``
    attribute names so a record can be handed to the ORM as-is.
    """

    name: str
    model: str
    fields: Tuple[str, ...]
    json_fields: Tuple[str, ...] = ()
    datetime_fields: Tuple[str, ...] = _TIMESTAMPS
    indexes: Tuple[str, ...] = ()
    m2m_fields: Dict[str, str] = field(default_factory=dict)

    def has_field(self, name: str) -> bool:
        return name in self.fields


CLOUD_PROVIDERS = EntitySpec(
    name="cloud_providers",
    model="CloudProvider",
    fields=("id", "name", "display_name", "description", "enabled", *_TIMESTAMPS),
    indexes=("name",),
)

RESOURCE_TYPES = EntitySpec(
    name="resource_types",
    model="ResourceType",
    fields=("id", "name", "display_name", "description", "category", "enabled", *_TIMESTAMPS),
    indexes=("name", "category"),
)

RESOURCE_TYPE_CLOUD_MAPPINGS = EntitySpec(
    name="resource_type_cloud_mappings",
    model="ResourceTypeCloudMapping",
    fields=(
        "id",
        "resource_type_id",
        "cloud_provider_id",
        "terraform_module_location",
        "module_location_type",
        "enabled",
        *_TIMESTAMPS,
    ),
    indexes=("resource_type_id", "cloud_provider_id"),
)

PROPERTY_SCHEMAS = EntitySpec(
    name="property_schemas",
    model="PropertySchema",
    fields=(
        "id",
        "mapping_id",
        "property_name",
        "display_name",
        "description",
        "data_type",
        "required",
        "default_value",
        "validation_rules",
        "display_order",
        *_TIMESTAMPS,
    ),
    json_fields=("default_value", "validation_rules"),
    indexes=("mapping_id",),
)

BLUEPRINTS = EntitySpec(
    name="blueprints",
    model="Blueprint",
    fields=("id", "name", "description", "is_active", "supported_cloud_provider_ids", *_TIMESTAMPS),
    indexes=("name",),
    m2m_fields={"supported_cloud_provider_ids": "supported_cloud_providers"},
)

BLUEPRINT_RESOURCES = EntitySpec(
    name="blueprint_resources",
    model="BlueprintResource",
    fields=(
        "id",
        "blueprint_id",
        "name",
        "description",
        "resource_type_id",
        "cloud_provider_id",
        "cloud_type",
        "configuration",
        "cloud_specific_properties",
        "is_active",
        *_TIMESTAMPS,
    ),
    json_fields=("configuration", "cloud_specific_properties"),
    indexes=("blueprint_id", "resource_type_id"),
)

TEAMS = EntitySpec(
    name="teams",
    model="Team",
    fields=("id", "name", "description", "is_active", *_TIMESTAMPS),
    indexes=("name",),
)

STACK_COLLECTIONS = EntitySpec(
    name="stack_collections",
    model="StackCollection",
    fields=("id", "name", "description", "is_active", *_TIMESTAMPS),
    indexes=("name",),
)

DOMAINS = EntitySpec(
    name="domains",
    model="Domain",
    fields=("id", "name", "is_active", *_TIMESTAMPS),
    indexes=("name",),
)

CATEGORIES = EntitySpec(
    name="categories",
    model="Category",
    fields=("id", "name", "domain_id", "is_active", *_TIMESTAMPS),
    indexes=("domain_id",),
)

STACKS = EntitySpec(
    name="stacks",
    model="Stack",
    fields=(
        "id",
        "name",
        "description",
        "cloud_name",
        "route_path",
        "repository_url",
        "stack_type",
        "programming_language",
        "is_public",
        "created_by",
        "team_id",
        "stack_collection_id",
        "domain_id",
        "category_id",
        "blueprint_id",
        "configuration",
        "ephemeral_prefix",
        *_TIMESTAMPS,
    ),
    json_fields=("configuration",),
    indexes=(
        "created_by",
        "stack_type",
        "cloud_name",
        "route_path",
        "team_id",
        "stack_collection_id",
        "category_id",
        "blueprint_id",
    ),
)

STACK_RESOURCES = EntitySpec(
    name="stack_resources",
    model="StackResource",
    fields=(
        "id",
        "stack_id",
        "name",
        "description",
        "resource_type_id",
        "cloud_provider_id",
        "configuration",
        *_TIMESTAMPS,
    ),
    json_fields=("configuration",),
    indexes=("stack_id",),
)

ENVIRONMENTS = EntitySpec(
    name="environments",
    model="EnvironmentEntity",
    fields=("id", "name", "cloud_provider_id", "blueprint_id", "description", "is_active", *_TIMESTAMPS),
    indexes=("name", "cloud_provider_id", "blueprint_id"),
)

ENVIRONMENT_CONFIGS = EntitySpec(
    name="environment_configs",
    model="EnvironmentConfig",
    fields=("id", "environment_id", "name", "description", "configuration", "is_active", *_TIMESTAMPS),
    json_fields=("configuration",),
    indexes=("environment_id", "name"),
)

API_KEYS = EntitySpec(
    name="api_keys",
    model="ApiKey",
    fields=(
        "id",
        "key_name",
        "key_hash",
        "key_prefix",
        "key_type",
        "user_email",
        "created_by_email",
        "created_at",
        "expires_at",
        "last_used_at",
        "revoked_at",
        "revoked_by_email",
        "is_active",
        "rotated_from_id",
        "grace_period_ends_at",
    ),
    datetime_fields=("created_at", "expires_at", "last_used_at", "revoked_at", "grace_period_ends_at"),
    indexes=("key_prefix", "user_email", "key_type"),
)

ADMIN_AUDIT_LOGS = EntitySpec(
    name="admin_audit_logs",
    model="AdminAuditLog",
    fields=("id", "user_email", "action", "entity_type", "entity_id", "changes", "timestamp"),
    json_fields=("changes",),
    datetime_fields=("timestamp",),
    indexes=("user_email", "entity_type"),
)

ENTITY_SPECS: Tuple[EntitySpec, ...] = (
    CLOUD_PROVIDERS,
    RESOURCE_TYPES,
    RESOURCE_TYPE_CLOUD_MAPPINGS,
    PROPERTY_SCHEMAS,
    BLUEPRINTS,
    BLUEPRINT_RESOURCES,
    TEAMS,
    STACK_COLLECTIONS,
    DOMAINS,
    CATEGORIES,
    STACKS,
    STACK_RESOURCES,
    ENVIRONMENTS,
    ENVIRONMENT_CONFIGS,
    API_KEYS,
    ADMIN_AUDIT_LOGS,
)
