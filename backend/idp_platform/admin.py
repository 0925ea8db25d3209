from django.contrib import admin

from .models import (
    AdminAuditLog,
    ApiKey,
    Blueprint,
    BlueprintResource,
    Category,
    CloudProvider,
    Domain,
    EnvironmentConfig,
    EnvironmentEntity,
    PropertySchema,
    ResourceType,
    ResourceTypeCloudMapping,
    Stack,
    StackCollection,
    StackResource,
    Team,
)


@admin.register(CloudProvider)
class CloudProviderAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "enabled", "updated_at")
    list_filter = ("enabled",)
    search_fields = ("name", "display_name")


@admin.register(ResourceType)
class ResourceTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "category", "enabled")
    list_filter = ("category", "enabled")
    search_fields = ("name", "display_name")


class PropertySchemaInline(admin.TabularInline):
    model = PropertySchema
    extra = 0
    fields = ("property_name", "display_name", "data_type", "required", "display_order")


@admin.register(ResourceTypeCloudMapping)
class ResourceTypeCloudMappingAdmin(admin.ModelAdmin):
    list_display = ("resource_type", "cloud_provider", "module_location_type", "enabled")
    list_filter = ("cloud_provider", "enabled")
    inlines = [PropertySchemaInline]


@admin.register(PropertySchema)
class PropertySchemaAdmin(admin.ModelAdmin):
    list_display = ("property_name", "mapping", "data_type", "required", "display_order")
    list_filter = ("data_type", "required")
    search_fields = ("property_name", "display_name")


class BlueprintResourceInline(admin.TabularInline):
    model = BlueprintResource
    extra = 0
    fields = ("name", "resource_type", "cloud_provider", "cloud_type", "is_active")


@admin.register(Blueprint)
class BlueprintAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at", "updated_at")
    search_fields = ("name",)
    filter_horizontal = ("supported_cloud_providers",)
    inlines = [BlueprintResourceInline]


class StackResourceInline(admin.TabularInline):
    model = StackResource
    extra = 0
    fields = ("name", "resource_type", "cloud_provider")


@admin.register(Stack)
class StackAdmin(admin.ModelAdmin):
    list_display = ("name", "cloud_name", "stack_type", "created_by", "created_at")
    list_filter = ("stack_type", "programming_language")
    search_fields = ("name", "cloud_name", "route_path", "created_by")
    inlines = [StackResourceInline]


@admin.register(Team, StackCollection)
class GroupingAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    search_fields = ("name",)


@admin.register(Domain)
class DomainAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active")
    search_fields = ("name",)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "domain", "is_active")
    list_filter = ("domain",)
    search_fields = ("name",)


@admin.register(EnvironmentEntity)
class EnvironmentEntityAdmin(admin.ModelAdmin):
    list_display = ("name", "cloud_provider", "blueprint", "is_active")


@admin.register(EnvironmentConfig)
class EnvironmentConfigAdmin(admin.ModelAdmin):
    list_display = ("name", "environment", "is_active", "updated_at")


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    list_display = ("key_name", "key_prefix", "key_type", "user_email", "is_active", "expires_at")
    list_filter = ("key_type", "is_active")
    search_fields = ("key_name", "key_prefix", "user_email")
    readonly_fields = ("key_hash", "key_prefix", "created_at", "last_used_at", "revoked_at")


@admin.register(AdminAuditLog)
class AdminAuditLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "user_email", "action", "entity_type", "entity_id")
    list_filter = ("action", "entity_type")
    search_fields = ("user_email", "entity_id")
    readonly_fields = ("timestamp",)
