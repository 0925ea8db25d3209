from django.urls import path

from . import admin_views, api, api_key_views

urlpatterns = [
    # Admin catalog
    path("admin/cloud-providers", admin_views.cloud_providers_collection, name="admin-cloud-providers"),
    path("admin/cloud-providers/enabled", admin_views.cloud_providers_enabled, name="admin-cloud-providers-enabled"),
    path("admin/cloud-providers/<uuid:provider_id>", admin_views.cloud_provider_detail, name="admin-cloud-provider"),
    path(
        "admin/cloud-providers/<uuid:provider_id>/toggle",
        admin_views.cloud_provider_toggle,
        name="admin-cloud-provider-toggle",
    ),
    path("admin/resource-types", admin_views.resource_types_collection, name="admin-resource-types"),
    path("admin/resource-types/enabled", admin_views.resource_types_enabled, name="admin-resource-types-enabled"),
    path(
        "admin/resource-types/category/<str:category>",
        admin_views.resource_types_by_category,
        name="admin-resource-types-by-category",
    ),
    path(
        "admin/resource-types/<uuid:resource_type_id>", admin_views.resource_type_detail, name="admin-resource-type"
    ),
    path(
        "admin/resource-types/<uuid:resource_type_id>/toggle",
        admin_views.resource_type_toggle,
        name="admin-resource-type-toggle",
    ),
    path("admin/resource-type-cloud-mappings", admin_views.mappings_collection, name="admin-mappings"),
    path(
        "admin/resource-type-cloud-mappings/resource-type/<uuid:resource_type_id>",
        admin_views.mappings_by_resource_type,
        name="admin-mappings-by-resource-type",
    ),
    path(
        "admin/resource-type-cloud-mappings/cloud-provider/<uuid:cloud_provider_id>",
        admin_views.mappings_by_cloud_provider,
        name="admin-mappings-by-cloud-provider",
    ),
    path(
        "admin/resource-type-cloud-mappings/resource-type/<uuid:resource_type_id>/cloud-provider/<uuid:cloud_provider_id>",
        admin_views.mapping_find,
        name="admin-mapping-find",
    ),
    path(
        "admin/resource-type-cloud-mappings/<uuid:mapping_id>", admin_views.mapping_detail, name="admin-mapping"
    ),
    path(
        "admin/resource-type-cloud-mappings/<uuid:mapping_id>/toggle",
        admin_views.mapping_toggle,
        name="admin-mapping-toggle",
    ),
    path("admin/property-schemas", admin_views.property_schemas_collection, name="admin-property-schemas"),
    path("admin/property-schemas/bulk", admin_views.property_schemas_bulk, name="admin-property-schemas-bulk"),
    path(
        "admin/property-schemas/mapping/<uuid:mapping_id>",
        admin_views.property_schemas_by_mapping,
        name="admin-property-schemas-by-mapping",
    ),
    path(
        "admin/property-schemas/resource-type/<uuid:resource_type_id>/cloud-provider/<uuid:cloud_provider_id>",
        admin_views.property_schema_map,
        name="admin-property-schema-map",
    ),
    path(
        "admin/property-schemas/<uuid:schema_id>", admin_views.property_schema_detail, name="admin-property-schema"
    ),
    path("admin/dashboard", admin_views.dashboard_overview, name="admin-dashboard"),
    path(
        "admin/dashboard/incomplete-mappings",
        admin_views.dashboard_incomplete_mappings,
        name="admin-dashboard-incomplete-mappings",
    ),
    path("admin/dashboard/statistics", admin_views.dashboard_statistics, name="admin-dashboard-statistics"),
    # Blueprints
    path("blueprints", api.blueprints_collection, name="blueprints"),
    path("blueprints/available-cloud-providers", api.available_cloud_providers, name="blueprint-cloud-providers"),
    path("blueprints/available-resource-types", api.blueprint_resource_types, name="blueprint-resource-types"),
    path(
        "blueprints/resource-schema/<uuid:resource_type_id>/<uuid:cloud_provider_id>",
        api.resource_schema,
        name="blueprint-resource-schema",
    ),
    path("blueprints/<uuid:blueprint_id>", api.blueprint_detail, name="blueprint"),
    path("blueprint-resources", api.blueprint_resources_collection, name="blueprint-resources"),
    path("blueprint-resources/<uuid:resource_id>", api.blueprint_resource_detail, name="blueprint-resource"),
    # Stacks
    path("stacks", api.stacks_collection, name="stacks"),
    path("stacks/type/<str:stack_type>", api.stacks_by_type, name="stacks-by-type"),
    path("stacks/available-cloud-providers", api.available_cloud_providers, name="stack-cloud-providers"),
    path("stacks/available-resource-types", api.stack_resource_types, name="stack-resource-types"),
    path(
        "stacks/resource-schema/<uuid:resource_type_id>/<uuid:cloud_provider_id>",
        api.resource_schema,
        name="stack-resource-schema",
    ),
    path("stacks/<uuid:stack_id>", api.stack_detail, name="stack"),
    path("stack-types", api.stack_types_collection, name="stack-types"),
    path("stack-types/<str:stack_type>", api.stack_type_detail, name="stack-type"),
    path(
        "stack-types/<str:stack_type>/supported-languages",
        api.stack_type_languages,
        name="stack-type-languages",
    ),
    path(
        "stack-types/<str:stack_type>/compute-platform",
        api.stack_type_compute_platform,
        name="stack-type-compute-platform",
    ),
    # Organization
    path("teams", api.teams_collection, name="teams"),
    path("teams/<uuid:team_id>/stacks", api.team_stacks, name="team-stacks"),
    path("stack-collections", api.stack_collections_collection, name="stack-collections"),
    path(
        "stack-collections/<uuid:collection_id>/stacks",
        api.stack_collection_stacks,
        name="stack-collection-stacks",
    ),
    path("domains", api.domains_collection, name="domains"),
    path("domains/<uuid:domain_id>/categories", api.domain_categories, name="domain-categories"),
    path("categories", api.categories_collection, name="categories"),
    path("categories/<uuid:category_id>/stacks", api.category_stacks, name="category-stacks"),
    # Environments
    path("environments", api.environments_collection, name="environments"),
    path("environments/<uuid:environment_id>", api.environment_detail, name="environment"),
    path("environment-configs", api.environment_configs_collection, name="environment-configs"),
    path(
        "environment-configs/<str:environment>/provisioning-info",
        api.environment_provisioning_info,
        name="environment-provisioning-info",
    ),
    path("environment-configs/<str:environment>", api.environment_config_detail, name="environment-config"),
    # API keys
    path("api-keys/user", api_key_views.user_keys, name="api-keys-user"),
    path("api-keys/system", api_key_views.system_keys, name="api-keys-system"),
    path("api-keys/audit-logs", api_key_views.audit_logs, name="api-keys-audit-logs"),
    path("api-keys/<uuid:key_id>", api_key_views.key_detail, name="api-key"),
    path("api-keys/<uuid:key_id>/rotate", api_key_views.key_rotate, name="api-key-rotate"),
    path("api-keys/<uuid:key_id>/name", api_key_views.key_rename, name="api-key-rename"),
    # Principal
    path("user/me", api.user_me, name="user-me"),
    path("user/info", api.user_info, name="user-info"),
    path("auth/headers", api.auth_headers, name="auth-headers"),
]
