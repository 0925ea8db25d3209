from typing import Any, Dict, List

from ..repositories import get_store
from . import catalog


def get_statistics() -> Dict[str, int]:
    store = get_store()
    total_providers = store.cloud_providers.count()
    enabled_providers = store.cloud_providers.count(enabled=True)
    total_types = store.resource_types.count()
    enabled_types = store.resource_types.count(enabled=True)
    mappings = store.resource_type_cloud_mappings.all()
    enabled_mappings = len([mapping for mapping in mappings if mapping.get("enabled")])
    complete_mappings = len([mapping for mapping in mappings if catalog.is_mapping_complete(mapping)])
    return {
        "totalCloudProviders": total_providers,
        "enabledCloudProviders": enabled_providers,
        "disabledCloudProviders": total_providers - enabled_providers,
        "totalResourceTypes": total_types,
        "enabledResourceTypes": enabled_types,
        "disabledResourceTypes": total_types - enabled_types,
        "totalMappings": len(mappings),
        "enabledMappings": enabled_mappings,
        "disabledMappings": len(mappings) - enabled_mappings,
        "completeMappings": complete_mappings,
        "incompleteMappings": len(mappings) - complete_mappings,
        "totalPropertySchemas": store.property_schemas.count(),
    }


def get_incomplete_mappings() -> List[Dict[str, Any]]:
    return [mapping for mapping in catalog.list_mappings() if not mapping["isComplete"]]


def get_dashboard() -> Dict[str, Any]:
    return {
        "cloudProviders": catalog.list_cloud_providers(),
        "resourceTypes": catalog.list_resource_types(),
        "mappings": catalog.list_mappings(),
        "statistics": get_statistics(),
    }
