from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from .repositories import Record


def cloud_provider_to_payload(provider: Record) -> Dict[str, Any]:
    return {
        "id": provider["id"],
        "name": provider["name"],
        "displayName": provider["display_name"],
        "description": provider.get("description"),
        "enabled": bool(provider.get("enabled")),
        "createdAt": provider.get("created_at"),
        "updatedAt": provider.get("updated_at"),
    }


def resource_type_to_payload(resource_type: Record) -> Dict[str, Any]:
    return {
        "id": resource_type["id"],
        "name": resource_type["name"],
        "displayName": resource_type["display_name"],
        "description": resource_type.get("description"),
        "category": resource_type["category"],
        "enabled": bool(resource_type.get("enabled")),
        "createdAt": resource_type.get("created_at"),
        "updatedAt": resource_type.get("updated_at"),
    }


def mapping_to_payload(
    mapping: Record,
    resource_type: Optional[Record],
    cloud_provider: Optional[Record],
    is_complete: bool,
) -> Dict[str, Any]:
    return {
        "id": mapping["id"],
        "resourceTypeId": mapping["resource_type_id"],
        "resourceTypeName": resource_type["name"] if resource_type else None,
        "cloudProviderId": mapping["cloud_provider_id"],
        "cloudProviderName": cloud_provider["name"] if cloud_provider else None,
        "terraformModuleLocation": mapping.get("terraform_module_location"),
        "moduleLocationType": mapping.get("module_location_type"),
        "enabled": bool(mapping.get("enabled")),
        "isComplete": is_complete,
        "createdAt": mapping.get("created_at"),
        "updatedAt": mapping.get("updated_at"),
    }


def property_schema_to_payload(schema: Record) -> Dict[str, Any]:
    return {
        "id": schema["id"],
        "mappingId": schema["mapping_id"],
        "propertyName": schema["property_name"],
        "displayName": schema["display_name"],
        "description": schema.get("description"),
        "dataType": schema["data_type"],
        "required": bool(schema.get("required")),
        "defaultValue": schema.get("default_value"),
        "validationRules": schema.get("validation_rules"),
        "displayOrder": schema.get("display_order"),
    }


def blueprint_resource_to_payload(resource: Record, resource_type: Optional[Record]) -> Dict[str, Any]:
    return {
        "id": resource["id"],
        "name": resource["name"],
        "description": resource.get("description"),
        "blueprintResourceTypeId": resource.get("resource_type_id"),
        "blueprintResourceTypeName": resource_type["name"] if resource_type else None,
        "configuration": resource.get("configuration") or {},
        "cloudSpecificProperties": resource.get("cloud_specific_properties") or {},
        "cloudType": resource.get("cloud_type"),
    }


def blueprint_to_payload(
    blueprint: Record,
    stack_ids: Iterable[str],
    resources: List[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "id": blueprint["id"],
        "name": blueprint["name"],
        "description": blueprint.get("description"),
        "isActive": blueprint.get("is_active"),
        "createdAt": blueprint.get("created_at"),
        "updatedAt": blueprint.get("updated_at"),
        "stackIds": sorted(stack_ids),
        "supportedCloudProviderIds": sorted(blueprint.get("supported_cloud_provider_ids") or []),
        "resources": resources,
    }


def stack_resource_to_payload(resource: Record) -> Dict[str, Any]:
    return {
        "id": resource["id"],
        "name": resource["name"],
        "description": resource.get("description"),
        "resourceTypeId": resource.get("resource_type_id"),
        "cloudProviderId": resource.get("cloud_provider_id"),
        "configuration": resource.get("configuration") or {},
    }


def stack_to_payload(stack: Record, resources: Iterable[Record] = ()) -> Dict[str, Any]:
    return {
        "id": stack["id"],
        "name": stack["name"],
        "description": stack.get("description"),
        "cloudName": stack["cloud_name"],
        "routePath": stack["route_path"],
        "repositoryURL": stack.get("repository_url"),
        "stackType": stack["stack_type"],
        "programmingLanguage": stack.get("programming_language"),
        "isPublic": stack.get("is_public"),
        "createdBy": stack.get("created_by"),
        "teamId": stack.get("team_id"),
        "stackCollectionId": stack.get("stack_collection_id"),
        "domainId": stack.get("domain_id"),
        "categoryId": stack.get("category_id"),
        "blueprintId": stack.get("blueprint_id"),
        "configuration": stack.get("configuration"),
        "ephemeralPrefix": stack.get("ephemeral_prefix"),
        "createdAt": stack.get("created_at"),
        "updatedAt": stack.get("updated_at"),
        "resources": [stack_resource_to_payload(resource) for resource in resources],
    }


def team_to_payload(team: Record) -> Dict[str, Any]:
    return {
        "id": team["id"],
        "name": team["name"],
        "description": team.get("description"),
        "isActive": team.get("is_active"),
        "createdAt": team.get("created_at"),
        "updatedAt": team.get("updated_at"),
    }


# Collections carry the same shape as teams.
stack_collection_to_payload = team_to_payload


def domain_to_payload(domain: Record) -> Dict[str, Any]:
    return {
        "id": domain["id"],
        "name": domain["name"],
        "isActive": domain.get("is_active"),
        "createdAt": domain.get("created_at"),
        "updatedAt": domain.get("updated_at"),
    }


def category_to_payload(category: Record) -> Dict[str, Any]:
    return {
        "id": category["id"],
        "name": category["name"],
        "domainId": category.get("domain_id"),
        "isActive": category.get("is_active"),
        "createdAt": category.get("created_at"),
        "updatedAt": category.get("updated_at"),
    }


def environment_to_payload(environment: Record) -> Dict[str, Any]:
    return {
        "id": environment["id"],
        "name": environment["name"],
        "description": environment.get("description"),
        "cloudProviderId": environment.get("cloud_provider_id"),
        "blueprintId": environment.get("blueprint_id"),
        "isActive": environment.get("is_active"),
        "createdAt": environment.get("created_at"),
        "updatedAt": environment.get("updated_at"),
    }


def environment_config_to_payload(config: Record) -> Dict[str, Any]:
    return {
        "id": config["id"],
        "environmentId": config.get("environment_id"),
        "name": config["name"],
        "description": config.get("description"),
        "configuration": config.get("configuration"),
        "isActive": config.get("is_active"),
        "createdAt": config.get("created_at"),
        "updatedAt": config.get("updated_at"),
    }


def api_key_status(api_key: Record) -> str:
    if api_key.get("revoked_at") or not api_key.get("is_active"):
        return "REVOKED"
    expires_at = api_key.get("expires_at")
    if expires_at and expires_at <= timezone.now():
        return "EXPIRED"
    return "ACTIVE"


def api_key_to_payload(api_key: Record, plaintext: Optional[str] = None) -> Dict[str, Any]:
    now = timezone.now()
    expires_at = api_key.get("expires_at")
    expiring_soon = bool(expires_at and now < expires_at <= now + timedelta(days=7))
    payload = {
        "id": api_key["id"],
        "keyName": api_key["key_name"],
        "keyPrefix": api_key["key_prefix"],
        "keyType": api_key["key_type"],
        "userEmail": api_key.get("user_email"),
        "createdByEmail": api_key.get("created_by_email"),
        "createdAt": api_key.get("created_at"),
        "expiresAt": expires_at,
        "lastUsedAt": api_key.get("last_used_at"),
        "isActive": bool(api_key.get("is_active")),
        "isExpiringSoon": expiring_soon,
        "status": api_key_status(api_key),
    }
    if plaintext:
        payload["apiKey"] = plaintext
    return payload


def api_key_audit_to_payload(entry: Record) -> Dict[str, Any]:
    changes = entry.get("changes") or {}
    return {
        "id": entry["id"],
        "userEmail": entry.get("user_email"),
        "action": entry.get("action"),
        "timestamp": entry.get("timestamp"),
        "keyPrefix": changes.get("keyPrefix"),
        "sourceIp": changes.get("sourceIp"),
    }
