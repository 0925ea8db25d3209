import logging
from typing import Any, Dict, List, Optional

from ..audit import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_TOGGLE_ENABLED,
    ACTION_UPDATE,
    record_admin_action,
)
from ..constants import RESOURCE_CATEGORIES
from ..exceptions import InvalidState, NotFound, ValidationFailed
from ..payloads import (
    cloud_provider_to_payload,
    mapping_to_payload,
    property_schema_to_payload,
    resource_type_to_payload,
)
from ..repositories import Record, get_store

logger = logging.getLogger(__name__)

CLOUD_PROVIDER = "CloudProvider"
RESOURCE_TYPE = "ResourceType"
MAPPING = "ResourceTypeCloudMapping"
PROPERTY_SCHEMA = "PropertySchema"

INCOMPLETE_MAPPING_MESSAGE = (
    "Cannot enable incomplete mapping. Mapping must have a Terraform module location "
    "and at least one property schema."
)


def _by_name(records: List[Record]) -> List[Record]:
    return sorted(records, key=lambda record: (record.get("name") or "").lower())


def _audit(actor: Optional[str], action: str, entity_type: str, entity_id: Optional[str], changes: Any) -> None:
    if actor:
        record_admin_action(actor, action, entity_type, entity_id, changes)


# Cloud providers


def require_cloud_provider(provider_id: str) -> Record:
    provider = get_store().cloud_providers.get(provider_id)
    if not provider:
        raise NotFound(f"Cloud provider not found with id: {provider_id}")
    return provider


def list_cloud_providers() -> List[Dict[str, Any]]:
    return [cloud_provider_to_payload(p) for p in _by_name(get_store().cloud_providers.all())]


def list_enabled_cloud_providers() -> List[Dict[str, Any]]:
    providers = get_store().cloud_providers.filter(enabled=True)
    return [cloud_provider_to_payload(p) for p in _by_name(providers)]


def get_cloud_provider(provider_id: str) -> Dict[str, Any]:
    return cloud_provider_to_payload(require_cloud_provider(provider_id))


def create_cloud_provider(data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    if store.cloud_providers.exists(name=data["name"]):
        raise ValidationFailed(f"Cloud provider with name '{data['name']}' already exists")
    provider = store.cloud_providers.save(
        {
            "name": data["name"],
            "display_name": data["display_name"],
            "description": data.get("description"),
            "enabled": bool(data.get("enabled", False)),
        }
    )
    payload = cloud_provider_to_payload(provider)
    _audit(actor, ACTION_CREATE, CLOUD_PROVIDER, provider["id"], {"created": payload})
    return payload


def update_cloud_provider(provider_id: str, data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    provider = require_cloud_provider(provider_id)
    name = data.get("name")
    if name and name != provider["name"]:
        if store.cloud_providers.exists(name=name):
            raise ValidationFailed(f"Cloud provider with name '{name}' already exists")
        provider["name"] = name
    for field in ("display_name", "description", "enabled"):
        if data.get(field) is not None:
            provider[field] = data[field]
    payload = cloud_provider_to_payload(store.cloud_providers.save(provider))
    _audit(actor, ACTION_UPDATE, CLOUD_PROVIDER, provider_id, data)
    return payload


def toggle_cloud_provider(provider_id: str, enabled: bool, actor: Optional[str] = None) -> None:
    provider = require_cloud_provider(provider_id)
    provider["enabled"] = bool(enabled)
    get_store().cloud_providers.save(provider)
    _audit(actor, ACTION_TOGGLE_ENABLED, CLOUD_PROVIDER, provider_id, {"enabled": bool(enabled)})


def delete_cloud_provider(provider_id: str, actor: Optional[str] = None) -> None:
    store = get_store()
    require_cloud_provider(provider_id)
    environments = store.environments.filter(cloud_provider_id=provider_id)
    if environments:
        names = ", ".join(sorted(env["name"] for env in environments))
        raise ValidationFailed(f"Cloud provider is used by environment(s): {names}")
    with store.atomic():
        for mapping in store.resource_type_cloud_mappings.filter(cloud_provider_id=provider_id):
            _delete_mapping_tree(mapping["id"])
        for blueprint in store.blueprints.all():
            provider_ids = blueprint.get("supported_cloud_provider_ids") or []
            if provider_id in provider_ids:
                blueprint["supported_cloud_provider_ids"] = [pid for pid in provider_ids if pid != provider_id]
                store.blueprints.save(blueprint)
        for resource in store.blueprint_resources.filter(cloud_provider_id=provider_id):
            resource["cloud_provider_id"] = None
            store.blueprint_resources.save(resource)
        for resource in store.stack_resources.filter(cloud_provider_id=provider_id):
            resource["cloud_provider_id"] = None
            store.stack_resources.save(resource)
        store.cloud_providers.delete(provider_id)
    _audit(actor, ACTION_DELETE, CLOUD_PROVIDER, provider_id, {"deletedId": provider_id})


# Resource types


def require_resource_type(resource_type_id: str) -> Record:
    resource_type = get_store().resource_types.get(resource_type_id)
    if not resource_type:
        raise NotFound(f"Resource type not found with id: {resource_type_id}")
    return resource_type


def list_resource_types() -> List[Dict[str, Any]]:
    return [resource_type_to_payload(rt) for rt in _by_name(get_store().resource_types.all())]


def list_resource_types_by_category(category: str) -> List[Dict[str, Any]]:
    category = (category or "").upper()
    if category not in RESOURCE_CATEGORIES:
        raise ValidationFailed(f"Invalid resource category: {category}")
    return [resource_type_to_payload(rt) for rt in _by_name(get_store().resource_types.filter(category=category))]


def list_enabled_resource_types(categories: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    resource_types = get_store().resource_types.filter(enabled=True)
    if categories is not None:
        resource_types = [rt for rt in resource_types if rt["category"] in categories]
    return [resource_type_to_payload(rt) for rt in _by_name(resource_types)]


def get_resource_type(resource_type_id: str) -> Dict[str, Any]:
    return resource_type_to_payload(require_resource_type(resource_type_id))


def create_resource_type(data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    if store.resource_types.exists(name=data["name"]):
        raise ValidationFailed(f"Resource type with name '{data['name']}' already exists")
    resource_type = store.resource_types.save(
        {
            "name": data["name"],
            "display_name": data["display_name"],
            "description": data.get("description"),
            "category": data["category"],
            "enabled": False,
        }
    )
    payload = resource_type_to_payload(resource_type)
    _audit(actor, ACTION_CREATE, RESOURCE_TYPE, resource_type["id"], {"created": payload})
    return payload


def update_resource_type(resource_type_id: str, data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    resource_type = require_resource_type(resource_type_id)
    name = data.get("name")
    if name and name != resource_type["name"]:
        if store.resource_types.exists(name=name):
            raise ValidationFailed(f"Resource type with name '{name}' already exists")
        resource_type["name"] = name
    for field in ("display_name", "description", "category", "enabled"):
        if data.get(field) is not None:
            resource_type[field] = data[field]
    payload = resource_type_to_payload(store.resource_types.save(resource_type))
    _audit(actor, ACTION_UPDATE, RESOURCE_TYPE, resource_type_id, data)
    return payload


def toggle_resource_type(resource_type_id: str, enabled: bool, actor: Optional[str] = None) -> None:
    resource_type = require_resource_type(resource_type_id)
    resource_type["enabled"] = bool(enabled)
    get_store().resource_types.save(resource_type)
    _audit(actor, ACTION_TOGGLE_ENABLED, RESOURCE_TYPE, resource_type_id, {"enabled": bool(enabled)})


def delete_resource_type(resource_type_id: str, actor: Optional[str] = None) -> None:
    store = get_store()
    require_resource_type(resource_type_id)
    if store.blueprint_resources.exists(resource_type_id=resource_type_id):
        raise ValidationFailed("Resource type is used by blueprint resources and cannot be deleted")
    with store.atomic():
        for mapping in store.resource_type_cloud_mappings.filter(resource_type_id=resource_type_id):
            _delete_mapping_tree(mapping["id"])
        for resource in store.stack_resources.filter(resource_type_id=resource_type_id):
            resource["resource_type_id"] = None
            store.stack_resources.save(resource)
        store.resource_types.delete(resource_type_id)
    _audit(actor, ACTION_DELETE, RESOURCE_TYPE, resource_type_id, {"deletedId": resource_type_id})


# Resource type / cloud mappings


def require_mapping(mapping_id: str) -> Record:
    mapping = get_store().resource_type_cloud_mappings.get(mapping_id)
    if not mapping:
        raise NotFound(f"Resource type cloud mapping not found with id: {mapping_id}")
    return mapping


def find_mapping_record(resource_type_id: str, cloud_provider_id: str) -> Optional[Record]:
    return get_store().resource_type_cloud_mappings.first(
        resource_type_id=resource_type_id, cloud_provider_id=cloud_provider_id
    )


def is_mapping_complete(mapping: Record) -> bool:
    if not (mapping.get("terraform_module_location") or "").strip():
        return False
    return get_store().property_schemas.exists(mapping_id=mapping["id"])


def _mapping_payload(mapping: Record) -> Dict[str, Any]:
    store = get_store()
    return mapping_to_payload(
        mapping,
        store.resource_types.get(mapping["resource_type_id"]),
        store.cloud_providers.get(mapping["cloud_provider_id"]),
        is_mapping_complete(mapping),
    )


def _require_complete(mapping: Record) -> None:
    if not is_mapping_complete(mapping):
        raise InvalidState(INCOMPLETE_MAPPING_MESSAGE)


def _mapping_payloads(mappings: List[Record]) -> List[Dict[str, Any]]:
    ordered = sorted(mappings, key=lambda m: (str(m.get("created_at") or ""), m["id"]))
    return [_mapping_payload(mapping) for mapping in ordered]


def list_mappings() -> List[Dict[str, Any]]:
    return _mapping_payloads(get_store().resource_type_cloud_mappings.all())


def list_mappings_by_resource_type(resource_type_id: str) -> List[Dict[str, Any]]:
    return _mapping_payloads(get_store().resource_type_cloud_mappings.filter(resource_type_id=resource_type_id))


def list_mappings_by_cloud_provider(cloud_provider_id: str) -> List[Dict[str, Any]]:
    return _mapping_payloads(get_store().resource_type_cloud_mappings.filter(cloud_provider_id=cloud_provider_id))


def get_mapping(mapping_id: str) -> Dict[str, Any]:
    return _mapping_payload(require_mapping(mapping_id))


def find_mapping(resource_type_id: str, cloud_provider_id: str) -> Dict[str, Any]:
    mapping = find_mapping_record(resource_type_id, cloud_provider_id)
    if not mapping:
        raise NotFound(
            f"Mapping not found for resource type id: {resource_type_id} and cloud provider id: {cloud_provider_id}"
        )
    return _mapping_payload(mapping)


def create_mapping(data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    resource_type = require_resource_type(data["resource_type_id"])
    provider = require_cloud_provider(data["cloud_provider_id"])
    if find_mapping_record(resource_type["id"], provider["id"]):
        raise ValidationFailed(
            f"Mapping already exists for resource type '{resource_type['name']}' "
            f"and cloud provider '{provider['name']}'"
        )
    if data.get("enabled"):
        # A new mapping has no property schemas yet.
        raise InvalidState(INCOMPLETE_MAPPING_MESSAGE)
    mapping = store.resource_type_cloud_mappings.save(
        {
            "resource_type_id": resource_type["id"],
            "cloud_provider_id": provider["id"],
            "terraform_module_location": data["terraform_module_location"],
            "module_location_type": data["module_location_type"],
            "enabled": False,
        }
    )
    payload = _mapping_payload(mapping)
    _audit(actor, ACTION_CREATE, MAPPING, mapping["id"], {"created": payload})
    return payload


def update_mapping(mapping_id: str, data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    mapping = require_mapping(mapping_id)
    for field in ("terraform_module_location", "module_location_type", "enabled"):
        if data.get(field) is not None:
            mapping[field] = data[field]
    if data.get("enabled"):
        _require_complete(mapping)
    mapping = get_store().resource_type_cloud_mappings.save(mapping)
    _audit(actor, ACTION_UPDATE, MAPPING, mapping_id, data)
    return _mapping_payload(mapping)


def toggle_mapping(mapping_id: str, enabled: bool, actor: Optional[str] = None) -> None:
    mapping = require_mapping(mapping_id)
    if enabled:
        _require_complete(mapping)
    mapping["enabled"] = bool(enabled)
    get_store().resource_type_cloud_mappings.save(mapping)
    _audit(actor, ACTION_TOGGLE_ENABLED, MAPPING, mapping_id, {"enabled": bool(enabled)})


def _delete_mapping_tree(mapping_id: str) -> None:
    store = get_store()
    store.property_schemas.delete_where(mapping_id=mapping_id)
    store.resource_type_cloud_mappings.delete(mapping_id)


def delete_mapping(mapping_id: str, actor: Optional[str] = None) -> None:
    require_mapping(mapping_id)
    with get_store().atomic():
        _delete_mapping_tree(mapping_id)
    _audit(actor, ACTION_DELETE, MAPPING, mapping_id, {"deletedId": mapping_id})


# Property schemas


def _schema_sort_key(schema: Record):
    order = schema.get("display_order")
    return (order is None, order if order is not None else 0, schema.get("property_name") or "")


def schemas_for_mapping(mapping_id: str) -> List[Record]:
    return sorted(get_store().property_schemas.filter(mapping_id=mapping_id), key=_schema_sort_key)


def require_property_schema(schema_id: str) -> Record:
    schema = get_store().property_schemas.get(schema_id)
    if not schema:
        raise NotFound(f"Property schema not found with id: {schema_id}")
    return schema


def list_property_schemas(mapping_id: str) -> List[Dict[str, Any]]:
    return [property_schema_to_payload(schema) for schema in schemas_for_mapping(mapping_id)]


def get_property_schema(schema_id: str) -> Dict[str, Any]:
    return property_schema_to_payload(require_property_schema(schema_id))


def _schema_record(mapping_id: str, data: Dict[str, Any]) -> Record:
    return {
        "mapping_id": mapping_id,
        "property_name": data["property_name"],
        "display_name": data["display_name"],
        "description": data.get("description"),
        "data_type": data["data_type"],
        "required": bool(data.get("required", False)),
        "default_value": data.get("default_value"),
        "validation_rules": data.get("validation_rules"),
        "display_order": data.get("display_order"),
    }


def create_property_schema(data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    mapping = require_mapping(data["mapping_id"])
    if store.property_schemas.exists(mapping_id=mapping["id"], property_name=data["property_name"]):
        raise ValidationFailed(f"Property with name '{data['property_name']}' already exists for this mapping")
    schema = store.property_schemas.save(_schema_record(mapping["id"], data))
    payload = property_schema_to_payload(schema)
    _audit(actor, ACTION_CREATE, PROPERTY_SCHEMA, schema["id"], {"created": payload})
    return payload


def bulk_create_property_schemas(
    mapping_id: str, items: List[Dict[str, Any]], actor: Optional[str] = None
) -> List[Dict[str, Any]]:
    store = get_store()
    mapping = require_mapping(mapping_id)
    names = [item["property_name"] for item in items]
    if len(set(names)) != len(names):
        raise ValidationFailed("Duplicate property names found in bulk create request")
    for existing in store.property_schemas.filter(mapping_id=mapping["id"]):
        if existing["property_name"] in names:
            raise ValidationFailed(
                f"Property with name '{existing['property_name']}' already exists for this mapping"
            )
    created = []
    with store.atomic():
        for item in items:
            schema = store.property_schemas.save(_schema_record(mapping["id"], item))
            created.append(property_schema_to_payload(schema))
    for payload in created:
        _audit(actor, ACTION_CREATE, PROPERTY_SCHEMA, payload["id"], {"created": payload})
    return created


def update_property_schema(schema_id: str, data: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
    store = get_store()
    schema = require_property_schema(schema_id)
    name = data.get("property_name")
    if name and name != schema["property_name"]:
        if store.property_schemas.exists(mapping_id=schema["mapping_id"], property_name=name):
            raise ValidationFailed(f"Property with name '{name}' already exists for this mapping")
        schema["property_name"] = name
    for field in (
        "display_name",
        "description",
        "data_type",
        "required",
        "default_value",
        "validation_rules",
        "display_order",
    ):
        if data.get(field) is not None:
            schema[field] = data[field]
    payload = property_schema_to_payload(store.property_schemas.save(schema))
    _audit(actor, ACTION_UPDATE, PROPERTY_SCHEMA, schema_id, data)
    return payload


def delete_property_schema(schema_id: str, actor: Optional[str] = None) -> None:
    require_property_schema(schema_id)
    get_store().property_schemas.delete(schema_id)
    _audit(actor, ACTION_DELETE, PROPERTY_SCHEMA, schema_id, {"deletedId": schema_id})


def schema_records(resource_type_id: str, cloud_provider_id: str) -> List[Record]:
    mapping = find_mapping_record(resource_type_id, cloud_provider_id)
    if not mapping:
        return []
    return schemas_for_mapping(mapping["id"])


def get_schema_map(resource_type_id: str, cloud_provider_id: str) -> Dict[str, Dict[str, Any]]:
    return {
        schema["property_name"]: property_schema_to_payload(schema)
        for schema in schema_records(resource_type_id, cloud_provider_id)
    }


def get_resource_schema(resource_type_id: str, cloud_provider_id: str) -> Dict[str, Any]:
    resource_type = require_resource_type(resource_type_id)
    provider = require_cloud_provider(cloud_provider_id)
    mapping = find_mapping_record(resource_type_id, cloud_provider_id)
    if not mapping:
        raise NotFound(
            f"Resource type cloud mapping not found for resourceTypeId: {resource_type_id} "
            f"and cloudProviderId: {cloud_provider_id}"
        )
    return {
        "resourceTypeId": resource_type["id"],
        "resourceTypeName": resource_type["name"],
        "cloudProviderId": provider["id"],
        "cloudProviderName": provider["name"],
        "properties": {
            schema["property_name"]: property_schema_to_payload(schema)
            for schema in schemas_for_mapping(mapping["id"])
        },
    }
