import logging
from typing import Any, Dict, List, Optional

from ..constants import CONTAINER_ORCHESTRATOR_TYPE, STACK_TYPE_DISPLAY_NAMES, STORAGE_TYPE
from ..exceptions import NotFound, ValidationFailed
from ..payloads import blueprint_resource_to_payload, blueprint_to_payload
from ..repositories import Record, get_store
from . import catalog

logger = logging.getLogger(__name__)

BLUEPRINT_RESOURCE_CATEGORIES = ["SHARED", "BOTH"]
_CONTAINER_STACK_TYPES = {"RESTFUL_API", "EVENT_DRIVEN_API"}


def require_blueprint(blueprint_id: str) -> Record:
    blueprint = get_store().blueprints.get(blueprint_id)
    if not blueprint:
        raise NotFound(f"Blueprint not found with id: {blueprint_id}")
    return blueprint


def blueprint_payload(blueprint: Record) -> Dict[str, Any]:
    store = get_store()
    stack_ids = [stack["id"] for stack in store.stacks.filter(blueprint_id=blueprint["id"])]
    resources = sorted(
        store.blueprint_resources.filter(blueprint_id=blueprint["id"]),
        key=lambda r: (str(r.get("created_at") or ""), r["name"]),
    )
    resource_payloads = [
        blueprint_resource_to_payload(resource, store.resource_types.get(resource["resource_type_id"]))
        for resource in resources
    ]
    return blueprint_to_payload(blueprint, stack_ids, resource_payloads)


def list_blueprints() -> List[Dict[str, Any]]:
    blueprints = sorted(get_store().blueprints.all(), key=lambda b: b["name"].lower())
    return [blueprint_payload(blueprint) for blueprint in blueprints]


def get_blueprint(blueprint_id: str) -> Dict[str, Any]:
    return blueprint_payload(require_blueprint(blueprint_id))


def _validate_fields(data: Dict[str, Any], creating: bool) -> None:
    name = data.get("name")
    if name is None or not name.strip():
        raise ValidationFailed("Blueprint name is required")
    if len(name) > 100:
        raise ValidationFailed("Blueprint name cannot exceed 100 characters")
    description = data.get("description")
    if description is not None and len(description) > 500:
        raise ValidationFailed("Blueprint description cannot exceed 500 characters")
    if creating and not data.get("supported_cloud_provider_ids"):
        raise ValidationFailed("At least one supported cloud provider is required")


def _resolve_cloud_providers(provider_ids: List[str]) -> List[Record]:
    store = get_store()
    providers = []
    missing = []
    for provider_id in dict.fromkeys(provider_ids):
        provider = store.cloud_providers.get(provider_id)
        if provider:
            providers.append(provider)
        else:
            missing.append(provider_id)
    if missing:
        raise ValidationFailed(f"Cloud provider(s) not found with ids: {', '.join(sorted(missing))}")
    for provider in providers:
        if not provider.get("enabled"):
            raise ValidationFailed(
                f"Cloud provider '{provider['display_name']}' is not enabled and cannot be used in blueprints"
            )
    return providers


def _resolve_stacks(stack_ids: List[str], blueprint_id: Optional[str] = None) -> List[Record]:
    store = get_store()
    stacks = []
    missing = []
    for stack_id in dict.fromkeys(stack_ids):
        stack = store.stacks.get(stack_id)
        if stack:
            stacks.append(stack)
        else:
            missing.append(stack_id)
    if missing:
        raise ValidationFailed(f"Stack(s) not found with ids: {', '.join(sorted(missing))}")
    assigned = [
        stack["name"]
        for stack in stacks
        if stack.get("blueprint_id") and stack["blueprint_id"] != blueprint_id
    ]
    if assigned:
        raise ValidationFailed(f"Stack(s) already assigned to another blueprint: {', '.join(assigned)}")
    return stacks


def _resource_records(resources: List[Dict[str, Any]]) -> List[Record]:
    store = get_store()
    records = []
    for item in resources:
        resource_type = store.resource_types.get(item["resource_type_id"])
        if not resource_type:
            raise ValidationFailed(f"Resource type not found with id: {item['resource_type_id']}")
        cloud_type = item.get("cloud_type")
        provider = store.cloud_providers.first(name=cloud_type)
        if not provider:
            raise ValidationFailed(f"Cloud provider not found: {cloud_type}")
        if not provider.get("enabled"):
            raise ValidationFailed(f"Cloud provider is not enabled: {cloud_type}")
        records.append(
            {
                "name": item["name"],
                "description": item.get("description"),
                "resource_type_id": resource_type["id"],
                "cloud_provider_id": provider["id"],
                "cloud_type": cloud_type,
                "configuration": item.get("configuration") or {},
                "cloud_specific_properties": item.get("cloud_specific_properties") or {},
                "is_active": True,
            }
        )
    return records


def _assign_stacks(blueprint_id: str, stacks: List[Record]) -> None:
    store = get_store()
    for stack in stacks:
        stack["blueprint_id"] = blueprint_id
        store.stacks.save(stack)


def _detach_stacks(blueprint_id: str) -> None:
    store = get_store()
    for stack in store.stacks.filter(blueprint_id=blueprint_id):
        stack["blueprint_id"] = None
        store.stacks.save(stack)


def _replace_resources(blueprint_id: str, records: List[Record]) -> None:
    store = get_store()
    store.blueprint_resources.delete_where(blueprint_id=blueprint_id)
    for record in records:
        store.blueprint_resources.save({**record, "blueprint_id": blueprint_id})


def create_blueprint(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    _validate_fields(data, creating=True)
    if store.blueprints.exists(name=data["name"]):
        raise ValidationFailed(f"Blueprint with name '{data['name']}' already exists")
    providers = _resolve_cloud_providers(data["supported_cloud_provider_ids"])
    stacks = _resolve_stacks(data.get("stack_ids") or [])
    resources = _resource_records(data.get("resources") or [])
    is_active = data.get("is_active")
    with store.atomic():
        blueprint = store.blueprints.save(
            {
                "name": data["name"],
                "description": data.get("description"),
                "is_active": True if is_active is None else is_active,
                "supported_cloud_provider_ids": [provider["id"] for provider in providers],
            }
        )
        _assign_stacks(blueprint["id"], stacks)
        _replace_resources(blueprint["id"], resources)
    logger.info("created blueprint %s (%s)", blueprint["name"], blueprint["id"])
    return blueprint_payload(blueprint)


def update_blueprint(blueprint_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    blueprint = require_blueprint(blueprint_id)
    _validate_fields(data, creating=False)
    if data["name"] != blueprint["name"] and store.blueprints.exists(name=data["name"]):
        raise ValidationFailed(f"Blueprint with name '{data['name']}' already exists")

    provider_ids = data.get("supported_cloud_provider_ids")
    providers = _resolve_cloud_providers(provider_ids) if provider_ids else []
    stack_ids = data.get("stack_ids")
    stacks = _resolve_stacks(stack_ids, blueprint_id) if stack_ids else []
    resources = data.get("resources")
    resource_records = _resource_records(resources) if resources else []

    is_active = data.get("is_active")
    blueprint["name"] = data["name"]
    blueprint["description"] = data.get("description")
    blueprint["is_active"] = True if is_active is None else is_active
    if provider_ids is not None:
        blueprint["supported_cloud_provider_ids"] = [provider["id"] for provider in providers]
    with store.atomic():
        blueprint = store.blueprints.save(blueprint)
        if stack_ids is not None:
            _detach_stacks(blueprint_id)
            _assign_stacks(blueprint_id, stacks)
        if resources is not None:
            _replace_resources(blueprint_id, resource_records)
    return blueprint_payload(blueprint)


def delete_blueprint(blueprint_id: str) -> None:
    store = get_store()
    require_blueprint(blueprint_id)
    with store.atomic():
        _detach_stacks(blueprint_id)
        for environment in store.environments.filter(blueprint_id=blueprint_id):
            environment["blueprint_id"] = None
            store.environments.save(environment)
        store.blueprint_resources.delete_where(blueprint_id=blueprint_id)
        store.blueprints.delete(blueprint_id)
    logger.info("deleted blueprint %s", blueprint_id)


def available_resource_types() -> List[Dict[str, Any]]:
    return catalog.list_enabled_resource_types(BLUEPRINT_RESOURCE_CATEGORIES)


def validate_for_stack_type(stack_type: str, blueprint: Optional[Record]) -> None:
    """Check that a blueprint carries the resources a stack type runs on."""
    if stack_type in _CONTAINER_STACK_TYPES:
        required, label = CONTAINER_ORCHESTRATOR_TYPE, "Container Orchestrator"
    elif stack_type == "JAVASCRIPT_WEB_APPLICATION":
        required, label = STORAGE_TYPE, "Storage"
    else:
        return
    if blueprint is not None:
        store = get_store()
        for resource in store.blueprint_resources.filter(blueprint_id=blueprint["id"]):
            resource_type = store.resource_types.get(resource["resource_type_id"])
            if resource_type and resource_type["name"] == required:
                return
    raise ValidationFailed(
        f"Stack type '{STACK_TYPE_DISPLAY_NAMES[stack_type]}' requires a blueprint with a {label} resource"
    )


# Blueprint resources addressed on their own


def require_blueprint_resource(resource_id: str) -> Record:
    resource = get_store().blueprint_resources.get(resource_id)
    if not resource:
        raise NotFound(f"Blueprint resource not found: {resource_id}")
    return resource


def blueprint_resource_payload(resource: Record) -> Dict[str, Any]:
    resource_type = get_store().resource_types.get(resource["resource_type_id"])
    return {**blueprint_resource_to_payload(resource, resource_type), "blueprintId": resource["blueprint_id"]}


def list_blueprint_resources() -> List[Dict[str, Any]]:
    resources = sorted(
        get_store().blueprint_resources.all(),
        key=lambda r: (str(r.get("created_at") or ""), r["name"]),
    )
    return [blueprint_resource_payload(resource) for resource in resources]


def get_blueprint_resource(resource_id: str) -> Dict[str, Any]:
    return blueprint_resource_payload(require_blueprint_resource(resource_id))


def create_blueprint_resource(data: Dict[str, Any]) -> Dict[str, Any]:
    blueprint = require_blueprint(data["blueprint_id"])
    record = _resource_records([data])[0]
    resource = get_store().blueprint_resources.save({**record, "blueprint_id": blueprint["id"]})
    logger.info("added resource %s to blueprint %s", resource["name"], blueprint["id"])
    return blueprint_resource_payload(resource)


def update_blueprint_resource(resource_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace a resource's fields; cloud-specific properties are kept when omitted."""
    resource = require_blueprint_resource(resource_id)
    blueprint = require_blueprint(data["blueprint_id"])
    record = _resource_records([data])[0]
    if data.get("cloud_specific_properties") is None:
        record["cloud_specific_properties"] = resource.get("cloud_specific_properties") or {}
    record["is_active"] = resource.get("is_active", True)
    resource.update(record, blueprint_id=blueprint["id"])
    return blueprint_resource_payload(get_store().blueprint_resources.save(resource))


def delete_blueprint_resource(resource_id: str) -> None:
    require_blueprint_resource(resource_id)
    get_store().blueprint_resources.delete(resource_id)
