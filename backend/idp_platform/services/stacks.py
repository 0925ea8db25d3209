import logging
import re
from typing import Any, Dict, List, Optional

from ..constants import (
    STACK_TYPE_DISPLAY_NAMES,
    STACK_TYPES,
    default_language,
    is_programming_language_required,
    is_public_supported,
    requires_api_configuration,
    requires_event_configuration,
    supported_languages,
)
from ..exceptions import NotFound, PermissionDenied, ValidationFailed
from ..payloads import stack_to_payload
from ..repositories import Record, get_store
from . import blueprints, catalog
from .validation import format_errors, validate_properties

logger = logging.getLogger(__name__)

STACK_RESOURCE_CATEGORIES = ["NON_SHARED", "BOTH"]

CLOUD_NAME_PATTERN = re.compile(r"^(?!.*__)(?!.*--)[a-zA-Z][a-zA-Z0-9_-]{2,59}$")
ROUTE_PATH_PATTERN = re.compile(r"^/[a-zA-Z](?!.*__)(?!.*--)[a-zA-Z0-9_-]{2,19}/$")
ROUTE_PATH_MESSAGE = (
    "Route path must be 5-22 characters, start and end with a forward slash, start with a letter, "
    "contain only letters, numbers, underscores, and hyphens, with no consecutive underscores or hyphens."
)


def require_stack(stack_id: str) -> Record:
    stack = get_store().stacks.get(stack_id)
    if not stack:
        raise NotFound(f"Stack not found with id: {stack_id}")
    return stack


def _payloads(stacks: List[Record]) -> List[Dict[str, Any]]:
    ordered = sorted(stacks, key=lambda s: str(s.get("created_at") or ""), reverse=True)
    return [stack_payload(stack) for stack in ordered]


def stack_payload(stack: Record) -> Dict[str, Any]:
    resources = sorted(
        get_store().stack_resources.filter(stack_id=stack["id"]),
        key=lambda r: (str(r.get("created_at") or ""), r["name"]),
    )
    return stack_to_payload(stack, resources)


def list_stacks() -> List[Dict[str, Any]]:
    return _payloads(get_store().stacks.all())


def list_stacks_by_type(stack_type: str) -> List[Dict[str, Any]]:
    stack_type = (stack_type or "").upper()
    if stack_type not in STACK_TYPES:
        raise ValidationFailed(f"Invalid stack type: {stack_type}")
    return _payloads(get_store().stacks.filter(stack_type=stack_type))


def list_stacks_where(**criteria: Any) -> List[Dict[str, Any]]:
    return _payloads(get_store().stacks.filter(**criteria))


def get_stack(stack_id: str) -> Dict[str, Any]:
    return stack_payload(require_stack(stack_id))


def is_owner_match(stored: Optional[str], current: Optional[str]) -> bool:
    if not stored or not current:
        return False
    left = stored.strip().lower()
    right = current.strip().lower()
    if left == right:
        return True
    return left.split("@", 1)[0] == right.split("@", 1)[0]


def _validate_language_and_access(data: Dict[str, Any]) -> None:
    stack_type = data["stack_type"]
    language = data.get("programming_language")
    if is_programming_language_required(stack_type) and not language:
        raise ValidationFailed(f"Programming language is required for stack type: {stack_type}")
    if language and language not in supported_languages(stack_type):
        raise ValidationFailed(f"Programming language {language} is not supported for stack type: {stack_type}")
    if data.get("is_public") and not is_public_supported(stack_type):
        raise ValidationFailed(f"Public access is not supported for stack type: {stack_type}")


def _validate_names(data: Dict[str, Any], stack_id: Optional[str] = None) -> None:
    store = get_store()
    cloud_name = data["cloud_name"]
    if not CLOUD_NAME_PATTERN.match(cloud_name):
        raise ValidationFailed("Invalid cloud name format", {"cloudName": ["Invalid cloud name format"]})
    route_path = data["route_path"]
    if not 5 <= len(route_path) <= 22:
        raise ValidationFailed(
            "Route path must be between 5 and 22 characters long.",
            {"routePath": ["Route path must be between 5 and 22 characters long."]},
        )
    if not ROUTE_PATH_PATTERN.match(route_path):
        raise ValidationFailed(ROUTE_PATH_MESSAGE, {"routePath": [ROUTE_PATH_MESSAGE]})
    for other in store.stacks.filter(cloud_name=cloud_name):
        if other["id"] != stack_id:
            raise ValidationFailed(f"Stack with cloud name '{cloud_name}' already exists")
    for other in store.stacks.filter(route_path=route_path):
        if other["id"] != stack_id:
            raise ValidationFailed(f"Stack with route path '{route_path}' already exists")


def _require_enabled_provider(provider_id: str) -> Record:
    provider = get_store().cloud_providers.get(provider_id)
    if not provider:
        raise ValidationFailed(f"Cloud provider not found with id: {provider_id}")
    if not provider.get("enabled"):
        raise ValidationFailed(f"Cloud provider is not enabled: {provider['name']}")
    return provider


def _validate_configuration(configuration: Optional[Dict[str, Any]]) -> None:
    for key, entry in (configuration or {}).items():
        if not isinstance(entry, dict):
            continue
        if "resourceTypeId" not in entry or "cloudProviderId" not in entry:
            continue
        resource_type_id = str(entry["resourceTypeId"])
        provider_id = str(entry["cloudProviderId"])
        _require_enabled_provider(provider_id)
        schemas = catalog.schema_records(resource_type_id, provider_id)
        if not schemas:
            continue
        values = {name: value for name, value in entry.items() if name not in ("resourceTypeId", "cloudProviderId")}
        errors = validate_properties(values, schemas)
        if errors:
            raise ValidationFailed(
                f"Configuration validation failed for resource '{key}': {format_errors(errors)}", errors
            )


def _resource_records(resources: List[Dict[str, Any]]) -> List[Record]:
    store = get_store()
    records = []
    for item in resources:
        resource_type = store.resource_types.get(item["resource_type_id"])
        if not resource_type:
            raise ValidationFailed(f"Resource type not found with id: {item['resource_type_id']}")
        if resource_type["category"] not in STACK_RESOURCE_CATEGORIES:
            raise ValidationFailed(f"Resource type '{resource_type['name']}' cannot be used in stacks")
        provider = _require_enabled_provider(item["cloud_provider_id"])
        configuration = item.get("configuration") or {}
        errors = validate_properties(configuration, catalog.schema_records(resource_type["id"], provider["id"]))
        if errors:
            raise ValidationFailed(
                f"Configuration validation failed for resource '{item['name']}': {format_errors(errors)}", errors
            )
        records.append(
            {
                "name": item["name"],
                "description": item.get("description"),
                "resource_type_id": resource_type["id"],
                "cloud_provider_id": provider["id"],
                "configuration": configuration,
            }
        )
    return records


def _resolve_associations(data: Dict[str, Any]) -> Optional[Record]:
    store = get_store()
    checks = (
        ("team_id", store.teams, "Team not found: {}"),
        ("stack_collection_id", store.stack_collections, "Stack collection not found: {}"),
        ("domain_id", store.domains, "Domain not found: {}"),
        ("category_id", store.categories, "Category not found: {}"),
    )
    for field, repository, message in checks:
        value = data.get(field)
        if value and not repository.get(value):
            raise ValidationFailed(message.format(value))
    blueprint = None
    if data.get("blueprint_id"):
        blueprint = store.blueprints.get(data["blueprint_id"])
        if not blueprint:
            raise ValidationFailed(f"Blueprint not found with id: {data['blueprint_id']}")
    blueprints.validate_for_stack_type(data["stack_type"], blueprint)
    return blueprint


def _stack_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": data["name"],
        "description": data.get("description"),
        "cloud_name": data["cloud_name"],
        "route_path": data["route_path"],
        "repository_url": data.get("repository_url"),
        "stack_type": data["stack_type"],
        "programming_language": data.get("programming_language"),
        "is_public": data.get("is_public"),
        "team_id": data.get("team_id"),
        "stack_collection_id": data.get("stack_collection_id"),
        "domain_id": data.get("domain_id"),
        "category_id": data.get("category_id"),
        "blueprint_id": data.get("blueprint_id"),
        "configuration": data.get("configuration"),
        "ephemeral_prefix": data.get("ephemeral_prefix"),
    }


def _replace_resources(stack_id: str, records: List[Record]) -> None:
    store = get_store()
    store.stack_resources.delete_where(stack_id=stack_id)
    for record in records:
        store.stack_resources.save({**record, "stack_id": stack_id})


def create_stack(data: Dict[str, Any], created_by: str) -> Dict[str, Any]:
    store = get_store()
    data = dict(data)
    _validate_language_and_access(data)
    if store.stacks.exists(name=data["name"], created_by=created_by):
        raise ValidationFailed(f"Stack with name '{data['name']}' already exists for this owner")
    _validate_names(data)
    _validate_configuration(data.get("configuration"))
    _resolve_associations(data)
    resources = _resource_records(data.get("resources") or [])
    with store.atomic():
        stack = store.stacks.save({**_stack_fields(data), "created_by": created_by})
        _replace_resources(stack["id"], resources)
    logger.info("created stack %s (%s) for %s", stack["name"], stack["id"], created_by)
    return stack_payload(stack)


def update_stack(stack_id: str, data: Dict[str, Any], principal_name: str) -> Dict[str, Any]:
    store = get_store()
    stack = require_stack(stack_id)
    if not is_owner_match(stack.get("created_by"), principal_name):
        raise PermissionDenied("Not authorized to update this stack")
    data = dict(data)
    if data["name"] != stack["name"]:
        for other in store.stacks.filter(name=data["name"], created_by=stack["created_by"]):
            if other["id"] != stack_id:
                raise ValidationFailed(f"Stack with name '{data['name']}' already exists for this owner")
    _validate_language_and_access(data)
    _validate_names(data, stack_id)
    _validate_configuration(data.get("configuration"))
    _resolve_associations(data)
    resources = data.get("resources")
    resource_records = _resource_records(resources) if resources is not None else None
    stack.update(_stack_fields(data))
    with store.atomic():
        stack = store.stacks.save(stack)
        if resource_records is not None:
            _replace_resources(stack_id, resource_records)
    return stack_payload(stack)


def delete_stack(stack_id: str, principal_name: str) -> None:
    store = get_store()
    stack = require_stack(stack_id)
    if not is_owner_match(stack.get("created_by"), principal_name):
        raise PermissionDenied("Not authorized to delete this stack")
    with store.atomic():
        store.stack_resources.delete_where(stack_id=stack_id)
        store.stacks.delete(stack_id)
    logger.info("deleted stack %s", stack_id)


def available_resource_types() -> List[Dict[str, Any]]:
    return catalog.list_enabled_resource_types(STACK_RESOURCE_CATEGORIES)


def stack_type_payload(stack_type: str) -> Dict[str, Any]:
    default = default_language(stack_type)
    return {
        "name": stack_type,
        "displayName": STACK_TYPE_DISPLAY_NAMES[stack_type],
        "supportsPublicAccess": is_public_supported(stack_type),
        "requiresProgrammingLanguage": is_programming_language_required(stack_type),
        "supportedLanguages": supported_languages(stack_type),
        "defaultLanguage": default if default else "NONE",
        "requiresEventConfiguration": requires_event_configuration(stack_type),
        "requiresApiConfiguration": requires_api_configuration(stack_type),
    }


def require_stack_type(stack_type: str) -> str:
    value = (stack_type or "").upper()
    if value not in STACK_TYPES:
        raise NotFound(f"Stack type not found: {stack_type}")
    return value


def list_stack_types() -> List[Dict[str, Any]]:
    return [stack_type_payload(stack_type) for stack_type in STACK_TYPES]
