from typing import Any, Dict, List

from ..exceptions import NotFound, ValidationFailed
from ..payloads import category_to_payload, domain_to_payload, stack_collection_to_payload, team_to_payload
from ..repositories import Record, get_store
from . import stacks


def _by_name(records: List[Record]) -> List[Record]:
    return sorted(records, key=lambda record: record["name"].lower())


def _active(data: Dict[str, Any]) -> bool:
    is_active = data.get("is_active")
    return True if is_active is None else is_active


def _require(repository, record_id: str, label: str) -> Record:
    record = repository.get(record_id)
    if not record:
        raise NotFound(f"{label} not found: {record_id}")
    return record


# Teams


def list_teams() -> List[Dict[str, Any]]:
    return [team_to_payload(team) for team in _by_name(get_store().teams.all())]


def create_team(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    if data.get("id"):
        raise ValidationFailed("ID must not be provided for new teams")
    if store.teams.exists(name=data["name"]):
        raise ValidationFailed("Team with this name already exists")
    team = store.teams.save(
        {"name": data["name"], "description": data.get("description"), "is_active": _active(data)}
    )
    return team_to_payload(team)


def list_team_stacks(team_id: str) -> List[Dict[str, Any]]:
    _require(get_store().teams, team_id, "Team")
    return stacks.list_stacks_where(team_id=team_id)


# Stack collections


def list_stack_collections() -> List[Dict[str, Any]]:
    collections = _by_name(get_store().stack_collections.all())
    return [stack_collection_to_payload(collection) for collection in collections]


def create_stack_collection(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    if data.get("id"):
        raise ValidationFailed("ID must not be provided for new collections")
    if store.stack_collections.exists(name=data["name"]):
        raise ValidationFailed("Collection with this name already exists")
    collection = store.stack_collections.save(
        {"name": data["name"], "description": data.get("description"), "is_active": _active(data)}
    )
    return stack_collection_to_payload(collection)


def list_collection_stacks(collection_id: str) -> List[Dict[str, Any]]:
    _require(get_store().stack_collections, collection_id, "Stack collection")
    return stacks.list_stacks_where(stack_collection_id=collection_id)


# Domains and categories


def list_domains() -> List[Dict[str, Any]]:
    return [domain_to_payload(domain) for domain in _by_name(get_store().domains.all())]


def create_domain(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    if data.get("id"):
        raise ValidationFailed("ID must not be provided for new domains")
    if store.domains.exists(name=data["name"]):
        raise ValidationFailed("Domain with this name already exists")
    domain = store.domains.save({"name": data["name"], "is_active": _active(data)})
    return domain_to_payload(domain)


def list_domain_categories(domain_id: str) -> List[Dict[str, Any]]:
    store = get_store()
    _require(store.domains, domain_id, "Domain")
    return [category_to_payload(c) for c in _by_name(store.categories.filter(domain_id=domain_id))]


def list_categories() -> List[Dict[str, Any]]:
    return [category_to_payload(category) for category in _by_name(get_store().categories.all())]


def create_category(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    if data.get("id"):
        raise ValidationFailed("ID must not be provided for new categories")
    domain_id = data.get("domain_id")
    if not domain_id:
        raise ValidationFailed("Domain is required for a category")
    if not store.domains.get(domain_id):
        raise ValidationFailed(f"Domain not found: {domain_id}")
    if store.categories.exists(name=data["name"], domain_id=domain_id):
        raise ValidationFailed("Category with this name already exists in the domain")
    category = store.categories.save({"name": data["name"], "domain_id": domain_id, "is_active": _active(data)})
    return category_to_payload(category)


def list_category_stacks(category_id: str) -> List[Dict[str, Any]]:
    _require(get_store().categories, category_id, "Category")
    return stacks.list_stacks_where(category_id=category_id)
