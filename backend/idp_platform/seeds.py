import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .repositories import Record, get_store
from .repositories.base import BaseRepository

logger = logging.getLogger(__name__)

DEFAULT_SEEDS_DIR = Path(__file__).resolve().parent / "seed_data"
CATALOG_SEED = "catalog.json"
DEMO_SEED = "demo.json"

# (seed section, repository, natural key fields)
CATALOG_SECTIONS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("cloud_providers", "cloud_providers", ("name",)),
    ("resource_types", "resource_types", ("name",)),
    ("environments", "environments", ("name",)),
    ("mappings", "resource_type_cloud_mappings", ("resource_type_id", "cloud_provider_id")),
]
DEMO_SECTIONS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("teams", "teams", ("name",)),
    ("blueprints", "blueprints", ("name",)),
    ("stacks", "stacks", ("cloud_name",)),
]
# parent section -> (child section, repository, parent field, natural key fields)
CHILD_SECTIONS: Dict[str, Tuple[str, str, str, Tuple[str, ...]]] = {
    "mappings": ("property_schemas", "property_schemas", "mapping_id", ("property_name",)),
    "blueprints": ("resources", "blueprint_resources", "blueprint_id", ("name",)),
    "stacks": ("resources", "stack_resources", "stack_id", ("name",)),
}


def load_seed_file(path: Path) -> Dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Seed file {path} must contain a JSON object")
    return payload


def _empty_summary(dry_run: bool) -> Dict[str, Any]:
    return {"dry_run": dry_run, "created": 0, "unchanged": 0, "items": []}


def _existing(repository: BaseRepository, item: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[Record]:
    if item.get("id"):
        found = repository.get(str(item["id"]))
        if found:
            return found
    criteria = {key: item.get(key) for key in keys}
    if any(value is None for value in criteria.values()):
        return None
    return repository.first(**criteria)


def _remap(item: Dict[str, Any], id_map: Dict[str, str]) -> Dict[str, Any]:
    remapped = dict(item)
    for key, value in item.items():
        if key.endswith("_id") and isinstance(value, str):
            remapped[key] = id_map.get(value, value)
        elif key.endswith("_ids") and isinstance(value, list):
            remapped[key] = [id_map.get(entry, entry) for entry in value]
    return remapped


def _apply_item(
    summary: Dict[str, Any],
    entity: str,
    repository: BaseRepository,
    item: Dict[str, Any],
    keys: Tuple[str, ...],
    dry_run: bool,
    id_map: Dict[str, str],
) -> str:
    record = {key: value for key, value in _remap(item, id_map).items() if repository.spec.has_field(key)}
    existing = _existing(repository, record, keys)
    if existing:
        action, entity_id = "unchanged", existing["id"]
    else:
        action = "created"
        entity_id = record.get("id") or ""
        if not dry_run:
            entity_id = repository.save(record)["id"]
    if item.get("id") and entity_id and str(item["id"]) != entity_id:
        id_map[str(item["id"])] = entity_id
    summary[action] += 1
    summary["items"].append({"entity": entity, "id": entity_id, "action": action})
    return entity_id


def _apply_sections(
    payload: Dict[str, Any],
    sections: List[Tuple[str, str, Tuple[str, ...]]],
    summary: Dict[str, Any],
    dry_run: bool,
    id_map: Dict[str, str],
) -> None:
    store = get_store()
    for section, repository_name, keys in sections:
        repository = store.repository(repository_name)
        for item in payload.get(section) or []:
            parent_id = _apply_item(summary, repository_name, repository, item, keys, dry_run, id_map)
            child = CHILD_SECTIONS.get(section)
            if not child:
                continue
            child_section, child_repository_name, parent_field, child_keys = child
            child_repository = store.repository(child_repository_name)
            for child_item in item.get(child_section) or []:
                child_item = {**child_item, parent_field: parent_id}
                _apply_item(
                    summary,
                    child_repository_name,
                    child_repository,
                    child_item,
                    child_keys + (parent_field,),
                    dry_run,
                    id_map,
                )


def apply_seeds(
    *, include_demo: bool = False, dry_run: bool = False, root: Optional[Path] = None
) -> Dict[str, Any]:
    """Load the reference catalog, and optionally the demo organization, into the active store.

    Records already present by id or natural key are left untouched, so the
    loader can run on every deploy.
    """
    seeds_root = Path(root) if root else DEFAULT_SEEDS_DIR
    summary = _empty_summary(dry_run)
    plan = [(CATALOG_SEED, CATALOG_SECTIONS)]
    if include_demo:
        plan.append((DEMO_SEED, DEMO_SECTIONS))
    store = get_store()
    id_map: Dict[str, str] = {}
    for filename, sections in plan:
        payload = load_seed_file(seeds_root / filename)
        with store.atomic():
            _apply_sections(payload, sections, summary, dry_run, id_map)
        logger.info("applied seed file %s (dry_run=%s)", filename, dry_run)
    logger.info("seed summary: created=%s unchanged=%s", summary["created"], summary["unchanged"])
    return summary
