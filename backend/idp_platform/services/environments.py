import logging
from typing import Any, Dict, List, Optional

from ..constants import INFRASTRUCTURE_KINDS, STACK_TYPES, is_serverless
from ..exceptions import NotFound, ValidationFailed
from ..payloads import environment_config_to_payload, environment_to_payload
from ..repositories import Record, get_store

logger = logging.getLogger(__name__)

ON_PREMISES = "on-premises"
AWS = "aws"

_ON_PREMISES_INFRASTRUCTURE = {
    "RELATIONAL_DATABASE": "postgresql-provisioner",
    "CACHE": "redis-provisioner",
    "QUEUE": "rabbitmq-provisioner",
}
_AWS_INFRASTRUCTURE = {
    "RELATIONAL_DATABASE": "aurora-postgresql-provisioner",
    "CACHE": "elasticache-redis-provisioner",
    "QUEUE": "sqs-provisioner",
}


# Environment entities


def require_environment(environment_id: str) -> Record:
    environment = get_store().environments.get(environment_id)
    if not environment:
        raise NotFound(f"Environment not found with id: {environment_id}")
    return environment


def list_environments() -> List[Dict[str, Any]]:
    environments = sorted(get_store().environments.all(), key=lambda e: e["name"].lower())
    return [environment_to_payload(environment) for environment in environments]


def get_environment(environment_id: str) -> Dict[str, Any]:
    return environment_to_payload(require_environment(environment_id))


def _check_references(data: Dict[str, Any]) -> None:
    store = get_store()
    if not store.cloud_providers.get(data["cloud_provider_id"]):
        raise ValidationFailed(f"Cloud provider not found with id: {data['cloud_provider_id']}")
    blueprint_id = data.get("blueprint_id")
    if blueprint_id and not store.blueprints.get(blueprint_id):
        raise ValidationFailed(f"Blueprint not found with id: {blueprint_id}")


def create_environment(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    if store.environments.exists(name=data["name"]):
        raise ValidationFailed(f"Environment with name '{data['name']}' already exists")
    _check_references(data)
    is_active = data.get("is_active")
    environment = store.environments.save(
        {
            "name": data["name"],
            "description": data.get("description"),
            "cloud_provider_id": data["cloud_provider_id"],
            "blueprint_id": data.get("blueprint_id"),
            "is_active": True if is_active is None else is_active,
        }
    )
    return environment_to_payload(environment)


def update_environment(environment_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    environment = require_environment(environment_id)
    if data["name"] != environment["name"] and store.environments.exists(name=data["name"]):
        raise ValidationFailed(f"Environment with name '{data['name']}' already exists")
    _check_references(data)
    environment.update(
        {
            "name": data["name"],
            "description": data.get("description"),
            "cloud_provider_id": data["cloud_provider_id"],
            "blueprint_id": data.get("blueprint_id"),
        }
    )
    if data.get("is_active") is not None:
        environment["is_active"] = data["is_active"]
    return environment_to_payload(store.environments.save(environment))


def delete_environment(environment_id: str) -> None:
    store = get_store()
    require_environment(environment_id)
    with store.atomic():
        store.environment_configs.delete_where(environment_id=environment_id)
        store.environments.delete(environment_id)
    logger.info("deleted environment %s", environment_id)


# Environment configurations, addressed by environment name


def _environment_by_name(name: str) -> Optional[Record]:
    return get_store().environments.first(name=name)


def find_config(environment_name: str) -> Optional[Record]:
    environment = _environment_by_name(environment_name)
    if not environment:
        return None
    return get_store().environment_configs.first(environment_id=environment["id"])


def require_config(environment_name: str) -> Record:
    config = find_config(environment_name)
    if not config:
        raise NotFound(f"Environment configuration not found: {environment_name}")
    return config


def list_active_configs() -> List[Dict[str, Any]]:
    configs = sorted(get_store().environment_configs.filter(is_active=True), key=lambda c: c["name"].lower())
    return [environment_config_to_payload(config) for config in configs]


def get_config(environment_name: str) -> Dict[str, Any]:
    return environment_config_to_payload(require_config(environment_name))


def create_config(data: Dict[str, Any]) -> Dict[str, Any]:
    store = get_store()
    environment = _environment_by_name(data["environment"])
    if not environment:
        raise NotFound(f"Environment not found: {data['environment']}")
    if store.environment_configs.exists(environment_id=environment["id"]):
        raise ValidationFailed(f"Environment configuration already exists: {data['environment']}")
    is_active = data.get("is_active")
    config = store.environment_configs.save(
        {
            "environment_id": environment["id"],
            "name": data["name"],
            "description": data.get("description"),
            "configuration": data.get("configuration"),
            "is_active": True if is_active is None else is_active,
        }
    )
    return environment_config_to_payload(config)


def update_config(environment_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    config = require_config(environment_name)
    config.update(
        {
            "name": data["name"],
            "description": data.get("description"),
            "configuration": data.get("configuration"),
            "is_active": data.get("is_active"),
        }
    )
    return environment_config_to_payload(get_store().environment_configs.save(config))


def delete_config(environment_name: str) -> None:
    config = require_config(environment_name)
    get_store().environment_configs.delete(config["id"])


# Provisioner selection


def get_cloud_type(environment_name: str) -> Optional[str]:
    config = find_config(environment_name)
    if not config:
        return None
    store = get_store()
    environment = store.environments.get(config["environment_id"])
    if not environment or not environment.get("cloud_provider_id"):
        return None
    provider = store.cloud_providers.get(environment["cloud_provider_id"])
    return provider["name"] if provider else None


def _cloud_for(environment_name: str) -> Optional[str]:
    if not find_config(environment_name):
        raise NotFound(f"Environment configuration not found for: {environment_name}")
    cloud = get_cloud_type(environment_name)
    return cloud.lower() if cloud else None


def select_compute_provisioner(stack_type: str, environment_name: str) -> Optional[str]:
    cloud = _cloud_for(environment_name)
    if stack_type == "INFRASTRUCTURE":
        return None
    if cloud == ON_PREMISES:
        return "kubernetes-provisioner"
    if cloud == AWS:
        return "lambda-provisioner" if is_serverless(stack_type) else "ecs-fargate-provisioner"
    return None


def get_compute_type(stack_type: str, environment_name: str) -> Optional[str]:
    if not find_config(environment_name):
        return None
    cloud = _cloud_for(environment_name)
    if stack_type == "INFRASTRUCTURE":
        return None
    if cloud == ON_PREMISES:
        return "kubernetes"
    if cloud == AWS:
        return "lambda" if is_serverless(stack_type) else "fargate"
    return None


def select_infrastructure_provisioner(kind: str, environment_name: str) -> Optional[str]:
    if kind not in INFRASTRUCTURE_KINDS:
        raise ValidationFailed(f"Unsupported infrastructure kind: {kind}")
    cloud = _cloud_for(environment_name)
    if cloud == ON_PREMISES:
        return _ON_PREMISES_INFRASTRUCTURE[kind]
    if cloud == AWS:
        return _AWS_INFRASTRUCTURE[kind]
    return None


def _stack_type(value: Optional[str]) -> str:
    stack_type = (value or "").upper()
    if stack_type not in STACK_TYPES:
        raise ValidationFailed(f"Invalid stack type: {value}")
    return stack_type


def provisioning_info(environment_name: str, stack_type: Optional[str]) -> Dict[str, Any]:
    if not stack_type:
        raise ValidationFailed("stackType query parameter is required")
    stack_type = _stack_type(stack_type)
    cloud_type = get_cloud_type(environment_name)
    if cloud_type is None:
        raise NotFound(f"Environment configuration not found: {environment_name}")
    return {
        "stackType": stack_type,
        "environment": environment_name,
        "cloudType": cloud_type,
        "computeProvisioner": select_compute_provisioner(stack_type, environment_name),
        "computeType": get_compute_type(stack_type, environment_name),
        "infrastructureProvisioner": None,
    }


def compute_platform(stack_type: str, environment_name: Optional[str]) -> Dict[str, Any]:
    if not environment_name:
        raise ValidationFailed("environment query parameter is required")
    if not find_config(environment_name):
        raise NotFound(f"Environment configuration not found: {environment_name}")
    return {
        "stackType": stack_type,
        "environment": environment_name,
        "computeType": get_compute_type(stack_type, environment_name) or "none",
        "computeProvisioner": select_compute_provisioner(stack_type, environment_name) or "none",
    }
