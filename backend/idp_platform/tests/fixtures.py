import json
from typing import Any, Dict, Optional

from idp_platform.repositories import get_store

API = "/api/v1"

ADMIN_HEADERS = {
    "HTTP_X_AUTH_REQUEST_USER": "admin",
    "HTTP_X_AUTH_REQUEST_EMAIL": "admin@example.com",
    "HTTP_X_AUTH_REQUEST_GROUPS": "admins,developers",
}
USER_HEADERS = {
    "HTTP_X_AUTH_REQUEST_USER": "alice",
    "HTTP_X_AUTH_REQUEST_EMAIL": "alice@example.com",
    "HTTP_X_AUTH_REQUEST_GROUPS": "developers",
}
OTHER_USER_HEADERS = {
    "HTTP_X_AUTH_REQUEST_USER": "bob",
    "HTTP_X_AUTH_REQUEST_EMAIL": "bob@example.com",
}


class ApiClientMixin:
    """JSON helpers around the Django test client."""

    def _send(self, method: str, path: str, data: Optional[Dict[str, Any]] = None, headers=None):
        handler = getattr(self.client, method)
        kwargs = dict(headers if headers is not None else USER_HEADERS)
        if data is not None:
            return handler(f"{API}{path}", data=json.dumps(data), content_type="application/json", **kwargs)
        return handler(f"{API}{path}", **kwargs)

    def get_json(self, path: str, headers=None):
        return self._send("get", path, headers=headers)

    def post_json(self, path: str, data: Dict[str, Any], headers=None):
        return self._send("post", path, data, headers)

    def put_json(self, path: str, data: Dict[str, Any], headers=None):
        return self._send("put", path, data, headers)

    def patch_json(self, path: str, data: Dict[str, Any], headers=None):
        return self._send("patch", path, data, headers)

    def delete_json(self, path: str, headers=None):
        return self._send("delete", path, headers=headers)


def make_provider(name: str = "AWS", enabled: bool = True, **extra: Any) -> Dict[str, Any]:
    return get_store().cloud_providers.save(
        {"name": name, "display_name": extra.pop("display_name", f"{name} Cloud"), "enabled": enabled, **extra}
    )


def make_resource_type(name: str, category: str = "SHARED", enabled: bool = True) -> Dict[str, Any]:
    return get_store().resource_types.save(
        {"name": name, "display_name": name, "category": category, "enabled": enabled}
    )


def make_mapping(resource_type: Dict[str, Any], provider: Dict[str, Any], location: str = "git::modules/x"):
    return get_store().resource_type_cloud_mappings.save(
        {
            "resource_type_id": resource_type["id"],
            "cloud_provider_id": provider["id"],
            "terraform_module_location": location,
            "module_location_type": "GIT",
            "enabled": True,
        }
    )


def make_schema(mapping: Dict[str, Any], name: str, data_type: str = "STRING", **extra: Any):
    return get_store().property_schemas.save(
        {
            "mapping_id": mapping["id"],
            "property_name": name,
            "display_name": extra.pop("display_name", name),
            "data_type": data_type,
            "required": extra.pop("required", False),
            "validation_rules": extra.pop("validation_rules", None),
            "display_order": extra.pop("display_order", None),
            **extra,
        }
    )


def make_blueprint(name: str, providers=(), resources=()) -> Dict[str, Any]:
    store = get_store()
    blueprint = store.blueprints.save(
        {
            "name": name,
            "is_active": True,
            "supported_cloud_provider_ids": [provider["id"] for provider in providers],
        }
    )
    for resource_type, provider in resources:
        store.blueprint_resources.save(
            {
                "blueprint_id": blueprint["id"],
                "name": f"{resource_type['name']} resource",
                "resource_type_id": resource_type["id"],
                "cloud_provider_id": provider["id"],
                "cloud_type": provider["name"],
                "configuration": {},
                "cloud_specific_properties": {},
                "is_active": True,
            }
        )
    return blueprint


def make_environment(name: str, provider: Dict[str, Any], with_config: bool = True) -> Dict[str, Any]:
    store = get_store()
    environment = store.environments.save(
        {"name": name, "cloud_provider_id": provider["id"], "is_active": True}
    )
    if with_config:
        store.environment_configs.save(
            {
                "environment_id": environment["id"],
                "name": f"{name} config",
                "configuration": {"region": "us-east-1"},
                "is_active": True,
            }
        )
    return environment


def make_stack(name: str, created_by: str, stack_type: str = "RESTFUL_SERVERLESS", **extra: Any) -> Dict[str, Any]:
    slug = name.lower().replace(" ", "-")
    return get_store().stacks.save(
        {
            "name": name,
            "cloud_name": extra.pop("cloud_name", f"{slug}-svc"),
            "route_path": extra.pop("route_path", f"/{slug[:12]}/"),
            "stack_type": stack_type,
            "programming_language": extra.pop("programming_language", "QUARKUS"),
            "created_by": created_by,
            **extra,
        }
    )
