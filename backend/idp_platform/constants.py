from typing import Dict, List, Optional

STACK_TYPE_DISPLAY_NAMES: Dict[str, str] = {
    "INFRASTRUCTURE": "Infrastructure",
    "RESTFUL_SERVERLESS": "RESTful Serverless",
    "RESTFUL_API": "RESTful API",
    "JAVASCRIPT_WEB_APPLICATION": "JavaScript Web Application",
    "EVENT_DRIVEN_SERVERLESS": "Event-driven Serverless",
    "EVENT_DRIVEN_API": "Event-driven API",
}
STACK_TYPES: List[str] = list(STACK_TYPE_DISPLAY_NAMES)
STACK_TYPE_CHOICES = [(key, label) for key, label in STACK_TYPE_DISPLAY_NAMES.items()]

PROGRAMMING_LANGUAGE_DISPLAY_NAMES: Dict[str, str] = {
    "QUARKUS": "Java",
    "NODE_JS": "Node.js",
}
PROGRAMMING_LANGUAGES: List[str] = list(PROGRAMMING_LANGUAGE_DISPLAY_NAMES)
PROGRAMMING_LANGUAGE_CHOICES = [(key, label) for key, label in PROGRAMMING_LANGUAGE_DISPLAY_NAMES.items()]

RESOURCE_CATEGORY_CHOICES = [
    ("SHARED", "Shared"),
    ("NON_SHARED", "Non-shared"),
    ("BOTH", "Both"),
]
RESOURCE_CATEGORIES = [key for key, _ in RESOURCE_CATEGORY_CHOICES]

MODULE_LOCATION_TYPE_CHOICES = [
    ("GIT", "Git"),
    ("FILE_SYSTEM", "File system"),
    ("REGISTRY", "Registry"),
]
MODULE_LOCATION_TYPES = [key for key, _ in MODULE_LOCATION_TYPE_CHOICES]

PROPERTY_DATA_TYPE_CHOICES = [
    ("STRING", "String"),
    ("NUMBER", "Number"),
    ("BOOLEAN", "Boolean"),
    ("LIST", "List"),
]
PROPERTY_DATA_TYPES = [key for key, _ in PROPERTY_DATA_TYPE_CHOICES]

API_KEY_TYPE_CHOICES = [
    ("USER", "User"),
    ("SYSTEM", "System"),
]

# Provisioner selection works on these infrastructure kinds rather than catalog resource types.
INFRASTRUCTURE_KINDS = ["RELATIONAL_DATABASE", "CACHE", "QUEUE"]

ROLE_USER = "user"
ROLE_ADMIN = "admin"

CONTAINER_ORCHESTRATOR_TYPE = "Managed Container Orchestrator"
STORAGE_TYPE = "Storage"

_SERVER_LANGUAGES = ["QUARKUS", "NODE_JS"]
_SUPPORTED_LANGUAGES: Dict[str, List[str]] = {
    "INFRASTRUCTURE": [],
    "RESTFUL_SERVERLESS": _SERVER_LANGUAGES,
    "RESTFUL_API": _SERVER_LANGUAGES,
    "JAVASCRIPT_WEB_APPLICATION": ["NODE_JS"],
    "EVENT_DRIVEN_SERVERLESS": _SERVER_LANGUAGES,
    "EVENT_DRIVEN_API": _SERVER_LANGUAGES,
}
_PUBLIC_ACCESS_TYPES = {"RESTFUL_SERVERLESS", "RESTFUL_API", "EVENT_DRIVEN_API"}
_EVENT_TYPES = {"EVENT_DRIVEN_SERVERLESS", "EVENT_DRIVEN_API"}
_API_TYPES = {"RESTFUL_SERVERLESS", "RESTFUL_API", "EVENT_DRIVEN_API"}
_SERVERLESS_TYPES = {"RESTFUL_SERVERLESS", "EVENT_DRIVEN_SERVERLESS"}


def supported_languages(stack_type: str) -> List[str]:
    return list(_SUPPORTED_LANGUAGES.get(stack_type, []))


def default_language(stack_type: str) -> Optional[str]:
    if stack_type == "INFRASTRUCTURE":
        return None
    if stack_type == "JAVASCRIPT_WEB_APPLICATION":
        return "NODE_JS"
    return "QUARKUS"


def is_public_supported(stack_type: str) -> bool:
    return stack_type in _PUBLIC_ACCESS_TYPES


def is_programming_language_required(stack_type: str) -> bool:
    return stack_type != "INFRASTRUCTURE"


def requires_event_configuration(stack_type: str) -> bool:
    return stack_type in _EVENT_TYPES


def requires_api_configuration(stack_type: str) -> bool:
    return stack_type in _API_TYPES


def is_serverless(stack_type: str) -> bool:
    return stack_type in _SERVERLESS_TYPES
