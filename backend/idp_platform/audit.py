import json
import logging
from typing import Any, Dict, Optional

from django.core.serializers.json import DjangoJSONEncoder

from .repositories import Record, get_store

logger = logging.getLogger(__name__)

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_TOGGLE_ENABLED = "TOGGLE_ENABLED"

API_KEY_CREATE = "CREATE"
API_KEY_REVOKE = "REVOKE"
API_KEY_ROTATE = "ROTATE"
API_KEY_UPDATE_NAME = "UPDATE_NAME"
API_KEY_EXPIRE = "EXPIRE"
API_KEY_AUTHENTICATION_SUCCESS = "API_KEY_AUTHENTICATION_SUCCESS"
API_KEY_AUTHENTICATION_FAILED = "API_KEY_AUTHENTICATION_FAILED"
API_KEY_ENTITY_TYPE = "ApiKey"


def _json_safe(value: Any) -> Any:
    return json.loads(json.dumps(value, cls=DjangoJSONEncoder))


def record_admin_action(
    user_email: str,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> Record:
    entry = get_store().admin_audit_logs.save(
        {
            "user_email": user_email or "unknown",
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "changes": _json_safe(changes) if changes is not None else None,
        }
    )
    logger.info("audit %s %s %s by %s", action, entity_type, entity_id or "-", user_email or "unknown")
    return entry


def record_api_key_event(
    user_email: Optional[str],
    action: str,
    api_key: Optional[Record] = None,
    source_ip: Optional[str] = None,
    key_prefix: Optional[str] = None,
) -> Record:
    changes: Dict[str, Any] = {
        "keyPrefix": api_key["key_prefix"] if api_key else key_prefix,
        "sourceIp": source_ip,
    }
    if api_key:
        changes["keyName"] = api_key["key_name"]
    return record_admin_action(
        user_email or "unknown",
        action,
        API_KEY_ENTITY_TYPE,
        entity_id=api_key["id"] if api_key else None,
        changes=changes,
    )
