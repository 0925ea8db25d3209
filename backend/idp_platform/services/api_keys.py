import logging
import re
import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import bcrypt
from django.conf import settings
from django.utils import timezone

from .. import audit
from ..exceptions import NotFound, PermissionDenied, ValidationFailed
from ..payloads import api_key_audit_to_payload, api_key_to_payload
from ..repositories import Record, get_store

logger = logging.getLogger(__name__)

USER_KEY_PREFIX = "idp_user_"
SYSTEM_KEY_PREFIX = "idp_system_"
KEY_TYPE_USER = "USER"
KEY_TYPE_SYSTEM = "SYSTEM"
KEY_LENGTH = 32
PREFIX_LENGTH = 20
BASE62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase

API_KEY_PATTERN = re.compile(r"^(idp_user_|idp_system_)[A-Za-z0-9]{32}$")


def _default_expiration_days() -> int:
    return int(getattr(settings, "IDP_API_KEY_DEFAULT_EXPIRATION_DAYS", 90))


def _max_keys_per_user() -> int:
    return int(getattr(settings, "IDP_API_KEY_MAX_PER_USER", 10))


def _grace_hours() -> int:
    return int(getattr(settings, "IDP_API_KEY_ROTATION_GRACE_HOURS", 24))


def is_api_key_format(value: Optional[str]) -> bool:
    return bool(value) and bool(API_KEY_PATTERN.match(value))


def looks_like_api_key(value: Optional[str]) -> bool:
    return bool(value) and (value.startswith(USER_KEY_PREFIX) or value.startswith(SYSTEM_KEY_PREFIX))


def generate_key(key_type: str) -> str:
    prefix = SYSTEM_KEY_PREFIX if key_type == KEY_TYPE_SYSTEM else USER_KEY_PREFIX
    return prefix + "".join(secrets.choice(BASE62_ALPHABET) for _ in range(KEY_LENGTH))


def hash_key(plaintext: str) -> str:
    rounds = int(getattr(settings, "IDP_API_KEY_BCRYPT_ROUNDS", 12))
    return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_key(plaintext: str, key_hash: Optional[str]) -> bool:
    if not plaintext or not key_hash:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), key_hash.encode("utf-8"))
    except ValueError:
        logger.warning("stored api key hash is not a valid bcrypt hash")
        return False


def _expiration_days(data: Dict[str, Any]) -> int:
    days = data.get("expiration_days")
    if days is None:
        days = _default_expiration_days()
    if not 1 <= int(days) <= 365:
        raise ValidationFailed("Expiration period must be between 1 and 365 days")
    return int(days)


def _is_live(api_key: Record) -> bool:
    return bool(api_key.get("is_active")) and not api_key.get("revoked_at")


def _new_key_record(
    key_type: str,
    key_name: str,
    user_email: Optional[str],
    created_by: str,
    expires_at: datetime,
    rotated_from_id: Optional[str] = None,
):
    plaintext = generate_key(key_type)
    record = get_store().api_keys.save(
        {
            "key_name": key_name,
            "key_hash": hash_key(plaintext),
            "key_prefix": plaintext[:PREFIX_LENGTH],
            "key_type": key_type,
            "user_email": user_email,
            "created_by_email": created_by,
            "expires_at": expires_at,
            "is_active": True,
            "rotated_from_id": rotated_from_id,
        }
    )
    return record, plaintext


def create_user_key(data: Dict[str, Any], user_email: str) -> Dict[str, Any]:
    store = get_store()
    days = _expiration_days(data)
    live_keys = [key for key in store.api_keys.filter(user_email=user_email, key_type=KEY_TYPE_USER) if _is_live(key)]
    maximum = _max_keys_per_user()
    if len(live_keys) >= maximum:
        raise ValidationFailed(
            f"Maximum number of API keys ({maximum}) reached. "
            "Please revoke an existing key before creating a new one."
        )
    if any(key["key_name"] == data["key_name"] for key in live_keys):
        raise ValidationFailed(f"An API key with name '{data['key_name']}' already exists")
    record, plaintext = _new_key_record(
        KEY_TYPE_USER, data["key_name"], user_email, user_email, timezone.now() + timedelta(days=days)
    )
    audit.record_api_key_event(user_email, audit.API_KEY_CREATE, record)
    logger.info("created user api key %s for %s", record["key_prefix"], user_email)
    return api_key_to_payload(record, plaintext)


def create_system_key(data: Dict[str, Any], admin_email: str) -> Dict[str, Any]:
    store = get_store()
    days = _expiration_days(data)
    live_keys = [key for key in store.api_keys.filter(key_type=KEY_TYPE_SYSTEM) if _is_live(key)]
    if any(key["key_name"] == data["key_name"] for key in live_keys):
        raise ValidationFailed(f"A system API key with name '{data['key_name']}' already exists")
    record, plaintext = _new_key_record(
        KEY_TYPE_SYSTEM, data["key_name"], None, admin_email, timezone.now() + timedelta(days=days)
    )
    audit.record_api_key_event(admin_email, audit.API_KEY_CREATE, record)
    logger.info("created system api key %s by %s", record["key_prefix"], admin_email)
    return api_key_to_payload(record, plaintext)


def _newest_first(keys: List[Record]) -> List[Record]:
    return sorted(keys, key=lambda key: key.get("created_at") or timezone.now(), reverse=True)


def list_user_keys(user_email: str) -> List[Dict[str, Any]]:
    keys = get_store().api_keys.filter(user_email=user_email, key_type=KEY_TYPE_USER)
    return [api_key_to_payload(key) for key in _newest_first(keys)]


def list_system_keys() -> List[Dict[str, Any]]:
    keys = get_store().api_keys.filter(key_type=KEY_TYPE_SYSTEM)
    return [api_key_to_payload(key) for key in _newest_first(keys)]


def _require_key(key_id: str) -> Record:
    api_key = get_store().api_keys.get(key_id)
    if not api_key:
        raise NotFound("API key not found")
    return api_key


def _require_access(api_key: Record, user_email: str, is_admin: bool, verb: str) -> None:
    if is_admin:
        return
    if api_key.get("key_type") == KEY_TYPE_USER and api_key.get("user_email") == user_email:
        return
    raise PermissionDenied(f"You do not have permission to {verb} this API key")


def get_key(key_id: str, user_email: str, is_admin: bool) -> Dict[str, Any]:
    api_key = _require_key(key_id)
    _require_access(api_key, user_email, is_admin, "access")
    return api_key_to_payload(api_key)


def revoke_key(key_id: str, user_email: str, is_admin: bool) -> None:
    api_key = _require_key(key_id)
    _require_access(api_key, user_email, is_admin, "revoke")
    api_key.update({"revoked_at": timezone.now(), "revoked_by_email": user_email, "is_active": False})
    get_store().api_keys.save(api_key)
    audit.record_api_key_event(user_email, audit.API_KEY_REVOKE, api_key)


def rotate_key(key_id: str, user_email: str, is_admin: bool) -> Dict[str, Any]:
    store = get_store()
    old_key = _require_key(key_id)
    if old_key.get("revoked_at") or not old_key.get("is_active"):
        raise ValidationFailed("Cannot rotate a revoked API key")
    if old_key.get("grace_period_ends_at"):
        raise ValidationFailed("API key has already been rotated")
    _require_access(old_key, user_email, is_admin, "rotate")
    with store.atomic():
        new_key, plaintext = _new_key_record(
            old_key["key_type"],
            old_key["key_name"],
            old_key.get("user_email"),
            user_email,
            old_key["expires_at"],
            rotated_from_id=old_key["id"],
        )
        old_key["grace_period_ends_at"] = timezone.now() + timedelta(hours=_grace_hours())
        store.api_keys.save(old_key)
    audit.record_api_key_event(user_email, audit.API_KEY_ROTATE, old_key)
    audit.record_api_key_event(user_email, audit.API_KEY_CREATE, new_key)
    return api_key_to_payload(new_key, plaintext)


def rename_key(key_id: str, new_name: str, user_email: str, is_admin: bool) -> Dict[str, Any]:
    store = get_store()
    api_key = _require_key(key_id)
    _require_access(api_key, user_email, is_admin, "update")
    if new_name != api_key["key_name"]:
        if api_key["key_type"] == KEY_TYPE_USER:
            siblings = store.api_keys.filter(user_email=api_key["user_email"], key_type=KEY_TYPE_USER)
            message = f"An API key with name '{new_name}' already exists"
        else:
            siblings = store.api_keys.filter(key_type=KEY_TYPE_SYSTEM)
            message = f"A system API key with name '{new_name}' already exists"
        if any(_is_live(key) and key["key_name"] == new_name and key["id"] != key_id for key in siblings):
            raise ValidationFailed(message)
    api_key["key_name"] = new_name
    api_key = store.api_keys.save(api_key)
    audit.record_api_key_event(user_email, audit.API_KEY_UPDATE_NAME, api_key)
    return api_key_to_payload(api_key)


def audit_logs(
    user_email: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    entries = get_store().admin_audit_logs.filter(entity_type=audit.API_KEY_ENTITY_TYPE)
    if user_email:
        entries = [entry for entry in entries if entry.get("user_email") == user_email]
    if start_date:
        entries = [entry for entry in entries if entry["timestamp"] >= start_date]
    if end_date:
        entries = [entry for entry in entries if entry["timestamp"] <= end_date]
    entries.sort(key=lambda entry: entry["timestamp"], reverse=True)
    return [api_key_audit_to_payload(entry) for entry in entries]


def authenticate(plaintext: str, source_ip: Optional[str] = None) -> Optional[Record]:
    """Return the stored key matching ``plaintext`` when it is currently usable.

    Successful and failed attempts are both written to the audit log.
    """
    prefix = plaintext[:PREFIX_LENGTH] if plaintext else ""
    if not is_api_key_format(plaintext):
        logger.warning("rejected malformed api key %s", prefix)
        audit.record_api_key_event(None, audit.API_KEY_AUTHENTICATION_FAILED, source_ip=source_ip, key_prefix=prefix)
        return None

    store = get_store()
    now = timezone.now()
    for candidate in store.api_keys.filter(key_prefix=prefix):
        if not verify_key(plaintext, candidate.get("key_hash")):
            continue
        usable = _is_live(candidate)
        if candidate.get("expires_at") and candidate["expires_at"] <= now:
            usable = False
        if candidate.get("grace_period_ends_at") and candidate["grace_period_ends_at"] <= now:
            usable = False
        if not usable:
            break
        candidate["last_used_at"] = now
        store.api_keys.save(candidate)
        owner = candidate.get("user_email") or f"system-{candidate['id']}"
        audit.record_api_key_event(owner, audit.API_KEY_AUTHENTICATION_SUCCESS, candidate, source_ip=source_ip)
        return candidate

    logger.warning("api key authentication failed for prefix %s", prefix)
    audit.record_api_key_event(None, audit.API_KEY_AUTHENTICATION_FAILED, source_ip=source_ip, key_prefix=prefix)
    return None


def expire_keys(now: Optional[datetime] = None) -> Dict[str, int]:
    """Deactivate expired keys and rotated keys whose grace period is over."""
    store = get_store()
    now = now or timezone.now()
    expired = 0
    rotated = 0
    for api_key in store.api_keys.filter(is_active=True):
        if api_key.get("revoked_at"):
            continue
        if api_key.get("expires_at") and api_key["expires_at"] < now:
            api_key["is_active"] = False
            store.api_keys.save(api_key)
            audit.record_api_key_event("system", audit.API_KEY_EXPIRE, api_key)
            expired += 1
        elif api_key.get("grace_period_ends_at") and api_key["grace_period_ends_at"] < now:
            api_key.update({"is_active": False, "revoked_at": now, "revoked_by_email": "system"})
            store.api_keys.save(api_key)
            audit.record_api_key_event("system", audit.API_KEY_EXPIRE, api_key)
            rotated += 1
    if expired or rotated:
        logger.info("expired %d api keys and retired %d rotated keys", expired, rotated)
    return {"expired": expired, "rotated": rotated}
