import json
import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, List, Optional, Tuple

import jwt
from django.conf import settings
from django.http import HttpRequest, JsonResponse

from .constants import ROLE_ADMIN, ROLE_USER
from .exceptions import NotAuthenticated
from .services import api_keys

logger = logging.getLogger(__name__)

DEMO_PRINCIPAL = "demo"
DEMO_EMAIL = "demo@visuidp.example"
DEMO_DISPLAY_NAME = "Demo User"

AUTH_REQUEST_HEADERS = (
    "X-Auth-Request-User",
    "X-Auth-Request-Email",
    "X-Auth-Request-Preferred-Username",
    "X-Auth-Request-Groups",
)
FORWARDED_HEADERS = (
    "X-Forwarded-User",
    "X-Forwarded-Email",
    "X-Forwarded-Preferred-Username",
    "X-Forwarded-Groups",
)


@dataclass
class Principal:
    name: str
    email: Optional[str] = None
    preferred_username: Optional[str] = None
    display_name: Optional[str] = None
    roles: Tuple[str, ...] = (ROLE_USER,)
    mechanism: str = ""
    api_key_id: Optional[str] = None
    groups: List[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    @property
    def actor(self) -> str:
        return self.email or self.name


def _extract_bearer_token(request: HttpRequest) -> str:
    header = request.headers.get("Authorization", "")
    if not header:
        return ""
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def source_ip(request: HttpRequest) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.META.get("REMOTE_ADDR")


def _demo_principal() -> Principal:
    return Principal(
        name=DEMO_PRINCIPAL,
        email=DEMO_EMAIL,
        preferred_username=DEMO_PRINCIPAL,
        display_name=DEMO_DISPLAY_NAME,
        roles=(ROLE_USER, ROLE_ADMIN),
        mechanism="demo",
    )


def _api_key_principal(request: HttpRequest, token: str) -> Principal:
    record = api_keys.authenticate(token, source_ip=source_ip(request))
    if record is None:
        raise NotAuthenticated("Invalid or expired API key")
    if record["key_type"] == api_keys.KEY_TYPE_SYSTEM:
        return Principal(
            name=f"system-{record['id']}",
            roles=(ROLE_ADMIN,),
            mechanism="api_key",
            api_key_id=record["id"],
        )
    return Principal(
        name=record["user_email"],
        email=record["user_email"],
        roles=(ROLE_USER,),
        mechanism="api_key",
        api_key_id=record["id"],
    )


def _header(request: HttpRequest, primary: str, fallback: str) -> str:
    return (request.headers.get(primary) or request.headers.get(fallback) or "").strip()


def _proxy_principal(request: HttpRequest) -> Optional[Principal]:
    user, email, preferred, groups = (
        _header(request, primary, fallback) for primary, fallback in zip(AUTH_REQUEST_HEADERS, FORWARDED_HEADERS)
    )
    name = preferred or email or user
    if not name:
        return None
    group_list = [group.strip() for group in groups.split(",") if group.strip()]
    roles = [ROLE_USER]
    admin_group = getattr(settings, "IDP_ADMIN_GROUP", "admins")
    if admin_group and admin_group in group_list:
        roles.append(ROLE_ADMIN)
    return Principal(
        name=name,
        email=email or None,
        preferred_username=preferred or None,
        roles=tuple(roles),
        mechanism="proxy_headers",
        groups=group_list,
    )


def _split_claim(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def _jwt_claims(request: HttpRequest, token: str) -> Optional[Dict[str, Any]]:
    context_header = request.headers.get("X-Amzn-Request-Context", "")
    if context_header:
        try:
            context = json.loads(context_header)
        except json.JSONDecodeError:
            logger.warning("ignoring malformed X-Amzn-Request-Context header")
            context = {}
        if isinstance(context, dict):
            context = context.get("requestContext", context)
        authorizer = context.get("authorizer") if isinstance(context, dict) else None
        if isinstance(authorizer, dict):
            jwt_context = authorizer.get("jwt")
            claims = jwt_context.get("claims") if isinstance(jwt_context, dict) else None
            claims = claims or authorizer.get("claims")
            if isinstance(claims, dict) and claims:
                return claims
    if token and not api_keys.looks_like_api_key(token):
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            logger.warning("bearer token is not a decodable JWT")
    return None


def _claims_principal(request: HttpRequest, token: str) -> Optional[Principal]:
    claims = _jwt_claims(request, token)
    if not claims:
        return None
    name = next(
        (str(claims[key]) for key in ("preferred_username", "upn", "email", "sub") if claims.get(key)),
        None,
    )
    if not name:
        return None
    roles = [ROLE_USER]
    groups = _split_claim(claims.get("groups"))
    admin_group_id = getattr(settings, "IDP_ENTRA_ID_ADMIN_GROUP_ID", "")
    if admin_group_id and admin_group_id in groups:
        roles.append(ROLE_ADMIN)
    for role in _split_claim(claims.get("roles")):
        if role.lower() not in roles:
            roles.append(role.lower())
    return Principal(
        name=name,
        email=claims.get("email"),
        preferred_username=claims.get("preferred_username"),
        display_name=claims.get("name"),
        roles=tuple(roles),
        mechanism="entra_id",
        groups=groups,
    )


def resolve_principal(request: HttpRequest) -> Optional[Principal]:
    """Run the authentication chain; the first mechanism that yields a principal wins.

    Raises ``NotAuthenticated`` when an API key is presented but rejected.
    """
    if getattr(settings, "IDP_DEMO_MODE", False):
        return _demo_principal()
    token = _extract_bearer_token(request)
    if api_keys.looks_like_api_key(token):
        return _api_key_principal(request, token)
    principal = _proxy_principal(request)
    if principal:
        return principal
    if getattr(settings, "IDP_ENTRA_ID_ENABLED", False):
        return _claims_principal(request, token)
    return None


def current_principal(request: HttpRequest) -> Optional[Principal]:
    return getattr(request, "principal", None)


def require_authenticated(view):
    @wraps(view)
    def _wrapped(request: HttpRequest, *args, **kwargs):
        if not current_principal(request):
            return JsonResponse({"error": "not authenticated"}, status=401)
        return view(request, *args, **kwargs)

    return _wrapped


def require_role(role: str):
    def decorator(view):
        @wraps(view)
        def _wrapped(request: HttpRequest, *args, **kwargs):
            principal = current_principal(request)
            if not principal:
                return JsonResponse({"error": "not authenticated"}, status=401)
            if not principal.has_role(role):
                return JsonResponse({"error": "forbidden"}, status=403)
            return view(request, *args, **kwargs)

        return _wrapped

    return decorator
