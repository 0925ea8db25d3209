from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.csrf import csrf_exempt

from .auth import current_principal, require_authenticated, require_role
from .constants import ROLE_ADMIN
from .exceptions import ValidationFailed
from .http import _parse_json, handle_errors, json_list, method_not_allowed, no_content
from .serializers import ApiKeyCreateSerializer, ApiKeyRenameSerializer, validate_payload
from .services import api_keys


def _caller(request: HttpRequest):
    principal = current_principal(request)
    return principal.actor, principal.is_admin


def _date_param(request: HttpRequest, name: str):
    raw = request.GET.get(name)
    if not raw:
        return None
    try:
        value = parse_datetime(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValidationFailed(f"Invalid {name}: {raw}")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


@csrf_exempt
@require_authenticated
@handle_errors
def user_keys(request: HttpRequest) -> JsonResponse:
    email, _is_admin = _caller(request)
    if request.method == "POST":
        data = validate_payload(ApiKeyCreateSerializer, _parse_json(request))
        return JsonResponse(api_keys.create_user_key(data, email), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(api_keys.list_user_keys(email))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def system_keys(request: HttpRequest) -> JsonResponse:
    email, _is_admin = _caller(request)
    if request.method == "POST":
        data = validate_payload(ApiKeyCreateSerializer, _parse_json(request))
        return JsonResponse(api_keys.create_system_key(data, email), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(api_keys.list_system_keys())


@csrf_exempt
@require_authenticated
@handle_errors
def key_detail(request: HttpRequest, key_id) -> JsonResponse:
    email, is_admin = _caller(request)
    if request.method == "DELETE":
        api_keys.revoke_key(str(key_id), email, is_admin)
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(api_keys.get_key(str(key_id), email, is_admin))


@csrf_exempt
@require_authenticated
@handle_errors
def key_rotate(request: HttpRequest, key_id) -> JsonResponse:
    if request.method != "POST":
        return method_not_allowed()
    email, is_admin = _caller(request)
    return JsonResponse(api_keys.rotate_key(str(key_id), email, is_admin))


@csrf_exempt
@require_authenticated
@handle_errors
def key_rename(request: HttpRequest, key_id) -> JsonResponse:
    if request.method != "PUT":
        return method_not_allowed()
    email, is_admin = _caller(request)
    data = validate_payload(ApiKeyRenameSerializer, _parse_json(request))
    return JsonResponse(api_keys.rename_key(str(key_id), data["key_name"], email, is_admin))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def audit_logs(request: HttpRequest) -> JsonResponse:
    return json_list(
        api_keys.audit_logs(
            user_email=request.GET.get("userEmail") or None,
            start_date=_date_param(request, "startDate"),
            end_date=_date_param(request, "endDate"),
        )
    )
