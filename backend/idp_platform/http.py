import json
import logging
from functools import wraps
from typing import Any, Dict

from django.http import HttpRequest, HttpResponse, JsonResponse

from .exceptions import IdpError, ValidationFailed

logger = logging.getLogger(__name__)


def _parse_json(request: HttpRequest) -> Dict[str, Any]:
    if request.body:
        try:
            payload = json.loads(request.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationFailed("Request body must be valid JSON")
        if not isinstance(payload, dict):
            raise ValidationFailed("Request body must be a JSON object")
        return payload
    return {}


def error_response(exc: IdpError) -> JsonResponse:
    body: Dict[str, Any] = {"error": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    return JsonResponse(body, status=exc.status_code)


def handle_errors(view):
    """Render service exceptions as JSON error bodies."""

    @wraps(view)
    def _wrapped(request: HttpRequest, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except IdpError as exc:
            if exc.status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, exc.message)
            return error_response(exc)

    return _wrapped


def method_not_allowed() -> JsonResponse:
    return JsonResponse({"error": "method not allowed"}, status=405)


def no_content() -> HttpResponse:
    return HttpResponse(status=204)


def json_list(items) -> JsonResponse:
    return JsonResponse(items, safe=False)
