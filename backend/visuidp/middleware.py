import json
import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse

from idp_platform.auth import resolve_principal
from idp_platform.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
DEMO_API_PREFIX = "/api/v1/"
UNSAFE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class PrincipalAuthMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.principal = None
        if request.path.startswith(API_PREFIX):
            try:
                request.principal = resolve_principal(request)
            except NotAuthenticated as exc:
                return JsonResponse({"error": exc.message}, status=401)
            if request.principal:
                request._dont_enforce_csrf_checks = True
                logger.debug(
                    "authenticated %s via %s for %s %s",
                    request.principal.name,
                    request.principal.mechanism,
                    request.method,
                    request.path,
                )
        return self.get_response(request)


class DemoModeMiddleware:
    """Answer writes under /api/v1/ with a simulated success when demo mode is on."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not getattr(settings, "IDP_DEMO_MODE", False):
            return self.get_response(request)
        if not request.path.startswith(DEMO_API_PREFIX) or request.method.upper() not in UNSAFE_METHODS:
            return self.get_response(request)
        logger.info("demo mode: skipped %s %s", request.method, request.path)
        if request.method.upper() == "DELETE":
            return HttpResponse(status=204)
        payload = {}
        if request.body:
            try:
                payload = json.loads(request.body.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                payload = {}
        status = 201 if request.method.upper() == "POST" else 200
        return JsonResponse(payload, status=status, safe=False)
