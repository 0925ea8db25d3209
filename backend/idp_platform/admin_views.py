from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .auth import current_principal, require_role
from .constants import ROLE_ADMIN
from .http import _parse_json, handle_errors, json_list, method_not_allowed, no_content
from .serializers import (
    CloudProviderSerializer,
    MappingCreateSerializer,
    MappingUpdateSerializer,
    PropertySchemaBulkSerializer,
    PropertySchemaCreateSerializer,
    PropertySchemaFieldsSerializer,
    ResourceTypeSerializer,
    ToggleSerializer,
    validate_payload,
)
from .services import catalog, dashboard


def _actor(request: HttpRequest) -> str:
    return current_principal(request).actor


def _toggle_value(request: HttpRequest) -> bool:
    return validate_payload(ToggleSerializer, _parse_json(request))["enabled"]


# Cloud providers


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def cloud_providers_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(CloudProviderSerializer, _parse_json(request))
        return JsonResponse(catalog.create_cloud_provider(data, actor=_actor(request)), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(catalog.list_cloud_providers())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def cloud_providers_enabled(request: HttpRequest) -> JsonResponse:
    return json_list(catalog.list_enabled_cloud_providers())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def cloud_provider_detail(request: HttpRequest, provider_id) -> JsonResponse:
    provider_id = str(provider_id)
    if request.method == "PUT":
        data = validate_payload(CloudProviderSerializer, _parse_json(request), partial=True)
        return JsonResponse(catalog.update_cloud_provider(provider_id, data, actor=_actor(request)))
    if request.method == "DELETE":
        catalog.delete_cloud_provider(provider_id, actor=_actor(request))
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(catalog.get_cloud_provider(provider_id))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def cloud_provider_toggle(request: HttpRequest, provider_id) -> JsonResponse:
    if request.method not in ("PUT", "PATCH"):
        return method_not_allowed()
    catalog.toggle_cloud_provider(str(provider_id), _toggle_value(request), actor=_actor(request))
    return no_content()


# Resource types


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def resource_types_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(ResourceTypeSerializer, _parse_json(request))
        return JsonResponse(catalog.create_resource_type(data, actor=_actor(request)), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(catalog.list_resource_types())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def resource_types_enabled(request: HttpRequest) -> JsonResponse:
    return json_list(catalog.list_enabled_resource_types())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def resource_types_by_category(request: HttpRequest, category: str) -> JsonResponse:
    return json_list(catalog.list_resource_types_by_category(category))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def resource_type_detail(request: HttpRequest, resource_type_id) -> JsonResponse:
    resource_type_id = str(resource_type_id)
    if request.method == "PUT":
        data = validate_payload(ResourceTypeSerializer, _parse_json(request), partial=True)
        return JsonResponse(catalog.update_resource_type(resource_type_id, data, actor=_actor(request)))
    if request.method == "DELETE":
        catalog.delete_resource_type(resource_type_id, actor=_actor(request))
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(catalog.get_resource_type(resource_type_id))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def resource_type_toggle(request: HttpRequest, resource_type_id) -> JsonResponse:
    if request.method not in ("PUT", "PATCH"):
        return method_not_allowed()
    catalog.toggle_resource_type(str(resource_type_id), _toggle_value(request), actor=_actor(request))
    return no_content()


# Resource type / cloud provider mappings


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mappings_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(MappingCreateSerializer, _parse_json(request))
        return JsonResponse(catalog.create_mapping(data, actor=_actor(request)), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(catalog.list_mappings())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mappings_by_resource_type(request: HttpRequest, resource_type_id) -> JsonResponse:
    return json_list(catalog.list_mappings_by_resource_type(str(resource_type_id)))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mappings_by_cloud_provider(request: HttpRequest, cloud_provider_id) -> JsonResponse:
    return json_list(catalog.list_mappings_by_cloud_provider(str(cloud_provider_id)))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mapping_find(request: HttpRequest, resource_type_id, cloud_provider_id) -> JsonResponse:
    return JsonResponse(catalog.find_mapping(str(resource_type_id), str(cloud_provider_id)))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mapping_detail(request: HttpRequest, mapping_id) -> JsonResponse:
    mapping_id = str(mapping_id)
    if request.method == "PUT":
        data = validate_payload(MappingUpdateSerializer, _parse_json(request))
        return JsonResponse(catalog.update_mapping(mapping_id, data, actor=_actor(request)))
    if request.method == "DELETE":
        catalog.delete_mapping(mapping_id, actor=_actor(request))
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(catalog.get_mapping(mapping_id))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def mapping_toggle(request: HttpRequest, mapping_id) -> JsonResponse:
    if request.method not in ("PUT", "PATCH"):
        return method_not_allowed()
    catalog.toggle_mapping(str(mapping_id), _toggle_value(request), actor=_actor(request))
    return no_content()


# Property schemas


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def property_schemas_collection(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return method_not_allowed()
    data = validate_payload(PropertySchemaCreateSerializer, _parse_json(request))
    return JsonResponse(catalog.create_property_schema(data, actor=_actor(request)), status=201)


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def property_schemas_bulk(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return method_not_allowed()
    data = validate_payload(PropertySchemaBulkSerializer, _parse_json(request))
    created = catalog.bulk_create_property_schemas(data["mapping_id"], data["properties"], actor=_actor(request))
    return JsonResponse(created, safe=False, status=201)


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def property_schemas_by_mapping(request: HttpRequest, mapping_id) -> JsonResponse:
    return json_list(catalog.list_property_schemas(str(mapping_id)))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def property_schema_map(request: HttpRequest, resource_type_id, cloud_provider_id) -> JsonResponse:
    return JsonResponse(catalog.get_schema_map(str(resource_type_id), str(cloud_provider_id)))


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def property_schema_detail(request: HttpRequest, schema_id) -> JsonResponse:
    schema_id = str(schema_id)
    if request.method == "PUT":
        data = validate_payload(PropertySchemaFieldsSerializer, _parse_json(request), partial=True)
        return JsonResponse(catalog.update_property_schema(schema_id, data, actor=_actor(request)))
    if request.method == "DELETE":
        catalog.delete_property_schema(schema_id, actor=_actor(request))
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(catalog.get_property_schema(schema_id))


# Dashboard


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def dashboard_overview(request: HttpRequest) -> JsonResponse:
    return JsonResponse(dashboard.get_dashboard())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def dashboard_incomplete_mappings(request: HttpRequest) -> JsonResponse:
    return json_list(dashboard.get_incomplete_mappings())


@csrf_exempt
@require_role(ROLE_ADMIN)
@handle_errors
def dashboard_statistics(request: HttpRequest) -> JsonResponse:
    return JsonResponse(dashboard.get_statistics())
