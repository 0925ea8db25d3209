from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .auth import AUTH_REQUEST_HEADERS, FORWARDED_HEADERS, current_principal, require_authenticated
from .http import _parse_json, handle_errors, json_list, method_not_allowed, no_content
from .serializers import (
    BlueprintResourceItemSerializer,
    BlueprintSerializer,
    CategorySerializer,
    DomainSerializer,
    EnvironmentConfigSerializer,
    EnvironmentConfigUpdateSerializer,
    EnvironmentSerializer,
    StackCollectionSerializer,
    StackSerializer,
    TeamSerializer,
    validate_payload,
)
from .services import blueprints, catalog, environments, organization, stacks


def _principal_name(request: HttpRequest) -> str:
    return current_principal(request).name


# Blueprints


@csrf_exempt
@require_authenticated
@handle_errors
def blueprints_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(BlueprintSerializer, _parse_json(request))
        return JsonResponse(blueprints.create_blueprint(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(blueprints.list_blueprints())


@csrf_exempt
@require_authenticated
@handle_errors
def blueprint_detail(request: HttpRequest, blueprint_id) -> JsonResponse:
    blueprint_id = str(blueprint_id)
    if request.method == "PUT":
        data = validate_payload(BlueprintSerializer, _parse_json(request))
        return JsonResponse(blueprints.update_blueprint(blueprint_id, data))
    if request.method == "DELETE":
        blueprints.delete_blueprint(blueprint_id)
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(blueprints.get_blueprint(blueprint_id))


@csrf_exempt
@require_authenticated
@handle_errors
def available_cloud_providers(request: HttpRequest) -> JsonResponse:
    return json_list(catalog.list_enabled_cloud_providers())


@csrf_exempt
@require_authenticated
@handle_errors
def blueprint_resource_types(request: HttpRequest) -> JsonResponse:
    return json_list(blueprints.available_resource_types())


@csrf_exempt
@require_authenticated
@handle_errors
def resource_schema(request: HttpRequest, resource_type_id, cloud_provider_id) -> JsonResponse:
    return JsonResponse(catalog.get_resource_schema(str(resource_type_id), str(cloud_provider_id)))


# Blueprint resources


@csrf_exempt
@require_authenticated
@handle_errors
def blueprint_resources_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(BlueprintResourceItemSerializer, _parse_json(request))
        return JsonResponse(blueprints.create_blueprint_resource(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(blueprints.list_blueprint_resources())


@csrf_exempt
@require_authenticated
@handle_errors
def blueprint_resource_detail(request: HttpRequest, resource_id) -> JsonResponse:
    resource_id = str(resource_id)
    if request.method == "PUT":
        data = validate_payload(BlueprintResourceItemSerializer, _parse_json(request))
        return JsonResponse(blueprints.update_blueprint_resource(resource_id, data))
    if request.method == "DELETE":
        blueprints.delete_blueprint_resource(resource_id)
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(blueprints.get_blueprint_resource(resource_id))


# Stacks


@csrf_exempt
@require_authenticated
@handle_errors
def stacks_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(StackSerializer, _parse_json(request))
        return JsonResponse(stacks.create_stack(data, _principal_name(request)), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(stacks.list_stacks())


@csrf_exempt
@require_authenticated
@handle_errors
def stack_detail(request: HttpRequest, stack_id) -> JsonResponse:
    stack_id = str(stack_id)
    if request.method == "PUT":
        data = validate_payload(StackSerializer, _parse_json(request))
        return JsonResponse(stacks.update_stack(stack_id, data, _principal_name(request)))
    if request.method == "DELETE":
        stacks.delete_stack(stack_id, _principal_name(request))
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(stacks.get_stack(stack_id))


@csrf_exempt
@require_authenticated
@handle_errors
def stacks_by_type(request: HttpRequest, stack_type: str) -> JsonResponse:
    return json_list(stacks.list_stacks_by_type(stack_type))


@csrf_exempt
@require_authenticated
@handle_errors
def stack_resource_types(request: HttpRequest) -> JsonResponse:
    return json_list(stacks.available_resource_types())


# Stack types


@csrf_exempt
@handle_errors
def stack_types_collection(request: HttpRequest) -> JsonResponse:
    return json_list(stacks.list_stack_types())


@csrf_exempt
@handle_errors
def stack_type_detail(request: HttpRequest, stack_type: str) -> JsonResponse:
    return JsonResponse(stacks.stack_type_payload(stacks.require_stack_type(stack_type)))


@csrf_exempt
@require_authenticated
@handle_errors
def stack_type_languages(request: HttpRequest, stack_type: str) -> JsonResponse:
    return json_list(stacks.stack_type_payload(stacks.require_stack_type(stack_type))["supportedLanguages"])


@csrf_exempt
@require_authenticated
@handle_errors
def stack_type_compute_platform(request: HttpRequest, stack_type: str) -> JsonResponse:
    stack_type = stacks.require_stack_type(stack_type)
    return JsonResponse(environments.compute_platform(stack_type, request.GET.get("environment")))


# Teams, collections, domains, categories


@csrf_exempt
@require_authenticated
@handle_errors
def teams_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(TeamSerializer, _parse_json(request))
        return JsonResponse(organization.create_team(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(organization.list_teams())


@csrf_exempt
@require_authenticated
@handle_errors
def team_stacks(request: HttpRequest, team_id) -> JsonResponse:
    return json_list(organization.list_team_stacks(str(team_id)))


@csrf_exempt
@require_authenticated
@handle_errors
def stack_collections_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(StackCollectionSerializer, _parse_json(request))
        return JsonResponse(organization.create_stack_collection(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(organization.list_stack_collections())


@csrf_exempt
@require_authenticated
@handle_errors
def stack_collection_stacks(request: HttpRequest, collection_id) -> JsonResponse:
    return json_list(organization.list_collection_stacks(str(collection_id)))


@csrf_exempt
@require_authenticated
@handle_errors
def domains_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(DomainSerializer, _parse_json(request))
        return JsonResponse(organization.create_domain(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(organization.list_domains())


@csrf_exempt
@require_authenticated
@handle_errors
def domain_categories(request: HttpRequest, domain_id) -> JsonResponse:
    return json_list(organization.list_domain_categories(str(domain_id)))


@csrf_exempt
@require_authenticated
@handle_errors
def categories_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(CategorySerializer, _parse_json(request))
        return JsonResponse(organization.create_category(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(organization.list_categories())


@csrf_exempt
@require_authenticated
@handle_errors
def category_stacks(request: HttpRequest, category_id) -> JsonResponse:
    return json_list(organization.list_category_stacks(str(category_id)))


# Environments


@csrf_exempt
@require_authenticated
@handle_errors
def environments_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(EnvironmentSerializer, _parse_json(request))
        return JsonResponse(environments.create_environment(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(environments.list_environments())


@csrf_exempt
@require_authenticated
@handle_errors
def environment_detail(request: HttpRequest, environment_id) -> JsonResponse:
    environment_id = str(environment_id)
    if request.method == "PUT":
        data = validate_payload(EnvironmentSerializer, _parse_json(request))
        return JsonResponse(environments.update_environment(environment_id, data))
    if request.method == "DELETE":
        environments.delete_environment(environment_id)
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(environments.get_environment(environment_id))


@csrf_exempt
@require_authenticated
@handle_errors
def environment_configs_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        data = validate_payload(EnvironmentConfigSerializer, _parse_json(request))
        return JsonResponse(environments.create_config(data), status=201)
    if request.method != "GET":
        return method_not_allowed()
    return json_list(environments.list_active_configs())


@csrf_exempt
@require_authenticated
@handle_errors
def environment_config_detail(request: HttpRequest, environment: str) -> JsonResponse:
    if request.method == "PUT":
        data = validate_payload(EnvironmentConfigUpdateSerializer, _parse_json(request))
        return JsonResponse(environments.update_config(environment, data))
    if request.method == "DELETE":
        environments.delete_config(environment)
        return no_content()
    if request.method != "GET":
        return method_not_allowed()
    return JsonResponse(environments.get_config(environment))


@csrf_exempt
@require_authenticated
@handle_errors
def environment_provisioning_info(request: HttpRequest, environment: str) -> JsonResponse:
    return JsonResponse(environments.provisioning_info(environment, request.GET.get("stackType")))


# Principal


@csrf_exempt
@require_authenticated
def user_me(request: HttpRequest) -> JsonResponse:
    principal = current_principal(request)
    return JsonResponse(
        {
            "name": principal.name,
            "authenticated": True,
            "email": principal.email,
            "preferredUsername": principal.preferred_username,
            "displayName": principal.display_name,
            "roles": list(principal.roles),
        }
    )


@csrf_exempt
@require_authenticated
def user_info(request: HttpRequest) -> JsonResponse:
    principal = current_principal(request)
    return JsonResponse(
        {
            "principal": principal.name,
            "authMechanism": principal.mechanism,
            "headers": {name: request.headers.get(name) for name in AUTH_REQUEST_HEADERS},
        }
    )


@csrf_exempt
def auth_headers(request: HttpRequest) -> JsonResponse:
    names = (*AUTH_REQUEST_HEADERS, *FORWARDED_HEADERS, "Authorization", "X-Amzn-Request-Context")
    seen = {}
    for name in names:
        value = request.headers.get(name)
        if value is None:
            continue
        # Only report that a credential was sent, not the credential.
        seen[name] = "<present>" if name == "Authorization" else value
    principal = current_principal(request)
    return JsonResponse({"headers": seen, "principal": principal.name if principal else None})
