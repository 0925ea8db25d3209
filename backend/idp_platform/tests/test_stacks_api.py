from django.test import TestCase

from idp_platform.models import Stack, StackResource
from idp_platform.repositories import get_store

from .fixtures import (
    ApiClientMixin,
    OTHER_USER_HEADERS,
    USER_HEADERS,
    make_blueprint,
    make_mapping,
    make_provider,
    make_resource_type,
    make_schema,
    make_stack,
)


def stack_payload(**overrides):
    payload = {
        "name": "Orders",
        "description": "Order service",
        "cloudName": "orders-svc",
        "routePath": "/orders/",
        "stackType": "RESTFUL_SERVERLESS",
        "programmingLanguage": "NODE_JS",
        "isPublic": True,
    }
    payload.update(overrides)
    return payload


class StackCreateTests(ApiClientMixin, TestCase):
    def test_create_records_owner(self):
        response = self.post_json("/stacks", stack_payload())
        self.assertEqual(response.status_code, 201, response.content.decode())
        body = response.json()
        self.assertEqual(body["createdBy"], "alice@example.com")
        self.assertEqual(body["programmingLanguage"], "NODE_JS")
        self.assertTrue(body["isPublic"])
        self.assertEqual(body["resources"], [])
        self.assertTrue(Stack.objects.filter(cloud_name="orders-svc").exists())

    def test_serializer_messages(self):
        response = self.post_json("/stacks", stack_payload(name=""))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Stack name is required")
        self.assertIn("name", response.json()["errors"])

    def test_language_rules(self):
        missing = self.post_json("/stacks", stack_payload(programmingLanguage=None))
        self.assertEqual(
            missing.json()["error"], "Programming language is required for stack type: RESTFUL_SERVERLESS"
        )
        unsupported = self.post_json(
            "/stacks", stack_payload(stackType="JAVASCRIPT_WEB_APPLICATION", programmingLanguage="QUARKUS", isPublic=False)
        )
        self.assertEqual(
            unsupported.json()["error"],
            "Programming language QUARKUS is not supported for stack type: JAVASCRIPT_WEB_APPLICATION",
        )

    def test_public_access_only_for_api_types(self):
        response = self.post_json(
            "/stacks", stack_payload(stackType="INFRASTRUCTURE", programmingLanguage=None, isPublic=True)
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Public access is not supported for stack type: INFRASTRUCTURE")

        infrastructure = self.post_json(
            "/stacks", stack_payload(stackType="INFRASTRUCTURE", programmingLanguage=None, isPublic=False)
        )
        self.assertEqual(infrastructure.status_code, 201, infrastructure.content.decode())
        self.assertIsNone(infrastructure.json()["programmingLanguage"])

    def test_cloud_name_and_route_path_formats(self):
        bad_cloud = self.post_json("/stacks", stack_payload(cloudName="orders__svc"))
        self.assertEqual(bad_cloud.status_code, 400)
        self.assertEqual(bad_cloud.json()["errors"], {"cloudName": ["Invalid cloud name format"]})

        short_route = self.post_json("/stacks", stack_payload(routePath="/ab/"))
        self.assertEqual(short_route.json()["error"], "Route path must be between 5 and 22 characters long.")

        no_slash = self.post_json("/stacks", stack_payload(routePath="/orders"))
        self.assertIn("start and end with a forward slash", no_slash.json()["error"])
        self.assertIn("routePath", no_slash.json()["errors"])

    def test_uniqueness_rules(self):
        make_stack("Orders", "alice@example.com", cloud_name="legacy-orders", route_path="/legacy/")
        same_name = self.post_json("/stacks", stack_payload())
        self.assertEqual(same_name.json()["error"], "Stack with name 'Orders' already exists for this owner")

        other_owner = self.post_json("/stacks", stack_payload(cloudName="legacy-orders"), headers=OTHER_USER_HEADERS)
        self.assertEqual(other_owner.json()["error"], "Stack with cloud name 'legacy-orders' already exists")

        route = self.post_json("/stacks", stack_payload(routePath="/legacy/"), headers=OTHER_USER_HEADERS)
        self.assertEqual(route.json()["error"], "Stack with route path '/legacy/' already exists")

    def test_missing_associations_rejected(self):
        team_id = "00000000-0000-0000-0000-0000000000aa"
        response = self.post_json("/stacks", stack_payload(teamId=team_id))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], f"Team not found: {team_id}")

    def test_container_stack_types_need_orchestrator_blueprint(self):
        aws = make_provider("AWS")
        storage = make_resource_type("Storage", "BOTH")
        orchestrator = make_resource_type("Managed Container Orchestrator", "SHARED")
        storage_only = make_blueprint("Static", providers=[aws], resources=[(storage, aws)])
        containers = make_blueprint("Containers", providers=[aws], resources=[(orchestrator, aws)])

        missing = self.post_json("/stacks", stack_payload(stackType="RESTFUL_API", programmingLanguage="QUARKUS"))
        self.assertEqual(
            missing.json()["error"],
            "Stack type 'RESTful API' requires a blueprint with a Container Orchestrator resource",
        )
        wrong = self.post_json(
            "/stacks",
            stack_payload(stackType="RESTFUL_API", programmingLanguage="QUARKUS", blueprintId=storage_only["id"]),
        )
        self.assertEqual(wrong.status_code, 400)

        created = self.post_json(
            "/stacks",
            stack_payload(stackType="RESTFUL_API", programmingLanguage="QUARKUS", blueprintId=containers["id"]),
        )
        self.assertEqual(created.status_code, 201, created.content.decode())
        self.assertEqual(created.json()["blueprintId"], containers["id"])

    def test_web_application_needs_storage_blueprint(self):
        response = self.post_json(
            "/stacks",
            stack_payload(stackType="JAVASCRIPT_WEB_APPLICATION", programmingLanguage="NODE_JS", isPublic=False),
        )
        self.assertEqual(
            response.json()["error"],
            "Stack type 'JavaScript Web Application' requires a blueprint with a Storage resource",
        )

    def test_configuration_entries_validated_against_schemas(self):
        aws = make_provider("AWS")
        database = make_resource_type("Relational Database Server", "SHARED")
        make_schema(make_mapping(database, aws), "engine", required=True)
        entry = {"resourceTypeId": database["id"], "cloudProviderId": aws["id"]}

        invalid = self.post_json("/stacks", stack_payload(configuration={"db": entry}))
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(
            invalid.json()["error"],
            "Configuration validation failed for resource 'db': engine: Property is required; ",
        )
        self.assertEqual(invalid.json()["errors"], {"engine": ["Property is required"]})

        valid = self.post_json("/stacks", stack_payload(configuration={"db": {**entry, "engine": "postgres"}}))
        self.assertEqual(valid.status_code, 201, valid.content.decode())

    def test_configuration_provider_must_be_enabled_without_schemas(self):
        gcp = make_provider("GCP", enabled=False)
        cache = make_resource_type("Cache", "SHARED")
        entry = {"resourceTypeId": cache["id"], "cloudProviderId": gcp["id"]}

        response = self.post_json("/stacks", stack_payload(configuration={"cache": entry}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Cloud provider is not enabled: GCP")
        self.assertFalse(Stack.objects.exists())

    def test_stack_resources_validated_and_stored(self):
        aws = make_provider("AWS")
        queue = make_resource_type("Queue", "NON_SHARED")
        shared = make_resource_type("Relational Database Server", "SHARED")
        make_schema(make_mapping(queue, aws), "fifo", "BOOLEAN")

        refused = self.post_json(
            "/stacks",
            stack_payload(resources=[{"name": "db", "resourceTypeId": shared["id"], "cloudProviderId": aws["id"]}]),
        )
        self.assertEqual(
            refused.json()["error"], "Resource type 'Relational Database Server' cannot be used in stacks"
        )

        invalid = self.post_json(
            "/stacks",
            stack_payload(
                resources=[
                    {
                        "name": "events",
                        "resourceTypeId": queue["id"],
                        "cloudProviderId": aws["id"],
                        "configuration": {"fifo": "maybe"},
                    }
                ]
            ),
        )
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()["errors"], {"fifo": ["Must be a boolean (true or false)"]})

        created = self.post_json(
            "/stacks",
            stack_payload(
                resources=[
                    {
                        "name": "events",
                        "resourceTypeId": queue["id"],
                        "cloudProviderId": aws["id"],
                        "configuration": {"fifo": True},
                    }
                ]
            ),
        )
        self.assertEqual(created.status_code, 201, created.content.decode())
        self.assertEqual(created.json()["resources"][0]["configuration"], {"fifo": True})
        self.assertEqual(StackResource.objects.count(), 1)


class StackOwnershipTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.stack = self.post_json("/stacks", stack_payload()).json()

    def test_other_user_cannot_update_or_delete(self):
        update = self.put_json(f"/stacks/{self.stack['id']}", stack_payload(name="Mine"), headers=OTHER_USER_HEADERS)
        self.assertEqual(update.status_code, 403)
        self.assertEqual(update.json()["error"], "Not authorized to update this stack")

        delete = self.delete_json(f"/stacks/{self.stack['id']}", headers=OTHER_USER_HEADERS)
        self.assertEqual(delete.status_code, 403)
        self.assertEqual(delete.json()["error"], "Not authorized to delete this stack")

    def test_owner_match_falls_back_to_local_part(self):
        headers = {"HTTP_X_AUTH_REQUEST_EMAIL": "Alice@corp.example"}
        response = self.put_json(
            f"/stacks/{self.stack['id']}", stack_payload(description="Renamed"), headers=headers
        )
        self.assertEqual(response.status_code, 200, response.content.decode())
        self.assertEqual(response.json()["description"], "Renamed")
        self.assertEqual(response.json()["createdBy"], "alice@example.com")

    def test_update_replaces_fields_and_ignores_itself_for_uniqueness(self):
        team = get_store().teams.save({"name": "Payments", "is_active": True})
        with_team = self.put_json(f"/stacks/{self.stack['id']}", stack_payload(teamId=team["id"]))
        self.assertEqual(with_team.status_code, 200, with_team.content.decode())
        self.assertEqual(with_team.json()["teamId"], team["id"])

        cleared = self.put_json(f"/stacks/{self.stack['id']}", stack_payload())
        self.assertIsNone(cleared.json()["teamId"])

    def test_delete_cascades_resources(self):
        get_store().stack_resources.save({"stack_id": self.stack["id"], "name": "extra", "configuration": {}})
        response = self.delete_json(f"/stacks/{self.stack['id']}")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Stack.objects.exists())
        self.assertFalse(StackResource.objects.exists())

    def test_list_and_filter_by_type(self):
        make_stack("Platform DB", "bob@example.com", stack_type="INFRASTRUCTURE", programming_language=None)
        self.assertEqual(len(self.get_json("/stacks").json()), 2)

        serverless = self.get_json("/stacks/type/restful_serverless").json()
        self.assertEqual([stack["name"] for stack in serverless], ["Orders"])

        invalid = self.get_json("/stacks/type/MAINFRAME")
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()["error"], "Invalid stack type: MAINFRAME")

    def test_missing_stack_is_404(self):
        response = self.get_json("/stacks/00000000-0000-0000-0000-000000000077", headers=USER_HEADERS)
        self.assertEqual(response.status_code, 404)


class StackTypeApiTests(ApiClientMixin, TestCase):
    def test_stack_types_are_public(self):
        response = self.get_json("/stack-types", headers={})
        self.assertEqual(response.status_code, 200)
        types = {item["name"]: item for item in response.json()}
        self.assertEqual(len(types), 6)
        self.assertEqual(types["INFRASTRUCTURE"]["defaultLanguage"], "NONE")
        self.assertFalse(types["INFRASTRUCTURE"]["requiresProgrammingLanguage"])
        self.assertEqual(types["JAVASCRIPT_WEB_APPLICATION"]["supportedLanguages"], ["NODE_JS"])
        self.assertEqual(types["JAVASCRIPT_WEB_APPLICATION"]["defaultLanguage"], "NODE_JS")
        self.assertTrue(types["EVENT_DRIVEN_API"]["requiresEventConfiguration"])
        self.assertTrue(types["EVENT_DRIVEN_API"]["requiresApiConfiguration"])
        self.assertFalse(types["EVENT_DRIVEN_SERVERLESS"]["supportsPublicAccess"])

    def test_stack_type_detail(self):
        detail = self.get_json("/stack-types/RESTFUL_API", headers={}).json()
        self.assertEqual(detail["displayName"], "RESTful API")
        self.assertEqual(detail["defaultLanguage"], "QUARKUS")
        self.assertEqual(self.get_json("/stack-types/MAINFRAME", headers={}).status_code, 404)

    def test_supported_languages_require_authentication(self):
        self.assertEqual(
            self.get_json("/stack-types/RESTFUL_API/supported-languages", headers={}).status_code, 401
        )
        languages = self.get_json("/stack-types/RESTFUL_API/supported-languages").json()
        self.assertEqual(languages, ["QUARKUS", "NODE_JS"])
