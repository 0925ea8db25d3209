from django.test import TestCase

from idp_platform.models import Blueprint, BlueprintResource, EnvironmentEntity, Stack

from .fixtures import (
    ApiClientMixin,
    make_blueprint,
    make_environment,
    make_provider,
    make_resource_type,
    make_stack,
)


class BlueprintApiTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.aws = make_provider("AWS")
        self.storage = make_resource_type("Storage", "BOTH")

    def _payload(self, **overrides):
        payload = {
            "name": "Web Platform",
            "description": "Static sites",
            "supportedCloudProviderIds": [self.aws["id"]],
            "resources": [
                {
                    "name": "assets",
                    "blueprintResourceTypeId": self.storage["id"],
                    "cloudType": "AWS",
                    "configuration": {"versioning": True},
                }
            ],
        }
        payload.update(overrides)
        return payload

    def test_requires_authentication(self):
        self.assertEqual(self.get_json("/blueprints", headers={}).status_code, 401)

    def test_create_blueprint_with_resources(self):
        response = self.post_json("/blueprints", self._payload())
        self.assertEqual(response.status_code, 201, response.content.decode())
        body = response.json()
        self.assertTrue(body["isActive"])
        self.assertEqual(body["supportedCloudProviderIds"], [self.aws["id"]])
        self.assertEqual(len(body["resources"]), 1)
        resource = body["resources"][0]
        self.assertEqual(resource["blueprintResourceTypeName"], "Storage")
        self.assertEqual(resource["configuration"], {"versioning": True})
        self.assertEqual(resource["cloudType"], "AWS")

        fetched = self.get_json(f"/blueprints/{body['id']}").json()
        self.assertEqual(fetched["name"], "Web Platform")

    def test_create_requires_name_and_provider(self):
        missing_name = self.post_json("/blueprints", self._payload(name="  "))
        self.assertEqual(missing_name.status_code, 400)
        self.assertEqual(missing_name.json()["error"], "Blueprint name is required")

        long_name = self.post_json("/blueprints", self._payload(name="x" * 101))
        self.assertEqual(long_name.json()["error"], "Blueprint name cannot exceed 100 characters")

        no_provider = self.post_json("/blueprints", self._payload(supportedCloudProviderIds=[]))
        self.assertEqual(no_provider.status_code, 400)
        self.assertEqual(no_provider.json()["error"], "At least one supported cloud provider is required")

    def test_duplicate_name_rejected(self):
        make_blueprint("Web Platform", providers=[self.aws])
        response = self.post_json("/blueprints", self._payload())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Blueprint with name 'Web Platform' already exists")

    def test_disabled_or_unknown_provider_rejected(self):
        azure = make_provider("Azure", enabled=False)
        disabled = self.post_json("/blueprints", self._payload(supportedCloudProviderIds=[azure["id"]]))
        self.assertEqual(disabled.status_code, 400)
        self.assertEqual(
            disabled.json()["error"],
            "Cloud provider 'Azure Cloud' is not enabled and cannot be used in blueprints",
        )

        unknown_id = "00000000-0000-0000-0000-00000000abcd"
        unknown = self.post_json("/blueprints", self._payload(supportedCloudProviderIds=[unknown_id]))
        self.assertEqual(unknown.json()["error"], f"Cloud provider(s) not found with ids: {unknown_id}")

    def test_resource_cloud_type_must_name_enabled_provider(self):
        make_provider("Azure", enabled=False)
        resources = [{"name": "assets", "blueprintResourceTypeId": self.storage["id"], "cloudType": "Azure"}]
        disabled = self.post_json("/blueprints", self._payload(resources=resources))
        self.assertEqual(disabled.json()["error"], "Cloud provider is not enabled: Azure")

        resources[0]["cloudType"] = "GCP"
        missing = self.post_json("/blueprints", self._payload(resources=resources))
        self.assertEqual(missing.json()["error"], "Cloud provider not found: GCP")
        self.assertFalse(Blueprint.objects.exists())

    def test_stacks_are_assigned_and_cannot_be_shared(self):
        stack = make_stack("Orders", "alice@example.com")
        created = self.post_json("/blueprints", self._payload(stackIds=[stack["id"]])).json()
        self.assertEqual(created["stackIds"], [stack["id"]])
        self.assertEqual(str(Stack.objects.get(id=stack["id"]).blueprint_id), created["id"])

        second = self.post_json("/blueprints", self._payload(name="Other", stackIds=[stack["id"]]))
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.json()["error"], "Stack(s) already assigned to another blueprint: Orders")

    def test_update_replaces_resources(self):
        created = self.post_json("/blueprints", self._payload()).json()
        queue = make_resource_type("Queue", "SHARED")
        response = self.put_json(
            f"/blueprints/{created['id']}",
            self._payload(
                name="Web Platform v2",
                isActive=False,
                resources=[{"name": "events", "blueprintResourceTypeId": queue["id"], "cloudType": "AWS"}],
            ),
        )
        self.assertEqual(response.status_code, 200, response.content.decode())
        body = response.json()
        self.assertEqual(body["name"], "Web Platform v2")
        self.assertFalse(body["isActive"])
        self.assertEqual([resource["name"] for resource in body["resources"]], ["events"])
        self.assertEqual(BlueprintResource.objects.filter(blueprint_id=created["id"]).count(), 1)

    def test_delete_detaches_stacks_and_environments(self):
        blueprint = make_blueprint("Web", providers=[self.aws], resources=[(self.storage, self.aws)])
        stack = make_stack("Orders", "alice@example.com", blueprint_id=blueprint["id"])
        environment = make_environment("Development", self.aws, with_config=False)
        EnvironmentEntity.objects.filter(id=environment["id"]).update(blueprint_id=blueprint["id"])

        response = self.delete_json(f"/blueprints/{blueprint['id']}")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Blueprint.objects.exists())
        self.assertFalse(BlueprintResource.objects.exists())
        self.assertIsNone(Stack.objects.get(id=stack["id"]).blueprint_id)
        self.assertIsNone(EnvironmentEntity.objects.get(id=environment["id"]).blueprint_id)

    def test_available_resource_types_are_shared_or_both(self):
        make_resource_type("Relational Database Server", "SHARED")
        make_resource_type("Queue", "NON_SHARED")
        make_resource_type("Cache", "SHARED", enabled=False)
        names = [item["name"] for item in self.get_json("/blueprints/available-resource-types").json()]
        self.assertEqual(names, ["Relational Database Server", "Storage"])

    def test_available_cloud_providers_lists_enabled_only(self):
        make_provider("Azure", enabled=False)
        names = [item["name"] for item in self.get_json("/blueprints/available-cloud-providers").json()]
        self.assertEqual(names, ["AWS"])

    def test_unknown_blueprint_returns_404(self):
        response = self.get_json("/blueprints/00000000-0000-0000-0000-000000000009")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json()["error"], "Blueprint not found with id: 00000000-0000-0000-0000-000000000009"
        )


class BlueprintResourceApiTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.aws = make_provider("AWS")
        self.storage = make_resource_type("Storage", "BOTH")
        self.blueprint = make_blueprint("Web", providers=[self.aws])

    def _payload(self, **overrides):
        payload = {
            "blueprintId": self.blueprint["id"],
            "name": "assets",
            "blueprintResourceTypeId": self.storage["id"],
            "cloudType": "AWS",
            "configuration": {"versioning": True},
            "cloudSpecificProperties": {"region": "us-east-1"},
        }
        payload.update(overrides)
        return payload

    def test_create_list_and_get(self):
        created = self.post_json("/blueprint-resources", self._payload())
        self.assertEqual(created.status_code, 201, created.content.decode())
        body = created.json()
        self.assertEqual(body["blueprintId"], self.blueprint["id"])
        self.assertEqual(body["blueprintResourceTypeName"], "Storage")
        self.assertEqual(body["cloudSpecificProperties"], {"region": "us-east-1"})
        self.assertEqual(str(BlueprintResource.objects.get(id=body["id"]).cloud_provider_id), self.aws["id"])

        listing = self.get_json("/blueprint-resources").json()
        self.assertEqual([item["id"] for item in listing], [body["id"]])
        self.assertEqual(self.get_json(f"/blueprint-resources/{body['id']}").json()["name"], "assets")

        blueprint = self.get_json(f"/blueprints/{self.blueprint['id']}").json()
        self.assertEqual([item["name"] for item in blueprint["resources"]], ["assets"])

    def test_create_validates_blueprint_type_and_provider(self):
        unknown_blueprint = "00000000-0000-0000-0000-000000000008"
        missing = self.post_json("/blueprint-resources", self._payload(blueprintId=unknown_blueprint))
        self.assertEqual(missing.status_code, 404)

        unknown_type = "00000000-0000-0000-0000-000000000007"
        no_type = self.post_json("/blueprint-resources", self._payload(blueprintResourceTypeId=unknown_type))
        self.assertEqual(no_type.json()["error"], f"Resource type not found with id: {unknown_type}")

        make_provider("Azure", enabled=False)
        disabled = self.post_json("/blueprint-resources", self._payload(cloudType="Azure"))
        self.assertEqual(disabled.status_code, 400)
        self.assertEqual(disabled.json()["error"], "Cloud provider is not enabled: Azure")

        without_blueprint = self._payload()
        del without_blueprint["blueprintId"]
        no_blueprint = self.post_json("/blueprint-resources", without_blueprint)
        self.assertEqual(no_blueprint.status_code, 400)
        self.assertIn("blueprintId", no_blueprint.json()["errors"])
        self.assertFalse(BlueprintResource.objects.exists())

    def test_update_replaces_fields_and_keeps_cloud_properties(self):
        body = self.post_json("/blueprint-resources", self._payload()).json()
        payload = self._payload(name="static", configuration={"versioning": False})
        del payload["cloudSpecificProperties"]
        updated = self.put_json(f"/blueprint-resources/{body['id']}", payload)
        self.assertEqual(updated.status_code, 200, updated.content.decode())
        self.assertEqual(updated.json()["name"], "static")
        self.assertEqual(updated.json()["configuration"], {"versioning": False})
        self.assertEqual(updated.json()["cloudSpecificProperties"], {"region": "us-east-1"})

    def test_delete_and_not_found(self):
        body = self.post_json("/blueprint-resources", self._payload()).json()
        self.assertEqual(self.delete_json(f"/blueprint-resources/{body['id']}").status_code, 204)
        self.assertFalse(BlueprintResource.objects.exists())

        missing = self.get_json(f"/blueprint-resources/{body['id']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["error"], f"Blueprint resource not found: {body['id']}")
        self.assertEqual(self.delete_json(f"/blueprint-resources/{body['id']}").status_code, 404)

    def test_requires_authentication(self):
        self.assertEqual(self.get_json("/blueprint-resources", headers={}).status_code, 401)
