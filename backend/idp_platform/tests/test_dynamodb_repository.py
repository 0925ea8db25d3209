import json
import os
from datetime import timedelta
from io import StringIO
from unittest import mock

import boto3
from botocore.exceptions import ClientError
from django.core.management import call_command
from django.test import SimpleTestCase, override_settings
from django.utils import timezone
from moto import mock_aws

from idp_platform.exceptions import StorageError
from idp_platform.repositories import get_store, reset_stores
from idp_platform.repositories.dynamodb import DynamoRepository, build_resource, ensure_tables, table_definition
from idp_platform.repositories.entities import BLUEPRINTS, CLOUD_PROVIDERS, ENTITY_SPECS, PROPERTY_SCHEMAS

from .fixtures import ADMIN_HEADERS, ApiClientMixin, make_mapping, make_provider, make_resource_type, make_schema

AWS_ENV = {
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "AWS_DEFAULT_REGION": "us-east-1",
}


class DynamoTestCase(SimpleTestCase):
    """Runs each test against moto-backed tables with the dynamodb store selected."""

    def setUp(self):
        env = mock.patch.dict(os.environ, AWS_ENV)
        env.start()
        self.addCleanup(env.stop)
        aws = mock_aws()
        aws.start()
        self.addCleanup(aws.stop)
        overrides = override_settings(
            IDP_DATABASE_PROVIDER="dynamodb",
            IDP_AWS_REGION="us-east-1",
            IDP_DYNAMODB_TABLE_PREFIX="test_",
            IDP_DYNAMODB_ENDPOINT_URL="",
        )
        overrides.enable()
        self.addCleanup(overrides.disable)
        reset_stores()
        self.addCleanup(reset_stores)
        self.created_tables = ensure_tables(build_resource(region="us-east-1"), "test_")


class TableProvisioningTests(DynamoTestCase):
    def test_every_entity_gets_a_table(self):
        self.assertEqual(len(self.created_tables), len(ENTITY_SPECS))
        self.assertIn("test_cloud_providers", self.created_tables)
        self.assertEqual(ensure_tables(build_resource(region="us-east-1"), "test_"), [])

    def test_indexes_follow_the_entity_spec(self):
        definition = table_definition(PROPERTY_SCHEMAS, "test_")
        self.assertEqual(definition["TableName"], "test_property_schemas")
        self.assertEqual(
            [index["IndexName"] for index in definition["GlobalSecondaryIndexes"]], ["mapping_id-index"]
        )
        client = boto3.client("dynamodb", region_name="us-east-1")
        described = client.describe_table(TableName="test_resource_types")["Table"]
        self.assertEqual(
            sorted(index["IndexName"] for index in described["GlobalSecondaryIndexes"]),
            ["category-index", "name-index"],
        )

    def test_create_tables_command(self):
        out = StringIO()
        call_command("create_dynamodb_tables", "--prefix", "cmd_", "--region", "us-east-1", stdout=out)
        result = json.loads(out.getvalue())
        self.assertEqual(result["prefix"], "cmd_")
        self.assertEqual(len(result["created"]), len(ENTITY_SPECS))

        again = StringIO()
        call_command("create_dynamodb_tables", "--prefix", "cmd_", "--region", "us-east-1", stdout=again)
        self.assertEqual(json.loads(again.getvalue())["created"], [])


class DynamoRepositoryTests(DynamoTestCase):
    def setUp(self):
        super().setUp()
        self.store = get_store()

    def test_store_uses_dynamodb(self):
        self.assertEqual(self.store.provider, "dynamodb")
        self.assertIsInstance(self.store.cloud_providers, DynamoRepository)
        self.assertEqual(self.store.cloud_providers.table_name, "test_cloud_providers")

    def test_save_get_and_delete(self):
        saved = self.store.cloud_providers.save({"name": "AWS", "display_name": "Amazon", "enabled": True})
        self.assertTrue(saved["id"])
        self.assertIsNone(saved["description"])

        loaded = self.store.cloud_providers.get(saved["id"])
        self.assertEqual(loaded["name"], "AWS")
        self.assertIs(loaded["enabled"], True)
        self.assertEqual(loaded["created_at"], saved["created_at"])

        self.store.cloud_providers.delete(saved["id"])
        self.assertIsNone(self.store.cloud_providers.get(saved["id"]))

    def test_save_overwrites_existing_record(self):
        saved = self.store.cloud_providers.save({"name": "GCP", "display_name": "Google", "enabled": False})
        self.store.cloud_providers.save({**saved, "enabled": True})
        self.assertEqual(self.store.cloud_providers.count(), 1)
        self.assertTrue(self.store.cloud_providers.get(saved["id"])["enabled"])

    def test_filter_by_index_and_attributes(self):
        self.store.resource_types.save({"name": "Database", "display_name": "DB", "category": "SHARED", "enabled": True})
        self.store.resource_types.save({"name": "Queue", "display_name": "Q", "category": "SHARED", "enabled": False})
        self.store.resource_types.save({"name": "Cache", "display_name": "C", "category": "BOTH", "enabled": True})

        shared = self.store.resource_types.filter(category="SHARED")
        self.assertEqual(sorted(item["name"] for item in shared), ["Database", "Queue"])
        enabled_shared = self.store.resource_types.filter(category="SHARED", enabled=True)
        self.assertEqual([item["name"] for item in enabled_shared], ["Database"])
        self.assertEqual(self.store.resource_types.count(enabled=True), 2)
        self.assertIsNone(self.store.resource_types.first(name="Storage"))

    def test_none_criteria_match_missing_attributes(self):
        self.store.cloud_providers.save({"name": "AWS", "display_name": "Amazon", "enabled": True})
        self.store.cloud_providers.save(
            {"name": "Azure", "display_name": "Azure", "description": "Microsoft", "enabled": True}
        )
        undescribed = self.store.cloud_providers.filter(description=None)
        self.assertEqual([item["name"] for item in undescribed], ["AWS"])

    def test_json_and_numeric_fields_round_trip(self):
        schema = self.store.property_schemas.save(
            {
                "mapping_id": "m-1",
                "property_name": "size",
                "display_name": "Size",
                "data_type": "NUMBER",
                "required": True,
                "default_value": 20,
                "validation_rules": {"min": 1, "max": 100.5, "allowedValues": ["a", "b"]},
                "display_order": 3,
            }
        )
        loaded = self.store.property_schemas.get(schema["id"])
        self.assertEqual(loaded["default_value"], 20)
        self.assertEqual(loaded["validation_rules"], {"min": 1, "max": 100.5, "allowedValues": ["a", "b"]})
        self.assertEqual(loaded["display_order"], 3)
        self.assertIsInstance(loaded["display_order"], int)

    def test_m2m_ids_are_sorted(self):
        blueprint = self.store.blueprints.save(
            {"name": "Web", "is_active": True, "supported_cloud_provider_ids": ["p-2", "p-1"]}
        )
        self.assertEqual(self.store.blueprints.get(blueprint["id"])["supported_cloud_provider_ids"], ["p-1", "p-2"])
        empty = self.store.blueprints.save({"name": "Empty", "is_active": True})
        self.assertEqual(self.store.blueprints.get(empty["id"])["supported_cloud_provider_ids"], [])

    def test_datetime_fields_round_trip(self):
        expires = timezone.now() + timedelta(days=30)
        key = self.store.api_keys.save(
            {
                "key_name": "ci",
                "key_hash": "hash",
                "key_prefix": "visu_abcdefgh",
                "key_type": "USER",
                "user_email": "alice@example.com",
                "created_by_email": "alice@example.com",
                "expires_at": expires,
                "is_active": True,
            }
        )
        loaded = self.store.api_keys.first(key_prefix="visu_abcdefgh")
        self.assertEqual(loaded["id"], key["id"])
        self.assertEqual(loaded["expires_at"], expires)
        self.assertIsNone(loaded["last_used_at"])

    def test_delete_where(self):
        for name in ("engine", "size"):
            self.store.property_schemas.save(
                {"mapping_id": "m-1", "property_name": name, "display_name": name, "data_type": "STRING"}
            )
        self.store.property_schemas.save(
            {"mapping_id": "m-2", "property_name": "tier", "display_name": "Tier", "data_type": "STRING"}
        )
        self.assertEqual(self.store.property_schemas.delete_where(mapping_id="m-1"), 2)
        self.assertEqual(self.store.property_schemas.count(), 1)


class DynamoRepositoryErrorTests(SimpleTestCase):
    def _repository(self, table):
        resource = mock.Mock()
        resource.Table.return_value = table
        return DynamoRepository(CLOUD_PROVIDERS, resource, "unit_")

    def test_scan_follows_last_evaluated_key(self):
        table = mock.Mock()
        table.scan.side_effect = [
            {"Items": [{"id": "a", "name": "AWS", "enabled": True}], "LastEvaluatedKey": {"id": "a"}},
            {"Items": [{"id": "b", "name": "GCP", "enabled": False}]},
        ]
        records = self._repository(table).all()
        self.assertEqual([record["name"] for record in records], ["AWS", "GCP"])
        self.assertEqual(table.scan.call_count, 2)
        self.assertEqual(table.scan.call_args_list[1].kwargs["ExclusiveStartKey"], {"id": "a"})

    def test_client_errors_become_storage_errors(self):
        table = mock.Mock()
        table.get_item.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "GetItem"
        )
        with self.assertRaises(StorageError) as raised:
            self._repository(table).get("a")
        self.assertEqual(raised.exception.message, "Storage operation failed: get_item unit_cloud_providers")

    def test_m2m_spec_uses_blueprint_table(self):
        resource = mock.Mock()
        repository = DynamoRepository(BLUEPRINTS, resource, "unit_")
        resource.Table.assert_called_once_with("unit_blueprints")
        self.assertEqual(repository.table_name, "unit_blueprints")


class DynamoApiTests(ApiClientMixin, DynamoTestCase):
    def test_admin_catalog_flow(self):
        created = self.post_json(
            "/admin/cloud-providers",
            {"name": "AWS", "displayName": "Amazon Web Services", "enabled": True},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(created.status_code, 201, created.content.decode())
        listing = self.get_json("/admin/cloud-providers", headers=ADMIN_HEADERS).json()
        self.assertEqual([item["name"] for item in listing], ["AWS"])

        store = get_store()
        audit = store.admin_audit_logs.filter(entity_type="CloudProvider")
        self.assertEqual([entry["action"] for entry in audit], ["CREATE"])

    def test_schema_map_and_statistics(self):
        provider = make_provider("AWS")
        storage = make_resource_type("Storage", "BOTH")
        mapping = make_mapping(storage, provider)
        make_schema(mapping, "versioning", data_type="BOOLEAN", display_order=2)
        make_schema(mapping, "bucketName", required=True, display_order=1)

        schema_map = self.get_json(
            f"/admin/property-schemas/resource-type/{storage['id']}/cloud-provider/{provider['id']}",
            headers=ADMIN_HEADERS,
        ).json()
        self.assertEqual(list(schema_map), ["bucketName", "versioning"])

        stats = self.get_json("/admin/dashboard/statistics", headers=ADMIN_HEADERS).json()
        self.assertEqual(stats["totalCloudProviders"], 1)
        self.assertEqual(stats["completeMappings"], 1)
        self.assertEqual(stats["totalPropertySchemas"], 2)
