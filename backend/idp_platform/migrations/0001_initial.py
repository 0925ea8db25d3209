from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


STACK_TYPES = [
    ("INFRASTRUCTURE", "Infrastructure"),
    ("RESTFUL_SERVERLESS", "RESTful Serverless"),
    ("RESTFUL_API", "RESTful API"),
    ("JAVASCRIPT_WEB_APPLICATION", "JavaScript Web Application"),
    ("EVENT_DRIVEN_SERVERLESS", "Event-driven Serverless"),
    ("EVENT_DRIVEN_API", "Event-driven API"),
]


def _id_field():
    return models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)


def _timestamps():
    return [
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CloudProvider",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("display_name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                ("enabled", models.BooleanField(default=False)),
                *_timestamps(),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="ResourceType",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("display_name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                (
                    "category",
                    models.CharField(
                        choices=[("SHARED", "Shared"), ("NON_SHARED", "Non-shared"), ("BOTH", "Both")],
                        max_length=20,
                    ),
                ),
                ("enabled", models.BooleanField(default=True)),
                *_timestamps(),
            ],
            options={
                "ordering": ["name"],
                "indexes": [models.Index(fields=["category"], name="idx_resource_types_category")],
            },
        ),
        migrations.CreateModel(
            name="ResourceTypeCloudMapping",
            fields=[
                ("id", _id_field()),
                ("terraform_module_location", models.CharField(max_length=2048)),
                (
                    "module_location_type",
                    models.CharField(
                        choices=[("GIT", "Git"), ("FILE_SYSTEM", "File system"), ("REGISTRY", "Registry")],
                        max_length=20,
                    ),
                ),
                ("enabled", models.BooleanField(default=True)),
                *_timestamps(),
                (
                    "cloud_provider",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resource_mappings",
                        to="idp_platform.cloudprovider",
                    ),
                ),
                (
                    "resource_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cloud_mappings",
                        to="idp_platform.resourcetype",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("resource_type", "cloud_provider"), name="uq_resource_type_cloud_provider"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PropertySchema",
            fields=[
                ("id", _id_field()),
                ("property_name", models.CharField(max_length=100)),
                ("display_name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                (
                    "data_type",
                    models.CharField(
                        choices=[("STRING", "String"), ("NUMBER", "Number"), ("BOOLEAN", "Boolean"), ("LIST", "List")],
                        max_length=20,
                    ),
                ),
                ("required", models.BooleanField(default=False)),
                ("default_value", models.JSONField(blank=True, null=True)),
                ("validation_rules", models.JSONField(blank=True, null=True)),
                ("display_order", models.IntegerField(blank=True, null=True)),
                *_timestamps(),
                (
                    "mapping",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="properties",
                        to="idp_platform.resourcetypecloudmapping",
                    ),
                ),
            ],
            options={
                "ordering": ["display_order", "property_name"],
                "constraints": [
                    models.UniqueConstraint(fields=("mapping", "property_name"), name="uq_property_name_per_mapping")
                ],
            },
        ),
        migrations.CreateModel(
            name="Blueprint",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
                (
                    "supported_cloud_providers",
                    models.ManyToManyField(
                        blank=True,
                        db_table="idp_platform_blueprint_cloud_providers",
                        related_name="blueprints",
                        to="idp_platform.cloudprovider",
                    ),
                ),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="BlueprintResource",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("cloud_type", models.CharField(blank=True, max_length=50, null=True)),
                ("configuration", models.JSONField(blank=True, default=dict)),
                ("cloud_specific_properties", models.JSONField(blank=True, default=dict)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
                (
                    "blueprint",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resources",
                        to="idp_platform.blueprint",
                    ),
                ),
                (
                    "cloud_provider",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="blueprint_resources",
                        to="idp_platform.cloudprovider",
                    ),
                ),
                (
                    "resource_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="blueprint_resources",
                        to="idp_platform.resourcetype",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="StackCollection",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Domain",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100, unique=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
                (
                    "domain",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="categories",
                        to="idp_platform.domain",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
                "constraints": [models.UniqueConstraint(fields=("name", "domain"), name="uq_category_name_domain")],
            },
        ),
        migrations.CreateModel(
            name="Stack",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("cloud_name", models.CharField(max_length=60, unique=True)),
                ("route_path", models.CharField(max_length=22, unique=True)),
                ("repository_url", models.CharField(blank=True, max_length=2048, null=True)),
                ("stack_type", models.CharField(choices=STACK_TYPES, max_length=40)),
                (
                    "programming_language",
                    models.CharField(
                        blank=True, choices=[("QUARKUS", "Java"), ("NODE_JS", "Node.js")], max_length=20, null=True
                    ),
                ),
                ("is_public", models.BooleanField(blank=True, null=True)),
                ("created_by", models.CharField(max_length=100)),
                ("configuration", models.JSONField(blank=True, null=True)),
                ("ephemeral_prefix", models.CharField(blank=True, max_length=50, null=True)),
                *_timestamps(),
                (
                    "blueprint",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stacks",
                        to="idp_platform.blueprint",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stacks",
                        to="idp_platform.category",
                    ),
                ),
                (
                    "domain",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stacks",
                        to="idp_platform.domain",
                    ),
                ),
                (
                    "stack_collection",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stacks",
                        to="idp_platform.stackcollection",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stacks",
                        to="idp_platform.team",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_by"], name="idx_stacks_created_by"),
                    models.Index(fields=["stack_type"], name="idx_stacks_stack_type"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StackResource",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("configuration", models.JSONField(blank=True, default=dict)),
                *_timestamps(),
                (
                    "cloud_provider",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stack_resources",
                        to="idp_platform.cloudprovider",
                    ),
                ),
                (
                    "resource_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stack_resources",
                        to="idp_platform.resourcetype",
                    ),
                ),
                (
                    "stack",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resources",
                        to="idp_platform.stack",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="EnvironmentEntity",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=200, unique=True)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
                (
                    "blueprint",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="environments",
                        to="idp_platform.blueprint",
                    ),
                ),
                (
                    "cloud_provider",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="environments",
                        to="idp_platform.cloudprovider",
                    ),
                ),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="EnvironmentConfig",
            fields=[
                ("id", _id_field()),
                ("name", models.CharField(max_length=200)),
                ("description", models.CharField(blank=True, max_length=500, null=True)),
                ("configuration", models.JSONField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True, null=True)),
                *_timestamps(),
                (
                    "environment",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="config",
                        to="idp_platform.environmententity",
                    ),
                ),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="ApiKey",
            fields=[
                ("id", _id_field()),
                ("key_name", models.CharField(max_length=100)),
                ("key_hash", models.CharField(max_length=255, unique=True)),
                ("key_prefix", models.CharField(db_index=True, max_length=20)),
                ("key_type", models.CharField(choices=[("USER", "User"), ("SYSTEM", "System")], max_length=20)),
                ("user_email", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ("created_by_email", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("last_used_at", models.DateTimeField(blank=True, null=True)),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                ("revoked_by_email", models.CharField(blank=True, max_length=255, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("grace_period_ends_at", models.DateTimeField(blank=True, null=True)),
                (
                    "rotated_from",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="rotations",
                        to="idp_platform.apikey",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(key_type="USER", user_email__isnull=False)
                            | models.Q(key_type="SYSTEM", user_email__isnull=True)
                        ),
                        name="chk_user_key_has_email",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AdminAuditLog",
            fields=[
                ("id", _id_field()),
                ("user_email", models.CharField(db_index=True, max_length=255)),
                ("action", models.CharField(max_length=50)),
                ("entity_type", models.CharField(max_length=100)),
                ("entity_id", models.UUIDField(blank=True, null=True)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-timestamp"],
                "indexes": [models.Index(fields=["entity_type", "entity_id"], name="idx_audit_logs_entity")],
            },
        ),
    ]
