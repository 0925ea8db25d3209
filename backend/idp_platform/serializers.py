import uuid
from typing import Any, Dict, List, Type

from rest_framework import serializers

from .constants import (
    MODULE_LOCATION_TYPES,
    PROGRAMMING_LANGUAGES,
    PROPERTY_DATA_TYPES,
    RESOURCE_CATEGORIES,
    STACK_TYPES,
)
from .exceptions import ValidationFailed


def _optional_text(max_length: int, **kwargs):
    return serializers.CharField(
        max_length=max_length, required=False, allow_null=True, allow_blank=True, **kwargs
    )


def _optional_uuid(**kwargs):
    return serializers.UUIDField(required=False, allow_null=True, **kwargs)


class CloudProviderSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    displayName = serializers.CharField(max_length=200, source="display_name")
    description = _optional_text(2000)
    enabled = serializers.BooleanField(required=False)


class ToggleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(error_messages={"required": "enabled is required"})


class ResourceTypeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    displayName = serializers.CharField(max_length=200, source="display_name")
    description = _optional_text(2000)
    category = serializers.ChoiceField(choices=RESOURCE_CATEGORIES)
    enabled = serializers.BooleanField(required=False)


class MappingCreateSerializer(serializers.Serializer):
    resourceTypeId = serializers.UUIDField(source="resource_type_id")
    cloudProviderId = serializers.UUIDField(source="cloud_provider_id")
    terraformModuleLocation = serializers.CharField(
        max_length=2048, allow_blank=True, source="terraform_module_location"
    )
    moduleLocationType = serializers.ChoiceField(choices=MODULE_LOCATION_TYPES, source="module_location_type")
    enabled = serializers.BooleanField(required=False)


class MappingUpdateSerializer(serializers.Serializer):
    terraformModuleLocation = serializers.CharField(
        max_length=2048, allow_blank=True, required=False, source="terraform_module_location"
    )
    moduleLocationType = serializers.ChoiceField(
        choices=MODULE_LOCATION_TYPES, required=False, source="module_location_type"
    )
    enabled = serializers.BooleanField(required=False)


class PropertySchemaFieldsSerializer(serializers.Serializer):
    propertyName = serializers.CharField(max_length=100, source="property_name")
    displayName = serializers.CharField(max_length=200, source="display_name")
    description = _optional_text(2000)
    dataType = serializers.ChoiceField(choices=PROPERTY_DATA_TYPES, source="data_type")
    required = serializers.BooleanField(required=False, default=False)
    defaultValue = serializers.JSONField(required=False, allow_null=True, source="default_value")
    validationRules = serializers.DictField(required=False, allow_null=True, source="validation_rules")
    displayOrder = serializers.IntegerField(required=False, allow_null=True, source="display_order")


class PropertySchemaCreateSerializer(PropertySchemaFieldsSerializer):
    mappingId = serializers.UUIDField(source="mapping_id")


class PropertySchemaBulkSerializer(serializers.Serializer):
    mappingId = serializers.UUIDField(source="mapping_id")
    properties = PropertySchemaFieldsSerializer(many=True, allow_empty=False)


class BlueprintResourceSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = _optional_text(500)
    blueprintResourceTypeId = serializers.UUIDField(source="resource_type_id")
    cloudType = serializers.CharField(max_length=50, source="cloud_type")
    configuration = serializers.DictField(required=False, allow_null=True)
    cloudSpecificProperties = serializers.DictField(
        required=False, allow_null=True, source="cloud_specific_properties"
    )


class BlueprintResourceItemSerializer(BlueprintResourceSerializer):
    blueprintId = serializers.UUIDField(source="blueprint_id")


class BlueprintSerializer(serializers.Serializer):
    # Name and description limits are enforced by the blueprint service with its own messages.
    name = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")
    supportedCloudProviderIds = serializers.ListField(
        child=serializers.UUIDField(), required=False, source="supported_cloud_provider_ids"
    )
    stackIds = serializers.ListField(child=serializers.UUIDField(), required=False, source="stack_ids")
    resources = BlueprintResourceSerializer(many=True, required=False)


class StackResourceSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = _optional_text(500)
    resourceTypeId = serializers.UUIDField(source="resource_type_id")
    cloudProviderId = serializers.UUIDField(source="cloud_provider_id")
    configuration = serializers.DictField(required=False, allow_null=True)


class StackSerializer(serializers.Serializer):
    name = serializers.CharField(
        max_length=100,
        error_messages={
            "required": "Stack name is required",
            "blank": "Stack name is required",
            "max_length": "Stack name must be between 1 and 100 characters",
        },
    )
    description = _optional_text(500)
    cloudName = serializers.CharField(
        max_length=60,
        source="cloud_name",
        error_messages={"required": "Cloud name is required", "blank": "Cloud name is required"},
    )
    routePath = serializers.CharField(
        source="route_path",
        error_messages={"required": "Route path is required", "blank": "Route path is required"},
    )
    repositoryURL = _optional_text(2048, source="repository_url")
    stackType = serializers.ChoiceField(choices=STACK_TYPES, source="stack_type")
    programmingLanguage = serializers.ChoiceField(
        choices=PROGRAMMING_LANGUAGES, required=False, allow_null=True, source="programming_language"
    )
    isPublic = serializers.BooleanField(required=False, allow_null=True, source="is_public")
    teamId = _optional_uuid(source="team_id")
    stackCollectionId = _optional_uuid(source="stack_collection_id")
    domainId = _optional_uuid(source="domain_id")
    categoryId = _optional_uuid(source="category_id")
    blueprintId = _optional_uuid(source="blueprint_id")
    configuration = serializers.DictField(required=False, allow_null=True)
    ephemeralPrefix = _optional_text(50, source="ephemeral_prefix")
    resources = StackResourceSerializer(many=True, required=False)


class TeamSerializer(serializers.Serializer):
    id = _optional_uuid()
    name = serializers.CharField(max_length=100)
    description = _optional_text(500)
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")


class StackCollectionSerializer(TeamSerializer):
    pass


class DomainSerializer(serializers.Serializer):
    id = _optional_uuid()
    name = serializers.CharField(max_length=100)
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")


class CategorySerializer(DomainSerializer):
    domainId = _optional_uuid(source="domain_id")


class EnvironmentSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = _optional_text(500)
    cloudProviderId = serializers.UUIDField(source="cloud_provider_id")
    blueprintId = _optional_uuid(source="blueprint_id")
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")


class EnvironmentConfigSerializer(serializers.Serializer):
    environment = serializers.CharField(max_length=200)
    name = serializers.CharField(max_length=200)
    description = _optional_text(500)
    configuration = serializers.DictField(required=False, allow_null=True)
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")


class EnvironmentConfigUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = _optional_text(500)
    configuration = serializers.DictField(required=False, allow_null=True)
    isActive = serializers.BooleanField(required=False, allow_null=True, source="is_active")


class ApiKeyCreateSerializer(serializers.Serializer):
    keyName = serializers.CharField(
        max_length=100,
        source="key_name",
        error_messages={
            "required": "Key name is required",
            "blank": "Key name is required",
            "max_length": "Key name must not exceed 100 characters",
        },
    )
    expirationDays = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=1,
        max_value=365,
        source="expiration_days",
        error_messages={
            "min_value": "Expiration period must be between 1 and 365 days",
            "max_value": "Expiration period must be between 1 and 365 days",
        },
    )


class ApiKeyRenameSerializer(serializers.Serializer):
    newKeyName = serializers.CharField(
        max_length=100,
        source="key_name",
        error_messages={
            "required": "Key name is required",
            "blank": "Key name is required",
            "max_length": "Key name must not exceed 100 characters",
        },
    )


def _plain(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _flatten_errors(errors: Any, prefix: str = "") -> Dict[str, List[str]]:
    flat: Dict[str, List[str]] = {}
    if isinstance(errors, dict):
        for key, value in errors.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            if key == "non_field_errors" and prefix:
                name = prefix
            for field_name, messages in _flatten_errors(value, name).items():
                flat.setdefault(field_name, []).extend(messages)
    elif isinstance(errors, list):
        for index, value in enumerate(errors):
            if isinstance(value, (dict, list)):
                for field_name, messages in _flatten_errors(value, f"{prefix}[{index}]").items():
                    flat.setdefault(field_name, []).extend(messages)
            else:
                flat.setdefault(prefix or "non_field_errors", []).append(str(value))
    elif errors:
        flat.setdefault(prefix or "non_field_errors", []).append(str(errors))
    return flat


def validate_payload(
    serializer_class: Type[serializers.Serializer],
    data: Dict[str, Any],
    partial: bool = False,
) -> Dict[str, Any]:
    serializer = serializer_class(data=data, partial=partial)
    if not serializer.is_valid():
        errors = _flatten_errors(serializer.errors)
        first = next(iter(errors.values()), ["Invalid request"])[0]
        raise ValidationFailed(first, errors)
    return _plain(dict(serializer.validated_data))
