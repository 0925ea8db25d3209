import json
import logging
from datetime import datetime
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.utils.dateparse import parse_datetime

from ..exceptions import StorageError
from .base import BaseRepository, Record
from .entities import ENTITY_SPECS, EntitySpec

logger = logging.getLogger(__name__)


def _to_attribute(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _from_attribute(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_from_attribute(item) for item in value]
    if isinstance(value, set):
        return sorted(_from_attribute(item) for item in value)
    return value


def build_resource(region: str = "", endpoint_url: str = ""):
    kwargs: Dict[str, Any] = {"config": Config(retries={"max_attempts": 3, "mode": "standard"})}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.resource("dynamodb", **kwargs)


class DynamoRepository(BaseRepository):
    def __init__(self, spec: EntitySpec, resource, table_prefix: str = ""):
        super().__init__(spec)
        self.table_name = f"{table_prefix}{spec.name}"
        self.table = resource.Table(self.table_name)

    def _error(self, operation: str, exc: Exception) -> StorageError:
        logger.error("dynamodb %s failed on %s: %s", operation, self.table_name, exc)
        return StorageError(f"Storage operation failed: {operation} {self.table_name}")

    def _to_item(self, record: Record) -> Dict[str, Any]:
        item: Dict[str, Any] = {}
        for name, value in record.items():
            if value is None:
                continue
            if name in self.spec.json_fields:
                item[name] = json.dumps(value)
            elif name in self.spec.m2m_fields:
                item[name] = [str(entry) for entry in value]
            else:
                item[name] = _to_attribute(value)
        return item

    def _from_item(self, item: Dict[str, Any]) -> Record:
        record: Record = {}
        for name in self.spec.fields:
            value = item.get(name)
            if name in self.spec.m2m_fields:
                record[name] = sorted(str(entry) for entry in (value or []))
            elif value is None:
                record[name] = None
            elif name in self.spec.json_fields:
                record[name] = json.loads(value) if isinstance(value, str) else _from_attribute(value)
            elif name in self.spec.datetime_fields:
                record[name] = parse_datetime(value) if isinstance(value, str) else value
            else:
                record[name] = _from_attribute(value)
        return record

    def _condition(self, criteria: Dict[str, Any]):
        conditions = []
        for name, value in criteria.items():
            if value is None:
                conditions.append(Attr(name).not_exists())
            else:
                conditions.append(Attr(name).eq(_to_attribute(value)))
        return reduce(lambda left, right: left & right, conditions)

    def _collect(self, action: str, operation, **kwargs: Any) -> Iterable[Dict[str, Any]]:
        while True:
            try:
                response = operation(**kwargs)
            except (ClientError, BotoCoreError) as exc:
                raise self._error(action, exc) from exc
            yield from response.get("Items", [])
            if not response.get("LastEvaluatedKey"):
                break
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    def get(self, record_id: str) -> Optional[Record]:
        try:
            response = self.table.get_item(Key={"id": str(record_id)})
        except (ClientError, BotoCoreError) as exc:
            raise self._error("get_item", exc) from exc
        item = response.get("Item")
        return self._from_item(item) if item else None

    def all(self) -> List[Record]:
        return [self._from_item(item) for item in self._collect("scan", self.table.scan)]

    def filter(self, **criteria: Any) -> List[Record]:
        if not criteria:
            return self.all()
        index_name = next(
            (name for name in criteria if name in self.spec.indexes and criteria[name] is not None),
            None,
        )
        if index_name:
            kwargs: Dict[str, Any] = {
                "IndexName": f"{index_name}-index",
                "KeyConditionExpression": Key(index_name).eq(_to_attribute(criteria[index_name])),
            }
            remaining = {name: value for name, value in criteria.items() if name != index_name}
            if remaining:
                kwargs["FilterExpression"] = self._condition(remaining)
            items = self._collect("query", self.table.query, **kwargs)
        else:
            items = self._collect("scan", self.table.scan, FilterExpression=self._condition(criteria))
        return [self._from_item(item) for item in items]

    def save(self, record: Record) -> Record:
        record = self._stamp(record)
        for name in self.spec.m2m_fields:
            record[name] = sorted(str(entry) for entry in (record.get(name) or []))
        try:
            self.table.put_item(Item=self._to_item(record))
        except (ClientError, BotoCoreError) as exc:
            raise self._error("put_item", exc) from exc
        return self._from_item(self._to_item(record))

    def delete(self, record_id: str) -> None:
        try:
            self.table.delete_item(Key={"id": str(record_id)})
        except (ClientError, BotoCoreError) as exc:
            raise self._error("delete_item", exc) from exc


def table_definition(spec: EntitySpec, table_prefix: str = "") -> Dict[str, Any]:
    attributes = [{"AttributeName": "id", "AttributeType": "S"}]
    attributes.extend({"AttributeName": name, "AttributeType": "S"} for name in spec.indexes)
    definition: Dict[str, Any] = {
        "TableName": f"{table_prefix}{spec.name}",
        "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
        "AttributeDefinitions": attributes,
        "BillingMode": "PAY_PER_REQUEST",
    }
    if spec.indexes:
        definition["GlobalSecondaryIndexes"] = [
            {
                "IndexName": f"{name}-index",
                "KeySchema": [{"AttributeName": name, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for name in spec.indexes
        ]
    return definition


def ensure_tables(resource, table_prefix: str = "") -> List[str]:
    """Create missing entity tables and return the names that were created."""
    client = resource.meta.client
    try:
        existing = set()
        paginator = client.get_paginator("list_tables")
        for page in paginator.paginate():
            existing.update(page.get("TableNames", []))
    except (ClientError, BotoCoreError) as exc:
        logger.error("dynamodb list_tables failed: %s", exc)
        raise StorageError("Storage operation failed: list_tables") from exc

    created: List[str] = []
    for spec in ENTITY_SPECS:
        definition = table_definition(spec, table_prefix)
        if definition["TableName"] in existing:
            continue
        try:
            client.create_table(**definition)
            client.get_waiter("table_exists").wait(TableName=definition["TableName"])
        except (ClientError, BotoCoreError) as exc:
            logger.error("dynamodb create_table failed for %s: %s", definition["TableName"], exc)
            raise StorageError(f"Storage operation failed: create_table {definition['TableName']}") from exc
        logger.info("created dynamodb table %s", definition["TableName"])
        created.append(definition["TableName"])
    return created
