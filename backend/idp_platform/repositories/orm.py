import uuid
from typing import Any, List, Optional

from django.apps import apps
from django.core.exceptions import ValidationError

from .base import BaseRepository, Record
from .entities import EntitySpec


def _plain(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class OrmRepository(BaseRepository):
    def __init__(self, spec: EntitySpec):
        super().__init__(spec)
        self.model = apps.get_model("idp_platform", spec.model)

    def _to_record(self, obj) -> Record:
        record: Record = {}
        for name in self.spec.fields:
            relation = self.spec.m2m_fields.get(name)
            if relation:
                record[name] = sorted(str(pk) for pk in getattr(obj, relation).values_list("id", flat=True))
            else:
                record[name] = _plain(getattr(obj, name))
        return record

    def get(self, record_id: str) -> Optional[Record]:
        try:
            obj = self.model.objects.filter(id=record_id).first()
        except (ValidationError, ValueError):
            return None
        return self._to_record(obj) if obj else None

    def all(self) -> List[Record]:
        return [self._to_record(obj) for obj in self.model.objects.all()]

    def filter(self, **criteria: Any) -> List[Record]:
        try:
            return [self._to_record(obj) for obj in self.model.objects.filter(**criteria)]
        except (ValidationError, ValueError):
            return []

    def save(self, record: Record) -> Record:
        record = self._stamp(record)
        defaults = {
            key: value
            for key, value in record.items()
            if key != "id" and key not in self.spec.m2m_fields
        }
        obj, _ = self.model.objects.update_or_create(id=record["id"], defaults=defaults)
        for name, relation in self.spec.m2m_fields.items():
            if name in record:
                getattr(obj, relation).set(record[name] or [])
        return self._to_record(obj)

    def delete(self, record_id: str) -> None:
        try:
            self.model.objects.filter(id=record_id).delete()
        except (ValidationError, ValueError):
            return
