import uuid
from typing import Any, Dict, List, Optional

from django.utils import timezone

from .entities import EntitySpec

Record = Dict[str, Any]


class BaseRepository:
    """Operations every backend exposes for one entity.

    Backends implement ``get``, ``all``, ``filter``, ``save`` and ``delete``;
    the rest is derived from those.
    """

    def __init__(self, spec: EntitySpec):
        self.spec = spec

    def get(self, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    def all(self) -> List[Record]:
        raise NotImplementedError

    def filter(self, **criteria: Any) -> List[Record]:
        raise NotImplementedError

    def save(self, record: Record) -> Record:
        raise NotImplementedError

    def delete(self, record_id: str) -> None:
        raise NotImplementedError

    def first(self, **criteria: Any) -> Optional[Record]:
        matches = self.filter(**criteria)
        return matches[0] if matches else None

    def exists(self, **criteria: Any) -> bool:
        return bool(self.filter(**criteria))

    def count(self, **criteria: Any) -> int:
        if criteria:
            return len(self.filter(**criteria))
        return len(self.all())

    def delete_where(self, **criteria: Any) -> int:
        matches = self.filter(**criteria)
        for record in matches:
            self.delete(record["id"])
        return len(matches)

    def _stamp(self, record: Record) -> Record:
        stamped = {key: value for key, value in record.items() if self.spec.has_field(key)}
        if not stamped.get("id"):
            stamped["id"] = str(uuid.uuid4())
        else:
            stamped["id"] = str(stamped["id"])
        now = timezone.now()
        if self.spec.has_field("created_at") and not stamped.get("created_at"):
            stamped["created_at"] = now
        if self.spec.has_field("updated_at"):
            stamped["updated_at"] = now
        if self.spec.has_field("timestamp") and not stamped.get("timestamp"):
            stamped["timestamp"] = now
        return stamped
