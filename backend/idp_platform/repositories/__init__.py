import contextlib
import logging
from typing import Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from .base import BaseRepository, Record
from .dynamodb import DynamoRepository, build_resource
from .entities import ENTITY_SPECS
from .orm import OrmRepository

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("postgresql", "dynamodb")


class Store:
    """Repositories for every entity on one backend.

    Each entity is reachable as an attribute named after its spec, e.g.
    ``store.cloud_providers``.
    """

    def __init__(self, provider: str, repositories: Dict[str, BaseRepository]):
        self.provider = provider
        self._repositories = repositories
        for name, repository in repositories.items():
            setattr(self, name, repository)

    def repository(self, name: str) -> BaseRepository:
        return self._repositories[name]

    def atomic(self):
        if self.provider == "postgresql":
            return transaction.atomic()
        return contextlib.nullcontext()


def build_store(provider: str, *, table_prefix: str = "", region: str = "", endpoint_url: str = "") -> Store:
    provider = (provider or "postgresql").strip().lower()
    if provider == "postgresql":
        return Store(provider, {spec.name: OrmRepository(spec) for spec in ENTITY_SPECS})
    if provider == "dynamodb":
        resource = build_resource(region=region, endpoint_url=endpoint_url)
        return Store(
            provider,
            {spec.name: DynamoRepository(spec, resource, table_prefix) for spec in ENTITY_SPECS},
        )
    raise ImproperlyConfigured(
        f"Unsupported IDP_DATABASE_PROVIDER '{provider}'; expected one of {', '.join(SUPPORTED_PROVIDERS)}"
    )


_stores: Dict[tuple, Store] = {}


def get_store() -> Store:
    provider = str(getattr(settings, "IDP_DATABASE_PROVIDER", "postgresql") or "postgresql").strip().lower()
    table_prefix = str(getattr(settings, "IDP_DYNAMODB_TABLE_PREFIX", "") or "")
    region = str(getattr(settings, "IDP_AWS_REGION", "") or "")
    endpoint_url = str(getattr(settings, "IDP_DYNAMODB_ENDPOINT_URL", "") or "")
    key = (provider, table_prefix, region, endpoint_url)
    store: Optional[Store] = _stores.get(key)
    if store is None:
        logger.info("initialising %s repository store", provider)
        store = build_store(provider, table_prefix=table_prefix, region=region, endpoint_url=endpoint_url)
        _stores[key] = store
    return store


def reset_stores() -> None:
    _stores.clear()


__all__ = ["Record", "Store", "build_store", "get_store", "reset_stores", "SUPPORTED_PROVIDERS"]
