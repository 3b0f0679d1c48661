"""In-memory datastore adapter."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.domain.data import clone, is_subset, merge
from tessera.interfaces.datastore import Datastore, DatastoreFactory, Key, Record
from tessera.interfaces.id_generator import IdGenerator

logger = logging.getLogger(__name__)


def _key_str(key: Key) -> str:
    # composite keys are stored under their joined form
    return ",".join(key) if isinstance(key, list) else key


class MemoryDatastore(Datastore):
    """Datastore keeping records in a dict.

    Args:
        id_generator: Generates keys for records set without one.
        records: Initial records, either a mapping of key to record or a list
            of records carrying a ``key``.
        settings: The store settings the datastore was created from.
    """

    def __init__(
        self,
        id_generator: IdGenerator,
        records: Mapping[str, Any] | list[Any] | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> None:
        self._ids = id_generator
        self._records: dict[str, Record] = {}
        self._settings = dict(settings or {})
        if isinstance(records, Mapping):
            for key, record in records.items():
                if isinstance(record, Mapping):
                    self._records[key] = {**clone(dict(record)), "key": key}
                else:
                    logger.warning("Skipping seed record %s that is not a mapping", key)
        elif isinstance(records, list):
            for record in records:
                if isinstance(record, Mapping) and "key" in record:
                    self._records[_key_str(record["key"])] = clone(dict(record))
                else:
                    logger.warning("Skipping seed record without key: %r", record)

    def __repr__(self) -> str:
        return f"<MemoryDatastore records={len(self._records)}>"

    async def get(self, key_or_query: Key | Mapping[str, Any] | None = None) -> Any:
        if key_or_query is None:
            return [clone(record) for record in self._records.values()]
        if isinstance(key_or_query, Mapping):
            return [
                clone(record)
                for record in self._records.values()
                if is_subset(dict(key_or_query), record)
            ]
        return clone(self._records.get(_key_str(key_or_query)))

    async def set(self, priodata: Mapping[str, Any]) -> Key:
        priodata = dict(priodata)
        key = priodata.get("key") or self._ids.new_id()
        priodata["key"] = key
        existing = self._records.get(_key_str(key))
        self._records[_key_str(key)] = merge(priodata, existing or {})
        logger.debug("Set record %s (%s)", key, "updated" if existing else "created")
        return key

    async def delete(self, key: Key) -> Record | None:
        return self._records.pop(_key_str(key), None)

    async def count(self, query: Mapping[str, Any] | None = None) -> int:
        if query is None:
            return len(self._records)
        return sum(1 for record in self._records.values() if is_subset(dict(query), record))

    async def source(self) -> Mapping[str, Any]:
        return clone(self._settings)

    async def clear(self) -> None:
        self._records.clear()


class MemoryDatastoreFactory(DatastoreFactory):  # pylint: disable=too-few-public-methods
    """Creates a `MemoryDatastore` seeded from the ``local`` entry of store settings."""

    def __init__(self, id_generator: IdGenerator) -> None:
        self._ids = id_generator

    def create(self, settings: Mapping[str, Any]) -> MemoryDatastore:
        return MemoryDatastore(self._ids, settings.get("local"), settings)
