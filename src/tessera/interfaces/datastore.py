"""Datastore interface definitions.

A datastore holds records (mappings with a ``key`` field). Persistence,
storage and synchronization behaviour are entirely up to the implementation;
the runtime only routes ``store``/``get``/``set``/``del`` dependencies to it.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping
from typing import Any

from tessera.domain.data import OpaqueHandle

Record = dict[str, Any]
Key = str | list[str]


class Datastore(OpaqueHandle, abc.ABC):
    """Contract for an asynchronous record store."""

    # --- Core Operations ---

    @abc.abstractmethod
    async def get(self, key_or_query: Key | Mapping[str, Any] | None = None) -> Any:
        """Read records.

        Args:
            key_or_query: A record key, a query mapping (records whose fields
                match every (dot-notation) entry), or None for every record.

        Returns:
            A copy of the record (None when absent) for a key, otherwise a list
            of record copies.
        """

    @abc.abstractmethod
    async def set(self, priodata: Mapping[str, Any]) -> Key:
        """Create or update a record.

        Priority data without ``key`` creates a record under a generated key;
        with a ``key`` of an existing record, its (dot-notation) fields are
        merged into that record.

        Returns:
            The key of the written record.
        """

    @abc.abstractmethod
    async def delete(self, key: Key) -> Record | None:
        """Delete a record.

        Returns:
            The deleted record, or None if there was none.
        """

    # --- Convenience Methods ---

    @abc.abstractmethod
    async def count(self, query: Mapping[str, Any] | None = None) -> int:
        """Count the records matching `query` (every record when None)."""

    @abc.abstractmethod
    async def source(self) -> Mapping[str, Any]:
        """Return the settings the datastore was created from."""

    @abc.abstractmethod
    async def clear(self) -> None:
        """Delete every record."""


class DatastoreFactory(abc.ABC):  # pylint: disable=too-few-public-methods
    """Contract for creating datastores from store settings."""

    @abc.abstractmethod
    def create(self, settings: Mapping[str, Any]) -> Datastore:
        """Create a datastore.

        Args:
            settings: Store settings; local factories receive ``local`` seed
                records, remote factories receive a ``url`` and any other
                options of the settings.
        """
