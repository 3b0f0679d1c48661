"""Datastore entry points: ``store``, ``get``, ``set`` and ``del``."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.domain.data import deep_value, is_dependency
from tessera.domain.errors import StoreConfigurationError
from tessera.interfaces.datastore import Datastore, DatastoreFactory, Key, Record

from .loader import ResourceLoader

logger = logging.getLogger(__name__)

LOCAL_DATA_SUFFIXES = (".py", ".json")
CONTEXT_KEYS = ("parent",)


def _is_local_data_file(value: str) -> bool:
    return value.split("?")[0].split("#")[0].lower().endswith(LOCAL_DATA_SUFFIXES)


class DatastoreService:
    """Provides datastores from store settings.

    Args:
        loader: Loads local data files and ``load`` descriptors of seed data.
        local_factory: Creates in-memory datastores from seed data.
        remote_factory: Creates datastores for settings with a ``url``; None
            when the application has no remote persistence.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        local_factory: DatastoreFactory,
        remote_factory: DatastoreFactory | None = None,
    ) -> None:
        self._loader = loader
        self._local = local_factory
        self._remote = remote_factory
        self._named: dict[str, Datastore] = {}

    async def store(self, settings: Any = None) -> Datastore:
        """Provide a datastore.

        Args:
            settings: One of

                - a datastore, returned as is;
                - a string ending in ``.py`` or ``.json``: a local data file,
                  loaded and used as seed data of a new in-memory store;
                - any other string: the name of a shared in-memory store;
                - a mapping with ``url``: handed to the remote factory;
                - a mapping with ``name``: a shared store of that name, seeded
                  from ``local`` when first created;
                - a mapping with ``local``: seed data (records, a data file or
                  a ``load`` descriptor) of a new in-memory store;
                - anything else: seed data of a new in-memory store.

        Raises:
            StoreConfigurationError: If settings need a remote store but no
                remote factory is configured.
            ResourceLoadError: If seed data could not be loaded.
        """
        if isinstance(settings, Datastore):
            return settings
        if settings is None:
            return self._local.create({})
        if isinstance(settings, str):
            if _is_local_data_file(settings):
                return self._local.create({"local": await self._loader.load(settings)})
            return self._named_store({"name": settings})
        if not isinstance(settings, Mapping):
            return self._local.create({"local": settings})

        settings = {key: value for key, value in settings.items() if key not in CONTEXT_KEYS}
        if "url" in settings:
            if self._remote is None:
                raise StoreConfigurationError(
                    f"No remote datastore factory configured for {settings['url']}"
                )
            logger.debug("Creating remote datastore for %s", settings["url"])
            return self._remote.create(settings)
        if "local" in settings:
            settings["local"] = await self._seed(settings["local"])
        elif "name" not in settings:
            return self._local.create({"local": settings})
        if "name" in settings:
            return self._named_store(settings)
        return self._local.create(settings)

    async def get(self, settings: Any = None, key_or_query: Any = None) -> Any:
        """Read from a datastore; ``"<key>.<path>"`` selects a nested value of one record."""
        store = await self.store(settings)
        if isinstance(key_or_query, str) and "." in key_or_query:
            key, path = key_or_query.split(".", 1)
            return deep_value(await store.get(key), path)
        return await store.get(key_or_query)

    async def set(self, settings: Any, priodata: Mapping[str, Any]) -> Key:
        """Write a record and return its key."""
        return await (await self.store(settings)).set(priodata)

    async def delete(self, settings: Any, key: Key) -> Record | None:
        """Delete a record and return it."""
        return await (await self.store(settings)).delete(key)

    async def _seed(self, local: Any) -> Any:
        if isinstance(local, str) and _is_local_data_file(local):
            return await self._loader.load(local)
        if is_dependency(local) and local[0] == "load":
            return await self._loader.load(*local[1:])
        return local

    def _named_store(self, settings: Mapping[str, Any]) -> Datastore:
        name = str(settings["name"])
        if (store := self._named.get(name)) is None:
            logger.debug("Creating named datastore %s", name)
            store = self._named[name] = self._local.create(settings)
        return store
