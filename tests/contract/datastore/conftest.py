"""Fixtures for datastore contract tests."""

from collections.abc import Callable, Iterable
from typing import Any

import pytest

from tessera.adapters.datastore.memory import MemoryDatastoreFactory
from tessera.adapters.id_generators import SimpleIdGenerator
from tessera.interfaces.datastore import Datastore


@pytest.fixture(params=["memory"])
def make_datastore(request: pytest.FixtureRequest) -> Iterable[Callable[..., Datastore]]:
    """Return a factory for fresh datastores of the requested backend.

    The factory takes optional seed records (a mapping of key to record or a
    list of records carrying a ``key``).

    Supported params:
      - `"memory"` → MemoryDatastore

    Extend by adding new identifiers to `params` and branching below to
    construct the corresponding backend.
    """

    match request.param:
        case "memory":
            factory = MemoryDatastoreFactory(SimpleIdGenerator(length=4, prefix="k"))

            def _make(records: Any = None) -> Datastore:
                return factory.create({"local": records} if records is not None else {})

            yield _make
        case _:
            raise ValueError(f"unknown datastore type: {request.param}")


@pytest.fixture
def datastore(make_datastore: Callable[..., Datastore]) -> Datastore:
    """An empty datastore."""
    return make_datastore()
