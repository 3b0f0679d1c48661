"""Unit tests for the datastore entry points."""

import json

import pytest

from tessera.adapters.datastore.memory import MemoryDatastore
from tessera.adapters.id_generators import SimpleIdGenerator
from tessera.domain.errors import ResourceLoadError, StoreConfigurationError
from tessera.domain.instance import Instance
from tessera.interfaces.datastore import DatastoreFactory

# pylint: disable=magic-value-comparison, too-few-public-methods

CDN = "https://cdn.test"


class RecordingRemoteFactory(DatastoreFactory):
    """Remote factory handing out memory stores and recording their settings."""

    def __init__(self) -> None:
        self.settings: list[dict] = []

    def create(self, settings):
        self.settings.append(dict(settings))
        return MemoryDatastore(SimpleIdGenerator(), settings=settings)


class TestStore:
    """Tests for DatastoreService.store."""

    @staticmethod
    async def test_datastores_pass_through(engine) -> None:
        """A datastore is returned as is; None yields a fresh empty store."""
        store = await engine.store()
        assert await engine.store(store) is store
        assert await store.count() == 0
        assert await engine.store() is not store

    @staticmethod
    async def test_named_stores_are_shared(engine) -> None:
        """Stores with the same name are one store."""
        first = await engine.store("quiz")
        await first.set({"key": "a"})
        assert await engine.store("quiz") is first
        assert await engine.store({"name": "quiz", "local": {"b": {}}}) is first
        assert await first.count() == 1

    @staticmethod
    async def test_named_store_seeded_on_creation(engine) -> None:
        """A named store is seeded from `local` when first created."""
        store = await engine.store({"name": "texts", "local": {"de": {"title": "Quiz"}}})
        assert await store.get("de") == {"title": "Quiz", "key": "de"}

    @staticmethod
    async def test_seed_data(engine) -> None:
        """Mappings without store settings are seed data."""
        store = await engine.store({"quiz": {"title": "Q"}, "parent": Instance()})
        assert await store.get() == [{"title": "Q", "key": "quiz"}]

    @staticmethod
    async def test_local_data_file(engine, tmp_path) -> None:
        """Local data file names are loaded as seed data."""
        path = tmp_path / "texts.json"
        path.write_text(json.dumps({"de": {"title": "Quiz"}}), encoding="utf-8")
        store = await engine.store(str(path))
        assert (await store.get("de"))["title"] == "Quiz"

        seeded = await engine.store({"local": str(path)})
        assert await seeded.count() == 1

    @staticmethod
    async def test_load_descriptor_as_seed(engine, web) -> None:
        """A `load` descriptor under `local` is loaded first."""
        web.add(f"{CDN}/texts.json", [{"key": "de", "title": "Quiz"}])
        store = await engine.store({"local": ["load", f"{CDN}/texts.json"]})
        assert (await store.get("de"))["title"] == "Quiz"

    @staticmethod
    async def test_failing_seed(engine) -> None:
        """Seed data that cannot be loaded fails the store."""
        with pytest.raises(ResourceLoadError):
            await engine.store(f"{CDN}/missing.json")

    @staticmethod
    async def test_remote_stores(engine) -> None:
        """Settings with `url` need a remote factory."""
        with pytest.raises(StoreConfigurationError):
            await engine.store({"url": f"{CDN}/db", "name": "quiz"})

        remote = RecordingRemoteFactory()
        engine.datastores._remote = remote  # pylint: disable=protected-access
        await engine.store({"url": f"{CDN}/db", "name": "quiz", "parent": Instance()})
        assert remote.settings == [{"url": f"{CDN}/db", "name": "quiz"}]


class TestRecordOperations:
    """Tests for get, set and del."""

    @staticmethod
    async def test_set_get_delete(engine) -> None:
        """Records round through a named store."""
        key = await engine.set("quiz", {"title": "Q"})
        assert await engine.get("quiz", key) == {"title": "Q", "key": key}
        assert await engine.get("quiz") == [{"title": "Q", "key": key}]
        assert await engine.delete("quiz", key) == {"title": "Q", "key": key}
        assert await engine.get("quiz", key) is None

    @staticmethod
    async def test_get_nested_value(engine) -> None:
        """`<key>.<path>` selects a nested value of a record."""
        await engine.set("texts", {"key": "de", "quiz": {"title": "Quiz"}})
        assert await engine.get("texts", "de.quiz.title") == "Quiz"
        assert await engine.get("texts", "en.quiz.title") is None

    @staticmethod
    async def test_query(engine) -> None:
        """Query mappings select matching records."""
        store = await engine.store({"a": {"kind": "quiz"}, "b": {"kind": "menu"}})
        assert await engine.get(store, {"kind": "menu"}) == [{"kind": "menu", "key": "b"}]

    @staticmethod
    async def test_descriptors_reach_the_store(engine) -> None:
        """Datastore descriptors in configurations resolve through the engine."""
        await engine.set("texts", {"key": "de", "title": "Quiz"})
        resolved = await engine.resolver.resolve(
            {"title": ["get", "texts", "de.title"], "store": ["store", "texts"]}
        )
        assert resolved["title"] == "Quiz"
        assert resolved["store"] is await engine.store("texts")
