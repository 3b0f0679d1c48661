"""Unit tests for the engine version table."""

import pytest

from tessera.service_layer.versions import VersionTable, version_label

# pylint: disable=magic-value-comparison, too-few-public-methods


class FakeEngine:
    """Engine stand-in with a version and a close flag."""

    def __init__(self, version: str) -> None:
        self.version = version
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(name="table")
def fixture_table() -> VersionTable:
    return VersionTable(lambda label, table: FakeEngine(label))


@pytest.mark.parametrize(
    ("source", "label"),
    [
        ("2.1.0", "2.1.0"),
        ("https://cdn.test/tessera-2.1.0.min.py", "2.1.0"),
        ("latest", "latest"),
    ],
)
def test_version_label(source, label) -> None:
    """Labels are the semantic version found in a string, or the string itself."""
    assert version_label(source) == label


class TestVersionTable:
    """Tests for VersionTable."""

    @staticmethod
    def test_get_or_create_is_idempotent(table) -> None:
        """One engine per label, whichever form names it."""
        engine = table.get_or_create("1.0.0")
        assert table.get_or_create("https://cdn.test/tessera-1.0.0.py") is engine
        assert "1.0.0" in table
        assert table.labels() == ["1.0.0"]

    @staticmethod
    def test_versions_coexist(table) -> None:
        """Different labels get different engines."""
        first = table.get_or_create("1.0.0")
        second = table.get_or_create("2.0.0")
        assert first is not second
        assert list(table) == [first, second]
        assert len(table) == 2
        assert table.get("3.0.0") is None

    @staticmethod
    def test_add_keeps_existing(table) -> None:
        """Adding an engine for a known label keeps the first one."""
        first = table.get_or_create("1.0.0")
        assert table.add(FakeEngine("1.0.0")) is first

    @staticmethod
    async def test_aclose_closes_every_engine(table) -> None:
        """Closing the table closes each engine."""
        engines = [table.get_or_create(label) for label in ("1.0.0", "2.0.0")]
        await table.aclose()
        assert all(engine.closed for engine in engines)

    @staticmethod
    def test_instance_ids_are_shared_by_all_versions(table) -> None:
        """Instance numbers count per component index across the whole table."""
        assert [table.next_instance_id("quiz") for _ in range(3)] == [1, 2, 3]
        assert table.next_instance_id("menu") == 1
        assert table.next_instance_id("quiz-1-0-0") == 1
