"""Table of coexisting engine versions."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import Engine

logger = logging.getLogger(__name__)

SEMVER = re.compile(r"(\d+\.\d+\.\d+)")


def version_label(source: str) -> str:
    """Return the version label named by a version string or engine URL.

    Example:
        >>> version_label("https://cdn.test/tessera-2.1.0.min.py")
        '2.1.0'
        >>> version_label("latest")
        'latest'
    """
    match = SEMVER.search(source)
    return match.group(1) if match else source


class VersionTable:
    """Maps version labels to isolated engines.

    Args:
        factory: Creates the engine for a label not seen before. The factory
            receives the label and the table itself.
    """

    def __init__(self, factory: Callable[[str, VersionTable], Engine]) -> None:
        self._factory = factory
        self._engines: dict[str, Engine] = {}
        self._instance_ids: dict[str, int] = {}

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and version_label(label) in self._engines

    def __iter__(self) -> Iterator[Engine]:
        return iter(list(self._engines.values()))

    def __len__(self) -> int:
        return len(self._engines)

    def labels(self) -> list[str]:
        """Labels of the engines in the table, in creation order."""
        return list(self._engines)

    def get(self, label: str) -> Engine | None:
        """Return the engine for a version label or URL, or None."""
        return self._engines.get(version_label(label))

    def add(self, engine: Engine) -> Engine:
        """Add an engine under its version; an existing engine for the label wins."""
        return self._engines.setdefault(engine.version, engine)

    def get_or_create(self, label: str) -> Engine:
        """Return the engine for a version label or URL, creating it if needed."""
        label = version_label(label)
        if (engine := self._engines.get(label)) is None:
            logger.debug("Creating engine version %s", label)
            engine = self.add(self._factory(label, self))
        return engine

    def next_instance_id(self, index: str) -> int:
        """Increment and return the instance number of a component index.

        The numbers are shared by every engine of the table, so an instance
        index stays unique even when one component is registered with
        several engine versions.
        """
        self._instance_ids[index] = self._instance_ids.get(index, 0) + 1
        return self._instance_ids[index]

    async def aclose(self) -> None:
        """Close every engine of the table."""
        for engine in self:
            await engine.aclose()
