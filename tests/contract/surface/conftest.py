"""Fixtures for surface contract tests."""

from collections.abc import Iterable

import pytest

from tessera.adapters.surface.memory import MemorySurface
from tessera.interfaces.surface import Surface


@pytest.fixture(params=["memory"])
def any_surface(request: pytest.FixtureRequest) -> Iterable[Surface]:
    """Return a fresh Surface for the requested backend.

    Supported params:
      - `"memory"` → MemorySurface
    """

    match request.param:
        case "memory":
            yield MemorySurface()
        case _:
            raise ValueError(f"unknown surface type: {request.param}")
