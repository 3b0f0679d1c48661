"""Resource loader with a serial/parallel combinator."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any

from tessera.domain.data import clone
from tessera.domain.errors import (
    ResourceFailedError,
    ResourceLoadError,
    ResourceTimeoutError,
    UnsupportedResourceError,
)
from tessera.domain.instance import Instance
from tessera.domain.values import LoadFailure, ResourceDescriptor, Tag
from tessera.interfaces.id_generator import IdGenerator
from tessera.interfaces.surface import Node, Surface

from .strategies import STRATEGIES, LoaderEnv, Strategy, type_of
from .transport import HttpTransport

logger = logging.getLogger(__name__)


@dataclass
class _Outcome:
    failures: int = 0


def _report_late(url: str, timeout: float, task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    if task.exception() is not None:
        logger.warning("Loading of %s failed after timeout (%ss)", url, timeout)
    else:
        logger.warning(
            "Loading of %s succeeded after timeout (%ss); result discarded", url, timeout
        )


class ResourceLoader:
    """Loads heterogeneous resources.

    Args:
        surface: Surface receiving stylesheet links and script nodes.
        transport: Fetches remote and local bytes.
        files: Shared registry loaded scripts publish their payload into.
        id_generator: Generates JSONP callback names.
        timeout: Per-resource timeout in seconds; `0` disables it.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        surface: Surface,
        transport: HttpTransport,
        files: dict[str, Any],
        id_generator: IdGenerator,
        timeout: float = 0.0,
    ) -> None:
        self.surface = surface
        self.transport = transport
        self.timeout = timeout
        self._env = LoaderEnv(surface, transport, files, id_generator)
        self._strategies: dict[str, Strategy] = dict(STRATEGIES)

    async def load(self, *resources: Any) -> Any:
        """Load resources.

        Top-level entries load concurrently. An entry that is a list loads its
        elements one after the other; an element that is itself a list loads
        its members concurrently, and so on, alternating with depth. Results
        keep the positions of their entries.

        Args:
            *resources: URLs, resource descriptors (mappings or
                `ResourceDescriptor`) or lists of them.

        Returns:
            The positional results, or the bare result for a single entry.
            A resource whose strategy produced no value yields its URL.

        Raises:
            ResourceLoadError: If any resource failed (or timed out), once every
                entry has settled. Its `results` holds the complete positional
                results with `LoadFailure` markers at the failed positions.

        Example:
            >>> await loader.load("a.css", ["b.json", ["c.json", "d.json"]])
            ['a.css', [{...}, [{...}, {...}]]]
        """
        call: list[Any] = [Tag.LOAD.value, *(clone(resource) for resource in resources)]
        outcome = _Outcome()
        results = list(
            await asyncio.gather(
                *(self._load_entry(resource, call, outcome) for resource in resources)
            )
        )
        value = results[0] if len(results) == 1 else results
        if outcome.failures:
            raise ResourceLoadError(value, outcome.failures)
        return value

    def register_strategy(self, kind: str, strategy: Strategy) -> None:
        """Add or replace the strategy used for resources of type `kind`."""
        self._strategies[kind] = strategy

    async def _load_entry(self, entry: Any, call: list[Any], outcome: _Outcome) -> Any:
        if isinstance(entry, list):
            return await self._load_serial(entry, outcome)
        return await self._load_resource(entry, call, outcome)

    async def _load_serial(self, entries: list[Any], outcome: _Outcome) -> list[Any]:
        results: list[Any] = []
        for entry in entries:
            group = entry if isinstance(entry, list) else [entry]
            try:
                results.append(await self.load(*group))
            except ResourceLoadError as exc:
                outcome.failures += exc.failures
                results.append(exc.results)
        return results

    def _scope(self, context: Any) -> Node:
        if context is None or context == "head":
            return self.surface.head
        if isinstance(context, Instance):
            if context.element is None:
                return self.surface.head
            return self.surface.parent_of(context.element) or context.element
        if isinstance(context, Node):
            return context
        raise UnsupportedResourceError(context, "context must be 'head', an instance or a node")

    async def _load_resource(self, raw: Any, call: list[Any], outcome: _Outcome) -> Any:
        try:
            resource = ResourceDescriptor.coerce(raw)
            kind = type_of(resource)
            if kind not in self._strategies:
                raise UnsupportedResourceError(raw, f"unknown resource type {kind!r}")
            scope = self._scope(resource.context)
        except UnsupportedResourceError as exc:
            outcome.failures += 1
            logger.error("%s", exc)
            return LoadFailure(exc, raw, None, call)

        logger.debug("Loading %s as %s", resource.url, kind)
        task = asyncio.ensure_future(self._strategies[kind](self._env, resource, scope))
        if self.timeout:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
            if not done:
                outcome.failures += 1
                logger.warning("Loading of %s timed out after %ss", resource.url, self.timeout)
                task.add_done_callback(partial(_report_late, resource.url, self.timeout))
                return LoadFailure(
                    ResourceTimeoutError(resource.url, self.timeout), resource, "timeout", call
                )
        try:
            value = await task
        except ResourceFailedError as exc:
            outcome.failures += 1
            logger.warning("%s", exc)
            return LoadFailure(exc, resource, exc.data, call)
        except Exception as exc:  # pylint: disable=broad-except
            outcome.failures += 1
            logger.exception("Loading of %s failed", resource.url)
            return LoadFailure(exc, resource, None, call)
        return resource.url if value is None else value
