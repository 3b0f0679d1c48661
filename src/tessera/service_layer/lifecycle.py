"""Two-phase startup of freshly built instance trees."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from typing import Any

from tessera.domain.data import Kind, classify
from tessera.domain.instance import Instance, LifecycleState, ProxyInstance, call_hook

logger = logging.getLogger(__name__)

PARENT_KEY = "parent"


def _nested_instances(value: Any) -> Iterator[Instance]:
    match classify(value):
        case Kind.RECORD:
            for key, item in value.items():
                if key != PARENT_KEY:
                    yield from _nested_instances(item)
        case Kind.ARRAY | Kind.DESCRIPTOR:
            for item in value:
                yield from _nested_instances(item)
        case Kind.OPAQUE:
            if isinstance(value, Instance) and not isinstance(value, ProxyInstance):
                yield value
        case _:
            return


class LifecycleCoordinator:
    """Runs the forward initialization and backward readiness passes.

    Every ``init`` hook of a discovered tree completes before any ``ready``
    hook starts, and an instance becomes ready only after every instance it
    depends on is ready.
    """

    def discover(self, instance: Instance) -> list[Instance]:
        """Collect the instances reachable from `instance`, breadth first.

        The walk descends into each instance's resolved configuration and
        skips the ``parent`` back-reference and lazy proxy instances. Every
        instance appears once, in discovery order, `instance` first.
        """
        found = [instance]
        seen = {id(instance)}
        queue = deque([instance])
        while queue:
            current = queue.popleft()
            for nested in _nested_instances(current.resolved_config):
                if id(nested) not in seen:
                    seen.add(id(nested))
                    found.append(nested)
                    queue.append(nested)
        return found

    async def run(self, instance: Instance) -> None:
        """Initialize, ready and (when deferred) start the tree rooted at `instance`.

        Raises:
            Exception: Whatever a failing hook raised, after logging it.
        """
        instances = self.discover(instance)
        for item in instances:
            if item.lifecycle is LifecycleState.PENDING:
                item.lifecycle = LifecycleState.RUNNING
        logger.debug("Initializing %d instance(s) from %s", len(instances), instance.index)

        for item in instances:
            await self._run_hook(item, "init")
        for item in reversed(instances):
            await self._run_hook(item, "ready")
            if item.start_deferred:
                item.start_deferred = False
                logger.debug("Starting deferred instance %s", item.index)
                await item.start()

        for item in instances:
            item.lifecycle = LifecycleState.DONE
        logger.debug("Instance %s is ready", instance.index)

    @staticmethod
    async def _run_hook(instance: Instance, name: str) -> None:
        if (hook := instance.take_hook(name)) is None:
            return
        try:
            await call_hook(hook)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Exception in %s hook of instance %s", name, instance.index)
            raise
