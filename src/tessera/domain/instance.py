"""Instances, lazy proxy instances and lifecycle hooks."""

from __future__ import annotations

import enum
import inspect
import weakref
from collections.abc import Callable, Iterator
from typing import Any

from .data import OpaqueHandle, is_dependency, merge

HOOK_NAMES = ("init", "ready")


class LifecycleState(enum.Enum):
    """Progress of an instance through the two-phase startup."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a hook and await its result if it returned an awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class Instance(OpaqueHandle):  # pylint: disable=too-many-instance-attributes
    """Base class for component blueprints.

    A blueprint subclasses `Instance` and may define the optional `init`,
    `ready` and `update` hooks next to `start`. Hooks can be plain or
    coroutine functions. `init` and `ready` run at most once per instance;
    after being taken by the lifecycle coordinator they are consumed.

    Attributes:
        id: Monotonic instance number of the component (starting at 1),
            shared by every engine version of a runtime.
        index: Globally unique instance index (``<component index>-<id>``).
        component: The component definition the instance was built from.
        engine: The engine that built the instance.
        children: Instances built with this instance as parent, by index.
        root: Root node of the instance on the rendering surface.
        shadow: Encapsulated scope attached to the root, or None.
        element: Content node inside the scope.
        resolved_config: The configuration after dependency resolution.
        lifecycle: Progress through the two-phase startup.
        start_deferred: Set when `start` was requested before the lifecycle ran.
    """

    def __init__(self) -> None:
        self.id = 0
        self.index = ""
        self.component: Any = None
        self.engine: Any = None
        self.children: dict[str, Instance] = {}
        self.root: Any = None
        self.shadow: Any = None
        self.element: Any = None
        self.resolved_config: dict[str, Any] = {}
        self.lifecycle = LifecycleState.PENDING
        self.start_deferred = False
        self._parent_ref: weakref.ref[Instance] | None = None
        self._consumed_hooks: set[str] = set()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.index or '(unbuilt)'}>"

    @property
    def parent(self) -> Instance | None:
        """The parent instance, or None for a root instance (or a collected parent)."""
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: Instance | None) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    def take_hook(self, name: str) -> Callable[..., Any] | None:
        """Take a one-time lifecycle hook, consuming it.

        Returns:
            The bound hook, or None if the instance has no such hook or it has
            already been taken.
        """
        if name in self._consumed_hooks:
            return None
        hook = getattr(self, name, None)
        if not callable(hook):
            return None
        self._consumed_hooks.add(name)
        self.__dict__.pop(name, None)
        return hook

    # --- Context tree ---

    def _lineage(self, not_me: bool) -> Iterator[Instance]:
        instance = self.parent if not_me else self
        while instance is not None:
            yield instance
            instance = instance.parent

    def _holds(self, instance: Instance, name: str) -> bool:
        value = getattr(instance, name, None)
        return value is not None and value is not self

    def nearest(self, name: str, not_me: bool = False) -> Instance | None:
        """Return the closest instance up the parent chain that has attribute `name`.

        Attributes set to None, and attributes referring back to this
        instance, do not count.

        Args:
            name: Attribute to look for.
            not_me: Start with the parent instead of this instance.

        Returns:
            The instance, or None if no instance of the chain has the attribute.
        """
        for instance in self._lineage(not_me):
            if self._holds(instance, name):
                return instance
        return None

    def highest(self, name: str, not_me: bool = False) -> Instance | None:
        """Return the outermost instance up the parent chain that has attribute `name`.

        Same rules as `nearest`, but the walk continues to the context root.
        """
        found = None
        for instance in self._lineage(not_me):
            if self._holds(instance, name):
                found = instance
        return found

    def lookup(self, name: str, not_me: bool = False) -> Any:
        """Return the value of `name` on the nearest instance that has it, or None."""
        holder = self.nearest(name, not_me)
        return getattr(holder, name) if holder is not None else None

    def context_root(self) -> Instance:
        """Return the outermost ancestor (the instance itself when it has no parent)."""
        instance = self
        while instance.parent is not None:
            instance = instance.parent
        return instance

    async def start(self) -> None:
        """Render the instance. Blueprints override this; the default does nothing."""


# attributes a proxy reports before its real instance exists
_UNBUILT: dict[str, Callable[[], Any]] = {
    "id": lambda: 0,
    "index": str,
    "children": dict,
    "root": lambda: None,
    "shadow": lambda: None,
    "element": lambda: None,
    "resolved_config": dict,
    "lifecycle": lambda: LifecycleState.PENDING,
    "start_deferred": lambda: False,
}
_PROXY_FIELDS = frozenset({"_engine", "_component", "_config", "_target", "_parent_ref"})


class ProxyInstance(Instance):
    """Placeholder that builds its real instance on first start.

    Once the real instance exists, the proxy stands in for it: every
    attribute the proxy does not own is read from and written to the real
    instance.
    """

    def __init__(  # pylint: disable=super-init-not-called
        self,
        engine: Any,
        component: Any,
        config: Any = None,
        parent: Instance | None = None,
    ) -> None:
        self._engine = engine
        self._component = component
        self._config = config if config is not None else {}
        self._target: Instance | None = None
        self._parent_ref = None
        self.parent = parent

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        target = self.__dict__.get("_target")
        if target is not None:
            return getattr(target, name)
        if name in _UNBUILT:
            return _UNBUILT[name]()
        if name == "engine":
            return self._engine
        if name == "component":
            return self._component
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        target = self.__dict__.get("_target")
        if target is None or name in _PROXY_FIELDS:
            object.__setattr__(self, name, value)
        else:
            setattr(target, name, value)

    def __repr__(self) -> str:
        target = self.__dict__.get("_target")
        return f"<ProxyInstance for {target!r}>" if target else "<ProxyInstance (unbuilt)>"

    @property
    def target(self) -> Instance | None:
        """The real instance, or None before the first start."""
        return self._target

    async def start(self, config: Any = None) -> None:  # pylint: disable=arguments-differ
        """Build and start the real instance on first call; restart it afterwards.

        Args:
            config: Configuration integrated over the proxy's own configuration
                for the first build. Ignored on later calls.
        """
        if self._target is not None:
            await self._target.start()
            return
        base = self._config
        if is_dependency(base):
            base = await self._engine.resolver.resolve_dependency(base, self.parent)
        merged = merge(config or {}, base)
        if self.parent is not None:
            merged["parent"] = self.parent
        self._target = await self._engine.start(self._component, merged)
