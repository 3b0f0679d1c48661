"""Instance building: configuration, surface allocation, tree wiring and resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from tessera.domain.component import ComponentDefinition
from tessera.domain.errors import InstanceBuildError
from tessera.domain.instance import Instance, LifecycleState, ProxyInstance, call_hook
from tessera.interfaces.surface import Node

if TYPE_CHECKING:
    from .engine import Engine

logger = logging.getLogger(__name__)

ROOT_PARENT = "parent"
ROOT_NAME = "name"
SHADOW_NONE = "none"
SHADOW_MODES = ("open", "closed", SHADOW_NONE)
PLACEHOLDER_TAG = "tessera-placeholder"

# configuration keys never copied onto instances
RESERVED_FIELDS = frozenset(
    {
        "id", "index", "component", "engine", "parent", "children", "root",
        "shadow", "element", "resolved_config", "lifecycle", "start_deferred",
        "before_creation", "after_creation", "on_ready", "key",
    }
)  # fmt: skip


class InstanceBuilder:
    """Builds instances of components for one engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def build(self, component: Any, config: Any = None) -> Instance:
        """Build an instance of a component.

        Args:
            component: Anything the registry accepts (definition, mapping,
                index or component URL).
            config: Instance configuration (a mapping or a descriptor that
                resolves to one). Besides component-specific keys, it may hold
                ``parent``, ``root``, ``shadow``, ``engine`` and the
                ``before_creation``, ``after_creation`` and ``on_ready``
                callbacks.

        Returns:
            The built instance. Its lifecycle has run, unless it was built
            while its parent's own lifecycle had not started yet, in which case
            the parent's run covers it.
        """
        engine = self._engine
        override = config.get("engine") if isinstance(config, dict) else None
        registered = await engine.registry.register(
            component, {"engine": override} if override else None
        )

        if isinstance(component, ComponentDefinition):
            defaults = component.config
        else:
            defaults = registered.config
        prepared = await engine.configs.prepare(config, defaults)
        prepared.pop("engine", None)
        if (before_creation := prepared.pop("before_creation", None)) is not None:
            await call_hook(before_creation, prepared, registered)

        if registered.engine is not engine:
            logger.debug(
                "Delegating build of %s to engine %s", registered.index, registered.engine.version
            )
            return await registered.engine.builder.build(registered, prepared)

        parent = prepared.pop("parent", None)
        if parent is not None and not isinstance(parent, Instance):
            raise InstanceBuildError(f"Parent must be an instance, got {type(parent).__name__}")
        root = prepared.pop("root", None)
        shadow = prepared.pop("shadow", None) or engine.settings.shadow_mode
        after_creation = prepared.pop("after_creation", None)
        on_ready = prepared.pop("on_ready", None)

        instance = self._create(registered, parent)
        self._allocate(instance, parent, root, shadow)
        logger.debug("Created instance %s", instance.index)
        if after_creation is not None:
            await call_hook(after_creation, prepared, registered)

        with self._grafted(instance.root):
            resolved = await engine.resolver.resolve(prepared, instance)
        self._apply(instance, resolved)

        if parent is not None and parent.lifecycle is LifecycleState.PENDING:
            logger.debug("Deferring lifecycle of %s to parent %s", instance.index, parent.index)
        else:
            await engine.lifecycle.run(instance)

        if on_ready is not None:
            await call_hook(on_ready, instance)
        return instance

    async def start(self, component: Any, config: Any = None) -> Instance:
        """Build an instance and start it (or flag it to start with its parent's run)."""
        instance = await self.build(component, config)
        if instance.lifecycle is LifecycleState.PENDING:
            instance.start_deferred = True
        else:
            await instance.start()
        return instance

    async def proxy(self, component: Any, config: Any = None) -> ProxyInstance:
        """Return a proxy that builds and starts the real instance on its first start."""
        parent = None
        if isinstance(config, dict):
            config = dict(config)
            parent = config.pop("parent", None)
        return ProxyInstance(self._engine, component, config, parent)

    def _create(self, component: ComponentDefinition, parent: Instance | None) -> Instance:
        instance = component.blueprint()
        instance.component = component
        instance.engine = self._engine
        instance.id = self._engine.registry.next_instance_id(component.index)
        instance.index = f"{component.index}-{instance.id}"
        if parent is not None:
            instance.parent = parent
            parent.children[instance.index] = instance
        return instance

    def _allocate(
        self, instance: Instance, parent: Instance | None, root: Any, shadow: str
    ) -> None:
        surface = self._engine.surface
        if root == ROOT_PARENT and parent is not None:
            instance.root, instance.element = parent.root, parent.element
            return
        if shadow not in SHADOW_MODES:
            raise InstanceBuildError(f"Invalid shadow mode {shadow!r} for {instance.index}")

        target = self._root_target(instance, parent, root)
        instance.root = surface.create_element("div", id=instance.index)
        if target is not None:
            surface.clear(target)
            surface.append_child(target, instance.root)

        instance.element = surface.create_element("div", id="element")
        if shadow == SHADOW_NONE:
            surface.append_child(instance.root, instance.element)
        else:
            instance.shadow = surface.attach_shadow(instance.root, shadow)
            surface.append_child(instance.shadow, instance.element)

    def _root_target(self, instance: Instance, parent: Instance | None, root: Any) -> Node | None:
        if root is None or isinstance(root, Node):
            return root
        if not isinstance(root, str):
            raise InstanceBuildError(
                f"Invalid root for {instance.index}: expected a node or an element id"
            )
        if parent is None or parent.element is None:
            logger.debug("Root %r of %s needs a parent; root stays detached", root, instance.index)
            return None
        element_id = instance.component.name if root == ROOT_NAME else root
        target = self._engine.surface.find(parent.element, id=element_id)
        if target is None:
            logger.debug("No element %r in parent of %s", element_id, instance.index)
        return target

    @contextmanager
    def _grafted(self, node: Node) -> Iterator[None]:
        surface = self._engine.surface
        if surface.is_attached(node):
            yield
            return
        placeholder = None
        if surface.parent_of(node) is not None:
            placeholder = surface.create_element(PLACEHOLDER_TAG)
            surface.replace(node, placeholder)
        surface.append_child(surface.head, node)
        try:
            yield
        finally:
            if placeholder is not None:
                surface.replace(placeholder, node)
            else:
                surface.remove(node)

    @staticmethod
    def _apply(instance: Instance, resolved: dict[str, Any]) -> None:
        for key, value in resolved.items():
            if key not in RESERVED_FIELDS:
                setattr(instance, key, value)
        instance.resolved_config = resolved
