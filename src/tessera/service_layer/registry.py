"""Versioned, idempotent registry of component definitions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tessera.domain.component import ComponentDefinition, index_of_url
from tessera.domain.errors import ResourceLoadError, UnresolvableLocatorError
from tessera.domain.instance import call_hook

from .versions import version_label

if TYPE_CHECKING:
    from .engine import Engine

logger = logging.getLogger(__name__)

ENGINE_KEY = "engine"


def _unbound(definition: ComponentDefinition) -> ComponentDefinition:
    if definition.engine is None:
        return definition
    unbound = definition.copy()
    unbound.engine = None
    unbound.instances = 0
    return unbound


class ComponentRegistry:
    """Registry of the component definitions of one engine version.

    The registry keeps one canonical definition per component index. The
    canonical definition holds the instance counter; callers only ever
    receive copies of it.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._components: dict[str, ComponentDefinition] = {}

    def __contains__(self, index: object) -> bool:
        return index in self._components

    def __len__(self) -> int:
        return len(self._components)

    def get(self, index: str) -> ComponentDefinition | None:
        """Return the canonical definition registered under `index`, or None."""
        return self._components.get(index)

    def indexes(self) -> list[str]:
        """Indexes of the registered components, in registration order."""
        return list(self._components)

    def next_instance_id(self, index: str) -> int:
        """Count a new instance of a registered component and return its id.

        The canonical definition counts the instances built by this engine;
        the id comes from the version table so that it is unique across
        engine versions.
        """
        canonical = self._components[index]
        canonical.instances += 1
        return self._engine.versions.next_instance_id(index)

    async def register(
        self, component: Any, config: Mapping[str, Any] | None = None
    ) -> ComponentDefinition:
        """Register a component once and return a copy of its canonical definition.

        Args:
            component: A `ComponentDefinition`, its mapping form, a registered
                component index or a component URL
                (``tessera.<name>[-<major>.<minor>.<patch>][.min].py``).
            config: Configuration merged over the component's defaults in the
                returned copy. Its ``engine`` entry overrides the engine version
                the component is registered with.

        Returns:
            A copy of the canonical definition whose `config` is the prepared
            configuration.

        Raises:
            UnresolvableLocatorError: If a string is neither a registered index
                nor a loadable component URL.
            InvalidComponentError: If the definition is malformed.
        """
        config = dict(config or {})
        definition = await self._definition_of(component)

        override = config.pop(ENGINE_KEY, None)
        if not override and definition.engine not in (None, self._engine):
            return await definition.engine.registry.register(definition, config)
        engine_label = override or definition.engine_version
        if engine_label and version_label(engine_label) != self._engine.version:
            target = self._engine.versions.get_or_create(engine_label)
            logger.debug(
                "Delegating registration of %s to engine %s", definition.index, target.version
            )
            return await target.registry.register(_unbound(definition), config)

        canonical = self._components.get(definition.index)
        if canonical is None:
            canonical = await self._add(definition)
        return canonical.copy(await self._engine.configs.prepare(config, canonical.config))

    async def _add(self, definition: ComponentDefinition) -> ComponentDefinition:
        canonical = definition.copy()
        canonical.instances = 0
        canonical.engine = self._engine
        ready, canonical.ready = canonical.ready, None
        self._components[canonical.index] = canonical
        logger.debug("Registered component %s (engine %s)", canonical.index, self._engine.version)
        if ready is not None:
            try:
                await call_hook(ready, canonical)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Exception in ready hook of component %s", canonical.index)
                del self._components[canonical.index]
                raise
        self._engine.publish_binding(canonical)
        return canonical

    async def _definition_of(self, component: Any) -> ComponentDefinition:
        if isinstance(component, ComponentDefinition):
            return component
        if isinstance(component, Mapping):
            return ComponentDefinition.from_mapping(component)
        if not isinstance(component, str):
            raise UnresolvableLocatorError(repr(component))
        if (canonical := self._components.get(component)) is not None:
            return canonical
        index = index_of_url(component)
        if index is None:
            raise UnresolvableLocatorError(component)
        if (canonical := self._components.get(index)) is not None:
            return canonical
        return await self._load_definition(component)

    async def _load_definition(self, url: str) -> ComponentDefinition:
        logger.debug("Loading component from %s", url)
        try:
            payload = await self._engine.loader.load({"url": url, "type": "script"})
        except ResourceLoadError as exc:
            raise UnresolvableLocatorError(url) from exc
        if isinstance(payload, ComponentDefinition):
            if payload.url is None:
                payload.url = url
            return payload
        if isinstance(payload, Mapping):
            return ComponentDefinition.from_mapping({"url": url, **payload})
        raise UnresolvableLocatorError(url)
