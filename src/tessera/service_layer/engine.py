"""The engine: one isolated runtime per version label."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.config import Settings
from tessera.domain.component import ComponentDefinition
from tessera.domain.data import OpaqueHandle
from tessera.domain.instance import Instance, ProxyInstance
from tessera.domain.values import Tag
from tessera.interfaces.datastore import Datastore, DatastoreFactory, Key, Record
from tessera.interfaces.id_generator import IdGenerator
from tessera.interfaces.surface import Surface

from .builder import InstanceBuilder
from .configs import ConfigPreparer
from .datastores import DatastoreService
from .lifecycle import LifecycleCoordinator
from .loader import HttpTransport, ResourceLoader
from .registry import ComponentRegistry
from .resolver import DependencyResolver
from .versions import VersionTable

logger = logging.getLogger(__name__)

APP_BINDING = "tessera-app"
BINDING_PREFIX = "tessera-"


class Engine(OpaqueHandle):  # pylint: disable=too-many-instance-attributes
    """Runtime of one engine version.

    The engine owns its component registry (with the instance counters), the
    shared ``files`` registry of loaded scripts, the loader, the dependency
    resolver and the builder. Its public coroutines are the entry points
    behind the dependency tags of the same names.

    Args:
        version: Version label of the engine.
        versions: The version table the engine belongs to.
        surface: Rendering surface instances are attached to.
        transport: Byte transport used by the loader.
        id_generator: Generates datastore keys and callback names.
        local_datastores: Creates in-memory datastores.
        remote_datastores: Creates datastores for settings with a ``url``.
        settings: Runtime settings.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        version: str,
        *,
        versions: VersionTable,
        surface: Surface,
        transport: HttpTransport,
        id_generator: IdGenerator,
        local_datastores: DatastoreFactory,
        remote_datastores: DatastoreFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.version = version
        self.versions = versions
        self.settings = settings or Settings(engine_version=version)
        self.surface = surface
        self.files: dict[str, Any] = {}
        self.loader = ResourceLoader(
            surface, transport, self.files, id_generator, self.settings.load_timeout
        )
        self.resolver = DependencyResolver(
            {
                Tag.LOAD: self.load,
                Tag.COMPONENT: self.component,
                Tag.INSTANCE: self.instance,
                Tag.PROXY: self.proxy,
                Tag.START: self.start,
                Tag.STORE: self.store,
                Tag.GET: self.get,
                Tag.SET: self.set,
                Tag.DEL: self.delete,
            }
        )
        self.configs = ConfigPreparer(self.resolver)
        self.registry = ComponentRegistry(self)
        self.builder = InstanceBuilder(self)
        self.lifecycle = LifecycleCoordinator()
        self.datastores = DatastoreService(self.loader, local_datastores, remote_datastores)

    def __repr__(self) -> str:
        return f"<Engine {self.version}>"

    # --- Resources and components ---

    async def load(self, *resources: Any) -> Any:
        """Load resources; see `ResourceLoader.load`."""
        return await self.loader.load(*resources)

    async def component(
        self, component: Any, config: Mapping[str, Any] | None = None
    ) -> ComponentDefinition:
        """Register a component; see `ComponentRegistry.register`."""
        return await self.registry.register(component, config)

    async def instance(self, component: Any, config: Any = None) -> Instance:
        """Build an instance; see `InstanceBuilder.build`."""
        return await self.builder.build(component, config)

    async def start(self, component: Any, config: Any = None) -> Instance:
        """Build and start an instance."""
        return await self.builder.start(component, config)

    async def proxy(self, component: Any, config: Any = None) -> ProxyInstance:
        """Return a lazy proxy instance."""
        return await self.builder.proxy(component, config)

    # --- Datastores ---

    async def store(self, settings: Any = None) -> Datastore:
        """Provide a datastore; see `DatastoreService.store`."""
        return await self.datastores.store(settings)

    async def get(self, settings: Any = None, key_or_query: Any = None) -> Any:
        """Read from a datastore."""
        return await self.datastores.get(settings, key_or_query)

    async def set(self, settings: Any, priodata: Mapping[str, Any]) -> Key:
        """Write a record to a datastore."""
        return await self.datastores.set(settings, priodata)

    async def delete(self, settings: Any, key: Key) -> Record | None:
        """Delete a record from a datastore."""
        return await self.datastores.delete(settings, key)

    # --- Declarative bindings ---

    def publish_binding(self, component: ComponentDefinition) -> None:
        """Publish the element bindings for a newly registered component.

        Markup can then use ``<tessera-<index>>`` to start an instance of the
        component, or ``<tessera-app>`` with an explicit component locator.
        """
        name = BINDING_PREFIX + component.index.replace(".", "-")

        async def start_component(config: Any = None) -> Instance:
            return await self.start(component.index, config)

        self.surface.define_element(name, start_component)
        if not self.surface.is_defined(APP_BINDING):
            self.surface.define_element(APP_BINDING, self.start)
        logger.debug("Published element binding %s", name)

    async def aclose(self) -> None:
        """Release the engine's transport."""
        await self.loader.transport.aclose()
