"""Bootstrap an engine with its adapters and version table."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from tessera import config
from tessera.adapters.datastore.memory import MemoryDatastoreFactory
from tessera.adapters.id_generators import ULIDGenerator
from tessera.adapters.surface.memory import MemorySurface
from tessera.logging import configure_logging, log_startup
from tessera.service_layer.engine import Engine
from tessera.service_layer.loader import HttpTransport
from tessera.service_layer.versions import VersionTable, version_label

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from tessera.interfaces.datastore import DatastoreFactory
    from tessera.interfaces.id_generator import IdGenerator
    from tessera.interfaces.surface import Surface

logger = logging.getLogger(__name__)

FLIGHT_RECORDER_CAPACITY = 2000
QUIET_LOGGERS = {"httpx": logging.WARNING, "httpcore": logging.WARNING}


def build_version_table(  # pylint: disable=too-many-arguments
    settings: config.Settings,
    *,
    surface: Surface,
    transport: HttpTransport,
    id_generator: IdGenerator,
    remote_datastore_factory: DatastoreFactory | None = None,
) -> VersionTable:
    """Build a version table whose engines share the given adapters."""
    local_datastores = MemoryDatastoreFactory(id_generator)

    def build_engine(label: str, versions: VersionTable) -> Engine:
        return Engine(
            label,
            versions=versions,
            surface=surface,
            transport=transport,
            id_generator=id_generator,
            local_datastores=local_datastores,
            remote_datastores=remote_datastore_factory,
            settings=replace(settings, engine_version=label),
        )

    return VersionTable(build_engine)


def bootstrap(  # pylint: disable=too-many-arguments
    version: str | None = None,
    *,
    surface: Surface | None = None,
    http_client: httpx.AsyncClient | None = None,
    settings: config.Settings | None = None,
    id_generator: IdGenerator | None = None,
    remote_datastore_factory: DatastoreFactory | None = None,
    log_level: int | None = None,
    log_path: Path | None = None,
) -> Engine:
    """Bootstrap the engine for a version label.

    Args:
        version: Engine version label or URL; defaults to the configured
            engine version.
        surface: Rendering surface; defaults to an in-memory surface.
        http_client: HTTP client for the loader; by default the transport
            creates one with the configured HTTP timeout.
        settings: Runtime settings; defaults to `Settings.from_env()`.
        id_generator: ID generator; defaults to monotonic ULIDs.
        remote_datastore_factory: Factory for datastores with a ``url``.
        log_level: When given, attach the console handler at this level to
            the root logger and log the startup summary. Libraries embedding
            the runtime leave it unset and configure logging themselves.
        log_path: With `log_level`, also enable the flight recorder writing
            to this file.

    Returns:
        The engine. Engines of other versions are created on demand in its
        `versions` table and share its adapters.
    """
    settings = settings or config.Settings.from_env()
    label = version_label(version or settings.engine_version)
    if log_level is not None:
        handlers = configure_logging(
            log_level,
            log_path=log_path,
            flight_capacity=FLIGHT_RECORDER_CAPACITY,
            logger_levels=QUIET_LOGGERS,
        )
        log_startup(
            logger,
            engine_version=label,
            level=log_level,
            handlers=handlers,
            log_path=log_path,
            flight_capacity=FLIGHT_RECORDER_CAPACITY if log_path else None,
        )
    versions = build_version_table(
        settings,
        surface=surface or MemorySurface(),
        transport=HttpTransport(http_client, timeout=settings.http_timeout),
        id_generator=id_generator or ULIDGenerator(),
        remote_datastore_factory=remote_datastore_factory,
    )
    engine = versions.get_or_create(label)
    logger.debug("Bootstrapped engine %s", engine.version)
    return engine
