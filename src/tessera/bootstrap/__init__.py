"""Bootstrap (composition root) for TESSERA.

Assembles the runtime: wires concrete adapters (HTTP transport, rendering
surface, ID generator, datastore factories) into engines, reads configuration,
and builds the version table engines of other versions are created in.

Import rules:
- Applications import *this* package to obtain an engine.
- This package may import: `tessera.adapters`, `tessera.service_layer`,
  `tessera.interfaces`, `tessera.domain`, and `tessera.config`.
- Inner layers must not import `tessera.bootstrap`.
"""

from .bootstrap import bootstrap

__all__ = ["bootstrap"]
