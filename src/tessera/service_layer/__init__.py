"""Service layer for TESSERA.

Implements the runtime's use-cases: resource loading, dependency resolution,
component registration, instance building and lifecycle coordination, all
orchestrated by the per-version `Engine`.

Dependency rule: may import `tessera.domain` and `tessera.interfaces`, but not
`tessera.adapters` or `tessera.bootstrap`.
"""
