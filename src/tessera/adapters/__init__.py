"""Adapters (infrastructure) for TESSERA.

Provide concrete implementations of the collaborator interfaces (rendering
surface, datastores, ID generators).

Dependency rule: may import `tessera.domain` and `tessera.interfaces`; the
domain must not import this package.
"""
