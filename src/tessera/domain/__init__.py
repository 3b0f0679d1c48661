"""Domain layer for TESSERA.

Contains the runtime's core vocabulary: component definitions, instances and
their lifecycle states, resource and dependency descriptors, the tagged-union
view over configuration data, and the error taxonomy. This package is
deliberately technology-agnostic.

Dependency rule: do not import from `tessera.adapters`, `tessera.service_layer`
or `tessera.bootstrap`.
"""
