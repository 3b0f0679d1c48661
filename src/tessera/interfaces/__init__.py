"""Interfaces (application boundary) for TESSERA.

Defines framework-free application contracts: ABCs for the collaborators the
runtime consumes (rendering surface, datastores, ID generators) and for the
dependency resolver the service layer exposes. Business rules stay out of this
package.

Dependency rule: this package may import `tessera.domain` only. It may be
imported by `tessera.service_layer`, `tessera.adapters`, and
`tessera.bootstrap`.
"""
