"""Contract tests.

Purpose
- Define the behavior of collaborator interfaces (datastores, surfaces, id
  generators) once and run it against every adapter.

Guidelines
- Parametrize implementations via fixtures.
- Assert only the public contract (inputs/outputs/effects), not internals.
- Keep environment minimal and consistent across implementations.
"""
