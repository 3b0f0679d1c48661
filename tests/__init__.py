"""TESSERA test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- integration/  : The assembled runtime (bootstrap, engines, instance trees).
- contract/     : Shared behavior/invariants enforced across multiple implementations.
- helpers/      : Shared utilities (no tests here).

General guidance
- Keep unit fast and deterministic (no real network); HTTP goes through the
  fake web of `tests/conftest.py` (an `httpx.MockTransport`).
- Contract parametrizes implementations to ensure consistent behavior.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
- Markers: unit, integration, contract, property
"""
