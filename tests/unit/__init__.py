"""Unit tests.

Purpose
- Verify a single module/class/function in isolation.

Guidelines
- No real network; HTTP goes through `httpx.MockTransport` and the fake web fixture.
- Build engines with the in-memory surface and predictable id generators.
- Keep tests small, fast, and deterministic.
"""
