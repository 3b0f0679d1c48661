"""Integration tests.

Purpose
- Exercise the assembled runtime: bootstrap, several engine versions and whole
  instance trees built from component URLs.

Guidelines
- Use realistic component scripts, resources and datastore settings.
- Keep the network faked at the HTTP client only.
- Mark as 'integration' and keep them slower but reliable.
"""
