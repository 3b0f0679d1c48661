"""Datastore adapters."""
