"""Rendering surface adapters."""
