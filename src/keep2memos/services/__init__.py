"""Rendering and import orchestration."""
