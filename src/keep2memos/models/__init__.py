"""Data models for the Keep to Memos importer."""
