"""
Keep2Memos - import a Google Keep export into a Memos server.

Notes are read from a Takeout directory of per-note JSON files, rendered to
Markdown and written either through the Memos HTTP API or directly into the
Memos database.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("keep2memos")
except PackageNotFoundError:
    __version__ = "0.3.0"
