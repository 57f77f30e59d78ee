"""Common test fixtures for the Keep to Memos importer."""

import json
import logging
from pathlib import Path

import pytest
from sqlalchemy import create_engine

from keep2memos.models.db_models import Base, get_session_factory
from keep2memos.observability import ROOT_LOGGER_NAME, metrics
from tests.fakes import FakeSession


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Keep timing metrics isolated per test."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture(autouse=True)
def _restore_logging():
    """Drop handlers that configure_logging attached during a test."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    before = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in before:
            handler.close()
    root.handlers = before
    root.setLevel(level)


@pytest.fixture
def export_dir(tmp_path):
    """An empty Keep export directory."""
    path = tmp_path / "Takeout" / "Keep"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_note(export_dir):
    """Write a Keep JSON note file into the export directory."""

    def _write(name: str, **fields) -> Path:
        path = export_dir / name
        path.write_text(json.dumps(fields), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_attachment(export_dir):
    """Write an attachment file into the export directory."""

    def _write(name: str, data: bytes = b"\x89PNG fake image bytes") -> Path:
        path = export_dir / name
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def db_engine(tmp_path):
    """SQLite database with the Memos tables the importer writes to."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'memos_prod.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory(db_engine)


@pytest.fixture
def memos_dir(tmp_path):
    path = tmp_path / "memos"
    path.mkdir()
    return path


@pytest.fixture
def fake_session():
    return FakeSession()
