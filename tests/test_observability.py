"""Tests for the observability module.

Tests for timing metrics and logging configuration.
"""
import logging

import pytest

from keep2memos.observability import (
    ROOT_LOGGER_NAME,
    MetricsCollector,
    configure_logging,
    metrics,
    timed_operation,
)


class TestMetricsCollector:
    """Tests for per-operation metrics."""

    def test_record_success_and_error(self):
        collector = MetricsCollector()
        collector.record_operation("create_note", 10.0, True)
        collector.record_operation("create_note", 30.0, False, "HTTP 500")

        m = collector.get_metrics()["create_note"]
        assert m["count"] == 2
        assert m["success_count"] == 1
        assert m["error_count"] == 1
        assert m["avg_duration_ms"] == 20.0
        assert m["min_duration_ms"] == 10.0
        assert m["max_duration_ms"] == 30.0
        assert m["last_error"] == "HTTP 500"

    def test_reset(self):
        collector = MetricsCollector()
        collector.record_operation("patch_note", 1.0, True)
        collector.reset()
        assert collector.get_metrics() == {}

    def test_log_summary(self, caplog):
        collector = MetricsCollector()
        collector.record_operation("store_attachment", 5.0, True)
        with caplog.at_level(logging.INFO, logger="keep2memos.observability"):
            collector.log_summary(level=logging.INFO)
        assert "store_attachment: 1 calls, 0 errors" in caplog.text


class TestTimedOperation:
    def test_records_success(self):
        with timed_operation("create_note", file="a.json") as op:
            op["name"] = "memos/1"
        assert metrics.get_metrics()["create_note"]["success_count"] == 1

    def test_records_failure_and_reraises(self):
        with pytest.raises(RuntimeError):
            with timed_operation("patch_note"):
                raise RuntimeError("boom")
        m = metrics.get_metrics()["patch_note"]
        assert m["error_count"] == 1
        assert m["last_error"] == "boom"


class TestConfigureLogging:
    def test_file_logging(self, tmp_path):
        log_file = configure_logging(level=logging.DEBUG, log_dir=tmp_path / "logs", console=False)
        assert log_file == tmp_path / "logs" / "keep2memos.log"

        logging.getLogger("keep2memos.test").info("hello from the importer")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        assert "hello from the importer" in log_file.read_text(encoding="utf-8")

    def test_console_only(self):
        assert configure_logging(level=logging.WARNING) is None
        root = logging.getLogger(ROOT_LOGGER_NAME)
        assert root.level == logging.WARNING
        assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
