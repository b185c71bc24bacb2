"""
Unit tests for structured logging and Prometheus metrics.
"""

import json
import logging

import pytest

from draft_reconciler.core.lifecycle import DraftService
from draft_reconciler.core.lifecycle.extraction import CallableExtractor
from draft_reconciler.observability import metrics
from draft_reconciler.observability.logger import (
    CustomJsonFormatter,
    get_logger,
    log_operation,
    setup_logger,
)


def sample(name, **labels):
    return metrics.REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    """Counters move with lifecycle operations"""

    def test_commit_counters(self, manager, complete_parsed):
        before_created = sample("draft_reconciler_drafts_created_total")
        before_committed = sample("draft_reconciler_commits_total", outcome="committed")
        before_refused = sample("draft_reconciler_commits_total", outcome="rejected_validation")
        before_business = sample("draft_reconciler_validation_errors_total", kind="business")

        draft = manager.receive_parsed(manager.create("text"), complete_parsed)
        manager.apply_manual_edit(draft, {"guest_count": 9})
        manager.commit(draft)
        manager.apply_manual_edit(draft, {"guest_count": 3})
        manager.commit(draft)

        assert sample("draft_reconciler_drafts_created_total") == before_created + 1
        assert sample("draft_reconciler_commits_total", outcome="committed") == before_committed + 1
        assert sample("draft_reconciler_commits_total", outcome="rejected_validation") == before_refused + 1
        assert sample("draft_reconciler_validation_errors_total", kind="business") == before_business + 1

    def test_fallback_counter(self, manager):
        before = sample("draft_reconciler_extractions_ingested_total", outcome="fallback")

        def broken(raw_text):
            raise ConnectionError("down")

        DraftService(manager, oracle=CallableExtractor(broken)).submit_text("text")

        assert sample("draft_reconciler_extractions_ingested_total", outcome="fallback") == before + 1

    def test_flag_counter(self):
        before = sample("draft_reconciler_validation_flags_total", flag="price_mismatch")
        metrics.record_validation({"schema": 0, "business": 0}, ["price_mismatch"])
        assert sample("draft_reconciler_validation_flags_total", flag="price_mismatch") == before + 1

    def test_track_duration_observes_on_error(self):
        before = sample("draft_reconciler_commit_duration_seconds_count")
        with pytest.raises(RuntimeError):
            with metrics.track_duration(metrics.commit_duration_seconds):
                raise RuntimeError("boom")
        assert sample("draft_reconciler_commit_duration_seconds_count") == before + 1

    def test_exposition(self):
        body = metrics.generate_metrics().decode("utf-8")
        assert "draft_reconciler_commits_total" in body
        assert metrics.get_content_type().startswith("text/plain")


class TestLogger:
    """JSON log records carry the operation context"""

    def test_json_fields(self):
        formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s",
        )
        record = logging.LogRecord(
            name="draft_reconciler.core.lifecycle.manager",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Draft committed",
            args=(),
            exc_info=None,
        )
        record.draft_id = 42

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Draft committed"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "draft_reconciler.core.lifecycle.manager"
        assert payload["draft_id"] == 42
        assert "timestamp" in payload

    def test_setup_logger_levels(self):
        logger = setup_logger("draft_reconciler.test_setup", level="debug", format_type="text")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, CustomJsonFormatter)

    def test_module_loggers_share_package_root(self):
        logger = get_logger("draft_reconciler.some.module")
        assert logger.name == "draft_reconciler.some.module"
        assert logging.getLogger("draft_reconciler").handlers

    def test_log_operation_does_not_swallow(self, caplog):
        # package loggers do not propagate to the root logger caplog listens on
        logger = logging.getLogger("draft_reconciler.test_operation")
        logger.addHandler(caplog.handler)
        try:
            with pytest.raises(ValueError):
                with log_operation("commit draft", logger=logger, draft_id=7):
                    raise ValueError("bad")
        finally:
            logger.removeHandler(caplog.handler)

        failed = [r for r in caplog.records if r.getMessage() == "Failed: commit draft"]
        assert failed and failed[0].draft_id == 7
        assert failed[0].error_type == "ValueError"
