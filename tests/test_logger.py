"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path
from skillmatch.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["match_runs"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")

    def test_log_with_context(self, tmp_path):
        """Context keywords are appended as JSON."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Computed matches", user="user-1", returned=3, path=Path("x.json"))

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert '"user": "user-1"' in log_content
        assert '"returned": 3' in log_content

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_match_run(scored=4)
        logger.record_match_run(scored=6)
        logger.record_candidates_skipped(2)

        logger.record_fetch_attempt("json")
        logger.record_fetch_success("json")

        logger.record_fetch_attempt("sqlite")
        logger.record_fetch_failure("sqlite", "RetryError")

        metrics = logger.get_metrics()

        assert metrics["match_runs"] == 2
        assert metrics["candidates_scored"] == 10
        assert metrics["candidates_skipped"] == 2
        assert metrics["errors_by_type"]["RetryError"] == 1

        assert metrics["source_success_rate"]["json"]["attempts"] == 1
        assert metrics["source_success_rate"]["json"]["successes"] == 1
        assert metrics["source_success_rate"]["json"]["success_rate"] == 1.0
        assert metrics["source_success_rate"]["sqlite"]["success_rate"] == 0.0

    def test_success_rate_calculation(self, tmp_path):
        """Success rate should be calculated correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # 3 attempts, 2 successes = 66.7% success rate
        for _ in range(3):
            logger.record_fetch_attempt("sqlite")

        logger.record_fetch_success("sqlite")
        logger.record_fetch_success("sqlite")

        metrics = logger.get_metrics()
        success_rate = metrics["source_success_rate"]["sqlite"]["success_rate"]

        assert success_rate == pytest.approx(0.667, rel=0.01)

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1
        assert log_files[0].name.startswith("skillmatch_")
        assert "Test message" in log_files[0].read_text()

    def test_set_level(self, tmp_path):
        """set_level filters messages below the new level."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )
        logger.set_level("WARNING")
        logger.info("hidden message")
        logger.warning("visible message")

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert "hidden message" not in log_content
        assert "visible message" in log_content

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )
        logger.record_match_run(scored=3)
        logger.record_fetch_attempt("json")
        logger.record_fetch_success("json")
        logger.log_metrics_summary()

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert "Match runs: 1" in log_content
        assert "Source json: 1/1 (100.0%)" in log_content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()  # Start fresh

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_match_run(scored=1)

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        # Should be different instance with fresh metrics
        assert logger2.metrics["match_runs"] == 0

    def test_no_file_logging_without_log_dir(self, tmp_path, monkeypatch):
        """Without SKILLMATCH_LOG_DIR no log file is written."""
        monkeypatch.delenv("SKILLMATCH_LOG_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        reset_logger()

        logger = get_logger(enable_console=False)
        logger.info("console only")

        assert not (tmp_path / "logs").exists()
        reset_logger()

    def test_log_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SKILLMATCH_LOG_DIR", str(tmp_path / "envlogs"))
        reset_logger()

        logger = get_logger(enable_console=False)
        logger.info("to file")

        assert list((tmp_path / "envlogs").glob("*.log"))
        reset_logger()


class TestMetricsSnapshot:
    """Test metrics snapshots."""

    def test_failures_counted_per_source(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_fetch_attempt("sqlite")
        logger.record_fetch_failure("sqlite", "CircuitOpenError")

        stats = logger.get_metrics()["source_success_rate"]["sqlite"]
        assert stats["failures"] == 1
        assert stats["success_rate"] == 0.0

    def test_snapshot_does_not_alter_counters(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_fetch_attempt("json")
        snapshot = logger.get_metrics()
        snapshot["source_success_rate"]["json"]["attempts"] = 99
        snapshot["errors_by_type"]["Boom"] = 1

        assert "success_rate" not in logger.metrics["source_success_rate"]["json"]
        assert logger.metrics["source_success_rate"]["json"]["attempts"] == 1
        assert logger.metrics["errors_by_type"] == {}
