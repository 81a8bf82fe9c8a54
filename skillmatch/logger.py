"""
Structured logging for SkillMatch.

Messages go to stderr (stdout is kept for command output) and, when a log
directory is configured, to a dated file. Keyword context is appended as
JSON. The logger also counts match runs and repository fetches.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Logger with JSON context and match/fetch counters.
    """

    def __init__(
        self,
        name: str = "skillmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Console level name (DEBUG, INFO, WARNING, ERROR)
            log_dir: Directory for log files (default: logs/)
            enable_file: Also write every record to skillmatch_YYYYMMDD.log
            enable_console: Write records at `level` and above to stderr
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_level(level))
        self.logger.handlers.clear()

        self.metrics = {
            "match_runs": 0,
            "candidates_scored": 0,
            "candidates_skipped": 0,
            "errors_by_type": {},
            "source_success_rate": {},
        }

        if enable_console:
            self.logger.addHandler(
                _handler(logging.StreamHandler(sys.stderr), _level(level), CONSOLE_FORMAT)
            )

        if enable_file:
            log_dir = log_dir or Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"skillmatch_{datetime.now():%Y%m%d}.log"
            # The file keeps everything regardless of console level
            self.logger.addHandler(
                _handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT)
            )

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    def set_level(self, level: str):
        """Change the console level after creation (e.g. once .env is loaded)."""
        self.logger.setLevel(_level(level))
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(_level(level))

    # Metrics

    def _source(self, source: str) -> dict:
        return self.metrics["source_success_rate"].setdefault(
            source, {"attempts": 0, "successes": 0, "failures": 0}
        )

    def record_match_run(self, scored: int):
        """Count one ranking computation and the candidates it scored."""
        self.metrics["match_runs"] += 1
        self.metrics["candidates_scored"] += scored

    def record_candidates_skipped(self, count: int = 1):
        """Count user documents dropped as malformed before scoring."""
        self.metrics["candidates_skipped"] += count

    def record_fetch_attempt(self, source: str):
        """Count a profile fetch from a source ("json" or "sqlite")."""
        self._source(source)["attempts"] += 1

    def record_fetch_success(self, source: str):
        self._source(source)["successes"] += 1

    def record_fetch_failure(self, source: str, error_type: str):
        self._source(source)["failures"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Snapshot of the counters with a success rate per source."""
        sources = {}
        for source, stats in self.metrics["source_success_rate"].items():
            sources[source] = dict(stats)
            if stats["attempts"]:
                sources[source]["success_rate"] = round(stats["successes"] / stats["attempts"], 3)
        return {
            **self.metrics,
            "errors_by_type": dict(self.metrics["errors_by_type"]),
            "source_success_rate": sources,
        }

    def log_metrics_summary(self):
        metrics = self.get_metrics()
        self.info("=== Matching Session Metrics ===")
        self.info(f"Match runs: {metrics['match_runs']}")
        self.info(
            f"Candidates: {metrics['candidates_scored']} scored, "
            f"{metrics['candidates_skipped']} skipped"
        )
        for source, stats in metrics["source_success_rate"].items():
            rate = stats.get("success_rate", 0) * 100
            self.info(f"Source {source}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")
        for error_type, count in metrics["errors_by_type"].items():
            self.info(f"Error {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "skillmatch", level: Optional[str] = None, **kwargs) -> StructuredLogger:
    """
    Return the process-wide logger, creating it on first use.

    Level and log directory default to SKILLMATCH_LOG_LEVEL and
    SKILLMATCH_LOG_DIR. File logging is off unless a log directory is set.
    Arguments are ignored once the logger exists.
    """
    global _global_logger

    if _global_logger is None:
        level = level or os.getenv("SKILLMATCH_LOG_LEVEL", "INFO")
        if "log_dir" not in kwargs and "enable_file" not in kwargs:
            log_dir = os.getenv("SKILLMATCH_LOG_DIR")
            kwargs["enable_file"] = bool(log_dir)
            if log_dir:
                kwargs["log_dir"] = Path(log_dir)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Drop the process-wide logger so the next get_logger builds a fresh one."""
    global _global_logger
    _global_logger = None
