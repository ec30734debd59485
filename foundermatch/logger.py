"""
Structured logging system for FounderMatch.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring ranking requests and store health.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for ranking requests and profile store calls.
    """

    def __init__(
        self,
        name: str = "foundermatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        # Metrics tracking
        self.metrics = {
            "store_calls": 0,
            "rank_requests": 0,
            "rank_failures": 0,
            "empty_results": 0,
            "candidates_scored": 0,
            "matches_persisted": 0,
            "errors_by_type": {},
            "store_success_rate": {},
        }

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"foundermatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_store_call(self, store: str):
        """Record a read against a profile store backend."""
        self.metrics["store_calls"] += 1
        if store not in self.metrics["store_success_rate"]:
            self.metrics["store_success_rate"][store] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["store_success_rate"][store]["attempts"] += 1

    def record_store_success(self, store: str):
        """Record a successful store read."""
        if store in self.metrics["store_success_rate"]:
            self.metrics["store_success_rate"][store]["successes"] += 1

    def record_rank_request(self):
        """Increment ranking request counter."""
        self.metrics["rank_requests"] += 1

    def record_rank_result(self, candidates_scored: int, returned: int):
        """Record how many candidates a ranking scored and returned."""
        self.metrics["candidates_scored"] += candidates_scored
        if returned == 0:
            self.metrics["empty_results"] += 1

    def record_rank_failure(self, error_type: str):
        """Record a failed ranking request."""
        self.metrics["rank_failures"] += 1

        # Track error types
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_matches_persisted(self, count: int):
        """Record match rows written to the store."""
        self.metrics["matches_persisted"] += count

    def get_metrics(self) -> dict:
        """Return current metrics."""
        # Calculate success rates
        metrics_copy = self.metrics.copy()
        for store, stats in metrics_copy["store_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_requests = metrics["rank_requests"]
        failures = metrics["rank_failures"]
        overall_rate = 0
        if total_requests > 0:
            overall_rate = round((total_requests - failures) / total_requests * 100, 1)

        self.info("=== Matching Session Metrics ===")
        self.info(f"Store Calls: {metrics['store_calls']}")
        self.info(f"Rank Requests: {total_requests - failures}/{total_requests} ({overall_rate}% success)")
        self.info(f"Candidates Scored: {metrics['candidates_scored']}")
        self.info(f"Empty Results: {metrics['empty_results']}")
        self.info(f"Matches Persisted: {metrics['matches_persisted']}")

        if metrics["store_success_rate"]:
            self.info("Store Success Rates:")
            for store, stats in metrics["store_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {store}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "foundermatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
