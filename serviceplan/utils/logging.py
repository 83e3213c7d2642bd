"""
ServicePlan Structured Logging
Loguru sink setup and a thin wrapper that binds per-call context.
"""
import sys
from typing import Any, Dict, Optional

from loguru import logger

from serviceplan.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"


class StructuredLogger:
    """Binds request context (request id, mode, reference) onto loguru records."""

    def __init__(self, level: Optional[str] = None, service: str = "serviceplan-branding"):
        """
        Configure the loguru sink.

        Args:
            level: Minimum level; defaults to SERVICEPLAN_LOG_LEVEL
            service: Name bound onto every record
        """
        self.level = level or config.LOG_LEVEL
        self._logger = logger.bind(service=service)
        self._configure_sink()

    def _configure_sink(self):
        """Replace loguru's default stderr handler with the stdout sink."""
        logger.remove()
        logger.add(sys.stdout, format=LOG_FORMAT, level=self.level,
                   serialize=config.LOG_JSON)

    def _log(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        """Emit at ``level``, attributing the record to the caller's frame."""
        bound = self._logger.bind(**extra) if extra else self._logger
        bound.opt(depth=2).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with optional extra context."""
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with optional extra context."""
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log error message with optional extra context."""
        self._log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with optional extra context."""
        self._log("DEBUG", message, extra)


_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create the process-wide logger."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
