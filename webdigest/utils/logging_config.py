"""
Logging configuration for WebDigest.

Centralized ``dictConfig`` setup with console/file handlers, a structured
logger that appends JSON context to messages, and the event sinks the
summarization pipeline writes to. The pipeline never touches global logging
state directly: it is handed a :class:`~webdigest.types.PipelineLogger`
(usually a :class:`LoggingEventSink`).
"""

import json
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..types.types import PipelineEvent

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class StructuredLogger:
    """Logger wrapper that appends keyword context as JSON."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with structured data."""
        self.log(logging.INFO, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with structured data."""
        self.log(logging.ERROR, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with structured data."""
        self.log(logging.WARNING, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message with structured data."""
        self.log(logging.DEBUG, message, **kwargs)

    def log(self, level: int, message: str, **kwargs: Any) -> None:
        if kwargs:
            extra = {"structured_data": kwargs}
            self.logger.log(level, f"{message} | {json.dumps(kwargs, default=str)}", extra=extra)
        else:
            self.logger.log(level, message)


class LoggingEventSink:
    """Forwards pipeline events to a :class:`StructuredLogger`."""

    def __init__(self, name: str = "webdigest.pipeline"):
        self.logger = StructuredLogger(name)

    def log(self, event: PipelineEvent) -> None:
        level = _LEVELS.get(event.level, logging.INFO)
        self.logger.log(level, event.message, event=event.name, **event.data)


class RecordingLogger:
    """Keeps pipeline events in memory, optionally forwarding them."""

    def __init__(self, forward_to: Optional[Any] = None):
        self.events: List[PipelineEvent] = []
        self._forward_to = forward_to

    def log(self, event: PipelineEvent) -> None:
        self.events.append(event)
        if self._forward_to is not None:
            self._forward_to.log(event)

    def named(self, name: str) -> List[PipelineEvent]:
        """Return recorded events with the given name, in order."""
        return [e for e in self.events if e.name == name]


class NullLogger:
    """Discards every event."""

    def log(self, event: PipelineEvent) -> None:
        pass


class WebDigestLogger:
    """Centralized logger configuration for WebDigest."""

    DEFAULT_CONFIG: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {"format": "%(levelname)s - %(name)s - %(message)s"},
            "json": {
                "format": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "simple",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "detailed",
                "filename": "logs/webdigest.log",
                "maxBytes": 10 * 1024 * 1024,  # 10MB
                "backupCount": 5,
            },
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "webdigest": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }

    _configured = False

    @classmethod
    def configure(
        cls,
        level: str = "INFO",
        log_file: Optional[str] = None,
        json_format: bool = False,
        force: bool = False,
    ) -> None:
        """
        Configure logging for WebDigest.

        Args:
            level: Level for the ``webdigest`` logger hierarchy
            log_file: Path to log file (if None, only console logging)
            json_format: Whether to use JSON format for logs
            force: Reconfigure even if already configured
        """
        if cls._configured and not force:
            return

        config = json.loads(json.dumps(cls.DEFAULT_CONFIG))
        config["loggers"]["webdigest"]["level"] = level.upper()

        if log_file:
            config["handlers"]["file"]["filename"] = log_file
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            config["loggers"]["webdigest"]["handlers"].append("file")
        else:
            del config["handlers"]["file"]

        if json_format:
            for handler_config in config["handlers"].values():
                handler_config["formatter"] = "json"

        logging.config.dictConfig(config)
        cls._configured = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger, configuring defaults on first use."""
        if not cls._configured:
            cls.configure()
        return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """
    Convenience function to get a configured logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return WebDigestLogger.get_logger(name)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """Setup logging configuration (reconfigures if called again)."""
    WebDigestLogger.configure(level=level, log_file=log_file, json_format=json_format, force=True)
