"""
MT940 Engine - Structured Logging

JSON log formatting and logging setup for services embedding the parser.
Library modules only call ``logging.getLogger(__name__)``; configuring
handlers is left to the application through ``configure_logging``.
"""

import json
import logging
import logging.config
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


@dataclass
class LogEvent:
    """Structured log event."""

    timestamp: float
    level: str
    logger: str
    message: str
    component: str
    exception: Optional[BaseException] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "timestamp": self.timestamp,
            "iso_timestamp": datetime.fromtimestamp(self.timestamp, timezone.utc).isoformat(),
            "level": self.level,
            "logger": self.logger,
            "message": self.message,
            "component": self.component,
        }

        if self.metadata:
            result["metadata"] = self.metadata

        if self.exception:
            result["exception"] = {
                "type": type(self.exception).__name__,
                "message": str(self.exception),
                "traceback": traceback.format_exception(
                    type(self.exception), self.exception, self.exception.__traceback__
                ),
            }

        return result

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


class StructuredFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        metadata = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key != "component"
        }

        event = LogEvent(
            timestamp=record.created,
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            component=getattr(record, "component", record.name.split(".")[-1]),
            exception=record.exc_info[1] if record.exc_info else None,
            metadata=metadata,
        )
        return event.to_json()


def build_logging_config(level: str = "INFO", json_format: bool = False) -> Dict[str, Any]:
    """Build a ``logging.config.dictConfig`` mapping for the engine."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {"()": StructuredFormatter},
            "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "structured" if json_format else "simple",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "mt940_engine": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure the ``mt940_engine`` logger hierarchy."""
    logging.config.dictConfig(build_logging_config(level.upper(), json_format))


def configure_from_config(config) -> None:
    """Configure logging from a :class:`~mt940_engine.core.config.Config`."""
    level = "DEBUG" if config.debug else config.log_level.value
    configure_logging(level, config.json_logs)
