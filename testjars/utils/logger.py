"""testjars Structured Logging

Provides structured logging for the process harness. Command lines handed to
child processes routinely carry credentials as system properties, so every
log entry passes through a redaction processor before rendering.
Uses structlog for consistent, analyzable log output.
"""

import logging
import re
import sys
from datetime import UTC, datetime
from pathlib import Path

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SENSITIVE_FIELDS = {
    "password",
    "passwd",
    "token",
    "secret",
    "api_key",
    "client_secret",
    "credentials",
}

REDACTED = "***REDACTED***"

# -Dspring.datasource.password=hunter2 -> -Dspring.datasource.password=***REDACTED***
_SYSTEM_PROPERTY_ARG = re.compile(r"^(-D[^=]+=)(.*)$")


def _is_sensitive_name(name: str) -> bool:
    lowered = name.lower().replace("-", "_")
    return any(field in lowered for field in SENSITIVE_FIELDS)


def redact_argument(argument: str) -> str:
    """Redact the value of a ``-Dkey=value`` argument with a sensitive key.

    Args:
        argument: A single command line argument

    Returns:
        The argument, with its value replaced when the key looks sensitive

    """
    match = _SYSTEM_PROPERTY_ARG.match(argument)
    if match and _is_sensitive_name(match.group(1)[2:-1]):
        return match.group(1) + REDACTED
    return argument


def redact_sensitive_data(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor to redact sensitive data from log entries.

    Keys named like a credential are replaced outright. Lists and tuples of
    strings (argument vectors) have their ``-D`` values redacted.

    Args:
        logger: The wrapped logger instance
        method_name: The name of the method being called
        event_dict: The event dictionary to process

    Returns:
        Processed event dictionary with sensitive data redacted

    """
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_FIELDS:
            event_dict[key] = REDACTED
        elif isinstance(value, (list, tuple)):
            event_dict[key] = [
                redact_argument(item) if isinstance(item, str) else item
                for item in value
            ]
        elif isinstance(value, str):
            event_dict[key] = redact_argument(value)

    return event_dict


def add_timestamp(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor to add ISO-formatted timestamp to log entries."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def configure_logging(
    log_level: str = "INFO", json_format: bool = True, log_file: Path | None = None
) -> None:
    """Configure structlog for the harness.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Whether to output JSON format (True) or human-readable (False)
        log_file: Optional file path to write logs to

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
        >>> logger = structlog.get_logger("testjars")
        >>> logger.info("process_started", pid=4242)

    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_sensitive_data,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.root.addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically module name using __name__)

    Returns:
        Configured structlog BoundLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("port_discovered", port=8080, duration_ms=412)

    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
