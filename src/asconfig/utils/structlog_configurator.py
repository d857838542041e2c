"""Structlog-based logging configuration for asconfig.

Both structlog loggers and the stdlib loggers used throughout the package are
rendered by the same processor chain. Output goes to stderr so that commands
printing an artifact to stdout (``asconfig generate --dry-run``) stay pipeable.
"""

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import structlog

from asconfig.config.models import AsconfigConfig


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _use_json(config: AsconfigConfig) -> bool:
    """JSON output if configured, or forced through ASCONFIG_JSON_LOGS."""
    if os.environ.get("ASCONFIG_JSON_LOGS", "false").lower() == "true":
        return True
    return config.logging.json_logs


def _shared_processors(config: AsconfigConfig) -> list:
    """Processors applied to structlog and stdlib log entries alike."""
    processors = [
        structlog.contextvars.merge_contextvars,
        _add_static_context({"service": "asconfig"}),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    # Add caller info if requested
    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    return processors


def _renderer(config: AsconfigConfig) -> Callable:
    if _use_json(config):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _configure_handlers(config: AsconfigConfig, shared_processors: list) -> None:
    """Route stdlib logging to stderr through the structlog renderer."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, config.logging.level.upper(), logging.WARNING)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(log_level)
    stderr_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(config),
            ],
        )
    )
    root_logger.addHandler(stderr_handler)


def configure_structlog(config: AsconfigConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The AsconfigConfig instance containing logging settings.
    """
    shared_processors = _shared_processors(config)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.logging.level.upper(), logging.WARNING)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_handlers(config, shared_processors)

    logger = structlog.get_logger(__name__)
    logger.debug(
        "Structured logging configured",
        log_level=config.logging.level,
        json_output=_use_json(config),
    )
