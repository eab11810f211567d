"""Structlog configuration and logger setup.

Importing evbus never configures logging. Module loggers are lazy structlog
proxies over stdlib loggers named after the module, so they pick up
whatever structlog and ``logging`` configuration the host application has
in place when a record is emitted.

Applications without their own setup can opt in:

    from evbus.logging import configure_logging

    configure_logging(log_level="DEBUG")
"""

import inspect
import logging
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from evbus.configuration import settings

LIBRARY_LOGGER_NAME = "evbus"

# Library convention: stay silent unless the host adds handlers
logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structured logging for an application using evbus.

    Console rendering in development, JSON in production. Event context
    bound while handlers run (``event_type``, ``correlation_id``) is merged
    into every record.

    Args:
        log_level: Optional override for log level (DEBUG, INFO, WARNING, etc).
            Defaults to settings.LOG_LEVEL if not provided.
        is_production: Optional override for production mode. Defaults to
            settings.is_production. Controls JSON vs console output.

    Returns:
        Configured logger instance
    """
    prod_mode = is_production if is_production is not None else settings.is_production

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.THREAD_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if not prod_mode:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    effective_log_level = log_level or settings.LOG_LEVEL
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, effective_log_level.upper(), logging.INFO),
    )

    return structlog.stdlib.get_logger()


def get_module_logger() -> BoundLogger:
    """Get a logger for the calling module with full path context.

    Binds `component` (last dotted segment) and `module_path` of the
    calling module. The logger is assembled on first use, so configuration
    applied after import still takes effect.

    Example:
        # In evbus/events/registry.py
        logger = get_module_logger()
        # context: {"component": "registry", "module_path": "evbus.events.registry"}
    """
    module_name = None
    current_frame = inspect.currentframe()
    frame = current_frame.f_back if current_frame is not None else None
    if frame is not None:
        module = inspect.getmodule(frame)
        if module:
            module_name = module.__name__

    if module_name is None:
        return structlog.wrap_logger(
            logging.getLogger(LIBRARY_LOGGER_NAME),
            wrapper_class=structlog.stdlib.BoundLogger,
            component="unknown",
        )

    return structlog.wrap_logger(
        logging.getLogger(module_name),
        wrapper_class=structlog.stdlib.BoundLogger,
        component=module_name.split(".")[-1],
        module_path=module_name,
    )
