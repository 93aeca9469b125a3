"""
Logging for the MyWaifuList client, using structlog on top of stdlib logging.

The client is a library: every logger it creates is a structlog wrapper
around ``logging.getLogger(name)``, and the package loggers carry a
``NullHandler``. Nothing is printed unless the application configures
logging, either its own way or with :func:`setup_logging`.
"""

import logging
import time
from typing import Any, Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler

from config import get_settings

# Top-level packages whose loggers stay silent until the application opts in
LIBRARY_LOGGERS = ("clients", "config", "domain", "utils")

for _name in LIBRARY_LOGGERS:
    logging.getLogger(_name).addHandler(logging.NullHandler())


def get_logger(name: str, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger backed by the stdlib logger ``name``.

    Processors come from the active structlog configuration, so
    :func:`setup_logging` (or the application's own ``structlog.configure``)
    takes effect on loggers created before it ran.

    Args:
        name: Logger name (usually __name__)
        **kwargs: Additional context to bind to logger
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    if kwargs:
        logger = logger.bind(**kwargs)

    return logger


def setup_logging(log_level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Opt-in logging setup for applications and scripts using the client.

    Installs a rich console handler on the root logger and routes structlog
    events through it. Applications with their own logging config should
    skip this and only set the level of the ``clients`` logger.

    Args:
        log_level: Override LOG_LEVEL from settings
        json_logs: Render JSON instead of console output
            (default: JSON outside development)
    """
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    if json_logs is None:
        json_logs = not settings.is_development

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_path=settings.debug,
                markup=False,
            )
        ],
        force=True,
    )

    # The transport only shows connection details when debugging
    aiohttp_level = logging.DEBUG if settings.debug and level == "DEBUG" else logging.WARNING
    logging.getLogger("aiohttp.client").setLevel(aiohttp_level)
    logging.getLogger("aiohttp.internal").setLevel(aiohttp_level)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    get_logger(__name__).info(
        "Logging configured",
        log_level=level,
        json_logs=json_logs,
        environment=settings.app_env,
    )


class LogTimer:
    """Times one request and logs how it ended."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **extra_context: Any
    ):
        self.logger = logger
        self.operation = operation
        self.extra_context = extra_context
        self.start_time: Optional[float] = None

    def add_context(self, **extra_context: Any) -> None:
        """Attach values learned while the operation runs (e.g. a status code)."""
        self.extra_context.update(extra_context)

    def __enter__(self) -> "LogTimer":
        self.start_time = time.perf_counter()
        self.logger.debug(f"[START] {self.operation}", **self.extra_context)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        duration = time.perf_counter() - self.start_time if self.start_time else 0

        if exc_type is not None:
            self.logger.warning(
                f"[FAILED] {self.operation}",
                duration_seconds=round(duration, 3),
                error=str(exc_val),
                error_type=exc_type.__name__,
                **self.extra_context
            )
        else:
            self.logger.debug(
                f"[COMPLETE] {self.operation}",
                duration_seconds=round(duration, 3),
                **self.extra_context
            )
