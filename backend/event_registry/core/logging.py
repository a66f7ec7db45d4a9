"""
Structured logging configuration using structlog.

Every record carries the service name and environment; request IDs bound by
the middleware are merged in from contextvars. Production renders JSON lines,
anything else a colored console.
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from event_registry.core.config import Settings, get_settings

# Third-party loggers that drown out registration events at INFO
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def _service_fields(settings: Settings) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", settings.APP_NAME)
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict

    return add_service


def _renderer(settings: Settings) -> Processor:
    if settings.ENVIRONMENT == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging() -> None:
    settings = get_settings()
    production = settings.ENVIRONMENT == "production"

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _service_fields(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if production:
        # console renderer prints tracebacks itself
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # records from uvicorn and sqlalchemy go through the same chain
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
        )
    )

    root_logger = logging.getLogger()
    # uvicorn --reload re-runs the lifespan; avoid stacking handlers
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
