"""Structlog configuration for the translation catalog.

Catalog events carry UUIDs, locale enums and filesystem paths as context.
``render_catalog_values`` turns those into plain strings before rendering so
console and JSON output show ``"pt-BR"`` rather than ``<RegionCode.BR: 'BR'>``.

Usage:
    from infrastructure.logging import configure_logging, get_module_logger

    configure_logging()

    logger = get_module_logger()
    logger.info("expression_inserted", expression_id=expression.id)
"""

import inspect
import logging
import sys
from enum import Enum
from pathlib import PurePath
from typing import Any, MutableMapping, Optional
from uuid import UUID

import structlog
from structlog.stdlib import BoundLogger

from infrastructure.configuration import get_settings

SERVICE_NAME = "translation-catalog"


def _is_test_environment() -> bool:
    """True when running under pytest."""
    return "pytest" in sys.modules


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, PurePath)):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return value


def render_catalog_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor converting catalog value types to JSON-friendly strings."""
    for key, value in event_dict.items():
        event_dict[key] = _plain(value)
    return event_dict


def _environment_processor(environment: str):
    def add_environment(
        _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_environment


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structured logging for the catalog.

    Args:
        log_level: Override for settings.LOG_LEVEL.
        is_production: Override for settings.is_production. Production
            renders JSON lines, anything else a colored console.

    Returns:
        Configured logger instance
    """
    if _is_test_environment():
        logging.root.setLevel(logging.CRITICAL + 1)

        # bound loggers keep working, nothing passes the root level
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                render_catalog_values,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(format="%(message)s", level=logging.CRITICAL + 1, force=True)
        return structlog.stdlib.get_logger()

    settings = get_settings()
    production = settings.is_production if is_production is None else is_production
    environment = "production" if production else settings.environment
    if not production and environment == "production":
        environment = "dev"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _environment_processor(environment),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        render_catalog_values,
        structlog.processors.JSONRenderer()
        if production
        else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = (log_level or settings.LOG_LEVEL).upper()
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))

    return structlog.stdlib.get_logger()


logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Logger bound to the calling module.

    ``component`` is the last dotted segment of the module name, so loggers in
    ``modules.catalog.backends.relational`` log ``component="relational"``.
    Catalog modules also bind ``backend`` when they live under
    ``modules.catalog.backends``.
    """
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module = inspect.getmodule(caller) if caller is not None else None
    if module is None:
        return logger.bind(component="unknown")

    name = module.__name__
    context = {"component": name.rsplit(".", 1)[-1], "module_path": name}
    parts = name.split(".")
    if parts[:3] == ["modules", "catalog", "backends"] and len(parts) > 3:
        context["backend"] = parts[3]
    return logger.bind(**context)
