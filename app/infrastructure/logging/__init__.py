"""Structured logging for the translation catalog (structlog).

Every module takes its logger from ``get_module_logger()`` and logs
snake_case events with key/value context; ``configure_logging()`` picks the
renderer for the environment.
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
    render_catalog_values,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "render_catalog_values",
]
