"""Infrastructure modules for the translation catalog.

Centralized infrastructure components:
- configuration: Settings management (Settings, CatalogSettings, get_settings)
- logging: Structured logging (configure_logging, get_module_logger)
"""

from infrastructure.configuration import get_settings
from infrastructure.logging import get_module_logger

__all__ = [
    "get_settings",
    "get_module_logger",
]
