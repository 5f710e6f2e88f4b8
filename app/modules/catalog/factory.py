"""Catalog factory."""

from typing import Optional

from infrastructure.configuration import CatalogSettings, get_settings
from infrastructure.logging import get_module_logger
from modules.catalog.backends import get_backend_class, load_backends
from modules.catalog.backends.base import Catalog
from modules.catalog.domain.locales import parse_language, parse_region

logger = get_module_logger()


def get_catalog(
    backend: Optional[str] = None, settings: Optional[CatalogSettings] = None
) -> Catalog:
    """Build a catalog for the configured (or requested) backend.

    The configured default language and region are validated against the
    known code tables before the backend is opened.

    Args:
        backend: Optional backend override ("graph", "relational", "document").
            If None, uses settings.backend
        settings: Optional catalog settings. If None, uses
            get_settings().catalog

    Returns:
        A new Catalog instance; the caller owns it and should close it

    Raises:
        ValueError: If the backend is unknown
        UnknownCode: If the configured default language or region is unknown

    Examples:
        >>> catalog = get_catalog()  # Uses settings.catalog.backend
        >>> catalog = get_catalog("document")  # Force the document store
    """
    settings = settings or get_settings().catalog
    name = (backend or settings.backend).strip().lower()

    parse_language(settings.default_language)
    parse_region(settings.default_region)

    load_backends()
    backend_class = get_backend_class(name)
    catalog = backend_class.from_settings(settings)
    logger.info("catalog_created", backend=name)
    return catalog
