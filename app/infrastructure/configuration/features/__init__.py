"""Feature settings __init__ - exports all feature settings."""

from infrastructure.configuration.features.catalog import (
    CatalogSettings,
    SUPPORTED_BACKENDS,
)

__all__ = [
    "CatalogSettings",
    "SUPPORTED_BACKENDS",
]
