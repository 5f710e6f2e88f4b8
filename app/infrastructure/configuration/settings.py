"""Top-level settings for the translation catalog."""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.features import CatalogSettings


class Settings(BaseSettings):
    """Process-wide configuration.

    Environment Variables:
        PREFIX: Deployment prefix; empty in production (e.g. ``dev-``)
        LOG_LEVEL: Standard logging level name

    Catalog options live under ``settings.catalog`` and read the
    ``CATALOG_*`` variables (see CatalogSettings).

    Example:
        ```python
        from infrastructure.configuration import get_settings

        settings = get_settings()
        with get_catalog(settings=settings.catalog) as catalog:
            ...
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    catalog: CatalogSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        # nested settings read their own environment variables
        if "catalog" not in kwargs:
            kwargs["catalog"] = CatalogSettings()
        super().__init__(**kwargs)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return level

    @property
    def is_production(self) -> bool:
        return not self.PREFIX

    @property
    def environment(self) -> str:
        """``production``, or the prefix without separators (``dev-`` -> ``dev``)."""
        if self.is_production:
            return "production"
        return self.PREFIX.strip("-_") or "dev"
