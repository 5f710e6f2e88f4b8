"""Configuration for the translation catalog (pydantic-settings).

Values come from the environment or a ``.env`` file. ``get_settings()``
returns one cached Settings per process; tests that change the environment
call ``get_settings.cache_clear()``.

Example:
    ```python
    from infrastructure.configuration import get_settings

    catalog_settings = get_settings().catalog
    catalog_settings.backend  # "relational"
    ```
"""

from functools import lru_cache

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.features import CatalogSettings


@lru_cache
def get_settings() -> Settings:
    """Get application-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process.
    Tests can call ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


__all__ = ["Settings", "CatalogSettings", "get_settings"]
