"""Base class for settings sections read from the environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureSettings(BaseSettings):
    """Settings section with aliased environment variables.

    Fields declare their variable through ``alias``; ``populate_by_name``
    lets tests build sections with the Python field names instead.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )
