"""Translation catalog feature settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings

SUPPORTED_BACKENDS = ("graph", "relational", "document")


class CatalogSettings(FeatureSettings):
    """Configuration for catalog storage and locale defaults.

    Environment Variables:
        CATALOG_BACKEND: Storage backend ('graph', 'relational' or 'document')
        CATALOG_DATABASE_URL: SQLAlchemy URL used by the relational backend
        CATALOG_GRAPH_URL: SQLAlchemy URL backing the graph backend's object store
        CATALOG_DOCUMENT_ROOT: Directory holding the document backend's files
        CATALOG_DEFAULT_LANGUAGE: Fallback language code for absent values
        CATALOG_DEFAULT_REGION: Default territory of the catalog
        CATALOG_SQL_ECHO: Echo emitted SQL statements (debugging only)

    Example:
        ```python
        from infrastructure.configuration import get_settings

        settings = get_settings()

        if settings.catalog.backend == "document":
            root = settings.catalog.document_root
        ```
    """

    backend: str = Field(
        default="relational",
        alias="CATALOG_BACKEND",
        description="Storage backend: 'graph', 'relational' or 'document'",
    )
    database_url: str = Field(
        default="sqlite://",
        alias="CATALOG_DATABASE_URL",
        description="SQLAlchemy database URL for the relational backend",
    )
    graph_url: str = Field(
        default="sqlite://",
        alias="CATALOG_GRAPH_URL",
        description="SQLAlchemy database URL persisting the graph backend",
    )
    document_root: str = Field(
        default="./catalog-data",
        alias="CATALOG_DOCUMENT_ROOT",
        description="Root directory for the document backend",
    )
    default_language: str = Field(
        default="en",
        alias="CATALOG_DEFAULT_LANGUAGE",
        description="Language applied when a stored language is absent",
    )
    default_region: str = Field(
        default="US",
        alias="CATALOG_DEFAULT_REGION",
        description="Default territory of the catalog, validated when a catalog is built",
    )
    sql_echo: bool = Field(
        default=False,
        alias="CATALOG_SQL_ECHO",
        description="Log every SQL statement emitted by the SQL backends",
    )

    @field_validator("backend", mode="before")
    @classmethod
    def _validate_backend(cls, v: str) -> str:
        """Normalize and validate CATALOG_BACKEND."""
        name = str(v or "").strip().lower()
        if name not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"CATALOG_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}; got '{v}'"
            )
        return name

    @field_validator("default_language", "default_region", mode="before")
    @classmethod
    def _strip_code(cls, v: str) -> str:
        if v is None:
            raise ValueError("locale defaults cannot be empty")
        value = str(v).strip()
        if not value:
            raise ValueError("locale defaults cannot be empty")
        return value
