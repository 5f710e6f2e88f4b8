"""Document (JSON file) catalog backend."""

from modules.catalog.backends.document.catalog import DocumentCatalog
from modules.catalog.backends.document.migrations import CURRENT_VERSION, migrate

__all__ = ["DocumentCatalog", "CURRENT_VERSION", "migrate"]
