"""Shared fixtures for the catalog test suite."""

import pytest

from infrastructure.configuration import CatalogSettings, get_settings
from modules.catalog.backends._sql import create_catalog_engine
from modules.catalog.backends.document import DocumentCatalog
from modules.catalog.backends.graph import GraphCatalog
from modules.catalog.backends.relational import RelationalCatalog

BACKENDS = ("graph", "relational", "document")


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reload settings from the (possibly monkeypatched) environment per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog_settings(tmp_path):
    """CatalogSettings pointing every backend at throwaway storage."""
    return CatalogSettings(
        CATALOG_BACKEND="relational",
        CATALOG_DATABASE_URL="sqlite://",
        CATALOG_GRAPH_URL="sqlite://",
        CATALOG_DOCUMENT_ROOT=str(tmp_path / "documents"),
    )


@pytest.fixture
def relational_catalog():
    catalog = RelationalCatalog(create_catalog_engine("sqlite://"))
    yield catalog
    catalog.close()


@pytest.fixture
def graph_catalog():
    catalog = GraphCatalog(create_catalog_engine("sqlite://"))
    yield catalog
    catalog.close()


@pytest.fixture
def document_catalog(tmp_path):
    catalog = DocumentCatalog(tmp_path)
    yield catalog
    catalog.close()


@pytest.fixture(params=BACKENDS)
def catalog(request):
    """Each backend in turn, empty."""
    return request.getfixturevalue(f"{request.param}_catalog")
