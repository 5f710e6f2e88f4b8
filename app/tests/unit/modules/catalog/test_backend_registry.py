"""Unit tests for the backend registry and the catalog factory."""

import pytest

from modules.catalog.backends import (
    available_backends,
    get_backend_class,
    load_backends,
    register_backend,
    unregister_backend,
)
from modules.catalog.backends.base import Catalog
from modules.catalog.backends.document import DocumentCatalog
from modules.catalog.backends.graph import GraphCatalog
from modules.catalog.backends.relational import RelationalCatalog
from modules.catalog.domain.errors import UnknownCode
from modules.catalog.domain.locales import LanguageCode, default_language
from modules.catalog.factory import get_catalog


class UnregisteredCatalog(Catalog):
    """Abstract stand-in; registration never instantiates."""


@pytest.fixture
def scratch_backend():
    yield "scratch"
    unregister_backend("scratch")


@pytest.mark.unit
class TestRegisterBackend:
    def test_builtin_backends_discovered(self):
        assert load_backends() == ["document", "graph", "relational"]
        assert get_backend_class("graph") is GraphCatalog

    def test_register_sets_name(self, scratch_backend):
        register_backend(scratch_backend)(UnregisteredCatalog)
        assert get_backend_class(scratch_backend) is UnregisteredCatalog
        assert UnregisteredCatalog.name == scratch_backend
        assert scratch_backend in available_backends()

    def test_rejects_non_catalog(self):
        with pytest.raises(TypeError):
            register_backend("not-a-catalog")(dict)

    def test_rejects_non_class(self):
        with pytest.raises(TypeError):
            register_backend("function")(lambda: None)

    def test_rejects_duplicate_name(self):
        load_backends()
        with pytest.raises(RuntimeError):
            register_backend("relational")(UnregisteredCatalog)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_backend_class("nosuch")


@pytest.mark.unit
class TestGetCatalog:
    @pytest.mark.parametrize(
        "backend,expected",
        [
            ("relational", RelationalCatalog),
            ("graph", GraphCatalog),
            ("document", DocumentCatalog),
        ],
    )
    def test_builds_requested_backend(self, catalog_settings, backend, expected):
        with get_catalog(backend, settings=catalog_settings) as catalog:
            assert isinstance(catalog, expected)

    def test_uses_configured_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CATALOG_BACKEND", "document")
        monkeypatch.setenv("CATALOG_DOCUMENT_ROOT", str(tmp_path))
        with get_catalog() as catalog:
            assert isinstance(catalog, DocumentCatalog)
            assert catalog.root == tmp_path / "Catalog"

    def test_unknown_backend_raises(self, catalog_settings):
        with pytest.raises(ValueError):
            get_catalog("nosuch", settings=catalog_settings)

    def test_unknown_default_language_rejected(self, catalog_settings):
        settings = catalog_settings.model_copy(update={"default_language": "xx"})
        with pytest.raises(UnknownCode):
            get_catalog("relational", settings=settings)

    @pytest.mark.parametrize("backend", ["relational", "graph", "document"])
    def test_catalog_keeps_settings_default_language(self, catalog_settings, backend):
        settings = catalog_settings.model_copy(update={"default_language": "fr"})
        with get_catalog(backend, settings=settings) as catalog:
            assert catalog.default_language is LanguageCode.FR
            # the process-wide setting is untouched
            assert default_language() is LanguageCode.EN
