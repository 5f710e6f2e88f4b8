"""Unit tests for the expression importer."""

import pytest
from uuid import uuid4

from modules.catalog.domain.errors import NotFound
from modules.catalog.domain.locales import LanguageCode, RegionCode
from modules.catalog.domain.models import is_zero_uuid
from modules.catalog.importer import (
    ExpressionImporter,
    ImportOperationKind,
    expressions_from_mapping,
)
from tests.factories.catalog import make_expression, make_project, make_translation


def kinds(operations):
    return [operation.kind for operation in operations]


@pytest.mark.unit
class TestExpressionsFromMapping:
    def test_one_expression_per_key(self):
        expressions = expressions_from_mapping(
            {"greeting": "Bonjour", "farewell": "Au revoir"}, LanguageCode.FR
        )
        assert [e.key for e in expressions] == ["greeting", "farewell"]
        for expression in expressions:
            assert is_zero_uuid(expression.id)
            assert expression.name == expression.key
            assert len(expression.translations) == 1
            assert expression.translations[0].language is LanguageCode.FR
            assert expression.default_value == ""

    def test_default_locale_sets_default_value(self):
        (expression,) = expressions_from_mapping({"greeting": "Hello"}, "en")
        assert expression.default_value == "Hello"
        assert expression.default_language is LanguageCode.EN

    def test_regional_locale_is_not_default(self):
        (expression,) = expressions_from_mapping(
            {"greeting": "Hello"}, "en", region="GB"
        )
        assert expression.default_value == ""
        assert expression.translations[0].region is RegionCode.GB

    def test_explicit_default_language(self):
        (expression,) = expressions_from_mapping(
            {"greeting": "Hallo"}, "de", default_language="de"
        )
        assert expression.default_language is LanguageCode.DE
        assert expression.default_value == "Hallo"


@pytest.mark.unit
class TestExpressionImporter:
    def test_creates_new_expressions(self, relational_catalog):
        expressions = expressions_from_mapping(
            {"greeting": "Bonjour", "farewell": "Au revoir"}, LanguageCode.FR
        )
        operations = list(ExpressionImporter(relational_catalog).import_expressions(expressions))

        assert kinds(operations) == [ImportOperationKind.CREATED_EXPRESSION] * 2
        # processed in name order
        assert [op.entity.key for op in operations] == ["farewell", "greeting"]
        assert [e.key for e in relational_catalog.expressions()] == ["farewell", "greeting"]

    def test_merges_into_existing_key(self, relational_catalog):
        relational_catalog.insert_expression(
            make_expression(
                key="greeting",
                translations=[make_translation("Hello", LanguageCode.EN)],
            )
        )
        incoming = expressions_from_mapping({"greeting": "Bonjour"}, LanguageCode.FR)

        operations = list(ExpressionImporter(relational_catalog).import_expressions(incoming))

        assert kinds(operations) == [
            ImportOperationKind.SKIPPED_EXPRESSION,
            ImportOperationKind.CREATED_TRANSLATION,
        ]
        (stored,) = relational_catalog.expressions_by_key("greeting")
        assert [t.locale_identifier for t in stored.translations] == ["en", "fr"]

    def test_skips_existing_locale(self, relational_catalog):
        relational_catalog.insert_expression(
            make_expression(
                key="greeting",
                translations=[make_translation("Bonjour", LanguageCode.FR)],
            )
        )
        incoming = expressions_from_mapping({"greeting": "Salut"}, LanguageCode.FR)

        operations = list(ExpressionImporter(relational_catalog).import_expressions(incoming))

        assert kinds(operations) == [
            ImportOperationKind.SKIPPED_EXPRESSION,
            ImportOperationKind.SKIPPED_TRANSLATION,
        ]
        (stored,) = relational_catalog.expressions_by_key("greeting")
        assert [t.value for t in stored.translations] == ["Bonjour"]

    def test_links_to_project(self, relational_catalog):
        project = relational_catalog.insert_project(make_project(name="App"))
        incoming = expressions_from_mapping({"greeting": "Hello"}, LanguageCode.EN)

        list(ExpressionImporter(relational_catalog).import_expressions(incoming, project.id))

        assert [e.key for e in relational_catalog.expressions_in_project(project.id)] == [
            "greeting"
        ]

    def test_unknown_project_raises_on_first_iteration(self, relational_catalog):
        operations = ExpressionImporter(relational_catalog).import_expressions([], uuid4())
        with pytest.raises(NotFound):
            next(operations)

    def test_failures_are_reported(self, relational_catalog):
        existing = relational_catalog.insert_expression(make_expression(key="taken"))
        duplicate = make_expression(key="other", id=existing.id)

        (operation,) = list(
            ExpressionImporter(relational_catalog).import_expressions([duplicate])
        )

        assert operation.kind is ImportOperationKind.FAILED_EXPRESSION
        assert operation.failed
        assert "other" in operation.description

    def test_link_failure_follows_created_expression(self, relational_catalog):
        project = relational_catalog.insert_project(make_project(name="App"))
        incoming = expressions_from_mapping({"greeting": "Hello"}, LanguageCode.EN)
        operations = ExpressionImporter(relational_catalog).import_expressions(
            incoming, project.id
        )

        created = next(operations)
        relational_catalog.delete_project(project.id)
        rest = list(operations)

        assert created.kind is ImportOperationKind.CREATED_EXPRESSION
        assert kinds(rest) == [ImportOperationKind.FAILED_EXPRESSION]
        assert isinstance(rest[0].error, NotFound)
        assert rest[0].entity.id == created.entity.id
        # the insert itself is kept
        (stored,) = relational_catalog.expressions_by_key("greeting")
        assert stored.id == created.entity.id
