"""Contract tests run against every catalog backend.

Each test receives the ``catalog`` fixture, parametrized over the graph,
relational and document backends, and asserts behaviour that must be
observably identical across all of them.
"""

from uuid import uuid4

import pytest

from modules.catalog.domain.errors import (
    DuplicateIdentity,
    InvalidForeignReference,
    NotFound,
)
from modules.catalog.domain.locales import LanguageCode, RegionCode, ScriptCode
from modules.catalog.domain.models import (
    EntityKind,
    Translation,
    TranslationState,
    is_zero_uuid,
)
from tests.factories.catalog import (
    make_expression,
    make_greeting_expression,
    make_project,
    make_translation,
)

pytestmark = pytest.mark.integration


def ids(entities):
    return [entity.id for entity in entities]


class TestIdentity:
    def test_insert_assigns_uuid_for_zero_placeholder(self, catalog):
        project = catalog.insert_project(make_project())
        expression = catalog.insert_expression(make_expression())
        assert not is_zero_uuid(project.id)
        assert not is_zero_uuid(expression.id)

    def test_explicit_uuid_kept(self, catalog):
        explicit = uuid4()
        expression = catalog.insert_expression(make_expression(id=explicit))
        assert expression.id == explicit

    def test_fetch_equals_insert(self, catalog):
        inserted = catalog.insert_expression(
            make_expression(
                key="greeting",
                name="Greeting",
                default_value="Hello",
                context="Home screen title",
                feature="onboarding",
                translations=[
                    make_translation("Bonjour", LanguageCode.FR, state=TranslationState.TRANSLATED),
                    make_translation("Olá", LanguageCode.PT, region=RegionCode.BR),
                ],
            )
        )
        assert catalog.expression(inserted.id) == inserted
        project = catalog.insert_project(make_project(name="App"))
        assert catalog.project(project.id) == project
        translation = inserted.translations[0]
        assert catalog.translation(translation.id) == translation

    def test_round_trip_orders_translations(self, catalog):
        inserted = catalog.insert_expression(
            make_expression(
                translations=[
                    make_translation("你好", LanguageCode.ZH, script=ScriptCode.HAN_SIMPLIFIED),
                    make_translation("Hallo", LanguageCode.DE),
                    make_translation("Hello", LanguageCode.EN, region=RegionCode.GB),
                ]
            )
        )
        stored = catalog.expression(inserted.id)
        assert [t.locale_identifier for t in stored.translations] == ["de", "en-GB", "zh-Hans"]
        assert all(t.expression_id == inserted.id for t in stored.translations)

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_duplicate_uuid_rejected(self, catalog, kind):
        explicit = uuid4()
        if kind is EntityKind.PROJECT:
            catalog.insert_project(make_project(id=explicit))
            insert = lambda: catalog.insert_project(make_project(name="Other", id=explicit))
        elif kind is EntityKind.EXPRESSION:
            catalog.insert_expression(make_expression(id=explicit))
            insert = lambda: catalog.insert_expression(make_expression(key="other", id=explicit))
        else:
            owner = catalog.insert_expression(make_expression())
            catalog.insert_translation(make_translation(expression_id=owner.id, id=explicit))
            insert = lambda: catalog.insert_translation(
                make_translation("Hi", expression_id=owner.id, id=explicit)
            )
        with pytest.raises(DuplicateIdentity):
            insert()

    def test_duplicate_nested_translation_rejected(self, catalog):
        first = catalog.insert_expression(make_greeting_expression())
        reused = first.translations[0]
        with pytest.raises(DuplicateIdentity):
            catalog.insert_expression(make_expression(key="other", translations=[reused]))


class TestUniqueness:
    def test_duplicate_key_rejected_on_insert(self, catalog):
        first = catalog.insert_expression(make_expression(key="greeting"))
        with pytest.raises(DuplicateIdentity) as caught:
            catalog.insert_expression(make_expression(key="greeting", name="Other"))
        assert caught.value.id == first.id
        assert ids(catalog.expressions()) == [first.id]

    def test_keys_differing_in_case_are_distinct(self, catalog):
        catalog.insert_expression(make_expression(key="greeting"))
        catalog.insert_expression(make_expression(key="Greeting"))
        assert sorted(e.key for e in catalog.expressions()) == ["Greeting", "greeting"]

    def test_duplicate_key_rejected_on_update(self, catalog):
        greeting = catalog.insert_expression(make_expression(key="greeting"))
        farewell = catalog.insert_expression(make_expression(key="farewell"))
        with pytest.raises(DuplicateIdentity) as caught:
            catalog.update_expression(make_expression(key="greeting", id=farewell.id))
        assert caught.value.id == greeting.id
        assert catalog.expression(farewell.id).key == "farewell"

    def test_update_keeping_own_key(self, catalog):
        greeting = catalog.insert_expression(make_expression(key="greeting"))
        updated = catalog.update_expression(
            make_expression(key="greeting", name="Renamed", id=greeting.id)
        )
        assert updated.name == "Renamed"

    def test_duplicate_locale_rejected_on_insert(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        french = expression.translation_for(LanguageCode.FR)
        with pytest.raises(DuplicateIdentity) as caught:
            catalog.insert_translation(
                make_translation("Salut", LanguageCode.FR, expression_id=expression.id)
            )
        assert caught.value.kind == EntityKind.TRANSLATION.value
        assert caught.value.id == french.id
        assert catalog.expression(expression.id).value_for(LanguageCode.FR) == "Bonjour"

    def test_same_language_other_region_allowed(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        stored = catalog.insert_translation(
            make_translation(
                "Bonjour", LanguageCode.FR, region=RegionCode.CA, expression_id=expression.id
            )
        )
        assert stored.locale_identifier == "fr-CA"

    def test_duplicate_nested_locale_rejected(self, catalog):
        with pytest.raises(DuplicateIdentity):
            catalog.insert_expression(
                make_expression(
                    translations=[
                        make_translation("Bonjour", LanguageCode.FR),
                        make_translation("Salut", LanguageCode.FR),
                    ]
                )
            )
        assert list(catalog.expressions()) == []
        assert list(catalog.translations()) == []

    def test_duplicate_locale_rejected_on_update(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        french = expression.translation_for(LanguageCode.FR)
        english = expression.translation_for(LanguageCode.EN)
        with pytest.raises(DuplicateIdentity):
            catalog.update_translation(
                make_translation("Bonjour", LanguageCode.FR, id=english.id)
            )
        assert catalog.translation(english.id).language is LanguageCode.EN
        assert catalog.translation(french.id).value == "Bonjour"

    def test_update_keeping_own_locale(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        french = expression.translation_for(LanguageCode.FR)
        updated = catalog.update_translation(
            make_translation("Salut", LanguageCode.FR, id=french.id)
        )
        assert updated.value == "Salut"


class TestLocaleCodes:
    def test_string_codes_accepted(self, catalog):
        expression = catalog.insert_expression(make_expression())
        inserted = catalog.insert_translation(
            Translation(
                expression_id=expression.id, language="pt", region="br", value="Olá"
            )
        )
        stored = catalog.translation(inserted.id)
        assert stored.language is LanguageCode.PT
        assert stored.region is RegionCode.BR
        assert stored.locale_identifier == "pt-BR"


class TestInsert:
    def test_translation_requires_expression(self, catalog):
        with pytest.raises(InvalidForeignReference):
            catalog.insert_translation(make_translation(expression_id=uuid4()))

    def test_nested_project_insert_creates_and_links(self, catalog):
        existing = catalog.insert_expression(make_expression(key="farewell"))
        project = catalog.insert_project(
            make_project(name="App", expressions=[existing, make_greeting_expression()])
        )
        assert [e.key for e in project.expressions] == ["farewell", "greeting"]
        assert len(list(catalog.expressions())) == 2
        greeting = project.expressions[1]
        assert len(greeting.translations) == 3

    def test_nested_translations_bound_to_expression(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        assert all(t.expression_id == expression.id for t in expression.translations)
        assert sorted(ids(catalog.translations_for_expression(expression.id))) == sorted(
            ids(expression.translations)
        )


class TestUpdate:
    def test_rename_project_keeps_membership(self, catalog):
        expression = catalog.insert_expression(make_expression())
        project = catalog.insert_project(make_project(name="App"))
        catalog.link_expression_to_project(project.id, expression.id)

        renamed = catalog.update_project(make_project(name="Renamed", id=project.id))

        assert renamed.name == "Renamed"
        assert ids(renamed.expressions) == [expression.id]

    def test_update_expression_ignores_translations(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        updated = catalog.update_expression(
            make_expression(
                key="salutation",
                name="Salutation",
                default_value="Hi",
                feature="home",
                id=expression.id,
            )
        )
        assert updated.key == "salutation"
        assert updated.default_value == "Hi"
        assert updated.feature == "home"
        assert updated.translations == expression.translations

    def test_update_translation_keeps_owner(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        original = expression.translations[1]
        other_owner = catalog.insert_expression(make_expression(key="other"))

        updated = catalog.update_translation(
            make_translation(
                "Salut",
                LanguageCode.FR,
                region=RegionCode.CA,
                state=TranslationState.TRANSLATED,
                expression_id=other_owner.id,
                id=original.id,
            )
        )

        assert updated.expression_id == expression.id
        assert updated.value == "Salut"
        assert updated.locale_identifier == "fr-CA"
        assert updated.state is TranslationState.TRANSLATED

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_update_missing_raises(self, catalog, kind):
        with pytest.raises(NotFound):
            if kind is EntityKind.PROJECT:
                catalog.update_project(make_project(id=uuid4()))
            elif kind is EntityKind.EXPRESSION:
                catalog.update_expression(make_expression(id=uuid4()))
            else:
                catalog.update_translation(make_translation(id=uuid4()))


class TestMembership:
    def test_link_twice_is_noop(self, catalog):
        expression = catalog.insert_expression(make_expression())
        project = catalog.insert_project(make_project())
        catalog.link_expression_to_project(project.id, expression.id)
        catalog.link_expression_to_project(project.id, expression.id)
        assert ids(catalog.expressions_in_project(project.id)) == [expression.id]

    def test_link_unknown_project(self, catalog):
        expression = catalog.insert_expression(make_expression())
        with pytest.raises(NotFound):
            catalog.link_expression_to_project(uuid4(), expression.id)

    def test_link_unknown_expression(self, catalog):
        project = catalog.insert_project(make_project())
        with pytest.raises(InvalidForeignReference):
            catalog.link_expression_to_project(project.id, uuid4())

    def test_unlink(self, catalog):
        expression = catalog.insert_expression(make_expression())
        project = catalog.insert_project(make_project(expressions=[expression]))
        catalog.unlink_expression_from_project(project.id, expression.id)
        catalog.unlink_expression_from_project(project.id, expression.id)
        assert list(catalog.expressions_in_project(project.id)) == []
        assert catalog.expression(expression.id) == expression

    def test_unlink_unknown_project(self, catalog):
        with pytest.raises(NotFound):
            catalog.unlink_expression_from_project(uuid4(), uuid4())

    def test_projects_containing(self, catalog):
        expression = catalog.insert_expression(make_expression())
        first = catalog.insert_project(make_project(name="Web", expressions=[expression]))
        second = catalog.insert_project(make_project(name="App", expressions=[expression]))
        catalog.insert_project(make_project(name="Empty"))
        assert ids(catalog.projects_containing(expression.id)) == [second.id, first.id]


class TestDelete:
    def test_cascade_on_expression_delete(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        web = catalog.insert_project(make_project(name="Web", expressions=[expression]))
        app = catalog.insert_project(make_project(name="App", expressions=[expression]))

        catalog.delete_expression(expression.id)

        for translation in expression.translations:
            with pytest.raises(NotFound):
                catalog.translation(translation.id)
        assert list(catalog.translations()) == []
        for project in (web, app):
            assert catalog.project(project.id).expressions == ()

    def test_nullify_on_project_delete(self, catalog):
        first = catalog.insert_expression(make_greeting_expression())
        second = catalog.insert_expression(make_expression(key="farewell"))
        project = catalog.insert_project(make_project(expressions=[first, second]))

        catalog.delete_project(project.id)

        with pytest.raises(NotFound):
            catalog.project(project.id)
        assert catalog.expression(first.id) == first
        assert catalog.expression(second.id) == second

    def test_delete_translation_only(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        removed = expression.translations[0]

        catalog.delete_translation(removed.id)

        remaining = catalog.expression(expression.id).translations
        assert ids(remaining) == ids(expression.translations[1:])

    @pytest.mark.parametrize("kind", list(EntityKind))
    def test_delete_missing_raises_every_time(self, catalog, kind):
        missing = uuid4()
        for _ in range(2):
            with pytest.raises(NotFound):
                catalog.delete(kind, missing)

    def test_generic_delete_dispatch(self, catalog):
        expression = catalog.insert_expression(make_greeting_expression())
        catalog.delete(EntityKind.TRANSLATION, expression.translations[0].id)
        catalog.delete("expression", expression.id)
        with pytest.raises(NotFound):
            catalog.expression(expression.id)


class TestQueries:
    @pytest.fixture
    def populated(self, catalog):
        greeting = catalog.insert_expression(make_greeting_expression())
        farewell = catalog.insert_expression(
            make_expression(
                key="farewell",
                name="Farewell",
                default_value="Goodbye",
                translations=[
                    make_translation("Au revoir", LanguageCode.FR, region=RegionCode.CA),
                    make_translation(
                        "Tschüss", LanguageCode.DE, state=TranslationState.NEEDS_REVIEW
                    ),
                ],
            )
        )
        app = catalog.insert_project(make_project(name="Mobile App", expressions=[greeting]))
        web = catalog.insert_project(make_project(name="Website", expressions=[farewell]))
        return {"greeting": greeting, "farewell": farewell, "app": app, "web": web}

    def test_projects_sorted_by_name(self, catalog, populated):
        assert [p.name for p in catalog.projects()] == ["Mobile App", "Website"]

    def test_projects_named(self, catalog, populated):
        assert [p.name for p in catalog.projects_named("app")] == ["Mobile App"]
        assert list(catalog.projects_named("app", exact=True)) == []
        assert [p.name for p in catalog.projects_named("Website", exact=True)] == ["Website"]

    def test_expressions_sorted_by_key(self, catalog, populated):
        assert [e.key for e in catalog.expressions()] == ["farewell", "greeting"]

    def test_expressions_by_key(self, catalog, populated):
        assert ids(catalog.expressions_by_key("greeting")) == [populated["greeting"].id]
        assert list(catalog.expressions_by_key("GREET")) == []
        assert ids(catalog.expressions_by_key("GREET", exact=False)) == [
            populated["greeting"].id
        ]

    def test_expressions_named(self, catalog, populated):
        assert ids(catalog.expressions_named("fare")) == [populated["farewell"].id]

    def test_expressions_matching_value(self, catalog, populated):
        assert ids(catalog.expressions_matching_value("bonjour")) == [
            populated["greeting"].id
        ]
        # default values are searched too
        assert ids(catalog.expressions_matching_value("goodbye")) == [
            populated["farewell"].id
        ]

    def test_expressions_having_locale(self, catalog, populated):
        assert ids(catalog.expressions_having_locale(LanguageCode.FR)) == [
            populated["greeting"].id
        ]
        assert ids(catalog.expressions_having_locale(LanguageCode.FR, exact=False)) == [
            populated["farewell"].id,
            populated["greeting"].id,
        ]
        assert ids(
            catalog.expressions_having_locale(LanguageCode.PT, region=RegionCode.BR)
        ) == [populated["greeting"].id]

    def test_expressions_having_only_language(self, catalog, populated):
        assert ids(catalog.expressions_having_only_language(LanguageCode.DE)) == [
            populated["farewell"].id
        ]
        assert list(catalog.expressions_having_only_language(LanguageCode.PT)) == []

    def test_expressions_in_state(self, catalog, populated):
        assert ids(catalog.expressions_in_state(TranslationState.NEEDS_REVIEW)) == [
            populated["farewell"].id
        ]

    def test_expressions_without_all_locales(self, catalog, populated):
        assert ids(catalog.expressions_without_all_locales(["fr", "pt-BR"])) == [
            populated["farewell"].id
        ]
        assert list(catalog.expressions_without_all_locales(["en"])) == []

    def test_expressions_in_project(self, catalog, populated):
        assert ids(catalog.expressions_in_project(populated["web"].id)) == [
            populated["farewell"].id
        ]

    def test_results_carry_full_translations(self, catalog, populated):
        (found,) = catalog.expressions_having_locale(LanguageCode.DE)
        assert [t.locale_identifier for t in found.translations] == ["de", "fr-CA"]

    def test_translations_sorted_by_locale(self, catalog, populated):
        assert [t.locale_identifier for t in catalog.translations()] == [
            "de",
            "en",
            "fr",
            "fr-CA",
            "pt-BR",
        ]

    def test_translations_having_locale(self, catalog, populated):
        assert [t.value for t in catalog.translations_having_locale(LanguageCode.FR)] == [
            "Bonjour"
        ]
        assert [
            t.value for t in catalog.translations_having_locale(LanguageCode.FR, exact=False)
        ] == ["Bonjour", "Au revoir"]
        scoped = catalog.translations_having_locale(
            LanguageCode.FR, exact=False, expression_id=populated["farewell"].id
        )
        assert [t.value for t in scoped] == ["Au revoir"]

    def test_locale_identifiers(self, catalog, populated):
        assert catalog.locale_identifiers() == ["de", "en", "fr", "fr-CA", "pt-BR"]

    def test_single_lookups_raise_not_found(self, catalog):
        for lookup in (catalog.project, catalog.expression, catalog.translation):
            with pytest.raises(NotFound):
                lookup(uuid4())

    @pytest.mark.parametrize(
        "query",
        [
            "projects_containing",
            "expressions_in_project",
            "translations_for_expression",
        ],
    )
    def test_scoped_not_found_on_first_iteration(self, catalog, query):
        results = getattr(catalog, query)(uuid4())
        with pytest.raises(NotFound):
            next(results)

    def test_scoped_translation_locale_query_not_found(self, catalog):
        results = catalog.translations_having_locale(LanguageCode.EN, expression_id=uuid4())
        with pytest.raises(NotFound):
            next(results)

    def test_empty_catalog(self, catalog):
        assert list(catalog.projects()) == []
        assert list(catalog.expressions()) == []
        assert list(catalog.translations()) == []
        assert catalog.locale_identifiers() == []


class TestScenarios:
    def test_app_greeting_scenario(self, catalog):
        p1 = catalog.insert_project(make_project(name="App"))
        x1 = catalog.insert_expression(
            make_expression(key="greeting", name="Greeting", default_language=LanguageCode.EN)
        )
        catalog.link_expression_to_project(p1.id, x1.id)
        t1 = catalog.insert_translation(
            make_translation("Hello", LanguageCode.EN, expression_id=x1.id)
        )
        t2 = catalog.insert_translation(
            make_translation("Bonjour", LanguageCode.FR, expression_id=x1.id)
        )

        (found,) = catalog.expressions_in_project(p1.id)
        assert found.id == x1.id
        assert ids(found.translations) == [t1.id, t2.id]

        catalog.delete_expression(x1.id)

        for translation_id in (t1.id, t2.id):
            with pytest.raises(NotFound):
                catalog.translation(translation_id)
        assert list(catalog.expressions_in_project(p1.id)) == []
        assert catalog.project(p1.id).name == "App"

    def test_dangling_translation_insert(self, catalog):
        with pytest.raises(InvalidForeignReference):
            catalog.insert_translation(make_translation(expression_id=uuid4()))

    def test_context_manager_closes(self, catalog):
        with catalog as entered:
            assert entered is catalog
