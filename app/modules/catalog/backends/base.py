"""Catalog contract shared by every storage backend.

This module defines the Catalog abstract base class. Backends implement a
small set of storage primitives (the underscore methods); the base class
implements the public contract on top of them:

  - identity assignment and duplicate checks on insert
  - nested project insert (insert-or-link member expressions)
  - existence checks that turn missing ids into NotFound
  - generic delete dispatch on EntityKind
  - query filtering and ordering

Key rules:
  - Every multi-result query is a generator; scoped NotFound errors surface
    on first iteration
  - Projects are ordered by name, expressions by key, translations by
    canonical locale identifier
  - Backend-internal keys never appear on a returned entity
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional, Tuple, Union
from uuid import UUID

from infrastructure.configuration import CatalogSettings
from infrastructure.logging import get_module_logger
from modules.catalog.domain.errors import (
    DuplicateIdentity,
    InvalidForeignReference,
    NotFound,
)
from modules.catalog.domain.locales import (
    LanguageCode,
    LocaleTuple,
    RegionCode,
    ScriptCode,
    default_language as configured_language,
    locale_identifier,
    locale_matches,
    parse_language,
    parse_locale_identifier,
    parse_region,
    parse_script,
)
from modules.catalog.domain.models import (
    EntityKind,
    Expression,
    Project,
    Translation,
    TranslationState,
    expression_sort_key,
    is_zero_uuid,
    new_uuid,
    project_sort_key,
    translation_sort_key,
)

logger = get_module_logger()

LocaleLike = Union[str, LocaleTuple]
LanguageLike = Union[str, LanguageCode]


def _optional_script(script) -> Optional[ScriptCode]:
    return parse_script(script) if script is not None else None


def _optional_region(region) -> Optional[RegionCode]:
    return parse_region(region) if region is not None else None


def _as_locale(locale: LocaleLike) -> LocaleTuple:
    if isinstance(locale, LocaleTuple):
        return locale
    return parse_locale_identifier(locale)


class Catalog(ABC):
    """Storage-agnostic translation catalog.

    Subclasses register themselves with ``register_backend`` and implement
    the storage primitives. Instances are context managers; leaving the
    context calls ``close()``.

    Example:
        with get_catalog("relational") as catalog:
            expression = catalog.insert_expression(Expression(key="greeting"))
            for found in catalog.expressions_by_key("greeting"):
                ...
    """

    name: str = "base"

    def __init__(self, default_language: Optional[LanguageLike] = None):
        self._default_language = (
            parse_language(default_language) if default_language is not None else None
        )

    @property
    def default_language(self) -> LanguageCode:
        """Language assumed for records stored without one."""
        return self._default_language or configured_language()

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "Catalog":
        """Build the backend from catalog settings."""
        raise NotImplementedError(f"{cls.__name__} does not support from_settings")

    def __enter__(self) -> "Catalog":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release backend handles (engines, sessions)."""
        return None

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _project_exists(self, id: UUID) -> bool:
        pass

    @abstractmethod
    def _expression_exists(self, id: UUID) -> bool:
        pass

    @abstractmethod
    def _translation_exists(self, id: UUID) -> bool:
        pass

    @abstractmethod
    def _insert_project(self, project: Project) -> None:
        """Store the project record only; membership is linked separately."""

    @abstractmethod
    def _insert_expression(self, expression: Expression) -> None:
        """Store the expression and its (already bound) translations."""

    @abstractmethod
    def _insert_translation(self, translation: Translation) -> None:
        pass

    @abstractmethod
    def _update_project(self, project: Project) -> bool:
        """Rename a project; False when it does not exist."""

    @abstractmethod
    def _update_expression(self, expression: Expression) -> bool:
        pass

    @abstractmethod
    def _update_translation(self, translation: Translation) -> bool:
        pass

    @abstractmethod
    def _link(self, project_id: UUID, expression_id: UUID) -> bool:
        """Add membership; False when it already existed."""

    @abstractmethod
    def _unlink(self, project_id: UUID, expression_id: UUID) -> bool:
        """Remove membership; False when there was none."""

    @abstractmethod
    def _delete_project(self, id: UUID) -> Optional[int]:
        """Delete a project, unlinking its expressions.

        Returns:
            Number of unlinked expressions, or None when the project is absent.
        """

    @abstractmethod
    def _delete_expression(self, id: UUID) -> Optional[Tuple[int, int]]:
        """Delete an expression with its translations and memberships.

        Returns:
            (translations deleted, projects unlinked), or None when absent.
        """

    @abstractmethod
    def _delete_translation(self, id: UUID) -> bool:
        pass

    @abstractmethod
    def _load_project(self, id: UUID) -> Optional[Project]:
        """Project with resolved member expressions, or None."""

    @abstractmethod
    def _load_expression(self, id: UUID) -> Optional[Expression]:
        """Expression with its translations, or None."""

    @abstractmethod
    def _load_translation(self, id: UUID) -> Optional[Translation]:
        pass

    @abstractmethod
    def _load_projects(self) -> Iterable[Project]:
        pass

    @abstractmethod
    def _load_expressions(self) -> Iterable[Expression]:
        pass

    @abstractmethod
    def _load_translations(self) -> Iterable[Translation]:
        pass

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def insert_project(self, project: Project) -> Project:
        """Insert a project, inserting or linking its nested expressions.

        Nested expressions with a zero or unknown UUID are inserted, known
        expressions are linked only.

        Args:
            project: Project to insert (zero UUID assigns a new one).

        Returns:
            The stored project with resolved membership.

        Raises:
            DuplicateIdentity: If the project's explicit UUID already exists.
        """
        project_id = self._assign_id(EntityKind.PROJECT, project.id)
        self._insert_project(project.with_id(project_id).with_expressions(()))
        logger.info("project_inserted", project_id=str(project_id), name=project.name)

        for expression in project.expressions:
            if is_zero_uuid(expression.id) or not self._expression_exists(
                expression.id
            ):
                expression = self.insert_expression(expression)
            self.link_expression_to_project(project_id, expression.id)

        return self.project(project_id)

    def insert_expression(self, expression: Expression) -> Expression:
        """Insert an expression together with its translations.

        Nested translations are bound to the inserted expression id.

        Raises:
            DuplicateIdentity: If the expression or a nested translation
                carries an explicit UUID that already exists, if another
                expression already holds the key, or if two nested
                translations share a locale.
        """
        expression_id = self._assign_id(EntityKind.EXPRESSION, expression.id)
        self._check_key_free(expression.key, expression_id)
        translations = []
        for translation in expression.translations:
            translation = translation.with_expression(expression_id).with_id(
                self._assign_id(EntityKind.TRANSLATION, translation.id)
            )
            self._check_locale_free(translation, translations)
            translations.append(translation)
        stored = expression.with_id(expression_id).with_translations(translations)
        self._insert_expression(stored)
        logger.info(
            "expression_inserted",
            expression_id=str(expression_id),
            key=stored.key,
            translations=len(translations),
        )
        return stored

    def insert_translation(self, translation: Translation) -> Translation:
        """Insert a translation for an existing expression.

        Raises:
            DuplicateIdentity: If the explicit UUID already exists, or the
                expression already has a translation for the same locale.
            InvalidForeignReference: If the owning expression does not exist.
        """
        translation_id = self._assign_id(EntityKind.TRANSLATION, translation.id)
        owner = self._load_expression(translation.expression_id)
        if owner is None:
            raise InvalidForeignReference(
                EntityKind.EXPRESSION, translation.expression_id
            )
        stored = translation.with_id(translation_id)
        self._check_locale_free(stored, owner.translations)
        self._insert_translation(stored)
        logger.info(
            "translation_inserted",
            translation_id=str(translation_id),
            expression_id=str(stored.expression_id),
            locale=stored.locale_identifier,
        )
        return stored

    def _assign_id(self, kind: EntityKind, id: Optional[UUID]) -> UUID:
        if is_zero_uuid(id):
            return new_uuid()
        if self._exists(kind, id):
            raise DuplicateIdentity(kind, id)
        return id

    def _check_key_free(self, key: str, expression_id: UUID) -> None:
        for holder in self.expressions_by_key(key):
            if holder.id != expression_id:
                raise DuplicateIdentity(
                    EntityKind.EXPRESSION,
                    holder.id,
                    f"An expression with key '{key}' already exists",
                )

    def _check_locale_free(
        self, translation: Translation, siblings: Iterable[Translation]
    ) -> None:
        for sibling in siblings:
            if sibling.id != translation.id and sibling.locale == translation.locale:
                raise DuplicateIdentity(
                    EntityKind.TRANSLATION,
                    sibling.id,
                    f"Expression '{translation.expression_id}' already has a "
                    f"'{translation.locale_identifier}' translation",
                )

    def _exists(self, kind: EntityKind, id: UUID) -> bool:
        if kind is EntityKind.PROJECT:
            return self._project_exists(id)
        if kind is EntityKind.EXPRESSION:
            return self._expression_exists(id)
        return self._translation_exists(id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_project(self, project: Project) -> Project:
        """Rename a project. Its ``expressions`` are ignored.

        Raises:
            NotFound: If the project does not exist.
        """
        if not self._update_project(project):
            raise NotFound(EntityKind.PROJECT, project.id)
        return self.project(project.id)

    def update_expression(self, expression: Expression) -> Expression:
        """Replace an expression's mutable fields. Its ``translations`` are ignored.

        Raises:
            NotFound: If the expression does not exist.
            DuplicateIdentity: If another expression already holds the new key.
        """
        if not self._expression_exists(expression.id):
            raise NotFound(EntityKind.EXPRESSION, expression.id)
        self._check_key_free(expression.key, expression.id)
        if not self._update_expression(expression):
            raise NotFound(EntityKind.EXPRESSION, expression.id)
        return self.expression(expression.id)

    def update_translation(self, translation: Translation) -> Translation:
        """Replace a translation's locale, value and state; the owner never changes.

        Raises:
            NotFound: If the translation does not exist.
            DuplicateIdentity: If a sibling translation already has the new locale.
        """
        current = self._load_translation(translation.id)
        if current is None:
            raise NotFound(EntityKind.TRANSLATION, translation.id)
        owner = self._load_expression(current.expression_id)
        if owner is not None:
            self._check_locale_free(
                translation.with_expression(current.expression_id), owner.translations
            )
        if not self._update_translation(translation):
            raise NotFound(EntityKind.TRANSLATION, translation.id)
        return self.translation(translation.id)

    def link_expression_to_project(self, project_id: UUID, expression_id: UUID) -> None:
        """Add an expression to a project. Linking twice is a no-op.

        Raises:
            NotFound: If the project does not exist.
            InvalidForeignReference: If the expression does not exist.
        """
        if not self._project_exists(project_id):
            raise NotFound(EntityKind.PROJECT, project_id)
        if not self._expression_exists(expression_id):
            raise InvalidForeignReference(EntityKind.EXPRESSION, expression_id)
        if self._link(project_id, expression_id):
            logger.debug(
                "expression_linked",
                project_id=str(project_id),
                expression_id=str(expression_id),
            )

    def unlink_expression_from_project(
        self, project_id: UUID, expression_id: UUID
    ) -> None:
        """Remove an expression from a project. Unlinking a non-member is a no-op.

        Raises:
            NotFound: If the project does not exist.
        """
        if not self._project_exists(project_id):
            raise NotFound(EntityKind.PROJECT, project_id)
        if self._unlink(project_id, expression_id):
            logger.debug(
                "expression_unlinked",
                project_id=str(project_id),
                expression_id=str(expression_id),
            )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_project(self, id: UUID) -> None:
        """Delete a project; its expressions are unlinked, never deleted.

        Raises:
            NotFound: If the project does not exist.
        """
        unlinked = self._delete_project(id)
        if unlinked is None:
            raise NotFound(EntityKind.PROJECT, id)
        logger.info("project_deleted", project_id=str(id), unlinked=unlinked)

    def delete_expression(self, id: UUID) -> None:
        """Delete an expression, its translations and its memberships.

        Raises:
            NotFound: If the expression does not exist.
        """
        counts = self._delete_expression(id)
        if counts is None:
            raise NotFound(EntityKind.EXPRESSION, id)
        translations, projects = counts
        logger.info(
            "expression_deleted",
            expression_id=str(id),
            translations_deleted=translations,
            projects_unlinked=projects,
        )

    def delete_translation(self, id: UUID) -> None:
        """Delete a single translation.

        Raises:
            NotFound: If the translation does not exist.
        """
        if not self._delete_translation(id):
            raise NotFound(EntityKind.TRANSLATION, id)
        logger.info("translation_deleted", translation_id=str(id))

    def delete(self, kind: EntityKind, id: UUID) -> None:
        """Delete any entity by kind.

        Raises:
            NotFound: If the entity does not exist.
        """
        kind = EntityKind(kind)
        if kind is EntityKind.PROJECT:
            self.delete_project(id)
        elif kind is EntityKind.EXPRESSION:
            self.delete_expression(id)
        else:
            self.delete_translation(id)

    # ------------------------------------------------------------------
    # Project queries
    # ------------------------------------------------------------------

    def projects(self) -> Iterator[Project]:
        yield from sorted(self._load_projects(), key=project_sort_key)

    def project(self, id: UUID) -> Project:
        """Raises NotFound when the project does not exist."""
        project = self._load_project(id)
        if project is None:
            raise NotFound(EntityKind.PROJECT, id)
        return project

    def projects_named(self, name: str, exact: bool = False) -> Iterator[Project]:
        """Projects by exact name, or by case-insensitive substring."""
        needle = name.lower()
        for project in self.projects():
            if project.name == name if exact else needle in project.name.lower():
                yield project

    def projects_containing(self, expression_id: UUID) -> Iterator[Project]:
        """Projects that have the expression as a member.

        Raises:
            NotFound: If the expression does not exist.
        """
        if not self._expression_exists(expression_id):
            raise NotFound(EntityKind.EXPRESSION, expression_id)
        for project in self.projects():
            if any(e.id == expression_id for e in project.expressions):
                yield project

    # ------------------------------------------------------------------
    # Expression queries
    # ------------------------------------------------------------------

    def expressions(self) -> Iterator[Expression]:
        yield from sorted(self._load_expressions(), key=expression_sort_key)

    def expression(self, id: UUID) -> Expression:
        """Raises NotFound when the expression does not exist."""
        expression = self._load_expression(id)
        if expression is None:
            raise NotFound(EntityKind.EXPRESSION, id)
        return expression

    def expressions_by_key(self, key: str, exact: bool = True) -> Iterator[Expression]:
        """Expressions by exact key, or by case-insensitive substring."""
        needle = key.lower()
        for expression in self.expressions():
            if expression.key == key if exact else needle in expression.key.lower():
                yield expression

    def expressions_named(self, name: str, exact: bool = False) -> Iterator[Expression]:
        needle = name.lower()
        for expression in self.expressions():
            if expression.name == name if exact else needle in expression.name.lower():
                yield expression

    def expressions_in_project(self, project_id: UUID) -> Iterator[Expression]:
        """Member expressions of a project.

        Raises:
            NotFound: If the project does not exist.
        """
        yield from self.project(project_id).expressions

    def expressions_matching_value(self, text: str) -> Iterator[Expression]:
        """Expressions whose default value or any translation value contains ``text``."""
        needle = text.lower()
        for expression in self.expressions():
            values = [expression.default_value] + [
                t.value for t in expression.translations
            ]
            if any(needle in value.lower() for value in values):
                yield expression

    def expressions_having_locale(
        self,
        language: LanguageCode,
        script: Optional[ScriptCode] = None,
        region: Optional[RegionCode] = None,
        exact: bool = True,
    ) -> Iterator[Expression]:
        """Expressions with at least one translation in the locale."""
        language = parse_language(language)
        script = _optional_script(script)
        region = _optional_region(region)
        for expression in self.expressions():
            if any(
                locale_matches(t.locale, language, script, region, exact)
                for t in expression.translations
            ):
                yield expression

    def expressions_having_only_language(
        self, language: LanguageCode
    ) -> Iterator[Expression]:
        """Expressions with a translation in the bare language (no script, no region)."""
        yield from self.expressions_having_locale(language, exact=True)

    def expressions_in_state(self, state: TranslationState) -> Iterator[Expression]:
        """Expressions with at least one translation in the given state."""
        state = TranslationState(state)
        for expression in self.expressions():
            if any(t.state is state for t in expression.translations):
                yield expression

    def expressions_without_all_locales(
        self, locales: Iterable[LocaleLike]
    ) -> Iterator[Expression]:
        """Expressions missing a value for at least one of the locales."""
        wanted = [_as_locale(locale) for locale in locales]
        for expression in self.expressions():
            if not expression.has_values_for(wanted):
                yield expression

    # ------------------------------------------------------------------
    # Translation queries
    # ------------------------------------------------------------------

    def translations(self) -> Iterator[Translation]:
        yield from sorted(self._load_translations(), key=translation_sort_key)

    def translation(self, id: UUID) -> Translation:
        """Raises NotFound when the translation does not exist."""
        translation = self._load_translation(id)
        if translation is None:
            raise NotFound(EntityKind.TRANSLATION, id)
        return translation

    def translations_for_expression(self, expression_id: UUID) -> Iterator[Translation]:
        """Raises NotFound (on first iteration) for an unknown expression."""
        yield from self.expression(expression_id).translations

    def translations_having_locale(
        self,
        language: LanguageCode,
        script: Optional[ScriptCode] = None,
        region: Optional[RegionCode] = None,
        exact: bool = True,
        expression_id: Optional[UUID] = None,
    ) -> Iterator[Translation]:
        """Translations in the locale, optionally scoped to one expression.

        Raises:
            NotFound: If ``expression_id`` is given and does not exist.
        """
        language = parse_language(language)
        script = _optional_script(script)
        region = _optional_region(region)
        if expression_id is not None:
            candidates = self.translations_for_expression(expression_id)
        else:
            candidates = self.translations()
        for translation in candidates:
            if locale_matches(translation.locale, language, script, region, exact):
                yield translation

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def locale_identifiers(self) -> List[str]:
        """Sorted distinct locale identifiers in use.

        Covers every translation locale and every expression default language.
        """
        identifiers = {t.locale_identifier for t in self._load_translations()}
        identifiers.update(
            locale_identifier(e.default_language) for e in self._load_expressions()
        )
        return sorted(identifiers)
