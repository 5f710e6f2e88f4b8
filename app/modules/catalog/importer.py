"""Expression importer: merges externally decoded expressions into a catalog.

Format converters decode string tables into in-memory expressions (see
``expressions_from_mapping``); the importer then creates new expressions or
merges translations into existing ones, reporting every step as an
ImportOperation.

Usage:
    importer = ExpressionImporter(catalog)
    for operation in importer.import_expressions(expressions):
        logger.info("import_operation", operation=operation.description)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Mapping, Optional, Union
from uuid import UUID

from infrastructure.logging import get_module_logger
from modules.catalog.backends.base import Catalog
from modules.catalog.domain.errors import CatalogError
from modules.catalog.domain.locales import (
    LanguageCode,
    RegionCode,
    ScriptCode,
    default_language as configured_default_language,
    parse_language,
    parse_region,
    parse_script,
)
from modules.catalog.domain.models import ZERO_UUID, Expression, Translation

logger = get_module_logger()


class ImportOperationKind(str, Enum):
    CREATED_EXPRESSION = "created_expression"
    SKIPPED_EXPRESSION = "skipped_expression"
    FAILED_EXPRESSION = "failed_expression"
    CREATED_TRANSLATION = "created_translation"
    SKIPPED_TRANSLATION = "skipped_translation"
    FAILED_TRANSLATION = "failed_translation"


@dataclass(frozen=True)
class ImportOperation:
    """One step reported by the importer.

    Attributes:
        kind: What happened.
        entity: The expression or translation concerned.
        error: The catalog error behind a ``failed_*`` operation.
    """

    kind: ImportOperationKind
    entity: Union[Expression, Translation]
    error: Optional[CatalogError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def description(self) -> str:
        entity = self.entity
        if self.kind is ImportOperationKind.CREATED_EXPRESSION:
            return f"Expression Created '{entity.name}'"
        if self.kind is ImportOperationKind.SKIPPED_EXPRESSION:
            return f"Expression Exists with Key '{entity.key}'; checking translations"
        if self.kind is ImportOperationKind.FAILED_EXPRESSION:
            return f"Expression Failure '{entity.key}'; {self.error}"
        if self.kind is ImportOperationKind.CREATED_TRANSLATION:
            return f"Translation Created '{entity.value}'"
        if self.kind is ImportOperationKind.SKIPPED_TRANSLATION:
            return f"Translation Skipped '{entity.value}'"
        return f"Translation Failure '{entity.value}'; {self.error}"

    def __str__(self) -> str:
        return self.description


def expressions_from_mapping(
    values: Mapping[str, str],
    language: LanguageCode,
    script: Optional[ScriptCode] = None,
    region: Optional[RegionCode] = None,
    default_language: Optional[LanguageCode] = None,
) -> List[Expression]:
    """Turn decoded key/value pairs into unsaved expressions.

    Each key becomes an expression (key and name) holding a single
    translation in the source locale. When the source locale is the bare
    default language the value also becomes the expression's default value.

    Args:
        values: Decoded string table (key -> value).
        language: Source language.
        script: Optional source script.
        region: Optional source region.
        default_language: Expression default language; the configured
            default when omitted.

    Returns:
        One expression per key, in mapping order.

    Raises:
        UnknownCode: If a locale component is unknown.
    """
    language = parse_language(language)
    script = parse_script(script) if script is not None else None
    region = parse_region(region) if region is not None else None
    base_language = (
        parse_language(default_language)
        if default_language is not None
        else configured_default_language()
    )
    is_default_locale = language == base_language and script is None and region is None

    expressions = []
    for key, value in values.items():
        translation = Translation(
            expression_id=ZERO_UUID,
            language=language,
            script=script,
            region=region,
            value=value,
        )
        expressions.append(
            Expression(
                key=key,
                name=key,
                default_language=base_language,
                default_value=value if is_default_locale else "",
                translations=(translation,),
            )
        )
    return expressions


class ExpressionImporter:
    """Imports expressions into a catalog, merging by key.

    Args:
        catalog: The destination catalog.
    """

    def __init__(self, catalog: Catalog):
        self._catalog = catalog

    def import_expressions(
        self, expressions: Iterable[Expression], project_id: Optional[UUID] = None
    ) -> Iterator[ImportOperation]:
        """Import expressions, processed in name order.

        New keys are inserted with their translations. An existing key is not
        re-created; its missing translations are added and translations for a
        locale it already has are skipped. Catalog errors are reported as
        ``failed_*`` operations; a failed project link after a successful
        insert follows the ``created_expression`` as its own failure.

        Args:
            expressions: Expressions to import (typically zero UUIDs).
            project_id: Optional project every imported expression is linked to.

        Yields:
            ImportOperation for every expression and merged translation.

        Raises:
            NotFound: If ``project_id`` is given and does not exist.
        """
        if project_id is not None:
            self._catalog.project(project_id)

        created = skipped = failed = 0
        for expression in sorted(expressions, key=lambda e: (e.name, e.key)):
            for operation in self._import_expression(expression, project_id):
                if operation.failed:
                    failed += 1
                elif operation.kind in (
                    ImportOperationKind.SKIPPED_EXPRESSION,
                    ImportOperationKind.SKIPPED_TRANSLATION,
                ):
                    skipped += 1
                else:
                    created += 1
                yield operation

        logger.info(
            "expressions_imported", created=created, skipped=skipped, failed=failed
        )

    def _import_expression(
        self, expression: Expression, project_id: Optional[UUID]
    ) -> Iterator[ImportOperation]:
        existing = next(self._catalog.expressions_by_key(expression.key), None)
        if existing is None:
            try:
                stored = self._catalog.insert_expression(expression)
            except CatalogError as e:
                logger.warning(
                    "expression_import_failed", key=expression.key, error=str(e)
                )
                yield ImportOperation(
                    ImportOperationKind.FAILED_EXPRESSION, expression, e
                )
                return
            yield ImportOperation(ImportOperationKind.CREATED_EXPRESSION, stored)
            yield from self._link_imported(project_id, stored)
            return

        yield ImportOperation(ImportOperationKind.SKIPPED_EXPRESSION, existing)
        for translation in sorted(expression.translations, key=lambda t: t.value):
            yield self._import_translation(existing, translation)

        yield from self._link_imported(project_id, existing)

    def _import_translation(
        self, existing: Expression, translation: Translation
    ) -> ImportOperation:
        bound = translation.with_expression(existing.id)
        if existing.translation_for(bound.language, bound.script, bound.region):
            return ImportOperation(ImportOperationKind.SKIPPED_TRANSLATION, bound)
        try:
            stored = self._catalog.insert_translation(bound)
        except CatalogError as e:
            logger.warning(
                "translation_import_failed",
                key=existing.key,
                locale=bound.locale_identifier,
                error=str(e),
            )
            return ImportOperation(ImportOperationKind.FAILED_TRANSLATION, bound, e)
        return ImportOperation(ImportOperationKind.CREATED_TRANSLATION, stored)

    def _link_imported(
        self, project_id: Optional[UUID], expression: Expression
    ) -> Iterator[ImportOperation]:
        # a stored expression whose link fails stays stored; report both
        if project_id is None:
            return
        try:
            self._catalog.link_expression_to_project(project_id, expression.id)
        except CatalogError as e:
            logger.warning(
                "expression_link_failed",
                key=expression.key,
                project_id=str(project_id),
                error=str(e),
            )
            yield ImportOperation(ImportOperationKind.FAILED_EXPRESSION, expression, e)
