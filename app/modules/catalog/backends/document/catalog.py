"""Document catalog backend: one JSON file per entity.

Layout under the configured root::

    Catalog/Projects/<uuid>.json
    Catalog/Expressions/<uuid>.json
    Catalog/Translations/<uuid>.json

Every read goes to disk. Cascades are ordered write sequences without
atomicity; an interrupted sequence can leave a dangling reference, which
readers report as InvalidForeignReference.
"""

import json
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError

from infrastructure.configuration import CatalogSettings
from infrastructure.logging import get_module_logger
from modules.catalog.backends import register_backend
from modules.catalog.backends.base import Catalog
from modules.catalog.backends.document.documents import (
    CatalogDocument,
    ExpressionDocument,
    ProjectDocument,
    TranslationDocument,
)
from modules.catalog.backends.document.migrations import CURRENT_VERSION, migrate
from modules.catalog.domain.errors import InvalidForeignReference, InvalidValue
from modules.catalog.domain.locales import (
    LanguageCode,
    resolve_language,
    resolve_region,
    resolve_script,
)
from modules.catalog.domain.models import (
    EntityKind,
    Expression,
    Project,
    Translation,
    TranslationState,
)

logger = get_module_logger()

_DOCUMENT_TYPES = {
    EntityKind.PROJECT: ProjectDocument,
    EntityKind.EXPRESSION: ExpressionDocument,
    EntityKind.TRANSLATION: TranslationDocument,
}


@register_backend("document")
class DocumentCatalog(Catalog):
    """Catalog persisted as pretty-printed JSON documents.

    Args:
        root: Directory that holds (or will hold) the ``Catalog`` folder.
        default_language: Language for documents stored without one; the
            configured default when None.
    """

    def __init__(self, root, default_language: Optional[LanguageCode] = None):
        super().__init__(default_language)
        self._root = Path(root) / "Catalog"

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "DocumentCatalog":
        logger.info("document_catalog_opened", root=settings.document_root)
        return cls(settings.document_root, default_language=settings.default_language)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, kind: EntityKind, id: UUID) -> Path:
        return self._root / kind.directory / f"{id}.json"

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read_path(self, kind: EntityKind, path: Path):
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidValue(f"Undecodable {kind.value} document {path.name}: {e}") from e
        if not isinstance(raw, dict):
            raise InvalidValue(f"{kind.value} document {path.name} is not an object")

        data, version = migrate(kind, raw)
        if version < CURRENT_VERSION:
            logger.debug(
                "document_migrated",
                kind=kind.value,
                document=path.name,
                from_version=version,
                to_version=CURRENT_VERSION,
            )

        try:
            document = _DOCUMENT_TYPES[kind].model_validate(data)
        except ValidationError as e:
            raise InvalidValue(f"Invalid {kind.value} document {path.name}: {e}") from e
        if kind is EntityKind.EXPRESSION and version < 2:
            self._promote_default_translation(document)
        return document

    def _promote_default_translation(self, document: ExpressionDocument) -> None:
        # version 1 stored the default text as a bare default-language translation
        fallback = self.default_language
        language = resolve_language(document.default_language, default=fallback)
        for translation_id in document.translation_ids:
            translation = self._read(EntityKind.TRANSLATION, translation_id)
            if translation is None:
                continue
            if (
                resolve_language(translation.language_code, default=fallback) is language
                and resolve_script(translation.script_code) is None
                and resolve_region(translation.region_code) is None
            ):
                document.promote(translation_id, translation.value)
                logger.info(
                    "default_value_promoted",
                    expression_id=str(document.id),
                    translation_id=str(translation_id),
                )
                return

    def _read(self, kind: EntityKind, id: UUID):
        path = self.path_for(kind, id)
        if not path.is_file():
            return None
        return self._read_path(kind, path)

    def _read_all(self, kind: EntityKind) -> Iterator:
        directory = self._root / kind.directory
        if not directory.is_dir():
            return
        for path in sorted(directory.glob("*.json")):
            yield self._read_path(kind, path)

    def _write(self, kind: EntityKind, document: CatalogDocument) -> None:
        path = self.path_for(kind, document.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(
            document.to_json_dict(), indent=2, sort_keys=True, ensure_ascii=False
        )
        path.write_text(text + "\n", encoding="utf-8")
        if isinstance(document, ExpressionDocument):
            self._remove_promoted(document)

    def _remove_promoted(self, document: ExpressionDocument) -> None:
        for translation_id in document.promoted_translation_ids:
            self._remove(EntityKind.TRANSLATION, translation_id)

    def _remove(self, kind: EntityKind, id: UUID) -> bool:
        path = self.path_for(kind, id)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def _project_exists(self, id: UUID) -> bool:
        return self.path_for(EntityKind.PROJECT, id).is_file()

    def _expression_exists(self, id: UUID) -> bool:
        return self.path_for(EntityKind.EXPRESSION, id).is_file()

    def _translation_exists(self, id: UUID) -> bool:
        return self.path_for(EntityKind.TRANSLATION, id).is_file()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _insert_project(self, project: Project) -> None:
        self._write(EntityKind.PROJECT, ProjectDocument.from_project(project))

    def _insert_expression(self, expression: Expression) -> None:
        for translation in expression.translations:
            self._write(
                EntityKind.TRANSLATION, TranslationDocument.from_translation(translation)
            )
        self._write(
            EntityKind.EXPRESSION,
            ExpressionDocument.from_expression(
                expression, [t.id for t in expression.translations]
            ),
        )

    def _insert_translation(self, translation: Translation) -> None:
        owner = self._read(EntityKind.EXPRESSION, translation.expression_id)
        if owner is None:
            raise InvalidForeignReference(
                EntityKind.EXPRESSION, translation.expression_id
            )
        self._write(
            EntityKind.TRANSLATION, TranslationDocument.from_translation(translation)
        )
        owner.translation_ids.append(translation.id)
        self._write(EntityKind.EXPRESSION, owner)

    def _update_project(self, project: Project) -> bool:
        document = self._read(EntityKind.PROJECT, project.id)
        if document is None:
            return False
        document.name = project.name
        self._write(EntityKind.PROJECT, document)
        return True

    def _update_expression(self, expression: Expression) -> bool:
        document = self._read(EntityKind.EXPRESSION, expression.id)
        if document is None:
            return False
        self._write(
            EntityKind.EXPRESSION,
            ExpressionDocument.from_expression(expression, document.translation_ids),
        )
        self._remove_promoted(document)
        return True

    def _update_translation(self, translation: Translation) -> bool:
        document = self._read(EntityKind.TRANSLATION, translation.id)
        if document is None:
            return False
        self._write(
            EntityKind.TRANSLATION,
            TranslationDocument.from_translation(
                translation.with_expression(document.expression_id)
            ),
        )
        return True

    def _link(self, project_id: UUID, expression_id: UUID) -> bool:
        document = self._read(EntityKind.PROJECT, project_id)
        if expression_id in document.expression_ids:
            return False
        document.expression_ids.append(expression_id)
        self._write(EntityKind.PROJECT, document)
        return True

    def _unlink(self, project_id: UUID, expression_id: UUID) -> bool:
        document = self._read(EntityKind.PROJECT, project_id)
        if expression_id not in document.expression_ids:
            return False
        document.expression_ids = [
            id for id in document.expression_ids if id != expression_id
        ]
        self._write(EntityKind.PROJECT, document)
        return True

    def _delete_project(self, id: UUID) -> Optional[int]:
        document = self._read(EntityKind.PROJECT, id)
        if document is None:
            return None
        self._remove(EntityKind.PROJECT, id)
        return len(document.expression_ids)

    def _delete_expression(self, id: UUID) -> Optional[Tuple[int, int]]:
        document = self._read(EntityKind.EXPRESSION, id)
        if document is None:
            return None

        # 1. owned translations
        removed = 0
        owned = document.translation_ids + document.promoted_translation_ids
        for translation_id in owned:
            if self._remove(EntityKind.TRANSLATION, translation_id):
                removed += 1

        # 2. referencing projects
        unlinked = 0
        for project in list(self._read_all(EntityKind.PROJECT)):
            if id in project.expression_ids:
                project.expression_ids = [e for e in project.expression_ids if e != id]
                self._write(EntityKind.PROJECT, project)
                unlinked += 1

        # 3. the expression itself
        self._remove(EntityKind.EXPRESSION, id)
        return removed, unlinked

    def _delete_translation(self, id: UUID) -> bool:
        document = self._read(EntityKind.TRANSLATION, id)
        if document is None:
            return False
        owner = self._read(EntityKind.EXPRESSION, document.expression_id)
        if owner is not None:
            owner.translation_ids = [t for t in owner.translation_ids if t != id]
            self._write(EntityKind.EXPRESSION, owner)
        self._remove(EntityKind.TRANSLATION, id)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _translation_from_document(self, document: TranslationDocument) -> Translation:
        if not self._expression_exists(document.expression_id):
            raise InvalidForeignReference(
                EntityKind.EXPRESSION,
                document.expression_id,
                f"Translation {document.id} references missing expression "
                f"{document.expression_id}",
            )
        return Translation(
            id=document.id,
            expression_id=document.expression_id,
            language=resolve_language(
                document.language_code, default=self.default_language
            ),
            script=resolve_script(document.script_code),
            region=resolve_region(document.region_code),
            value=document.value,
            state=TranslationState.resolve(document.state),
        )

    def _expression_from_document(self, document: ExpressionDocument) -> Expression:
        translations: List[Translation] = []
        for translation_id in document.translation_ids:
            translation = self._read(EntityKind.TRANSLATION, translation_id)
            if translation is None:
                raise InvalidForeignReference(
                    EntityKind.TRANSLATION,
                    translation_id,
                    f"Expression {document.id} references missing translation "
                    f"{translation_id}",
                )
            translations.append(self._translation_from_document(translation))
        return Expression(
            id=document.id,
            key=document.key,
            name=document.name,
            default_language=resolve_language(
                document.default_language, default=self.default_language
            ),
            default_value=document.default_value,
            context=document.context,
            feature=document.feature,
            translations=tuple(translations),
        )

    def _project_from_document(self, document: ProjectDocument) -> Project:
        expressions: List[Expression] = []
        for expression_id in document.expression_ids:
            expression = self._read(EntityKind.EXPRESSION, expression_id)
            if expression is None:
                raise InvalidForeignReference(
                    EntityKind.EXPRESSION,
                    expression_id,
                    f"Project {document.id} references missing expression "
                    f"{expression_id}",
                )
            expressions.append(self._expression_from_document(expression))
        return Project(id=document.id, name=document.name, expressions=tuple(expressions))

    def _load_project(self, id: UUID) -> Optional[Project]:
        document = self._read(EntityKind.PROJECT, id)
        return self._project_from_document(document) if document is not None else None

    def _load_projects(self) -> List[Project]:
        return [
            self._project_from_document(d) for d in self._read_all(EntityKind.PROJECT)
        ]

    def _load_expression(self, id: UUID) -> Optional[Expression]:
        document = self._read(EntityKind.EXPRESSION, id)
        return (
            self._expression_from_document(document) if document is not None else None
        )

    def _load_expressions(self) -> List[Expression]:
        return [
            self._expression_from_document(d)
            for d in self._read_all(EntityKind.EXPRESSION)
        ]

    def _load_translation(self, id: UUID) -> Optional[Translation]:
        document = self._read(EntityKind.TRANSLATION, id)
        return (
            self._translation_from_document(document) if document is not None else None
        )

    def _load_translations(self) -> List[Translation]:
        return [
            self._translation_from_document(d)
            for d in self._read_all(EntityKind.TRANSLATION)
        ]
