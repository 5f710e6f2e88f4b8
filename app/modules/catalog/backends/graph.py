"""Graph catalog backend (SQLAlchemy ORM object graph).

Entities are ORM objects linked by bidirectional relationship collections:

  - ExpressionEntity.translations <-> TranslationEntity.expression (one-to-many)
  - ExpressionEntity.projects <-> ProjectEntity.expressions (many-to-many, sets)

No delete cascade is configured on the relationships. Deleting an expression
is replicated manually, always in this order:

  1. delete every owned translation
  2. remove the expression from every project's collection
  3. delete the expression
  4. commit

Every column is nullable, so a record may be incomplete. Conversion raises
InvalidValue for a missing uuid, key, name, value or owner, and reads locale
codes leniently (unknown codes fall back to the defaults and are logged).
"""

from typing import Iterable, Optional, Set, Tuple, Type, TypeVar
from uuid import UUID

from sqlalchemy import Column, ForeignKey, String, Table, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from infrastructure.configuration import CatalogSettings
from infrastructure.logging import get_module_logger
from modules.catalog.backends import register_backend
from modules.catalog.backends._sql import create_catalog_engine
from modules.catalog.backends.base import Catalog
from modules.catalog.domain.errors import DuplicateIdentity, InvalidValue
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


class GraphBase(DeclarativeBase):
    pass


project_expression_edge = Table(
    "project_expression_edge",
    GraphBase.metadata,
    Column("project_pk", ForeignKey("project_node.pk"), primary_key=True),
    Column("expression_pk", ForeignKey("expression_node.pk"), primary_key=True),
)


class ProjectEntity(GraphBase):
    __tablename__ = "project_node"

    pk: Mapped[int] = mapped_column(primary_key=True)
    uuid: Mapped[Optional[str]] = mapped_column(String(36), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(Text)

    expressions: Mapped[Set["ExpressionEntity"]] = relationship(
        secondary=project_expression_edge, back_populates="projects"
    )


class ExpressionEntity(GraphBase):
    __tablename__ = "expression_node"

    pk: Mapped[int] = mapped_column(primary_key=True)
    uuid: Mapped[Optional[str]] = mapped_column(String(36), unique=True, index=True)
    key: Mapped[Optional[str]] = mapped_column(Text)
    name: Mapped[Optional[str]] = mapped_column(Text)
    default_language: Mapped[Optional[str]] = mapped_column(String(8))
    default_value: Mapped[Optional[str]] = mapped_column(Text)
    context: Mapped[Optional[str]] = mapped_column(Text)
    feature: Mapped[Optional[str]] = mapped_column(Text)

    translations: Mapped[Set["TranslationEntity"]] = relationship(
        back_populates="expression"
    )
    projects: Mapped[Set[ProjectEntity]] = relationship(
        secondary=project_expression_edge, back_populates="expressions"
    )


class TranslationEntity(GraphBase):
    __tablename__ = "translation_node"

    pk: Mapped[int] = mapped_column(primary_key=True)
    uuid: Mapped[Optional[str]] = mapped_column(String(36), unique=True, index=True)
    expression_pk: Mapped[Optional[int]] = mapped_column(
        ForeignKey("expression_node.pk")
    )
    language_code: Mapped[Optional[str]] = mapped_column(String(8))
    script_code: Mapped[Optional[str]] = mapped_column(String(8))
    region_code: Mapped[Optional[str]] = mapped_column(String(8))
    value: Mapped[Optional[str]] = mapped_column(Text)
    state: Mapped[Optional[str]] = mapped_column(String(16))

    expression: Mapped[Optional[ExpressionEntity]] = relationship(
        back_populates="translations"
    )


EntityT = TypeVar("EntityT", ProjectEntity, ExpressionEntity, TranslationEntity)


def _require(value, kind: str, field: str, uuid: Optional[str]):
    if value is None:
        raise InvalidValue(f"{kind} {uuid or '<no uuid>'} is missing its {field}")
    return value


def _to_uuid(raw: Optional[str], kind: str) -> UUID:
    _require(raw, kind, "uuid", raw)
    try:
        return UUID(raw)
    except ValueError as e:
        raise InvalidValue(f"{kind} has a malformed uuid: {raw!r}") from e


def translation_from_entity(
    entity: TranslationEntity, default_language: Optional[LanguageCode] = None
) -> Translation:
    """Rebuild a Translation from its graph node.

    Raises:
        InvalidValue: If the uuid, value or owning expression is missing
    """
    id = _to_uuid(entity.uuid, "translation")
    _require(entity.value, "translation", "value", entity.uuid)
    owner = _require(entity.expression, "translation", "expression", entity.uuid)
    return Translation(
        id=id,
        expression_id=_to_uuid(owner.uuid, "expression"),
        language=resolve_language(entity.language_code, default=default_language),
        script=resolve_script(entity.script_code),
        region=resolve_region(entity.region_code),
        value=entity.value,
        state=TranslationState.resolve(entity.state),
    )


def expression_from_entity(
    entity: ExpressionEntity, default_language: Optional[LanguageCode] = None
) -> Expression:
    """Rebuild an Expression (with its translations) from its graph node.

    Raises:
        InvalidValue: If the uuid, key or name is missing
    """
    id = _to_uuid(entity.uuid, "expression")
    key = _require(entity.key, "expression", "key", entity.uuid)
    name = _require(entity.name, "expression", "name", entity.uuid)
    return Expression(
        id=id,
        key=key,
        name=name,
        default_language=resolve_language(
            entity.default_language, default=default_language
        ),
        default_value=entity.default_value or "",
        context=entity.context,
        feature=entity.feature,
        translations=tuple(
            translation_from_entity(t, default_language) for t in entity.translations
        ),
    )


def project_from_entity(
    entity: ProjectEntity, default_language: Optional[LanguageCode] = None
) -> Project:
    """Rebuild a Project (with resolved members) from its graph node.

    Raises:
        InvalidValue: If the uuid or name is missing
    """
    id = _to_uuid(entity.uuid, "project")
    name = _require(entity.name, "project", "name", entity.uuid)
    return Project(
        id=id,
        name=name,
        expressions=tuple(
            expression_from_entity(e, default_language) for e in entity.expressions
        ),
    )


def _apply_translation(entity: TranslationEntity, translation: Translation) -> None:
    entity.language_code = translation.language.value
    entity.script_code = translation.script.value if translation.script else None
    entity.region_code = translation.region.value if translation.region else None
    entity.value = translation.value
    entity.state = translation.state.value


def _apply_expression(entity: ExpressionEntity, expression: Expression) -> None:
    entity.key = expression.key
    entity.name = expression.name
    entity.default_language = expression.default_language.value
    entity.default_value = expression.default_value
    entity.context = expression.context
    entity.feature = expression.feature


@register_backend("graph")
class GraphCatalog(Catalog):
    """Catalog kept as an ORM object graph in one session.

    Args:
        engine: Engine persisting the graph; tables are created if missing.
        default_language: Language for nodes stored without one; the
            configured default when None.
    """

    def __init__(
        self, engine: Engine, default_language: Optional[LanguageCode] = None
    ):
        super().__init__(default_language)
        self._engine = engine
        GraphBase.metadata.create_all(engine)
        self._session = Session(engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "GraphCatalog":
        engine = create_catalog_engine(settings.graph_url, echo=settings.sql_echo)
        logger.info("graph_catalog_opened", url=engine.url.render_as_string())
        return cls(engine, default_language=settings.default_language)

    @property
    def session(self) -> Session:
        return self._session

    def close(self) -> None:
        self._session.close()
        self._engine.dispose()

    def _find(self, entity_cls: Type[EntityT], id: UUID) -> Optional[EntityT]:
        return self._session.scalars(
            select(entity_cls).where(entity_cls.uuid == str(id))
        ).first()

    def _commit(self, kind: EntityKind, id: UUID) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise DuplicateIdentity(kind, id) from e

    def _project_exists(self, id: UUID) -> bool:
        return self._find(ProjectEntity, id) is not None

    def _expression_exists(self, id: UUID) -> bool:
        return self._find(ExpressionEntity, id) is not None

    def _translation_exists(self, id: UUID) -> bool:
        return self._find(TranslationEntity, id) is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _insert_project(self, project: Project) -> None:
        self._session.add(ProjectEntity(uuid=str(project.id), name=project.name))
        self._commit(EntityKind.PROJECT, project.id)

    def _insert_expression(self, expression: Expression) -> None:
        entity = ExpressionEntity(uuid=str(expression.id))
        _apply_expression(entity, expression)
        for translation in expression.translations:
            node = TranslationEntity(uuid=str(translation.id))
            _apply_translation(node, translation)
            entity.translations.add(node)
        self._session.add(entity)
        self._commit(EntityKind.EXPRESSION, expression.id)

    def _insert_translation(self, translation: Translation) -> None:
        owner = self._find(ExpressionEntity, translation.expression_id)
        node = TranslationEntity(uuid=str(translation.id))
        _apply_translation(node, translation)
        node.expression = owner
        self._session.add(node)
        self._commit(EntityKind.TRANSLATION, translation.id)

    def _update_project(self, project: Project) -> bool:
        entity = self._find(ProjectEntity, project.id)
        if entity is None:
            return False
        entity.name = project.name
        self._session.commit()
        return True

    def _update_expression(self, expression: Expression) -> bool:
        entity = self._find(ExpressionEntity, expression.id)
        if entity is None:
            return False
        _apply_expression(entity, expression)
        self._session.commit()
        return True

    def _update_translation(self, translation: Translation) -> bool:
        entity = self._find(TranslationEntity, translation.id)
        if entity is None:
            return False
        _apply_translation(entity, translation)
        self._session.commit()
        return True

    def _link(self, project_id: UUID, expression_id: UUID) -> bool:
        project = self._find(ProjectEntity, project_id)
        expression = self._find(ExpressionEntity, expression_id)
        if expression in project.expressions:
            return False
        project.expressions.add(expression)
        self._session.commit()
        return True

    def _unlink(self, project_id: UUID, expression_id: UUID) -> bool:
        project = self._find(ProjectEntity, project_id)
        expression = self._find(ExpressionEntity, expression_id)
        if expression is None or expression not in project.expressions:
            return False
        project.expressions.discard(expression)
        self._session.commit()
        return True

    def _delete_project(self, id: UUID) -> Optional[int]:
        project = self._find(ProjectEntity, id)
        if project is None:
            return None
        unlinked = len(project.expressions)
        project.expressions.clear()
        self._session.delete(project)
        self._session.commit()
        return unlinked

    def _delete_expression(self, id: UUID) -> Optional[Tuple[int, int]]:
        expression = self._find(ExpressionEntity, id)
        if expression is None:
            return None

        translations = list(expression.translations)
        for translation in translations:
            expression.translations.discard(translation)
            self._session.delete(translation)

        projects = list(expression.projects)
        for project in projects:
            project.expressions.discard(expression)

        self._session.delete(expression)
        self._session.commit()
        return len(translations), len(projects)

    def _delete_translation(self, id: UUID) -> bool:
        translation = self._find(TranslationEntity, id)
        if translation is None:
            return False
        if translation.expression is not None:
            translation.expression.translations.discard(translation)
        self._session.delete(translation)
        self._session.commit()
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load_project(self, id: UUID) -> Optional[Project]:
        entity = self._find(ProjectEntity, id)
        if entity is None:
            return None
        return project_from_entity(entity, self.default_language)

    def _load_projects(self) -> Iterable[Project]:
        entities = self._session.scalars(select(ProjectEntity)).all()
        return [project_from_entity(e, self.default_language) for e in entities]

    def _load_expression(self, id: UUID) -> Optional[Expression]:
        entity = self._find(ExpressionEntity, id)
        if entity is None:
            return None
        return expression_from_entity(entity, self.default_language)

    def _load_expressions(self) -> Iterable[Expression]:
        entities = self._session.scalars(select(ExpressionEntity)).all()
        return [expression_from_entity(e, self.default_language) for e in entities]

    def _load_translation(self, id: UUID) -> Optional[Translation]:
        entity = self._find(TranslationEntity, id)
        if entity is None:
            return None
        return translation_from_entity(entity, self.default_language)

    def _load_translations(self) -> Iterable[Translation]:
        entities = self._session.scalars(select(TranslationEntity)).all()
        return [translation_from_entity(e, self.default_language) for e in entities]
