"""Relational catalog backend (SQLAlchemy Core).

Normalized tables with an integer autoincrement key per row and a unique,
indexed public uuid column. Foreign keys and the project/expression join
table reference the integer key; that key (RowID) never leaves this module.

Every multi-step write runs inside a single ``engine.begin()`` transaction:
either all of its statements are observable or none are.

Row conversion is strict: a malformed uuid or an unknown locale code raises
UnhandledConversion. An absent language resolves to the catalog's default
language and an absent or unknown state resolves to ``new``.
"""

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, NewType, Optional, Tuple
from uuid import UUID

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    and_,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import IntegrityError

from infrastructure.configuration import CatalogSettings
from infrastructure.logging import get_module_logger
from modules.catalog.backends import register_backend
from modules.catalog.backends._sql import create_catalog_engine
from modules.catalog.backends.base import Catalog
from modules.catalog.domain.errors import (
    DuplicateIdentity,
    InvalidForeignReference,
    UnhandledConversion,
    UnknownCode,
)
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
    expression_sort_key,
)

logger = get_module_logger()

RowID = NewType("RowID", int)

metadata = MetaData()

project_table = Table(
    "project",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String(36), nullable=False, unique=True, index=True),
    Column("name", Text, nullable=False),
)

expression_table = Table(
    "expression",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String(36), nullable=False, unique=True, index=True),
    Column("key", Text, nullable=False, unique=True, index=True),
    Column("name", Text, nullable=False, default=""),
    Column("default_language", String(8), nullable=True),
    Column("default_value", Text, nullable=False, default=""),
    Column("context", Text, nullable=True),
    Column("feature", Text, nullable=True),
)

translation_table = Table(
    "translation",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String(36), nullable=False, unique=True, index=True),
    Column(
        "expression_id",
        Integer,
        ForeignKey("expression.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("language_code", String(8), nullable=True),
    Column("script_code", String(8), nullable=True),
    Column("region_code", String(8), nullable=True),
    Column("value", Text, nullable=False, default=""),
    Column("state", String(16), nullable=True),
)

project_expression_table = Table(
    "project_expression",
    metadata,
    Column(
        "project_id", Integer, ForeignKey("project.id", ondelete="CASCADE"), nullable=False
    ),
    Column(
        "expression_id",
        Integer,
        ForeignKey("expression.id", ondelete="CASCADE"),
        nullable=False,
    ),
    PrimaryKeyConstraint("project_id", "expression_id"),
)


def _to_uuid(raw) -> UUID:
    try:
        return UUID(str(raw))
    except (TypeError, ValueError) as e:
        raise UnhandledConversion(f"Malformed uuid in stored row: {raw!r}") from e


def _row_to_translation(
    row: Row, expression_uuid: str, default_language: Optional[LanguageCode] = None
) -> Translation:
    try:
        language = resolve_language(
            row.language_code, strict=True, default=default_language
        )
        script = resolve_script(row.script_code, strict=True)
        region = resolve_region(row.region_code, strict=True)
    except UnknownCode as e:
        raise UnhandledConversion(
            f"Unknown {e.code_type} code in translation {row.uuid}: {e.value!r}"
        ) from e
    return Translation(
        id=_to_uuid(row.uuid),
        expression_id=_to_uuid(expression_uuid),
        language=language,
        script=script,
        region=region,
        value=row.value or "",
        state=TranslationState.resolve(row.state),
    )


def _row_to_expression(
    row: Row,
    translations: Iterable[Translation],
    default_language: Optional[LanguageCode] = None,
) -> Expression:
    try:
        language = resolve_language(
            row.default_language, strict=True, default=default_language
        )
    except UnknownCode as e:
        raise UnhandledConversion(
            f"Unknown language code in expression {row.uuid}: {e.value!r}"
        ) from e
    return Expression(
        id=_to_uuid(row.uuid),
        key=row.key,
        name=row.name or "",
        default_language=language,
        default_value=row.default_value or "",
        context=row.context,
        feature=row.feature,
        translations=tuple(translations),
    )


def _translation_values(translation: Translation) -> Dict[str, Optional[str]]:
    return {
        "language_code": translation.language.value,
        "script_code": translation.script.value if translation.script else None,
        "region_code": translation.region.value if translation.region else None,
        "value": translation.value,
        "state": translation.state.value,
    }


def _expression_values(expression: Expression) -> Dict[str, Optional[str]]:
    return {
        "key": expression.key,
        "name": expression.name,
        "default_language": expression.default_language.value,
        "default_value": expression.default_value,
        "context": expression.context,
        "feature": expression.feature,
    }


@register_backend("relational")
class RelationalCatalog(Catalog):
    """Catalog stored in normalized relational tables.

    Args:
        engine: A SQLAlchemy engine; tables are created if missing.
        default_language: Language for rows stored without one; the
            configured default when None.
    """

    def __init__(
        self, engine: Engine, default_language: Optional[LanguageCode] = None
    ):
        super().__init__(default_language)
        self._engine = engine
        metadata.create_all(engine)

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "RelationalCatalog":
        engine = create_catalog_engine(settings.database_url, echo=settings.sql_echo)
        logger.info("relational_catalog_opened", url=engine.url.render_as_string())
        return cls(engine, default_language=settings.default_language)

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Internal keys
    # ------------------------------------------------------------------

    @staticmethod
    def _row_id(conn: Connection, table: Table, id: UUID) -> Optional[RowID]:
        value = conn.execute(
            select(table.c.id).where(table.c.uuid == str(id))
        ).scalar_one_or_none()
        return RowID(value) if value is not None else None

    def _exists_in(self, table: Table, id: UUID) -> bool:
        with self._engine.connect() as conn:
            return self._row_id(conn, table, id) is not None

    def _project_exists(self, id: UUID) -> bool:
        return self._exists_in(project_table, id)

    def _expression_exists(self, id: UUID) -> bool:
        return self._exists_in(expression_table, id)

    def _translation_exists(self, id: UUID) -> bool:
        return self._exists_in(translation_table, id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _insert_project(self, project: Project) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(project_table).values(uuid=str(project.id), name=project.name)
                )
        except IntegrityError as e:
            raise DuplicateIdentity(EntityKind.PROJECT, project.id) from e

    def _insert_expression(self, expression: Expression) -> None:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    insert(expression_table).values(
                        uuid=str(expression.id), **_expression_values(expression)
                    )
                )
                row_id = RowID(result.inserted_primary_key[0])
                for translation in expression.translations:
                    conn.execute(
                        insert(translation_table).values(
                            uuid=str(translation.id),
                            expression_id=row_id,
                            **_translation_values(translation),
                        )
                    )
        except IntegrityError as e:
            raise DuplicateIdentity(EntityKind.EXPRESSION, expression.id) from e

    def _insert_translation(self, translation: Translation) -> None:
        try:
            with self._engine.begin() as conn:
                expression_row = self._row_id(
                    conn, expression_table, translation.expression_id
                )
                if expression_row is None:
                    raise InvalidForeignReference(
                        EntityKind.EXPRESSION, translation.expression_id
                    )
                conn.execute(
                    insert(translation_table).values(
                        uuid=str(translation.id),
                        expression_id=expression_row,
                        **_translation_values(translation),
                    )
                )
        except IntegrityError as e:
            raise DuplicateIdentity(EntityKind.TRANSLATION, translation.id) from e

    def _update_row(self, table: Table, id: UUID, values: Dict) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                update(table).where(table.c.uuid == str(id)).values(**values)
            )
            return result.rowcount > 0

    def _update_project(self, project: Project) -> bool:
        return self._update_row(project_table, project.id, {"name": project.name})

    def _update_expression(self, expression: Expression) -> bool:
        try:
            return self._update_row(
                expression_table, expression.id, _expression_values(expression)
            )
        except IntegrityError as e:
            raise DuplicateIdentity(
                EntityKind.EXPRESSION,
                expression.id,
                f"An expression with key '{expression.key}' already exists",
            ) from e

    def _update_translation(self, translation: Translation) -> bool:
        return self._update_row(
            translation_table, translation.id, _translation_values(translation)
        )

    def _link(self, project_id: UUID, expression_id: UUID) -> bool:
        with self._engine.begin() as conn:
            project_row = self._row_id(conn, project_table, project_id)
            expression_row = self._row_id(conn, expression_table, expression_id)
            existing = conn.execute(
                select(project_expression_table.c.project_id).where(
                    and_(
                        project_expression_table.c.project_id == project_row,
                        project_expression_table.c.expression_id == expression_row,
                    )
                )
            ).first()
            if existing is not None:
                return False
            conn.execute(
                insert(project_expression_table).values(
                    project_id=project_row, expression_id=expression_row
                )
            )
            return True

    def _unlink(self, project_id: UUID, expression_id: UUID) -> bool:
        with self._engine.begin() as conn:
            project_row = self._row_id(conn, project_table, project_id)
            expression_row = self._row_id(conn, expression_table, expression_id)
            if project_row is None or expression_row is None:
                return False
            result = conn.execute(
                delete(project_expression_table).where(
                    and_(
                        project_expression_table.c.project_id == project_row,
                        project_expression_table.c.expression_id == expression_row,
                    )
                )
            )
            return result.rowcount > 0

    def _delete_project(self, id: UUID) -> Optional[int]:
        with self._engine.begin() as conn:
            row_id = self._row_id(conn, project_table, id)
            if row_id is None:
                return None
            unlinked = conn.execute(
                delete(project_expression_table).where(
                    project_expression_table.c.project_id == row_id
                )
            ).rowcount
            conn.execute(delete(project_table).where(project_table.c.id == row_id))
            return unlinked

    def _delete_expression(self, id: UUID) -> Optional[Tuple[int, int]]:
        with self._engine.begin() as conn:
            row_id = self._row_id(conn, expression_table, id)
            if row_id is None:
                return None
            translations = conn.execute(
                delete(translation_table).where(
                    translation_table.c.expression_id == row_id
                )
            ).rowcount
            projects = conn.execute(
                delete(project_expression_table).where(
                    project_expression_table.c.expression_id == row_id
                )
            ).rowcount
            conn.execute(delete(expression_table).where(expression_table.c.id == row_id))
            return translations, projects

    def _delete_translation(self, id: UUID) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(translation_table).where(translation_table.c.uuid == str(id))
            )
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _translation(self, row: Row) -> Translation:
        return _row_to_translation(row, row.expression_uuid, self.default_language)

    def _expression(self, row: Row, translations: Iterable[Translation]) -> Expression:
        return _row_to_expression(row, translations, self.default_language)

    @staticmethod
    def _translations_query():
        return select(
            translation_table, expression_table.c.uuid.label("expression_uuid")
        ).join(expression_table, translation_table.c.expression_id == expression_table.c.id)

    def _expressions_where(self, conn: Connection, *criteria) -> List[Expression]:
        query = select(expression_table)
        if criteria:
            query = query.where(*criteria)
        rows = conn.execute(query).all()
        if not rows:
            return []

        grouped: Dict[int, List[Translation]] = defaultdict(list)
        translation_rows = conn.execute(
            self._translations_query().where(
                translation_table.c.expression_id.in_([row.id for row in rows])
            )
        ).all()
        for row in translation_rows:
            grouped[row.expression_id].append(self._translation(row))

        return [self._expression(row, grouped[row.id]) for row in rows]

    def _build_project(self, conn: Connection, row: Row) -> Project:
        members = self._expressions_where(
            conn,
            expression_table.c.id.in_(
                select(project_expression_table.c.expression_id).where(
                    project_expression_table.c.project_id == row.id
                )
            ),
        )
        return Project(id=_to_uuid(row.uuid), name=row.name, expressions=tuple(members))

    def _load_project(self, id: UUID) -> Optional[Project]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(project_table).where(project_table.c.uuid == str(id))
            ).first()
            return self._build_project(conn, row) if row is not None else None

    def _load_projects(self) -> Iterable[Project]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(project_table)).all()
            return [self._build_project(conn, row) for row in rows]

    def _load_expression(self, id: UUID) -> Optional[Expression]:
        with self._engine.connect() as conn:
            found = self._expressions_where(conn, expression_table.c.uuid == str(id))
        return found[0] if found else None

    def _load_expressions(self) -> Iterable[Expression]:
        with self._engine.connect() as conn:
            return self._expressions_where(conn)

    def _load_translation(self, id: UUID) -> Optional[Translation]:
        with self._engine.connect() as conn:
            row = conn.execute(
                self._translations_query().where(translation_table.c.uuid == str(id))
            ).first()
        return self._translation(row) if row is not None else None

    def _load_translations(self) -> Iterable[Translation]:
        with self._engine.connect() as conn:
            rows = conn.execute(self._translations_query()).all()
        return [self._translation(row) for row in rows]

    # ------------------------------------------------------------------
    # Native queries
    # ------------------------------------------------------------------

    def expressions_by_key(self, key: str, exact: bool = True) -> Iterator[Expression]:
        """Expressions by exact key (indexed lookup), or by case-insensitive substring."""
        if not exact:
            yield from super().expressions_by_key(key, exact=False)
            return
        with self._engine.connect() as conn:
            found = self._expressions_where(conn, expression_table.c.key == key)
        yield from sorted(found, key=expression_sort_key)
