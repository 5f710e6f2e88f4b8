# modules/catalog/__init__.py
"""Translation catalog module.

Manages projects, expressions and translations behind one storage-agnostic
contract with interchangeable backends:

- graph: SQLAlchemy ORM object graph
- relational: normalized SQLAlchemy Core tables
- document: one JSON file per entity with versioned schemas

Usage:
    from modules.catalog import get_catalog, Expression, Translation

    with get_catalog() as catalog:
        expression = catalog.insert_expression(Expression(key="greeting"))
"""

from modules.catalog.backends import available_backends, register_backend
from modules.catalog.backends.base import Catalog
from modules.catalog.domain import (
    CatalogError,
    DuplicateIdentity,
    EntityKind,
    Expression,
    InvalidForeignReference,
    InvalidValue,
    LanguageCode,
    LocaleTuple,
    NotFound,
    Project,
    RegionCode,
    ScriptCode,
    Translation,
    TranslationState,
    UnhandledConversion,
    UnknownCode,
)
from modules.catalog.factory import get_catalog
from modules.catalog.importer import (
    ExpressionImporter,
    ImportOperation,
    ImportOperationKind,
    expressions_from_mapping,
)

__all__ = [
    "Catalog",
    "get_catalog",
    "available_backends",
    "register_backend",
    "CatalogError",
    "DuplicateIdentity",
    "InvalidForeignReference",
    "InvalidValue",
    "NotFound",
    "UnhandledConversion",
    "UnknownCode",
    "EntityKind",
    "Expression",
    "Project",
    "Translation",
    "TranslationState",
    "LanguageCode",
    "LocaleTuple",
    "RegionCode",
    "ScriptCode",
    "ExpressionImporter",
    "ImportOperation",
    "ImportOperationKind",
    "expressions_from_mapping",
]
