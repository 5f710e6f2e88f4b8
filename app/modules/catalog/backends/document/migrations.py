"""Forward migrations for catalog JSON documents.

Each document carries a ``schemaVersion`` tag; a document without one is
version 1. Migrations are pure ``dict -> dict`` transforms applied in order
on read. The migrated content is only persisted when the document is next
written.

Versions:
  1: base layout
  2: expressions gain ``defaultValue``; the catalog fills it from the bare
     default-language translation, which it then drops (empty string if none)
  3: translations gain ``state``; migrated translations need review
"""

from typing import Callable, Dict, List, Tuple

from modules.catalog.domain.errors import InvalidValue
from modules.catalog.domain.models import EntityKind, TranslationState

SCHEMA_VERSION_KEY = "schemaVersion"
CURRENT_VERSION = 3

Document = Dict[str, object]
Migration = Callable[[EntityKind, Document], Document]


def _v1_to_v2(kind: EntityKind, document: Document) -> Document:
    migrated = dict(document)
    if kind is EntityKind.EXPRESSION:
        migrated.setdefault("defaultValue", "")
    migrated[SCHEMA_VERSION_KEY] = 2
    return migrated


def _v2_to_v3(kind: EntityKind, document: Document) -> Document:
    migrated = dict(document)
    if kind is EntityKind.TRANSLATION and migrated.get("state") is None:
        migrated["state"] = TranslationState.NEEDS_REVIEW.value
    migrated[SCHEMA_VERSION_KEY] = 3
    return migrated


# MIGRATIONS[n - 1] upgrades version n to n + 1
MIGRATIONS: List[Migration] = [_v1_to_v2, _v2_to_v3]


def document_version(document: Document) -> int:
    """Schema version of a raw document (1 when untagged).

    Raises:
        InvalidValue: If the tag is not a positive integer
    """
    raw = document.get(SCHEMA_VERSION_KEY, 1)
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise InvalidValue(f"Invalid {SCHEMA_VERSION_KEY}: {raw!r}")
    return raw


def migrate(kind: EntityKind, document: Document) -> Tuple[Document, int]:
    """Upgrade a raw document to CURRENT_VERSION.

    Args:
        kind: Kind of entity the document describes
        document: Decoded JSON object (left unmodified)

    Returns:
        (migrated document, original version)

    Raises:
        InvalidValue: If the document is newer than CURRENT_VERSION or its
            version tag is invalid
    """
    version = document_version(document)
    if version > CURRENT_VERSION:
        raise InvalidValue(
            f"{kind.value} document has schema version {version}, "
            f"newer than supported version {CURRENT_VERSION}"
        )

    migrated = dict(document)
    for step in MIGRATIONS[version - 1 :]:
        migrated = step(kind, migrated)
    return migrated, version
