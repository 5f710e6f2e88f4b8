"""Errors for the catalog module.

Every error is surfaced to the caller untouched; backends translate their
storage-specific failures into these types at the adapter seam.
"""

from typing import Any, Optional


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Example:
        try:
            catalog.delete_expression(expression_id)
        except CatalogError as e:
            logger.error("catalog_error", error=str(e))
    """

    pass


class NotFound(CatalogError):
    """Raised when an operation targets a UUID absent from the store.

    Attributes:
        kind: Entity kind name ("project", "expression", "translation")
        id: The missing identifier
    """

    def __init__(self, kind: Any, id: Any):
        self.kind = getattr(kind, "value", kind)
        self.id = id
        super().__init__(f"No {self.kind} with id '{id}'")


class DuplicateIdentity(CatalogError):
    """Raised when a write collides with an existing UUID or unique value.

    Unique values are an expression's key and a translation's locale within
    its expression; ``id`` is then the UUID of the entity already holding it.
    """

    def __init__(self, kind: Any, id: Any, message: Optional[str] = None):
        self.kind = getattr(kind, "value", kind)
        self.id = id
        super().__init__(message or f"A {self.kind} with id '{id}' already exists")


class InvalidForeignReference(CatalogError):
    """Raised when a translation or membership link points at a missing entity.

    Also raised by the document backend when it reads a dangling reference
    left by an interrupted cascade.
    """

    def __init__(self, kind: Any, id: Any, message: Optional[str] = None):
        self.kind = getattr(kind, "value", kind)
        self.id = id
        super().__init__(message or f"Reference to missing {self.kind} '{id}'")


class InvalidValue(CatalogError):
    """Raised when a record cannot be built into a valid entity."""

    pass


class UnhandledConversion(InvalidValue):
    """Raised when a stored relational row holds a malformed UUID or locale code."""

    pass


class UnknownCode(CatalogError, ValueError):
    """Raised when a locale code string is not in the known code set.

    Attributes:
        code_type: "language", "script", "region" or "locale"
        value: The rejected string
    """

    def __init__(self, code_type: str, value: Any):
        self.code_type = code_type
        self.value = value
        super().__init__(f"Unknown {code_type} code: '{value}'")
