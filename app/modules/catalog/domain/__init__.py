"""Domain layer - entity models, locale codes, and errors."""

from modules.catalog.domain.errors import (
    CatalogError,
    DuplicateIdentity,
    InvalidForeignReference,
    InvalidValue,
    NotFound,
    UnhandledConversion,
    UnknownCode,
)
from modules.catalog.domain.locales import (
    LanguageCode,
    LocaleTuple,
    RegionCode,
    ScriptCode,
    locale_identifier,
    parse_locale_identifier,
)
from modules.catalog.domain.models import (
    ZERO_UUID,
    EntityKind,
    Expression,
    Project,
    Translation,
    TranslationState,
    is_zero_uuid,
)

__all__ = [
    "CatalogError",
    "DuplicateIdentity",
    "InvalidForeignReference",
    "InvalidValue",
    "NotFound",
    "UnhandledConversion",
    "UnknownCode",
    "LanguageCode",
    "LocaleTuple",
    "RegionCode",
    "ScriptCode",
    "locale_identifier",
    "parse_locale_identifier",
    "ZERO_UUID",
    "EntityKind",
    "Expression",
    "Project",
    "Translation",
    "TranslationState",
    "is_zero_uuid",
]
