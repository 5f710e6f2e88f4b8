"""Backend-neutral entity models for the translation catalog.

These are frozen dataclasses (not Pydantic models): every backend converts
its storage records into these structures, and every catalog operation
accepts and returns them. Validation is limited to the construction rules
below; storage-level integrity is the backend's concern.

Key rules:
  - A project name and an expression key are never empty
  - The zero UUID is a placeholder; inserting it assigns a fresh uuid4
  - Expression.translations is always sorted by canonical locale identifier
  - Project.expressions is always sorted by key (empty when unresolved)
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Tuple
from uuid import UUID, uuid4

from modules.catalog.domain.errors import InvalidValue
from modules.catalog.domain.locales import (
    LanguageCode,
    LocaleTuple,
    RegionCode,
    ScriptCode,
    locale_identifier,
    locale_matches,
    parse_language,
    parse_region,
    parse_script,
)

ZERO_UUID = UUID(int=0)


class EntityKind(str, Enum):
    """Kinds of catalog entities."""

    PROJECT = "project"
    EXPRESSION = "expression"
    TRANSLATION = "translation"

    @property
    def directory(self) -> str:
        """Directory name used by the document store (e.g., "Projects")."""
        return f"{self.value.capitalize()}s"


class TranslationState(str, Enum):
    """Review state of a translation."""

    NEW = "new"
    NEEDS_REVIEW = "needs_review"
    TRANSLATED = "translated"

    @classmethod
    def resolve(cls, raw: Optional[str]) -> "TranslationState":
        """Resolve a stored state; absent or unknown values are NEW."""
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls.NEW
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NEW


def is_zero_uuid(value: Optional[UUID]) -> bool:
    """True for a missing or placeholder (all-zero) UUID."""
    return value is None or value == ZERO_UUID


def new_uuid() -> UUID:
    return uuid4()


@dataclass(frozen=True)
class Translation:
    """A locale-specific rendered value of an expression.

    Attributes:
        id: Public UUID (zero until inserted).
        expression_id: UUID of the owning expression.
        language: Mandatory language code.
        script: Optional script code.
        region: Optional region code.
        value: The rendered text (may be empty).
        state: Review state.
    """

    expression_id: UUID
    language: LanguageCode
    value: str = ""
    script: Optional[ScriptCode] = None
    region: Optional[RegionCode] = None
    state: TranslationState = TranslationState.NEW
    id: UUID = ZERO_UUID

    def __post_init__(self):
        if self.value is None:
            object.__setattr__(self, "value", "")
        object.__setattr__(self, "language", parse_language(self.language))
        if self.script is not None:
            object.__setattr__(self, "script", parse_script(self.script))
        if self.region is not None:
            object.__setattr__(self, "region", parse_region(self.region))
        object.__setattr__(self, "state", TranslationState.resolve(self.state))

    @property
    def locale(self) -> LocaleTuple:
        return LocaleTuple(self.language, self.script, self.region)

    @property
    def locale_identifier(self) -> str:
        return locale_identifier(self.language, self.script, self.region)

    def with_expression(self, expression_id: UUID) -> "Translation":
        """Copy of this translation bound to another expression."""
        return replace(self, expression_id=expression_id)

    def with_id(self, id: UUID) -> "Translation":
        return replace(self, id=id)


def translation_sort_key(translation: Translation) -> Tuple[str, str]:
    return (translation.locale_identifier, str(translation.id))


@dataclass(frozen=True)
class Expression:
    """A translatable key with its default value and translations.

    Attributes:
        id: Public UUID (zero until inserted).
        key: Lookup key (non-empty).
        name: Human readable label (may be empty).
        default_language: Language of ``default_value``.
        default_value: Base value in the default language (may be empty).
        context: Optional note for translators.
        feature: Optional feature tag.
        translations: Owned translations, sorted by locale identifier.
    """

    key: str
    name: str = ""
    default_language: LanguageCode = LanguageCode.EN
    default_value: str = ""
    context: Optional[str] = None
    feature: Optional[str] = None
    translations: Tuple[Translation, ...] = field(default_factory=tuple)
    id: UUID = ZERO_UUID

    def __post_init__(self):
        if self.key is None or not str(self.key).strip():
            raise InvalidValue("Expression key must not be empty")
        if self.name is None:
            object.__setattr__(self, "name", "")
        if self.default_value is None:
            object.__setattr__(self, "default_value", "")
        object.__setattr__(
            self, "default_language", parse_language(self.default_language)
        )
        object.__setattr__(
            self,
            "translations",
            tuple(sorted(self.translations or (), key=translation_sort_key)),
        )

    def translation_for(
        self,
        language: LanguageCode,
        script: Optional[ScriptCode] = None,
        region: Optional[RegionCode] = None,
    ) -> Optional[Translation]:
        """Translation with exactly this locale, if any."""
        for translation in self.translations:
            if locale_matches(translation.locale, language, script, region):
                return translation
        return None

    def value_for(
        self,
        language: LanguageCode,
        script: Optional[ScriptCode] = None,
        region: Optional[RegionCode] = None,
    ) -> Optional[str]:
        """Value for an exact locale.

        The default value answers for the bare default language when no
        translation overrides it.
        """
        translation = self.translation_for(language, script, region)
        if translation is not None:
            return translation.value
        if (
            language == self.default_language
            and script is None
            and region is None
            and self.default_value
        ):
            return self.default_value
        return None

    def value_or_default(
        self,
        language: LanguageCode,
        script: Optional[ScriptCode] = None,
        region: Optional[RegionCode] = None,
    ) -> str:
        """Value for the locale, falling back to the bare language then the default value."""
        value = self.value_for(language, script, region)
        if value is None and (script is not None or region is not None):
            value = self.value_for(language)
        return value if value is not None else self.default_value

    def has_values_for(self, locales: Iterable[LocaleTuple]) -> bool:
        """True when a non-empty value exists for every given locale."""
        for locale in locales:
            if not self.value_for(locale.language, locale.script, locale.region):
                return False
        return True

    def with_translations(
        self, translations: Iterable[Translation]
    ) -> "Expression":
        return replace(self, translations=tuple(translations))

    def with_id(self, id: UUID) -> "Expression":
        return replace(self, id=id)


def expression_sort_key(expression: Expression) -> Tuple[str, str]:
    return (expression.key, str(expression.id))


@dataclass(frozen=True)
class Project:
    """A named group of expressions.

    Attributes:
        id: Public UUID (zero until inserted).
        name: Project name (non-empty).
        expressions: Member expressions, sorted by key.
    """

    name: str
    expressions: Tuple[Expression, ...] = field(default_factory=tuple)
    id: UUID = ZERO_UUID

    def __post_init__(self):
        if self.name is None or not str(self.name).strip():
            raise InvalidValue("Project name must not be empty")
        object.__setattr__(
            self,
            "expressions",
            tuple(sorted(self.expressions or (), key=expression_sort_key)),
        )

    def with_expressions(self, expressions: Iterable[Expression]) -> "Project":
        return replace(self, expressions=tuple(expressions))

    def with_id(self, id: UUID) -> "Project":
        return replace(self, id=id)


def project_sort_key(project: Project) -> Tuple[str, str]:
    return (project.name, str(project.id))
