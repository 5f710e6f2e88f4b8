"""Pydantic models for the on-disk catalog documents.

Field names are snake_case in Python and camelCase on disk. Every document
is written at CURRENT_VERSION.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel

from modules.catalog.backends.document.migrations import CURRENT_VERSION
from modules.catalog.domain.models import Expression, Project, Translation


class CatalogDocument(BaseModel):
    """Base for all catalog documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: UUID
    schema_version: int = Field(default=CURRENT_VERSION)

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json", by_alias=True)
        data["schemaVersion"] = CURRENT_VERSION
        return data


class ProjectDocument(CatalogDocument):
    name: str
    expression_ids: List[UUID] = Field(default_factory=list)

    @classmethod
    def from_project(
        cls, project: Project, expression_ids: Optional[List[UUID]] = None
    ) -> "ProjectDocument":
        return cls(id=project.id, name=project.name, expression_ids=expression_ids or [])


class ExpressionDocument(CatalogDocument):
    key: str
    name: str = ""
    default_language: Optional[str] = None
    default_value: str = ""
    context: Optional[str] = None
    feature: Optional[str] = None
    translation_ids: List[UUID] = Field(default_factory=list)

    # version 1 translations folded into default_value, removed on next write
    _promoted_ids: List[UUID] = PrivateAttr(default_factory=list)

    @property
    def promoted_translation_ids(self) -> List[UUID]:
        return self._promoted_ids

    def promote(self, translation_id: UUID, value: str) -> None:
        """Make a translation's value the default value and drop its id."""
        self.default_value = value
        self.translation_ids = [t for t in self.translation_ids if t != translation_id]
        self._promoted_ids.append(translation_id)

    @classmethod
    def from_expression(
        cls, expression: Expression, translation_ids: Optional[List[UUID]] = None
    ) -> "ExpressionDocument":
        return cls(
            id=expression.id,
            key=expression.key,
            name=expression.name,
            default_language=expression.default_language.value,
            default_value=expression.default_value,
            context=expression.context,
            feature=expression.feature,
            translation_ids=translation_ids or [],
        )


class TranslationDocument(CatalogDocument):
    expression_id: UUID
    language_code: Optional[str] = None
    script_code: Optional[str] = None
    region_code: Optional[str] = None
    value: str = ""
    state: Optional[str] = None

    @classmethod
    def from_translation(cls, translation: Translation) -> "TranslationDocument":
        return cls(
            id=translation.id,
            expression_id=translation.expression_id,
            language_code=translation.language.value,
            script_code=translation.script.value if translation.script else None,
            region_code=translation.region.value if translation.region else None,
            value=translation.value,
            state=translation.state.value,
        )
