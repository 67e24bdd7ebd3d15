"""Shared data models for extraction and disambiguation modules."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Closed set of values an attribute may hold. Entity references are stored as
# the referenced entity's id string.
AttributeValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class EntityType(str, Enum):
    """Entity categories recognised by the pipeline."""

    PERSON = "Person"
    ORGANIZATION = "Organization"
    LOCATION = "Location"
    DATE_TIME = "DateTime"
    MONEY = "Money"
    PERCENTAGE = "Percentage"
    EMAIL = "Email"
    PHONE_NUMBER = "PhoneNumber"
    URL = "Url"
    PRODUCT = "Product"
    TECHNICAL_TERM = "TechnicalTerm"
    JOB_TITLE = "JobTitle"
    SKILL = "Skill"
    CODE_SNIPPET = "CodeSnippet"
    DATABASE_TABLE = "DatabaseTable"
    DATABASE_COLUMN = "DatabaseColumn"
    DATABASE_SCHEMA = "DatabaseSchema"
    NUMBER = "Number"
    MEASUREMENT = "Measurement"
    CUSTOM = "Custom"
    PROJECT = "Project"
    DOCUMENT = "Document"
    API = "Api"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str) -> "EntityType":
        """Resolve a type from its value or member name, ignoring case."""
        lowered = value.strip().lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        raise ValueError(f"Unknown entity type: {value}")


class AttributeKey(str, Enum):
    """Well-known attribute keys written by extractors and disambiguators."""

    PATTERN_NAME = "PatternName"
    RULE_NAME = "RuleName"
    FIELD_NAME = "FieldName"
    SOURCE = "Source"
    IS_PRIMARY_ENTITY = "IsPrimaryEntity"
    ENTITY_GROUP_SIZE = "EntityGroupSize"
    DISAMBIGUATION_METHOD = "DisambiguationMethod"
    CONTEXT_SIMILARITY_SCORE = "ContextSimilarityScore"
    REFERENCE_TYPE = "ReferenceType"
    REFERENCE_TARGET = "ReferenceTarget"
    PRONOUN_GENDER = "PronounGender"


def _new_entity_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Entity(BaseModel):
    """A mention of a real-world object found in a text unit.

    Entities are treated as values: pipeline stages never mutate an entity they
    received, they return copies built with :meth:`with_updates`.
    """

    model_config = ConfigDict(extra="forbid", use_enum_values=False)

    id: str = Field(default_factory=_new_entity_id, frozen=True)
    name: str
    type: EntityType
    tenant_id: str
    source_id: Optional[str] = None
    confidence_score: float = Field(default=1.0, ge=0.0, le=1.0)
    start_position: Optional[int] = Field(default=None, ge=0)
    end_position: Optional[int] = Field(default=None, ge=0)
    original_context: Optional[str] = None
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)
    disambiguation_id: Optional[str] = None
    is_verified: bool = False
    version: int = 1
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def has_span(self) -> bool:
        return self.start_position is not None and self.end_position is not None

    @property
    def is_disambiguated(self) -> bool:
        return bool(self.disambiguation_id)

    def attribute(self, key: AttributeKey | str, default: Any = None) -> Any:
        """Look up an attribute by well-known key or raw string."""
        name = key.value if isinstance(key, AttributeKey) else key
        return self.attributes.get(name, default)

    def with_updates(
        self,
        *,
        attributes: Optional[Dict[AttributeKey | str, AttributeValue]] = None,
        **fields: Any,
    ) -> "Entity":
        """Return a copy with ``fields`` replaced and ``attributes`` merged in."""
        if "id" in fields:
            raise ValueError("Entity id is immutable")

        merged = dict(self.attributes)
        for key, value in (attributes or {}).items():
            merged[key.value if isinstance(key, AttributeKey) else key] = value

        update: Dict[str, Any] = {**fields, "attributes": merged, "updated_at": _utcnow()}
        copied = self.model_copy(update=update, deep=True)
        # model_copy skips validation; re-validate so bad values never slip in.
        return Entity.model_validate(copied.model_dump())
