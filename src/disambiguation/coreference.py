"""Rule-based coreference resolution for pronouns and generic organisation phrases.

Each pronoun links to the closest preceding Person mention and each phrase such
as "the company" to the closest preceding Organization mention. Grammatical
gender is recorded on the derived entity but not used to pick the antecedent.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from src.disambiguation.ids import IdGenerator, UuidIdGenerator
from src.extraction.base import context_window
from src.extraction.models import AttributeKey, Entity, EntityType

DEFAULT_REFERENCE_CONFIDENCE = 0.7
DEFAULT_REFERENCE_CONTEXT = 75


class PronounGender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    NEUTRAL = "Neutral"


class ReferenceType(str, Enum):
    PRONOUN = "Pronoun"
    ORGANIZATION_REFERENCE = "OrganizationReference"


_PRONOUN_PATTERNS: Tuple[Tuple[PronounGender, re.Pattern[str]], ...] = (
    (PronounGender.MALE, re.compile(r"\b(he|him|his)\b", re.IGNORECASE)),
    (PronounGender.FEMALE, re.compile(r"\b(she|her|hers)\b", re.IGNORECASE)),
    (PronounGender.NEUTRAL, re.compile(r"\b(they|them|their|theirs)\b", re.IGNORECASE)),
)
_ORGANIZATION_REFERENCE = re.compile(
    r"\b(the company|the organization|the firm|the corporation|the business)\b",
    re.IGNORECASE,
)


class CoreferenceResolver:
    """Links pronouns and organisation phrases to earlier entity mentions."""

    def __init__(
        self,
        *,
        id_generator: Optional[IdGenerator] = None,
        confidence: float = DEFAULT_REFERENCE_CONFIDENCE,
        context_window: int = DEFAULT_REFERENCE_CONTEXT,
    ) -> None:
        self.id_generator = id_generator or UuidIdGenerator()
        self.confidence = max(0.0, min(1.0, confidence))
        self.context_window = context_window

    def resolve_coreferences(
        self, text: Optional[str], entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        """Return ``entities`` (antecedents possibly updated) followed by derived references.

        Raises:
            ValueError: If ``text`` is empty or ``entities`` is None.
        """
        if not text:
            raise ValueError("text must not be empty")
        if entities is None:
            raise ValueError("entities must not be None")

        logger.info("Resolving coreferences in text for tenant {}", tenant_id)
        entity_list = list(entities)
        if not entity_list:
            logger.info("No entities provided for coreference resolution")
            return []

        try:
            # Latest copy of each entity; ids backfilled onto antecedents land here.
            current: Dict[str, Entity] = {entity.id: entity for entity in entity_list}
            derived: List[Entity] = []

            people = _positioned(entity_list, EntityType.PERSON, tenant_id)
            if people:
                for position, value, gender in find_pronouns(text):
                    antecedent = _nearest_preceding(people, position)
                    if antecedent is None:
                        continue
                    derived.append(
                        self._link(
                            text,
                            position,
                            value,
                            current,
                            antecedent.id,
                            tenant_id,
                            {
                                AttributeKey.REFERENCE_TYPE: ReferenceType.PRONOUN.value,
                                AttributeKey.PRONOUN_GENDER: gender.value,
                            },
                        )
                    )

            organizations = _positioned(entity_list, EntityType.ORGANIZATION, tenant_id)
            if organizations:
                for match in _ORGANIZATION_REFERENCE.finditer(text):
                    antecedent = _nearest_preceding(organizations, match.start())
                    if antecedent is None:
                        continue
                    derived.append(
                        self._link(
                            text,
                            match.start(),
                            match.group(0),
                            current,
                            antecedent.id,
                            tenant_id,
                            {
                                AttributeKey.REFERENCE_TYPE: (
                                    ReferenceType.ORGANIZATION_REFERENCE.value
                                ),
                            },
                        )
                    )
        except Exception as exc:
            logger.error("Error resolving coreferences: {}", exc)
            raise

        logger.info("Completed coreference resolution. Found {} references", len(derived))
        return [current[entity.id] for entity in entity_list] + derived

    def _link(
        self,
        text: str,
        position: int,
        value: str,
        current: Dict[str, Entity],
        antecedent_id: str,
        tenant_id: str,
        attributes: Dict[AttributeKey, str],
    ) -> Entity:
        antecedent = current[antecedent_id]
        disambiguation_id = antecedent.disambiguation_id
        if not disambiguation_id:
            disambiguation_id = self.id_generator.new_id()
            current[antecedent_id] = antecedent.with_updates(disambiguation_id=disambiguation_id)

        logger.debug(
            "Linked '{}' at {} to {} '{}'",
            value,
            position,
            antecedent.type.value,
            antecedent.name,
        )
        return Entity(
            name=value,
            type=antecedent.type,
            tenant_id=tenant_id,
            source_id=antecedent.source_id,
            confidence_score=self.confidence,
            start_position=position,
            end_position=position + len(value),
            original_context=context_window(text, position, len(value), self.context_window),
            disambiguation_id=disambiguation_id,
            attributes={
                **{key.value: item for key, item in attributes.items()},
                AttributeKey.REFERENCE_TARGET.value: antecedent_id,
            },
        )


def find_pronouns(text: str) -> List[Tuple[int, str, PronounGender]]:
    """Every pronoun occurrence as ``(position, text, gender)``, ordered by position."""
    found = [
        (match.start(), match.group(0), gender)
        for gender, pattern in _PRONOUN_PATTERNS
        for match in pattern.finditer(text)
    ]
    return sorted(found, key=lambda item: item[0])


def _positioned(entities: Sequence[Entity], entity_type: EntityType, tenant_id: str) -> List[Entity]:
    return [
        entity
        for entity in entities
        if entity.type == entity_type and entity.has_span and entity.tenant_id == tenant_id
    ]


def _nearest_preceding(candidates: Sequence[Entity], position: int) -> Optional[Entity]:
    preceding = [
        entity
        for entity in candidates
        if entity.start_position is not None and entity.start_position < position
    ]
    if not preceding:
        return None
    return max(preceding, key=lambda entity: entity.start_position or 0)
