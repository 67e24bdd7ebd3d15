"""Rule-based entity extractor: named matchers with contextual heuristics."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from src.extraction.base import (
    DEFAULT_CONTEXT_WINDOW,
    create_entity,
    extract_from_structured_data,
)
from src.extraction.models import AttributeKey, AttributeValue, Entity, EntityType


class RuleMatch(BaseModel):
    """A single hit produced by a rule matcher."""

    model_config = ConfigDict(frozen=True)

    value: str
    start: int = Field(ge=0)
    length: int = Field(ge=0)
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)


RuleMatcher = Callable[[str], List[RuleMatch]]


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    entity_type: EntityType
    matcher: RuleMatcher
    confidence: float = 1.0


_TITLE_PATTERN = re.compile(
    r"\b(Mr\.|Mrs\.|Ms\.|Dr\.|Prof\.|Sir|Madam)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})\b"
)
# Suffixes ending in "." cannot use a trailing \b, so the end is a non-word lookahead.
_ORGANIZATION_PATTERN = re.compile(
    r"\b([A-Z][a-zA-Z0-9]+(?:\s+[A-Z][a-zA-Z0-9]+){0,5})\s+"
    r"(Inc\.|Corp\.|LLC|Ltd\.|Limited|Corporation|Company|GmbH|Co\.|Group|Holdings)(?!\w)"
)
_LOCATION_PATTERN = re.compile(
    r"\b(in|at|from|to|near|around)\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+){0,2})\b"
)
_PRODUCT_PATTERN = re.compile(
    r"\b([A-Z][a-zA-Z0-9]+(?:\s+[A-Z][a-zA-Z0-9]+){0,3})\s+(v?[0-9]+(?:\.[0-9]+){1,3})\b"
)
_API_PATTERN = re.compile(r"\b(GET|POST|PUT|DELETE|PATCH)\s+(/api/[a-zA-Z0-9/\-_{}]+)\b")
_FULL_NAME_PATTERN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,2}\b")
_TITLE_BEFORE = re.compile(r"(?:Mr\.|Mrs\.|Ms\.|Dr\.|Prof\.|Sir|Madam)\s+$")

_ORGANIZATION_SUFFIXES = {
    "Inc", "Corp", "LLC", "Ltd", "Limited", "Corporation", "Company", "GmbH", "Co",
    "Group", "Holdings",
}
_NON_NAME_WORDS = {
    "The", "A", "An", "This", "That", "These", "Those", "In", "At", "On", "From", "To",
    "Of", "For", "And", "Or", "But", "With", "By", "Near", "Around", "After", "Before",
    "When", "While", "If", "Our", "Their", "His", "Her", "Its", "My", "Your", "We",
    "They", "He", "She", "It", "Mr", "Mrs", "Ms", "Dr", "Prof", "Sir", "Madam",
}


def match_person_with_title(text: str) -> List[RuleMatch]:
    matches: List[RuleMatch] = []
    for match in _TITLE_PATTERN.finditer(text):
        title, name = match.group(1), match.group(2)
        matches.append(
            RuleMatch(
                value=f"{title} {name}",
                start=match.start(),
                length=match.end() - match.start(),
                attributes={"Title": title, "Name": name},
            )
        )
    return matches


def match_organization_with_suffix(text: str) -> List[RuleMatch]:
    matches: List[RuleMatch] = []
    for match in _ORGANIZATION_PATTERN.finditer(text):
        name, suffix = match.group(1), match.group(2)
        matches.append(
            RuleMatch(
                value=f"{name} {suffix}",
                start=match.start(),
                length=match.end() - match.start(),
                attributes={"Name": name, "Suffix": suffix},
            )
        )
    return matches


def match_location_with_prefix(text: str) -> List[RuleMatch]:
    """Only the location is reported; the prefix word is kept as an attribute."""
    matches: List[RuleMatch] = []
    for match in _LOCATION_PATTERN.finditer(text):
        matches.append(
            RuleMatch(
                value=match.group(2),
                start=match.start(2),
                length=len(match.group(2)),
                attributes={"Prefix": match.group(1)},
            )
        )
    return matches


def match_product_with_version(text: str) -> List[RuleMatch]:
    matches: List[RuleMatch] = []
    for match in _PRODUCT_PATTERN.finditer(text):
        product, version = match.group(1), match.group(2)
        matches.append(
            RuleMatch(
                value=f"{product} {version}",
                start=match.start(),
                length=match.end() - match.start(),
                attributes={"ProductName": product, "Version": version},
            )
        )
    return matches


def match_api_endpoint(text: str) -> List[RuleMatch]:
    matches: List[RuleMatch] = []
    for match in _API_PATTERN.finditer(text):
        method, endpoint = match.group(1), match.group(2)
        matches.append(
            RuleMatch(
                value=f"{method} {endpoint}",
                start=match.start(),
                length=match.end() - match.start(),
                attributes={"Method": method, "Endpoint": endpoint},
            )
        )
    return matches


def match_person_full_name(text: str) -> List[RuleMatch]:
    """Two or three capitalised words that look like a personal name.

    Runs containing an organisation suffix, a title or a capitalised function
    word ("The", "In", ...) are rejected, as are names directly after a title
    (those belong to the titled-person rule).
    """
    matches: List[RuleMatch] = []
    for match in _FULL_NAME_PATTERN.finditer(text):
        words = match.group(0).split()
        if any(word in _ORGANIZATION_SUFFIXES or word in _NON_NAME_WORDS for word in words):
            continue
        if _TITLE_BEFORE.search(text, 0, match.start()):
            continue
        matches.append(
            RuleMatch(
                value=" ".join(words),
                start=match.start(),
                length=match.end() - match.start(),
                attributes={"FirstName": words[0], "LastName": words[-1]},
            )
        )
    return matches


DEFAULT_RULES = (
    ExtractionRule("PersonNameWithTitle", EntityType.PERSON, match_person_with_title, 0.85),
    ExtractionRule(
        "OrganizationWithSuffix", EntityType.ORGANIZATION, match_organization_with_suffix, 0.9
    ),
    ExtractionRule("LocationWithPrefix", EntityType.LOCATION, match_location_with_prefix, 0.6),
    ExtractionRule("ProductWithVersion", EntityType.PRODUCT, match_product_with_version, 0.85),
    ExtractionRule("ApiEndpoint", EntityType.API, match_api_endpoint, 0.9),
    ExtractionRule("PersonFullName", EntityType.PERSON, match_person_full_name, 0.6),
)


class RuleBasedEntityExtractor:
    """Applies an ordered list of extraction rules to text."""

    name = "rule"

    def __init__(
        self,
        *,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        include_defaults: bool = True,
    ) -> None:
        self.context_window = context_window
        self._rules: List[ExtractionRule] = []
        if include_defaults:
            for rule in DEFAULT_RULES:
                self.add_rule(rule.name, rule.entity_type, rule.matcher, rule.confidence)

    @property
    def rules(self) -> List[ExtractionRule]:
        return list(self._rules)

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        logger.debug("Extracting entities using rules (source={})", source_id)
        if not text:
            logger.warning("Empty content provided for rule-based extraction")
            return []

        entities: List[Entity] = []
        for rule in self._rules:
            try:
                for match in rule.matcher(text):
                    attributes: Dict[str, Any] = {AttributeKey.RULE_NAME.value: rule.name}
                    attributes.update(match.attributes)
                    entities.append(
                        create_entity(
                            match.value,
                            rule.entity_type,
                            source_id,
                            tenant_id,
                            rule.confidence,
                            start=match.start,
                            length=match.length,
                            text=text,
                            window=self.context_window,
                            attributes=attributes,
                        )
                    )
            except Exception as exc:  # noqa: BLE001
                logger.error("Error applying rule {}: {}", rule.name, exc)

        logger.info("Extracted {} entities using rule-based approach", len(entities))
        return entities

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        return extract_from_structured_data(
            self.extract_entities, data, source_id, tenant_id, extractor_name=self.name
        )

    def get_supported_entity_types(self) -> Set[EntityType]:
        return {rule.entity_type for rule in self._rules}

    def add_rule(
        self,
        name: str,
        entity_type: EntityType,
        matcher: Optional[RuleMatcher],
        confidence: float = 1.0,
    ) -> None:
        """Append a rule; confidence is clamped to [0, 1].

        Raises:
            ValueError: If the name is empty or no matcher is given.
        """
        if not name:
            raise ValueError("rule name must not be empty")
        if matcher is None:
            raise ValueError("rule matcher must not be None")

        self._rules.append(
            ExtractionRule(name, entity_type, matcher, max(0.0, min(1.0, confidence)))
        )
        logger.debug("Added rule {} for entity type {}", name, entity_type.value)
