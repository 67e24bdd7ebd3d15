"""Regex-based entity extractor for well-formed values (emails, dates, money, SQL refs)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import yaml
from loguru import logger

from src.extraction.base import (
    DEFAULT_CONTEXT_WINDOW,
    create_entity,
    extract_from_structured_data,
)
from src.extraction.models import AttributeKey, Entity, EntityType

PATTERN_CONFIDENCE = 0.9

DEFAULT_PATTERNS: Tuple[Tuple[EntityType, str, str, int], ...] = (
    (
        EntityType.EMAIL,
        "StandardEmail",
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        re.IGNORECASE,
    ),
    (
        EntityType.URL,
        "StandardUrl",
        r"(https?://(?:www\.|(?!www))[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
        r"|www\.[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
        r"|https?://(?:www\.|(?!www))[a-zA-Z0-9]+\.[^\s]{2,}"
        r"|www\.[a-zA-Z0-9]+\.[^\s]{2,})",
        re.IGNORECASE,
    ),
    (
        EntityType.PHONE_NUMBER,
        "USPhoneNumber",
        r"(?<![\w+])(?:\+\d{1,2}\s?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b",
        0,
    ),
    (EntityType.DATE_TIME, "ISODate", r"\b\d{4}-\d{2}-\d{2}\b", 0),
    (EntityType.DATE_TIME, "USDate", r"\b\d{1,2}/\d{1,2}/\d{2,4}\b", 0),
    (EntityType.DATE_TIME, "EUDate", r"\b\d{1,2}\.\d{1,2}\.\d{2,4}\b", 0),
    (EntityType.MONEY, "USD", r"\$\s?\d+(?:\.\d{2})?", 0),
    (EntityType.MONEY, "EUR", r"€\s?\d+(?:,\d{2})?", 0),
    (EntityType.MONEY, "GBP", r"£\s?\d+(?:\.\d{2})?", 0),
    (EntityType.PERCENTAGE, "StandardPercentage", r"\b\d+(?:\.\d+)?%", 0),
    (
        EntityType.DATABASE_TABLE,
        "SQLTableName",
        r"\b(?:from|join|update|into)\s+(?P<Table>[a-zA-Z][a-zA-Z0-9_]*)\b",
        re.IGNORECASE,
    ),
    (
        EntityType.DATABASE_COLUMN,
        "SQLColumnName",
        r"\b(?:select|where|group\s+by|order\s+by)\s+(?P<Column>[a-zA-Z][a-zA-Z0-9_]*)\b",
        re.IGNORECASE,
    ),
    (
        EntityType.CODE_SNIPPET,
        "FunctionDeclaration",
        r"\b(?:function|def|public|private|protected|void|async|static)\s+"
        r"(?P<FunctionName>[a-zA-Z][a-zA-Z0-9_]*)\s*\(",
        re.IGNORECASE,
    ),
)

_FLAG_NAMES = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "VERBOSE": re.VERBOSE,
}


class PatternEntityExtractor:
    """Extracts entities using regex patterns keyed by entity type."""

    name = "pattern"

    def __init__(
        self,
        patterns_path: str | Path | None = None,
        *,
        confidence: float = PATTERN_CONFIDENCE,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        include_defaults: bool = True,
    ) -> None:
        self.confidence = confidence
        self.context_window = context_window
        self._patterns: Dict[EntityType, List[Tuple[str, re.Pattern[str]]]] = {}

        if include_defaults:
            for entity_type, pattern_name, pattern, flags in DEFAULT_PATTERNS:
                self.add_pattern(entity_type, pattern_name, pattern, flags)

        if patterns_path is not None:
            for entity_type, pattern_name, pattern, flags in self._load_patterns(Path(patterns_path)):
                self.add_pattern(entity_type, pattern_name, pattern, flags)

        logger.info(
            "Initialized PatternEntityExtractor with {} patterns across {} entity types",
            sum(len(items) for items in self._patterns.values()),
            len(self._patterns),
        )

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        """Emit one entity per match of every registered pattern."""
        logger.debug("Extracting entities using regex patterns (source={})", source_id)
        if not text:
            logger.warning("Empty content provided for pattern extraction")
            return []

        entities: List[Entity] = []
        for entity_type, patterns in self._patterns.items():
            for pattern_name, pattern in patterns:
                try:
                    for match in pattern.finditer(text):
                        if not match.group(0):
                            continue
                        attributes: Dict[str, Any] = {
                            AttributeKey.PATTERN_NAME.value: pattern_name
                        }
                        for group_name, value in match.groupdict().items():
                            if value is not None:
                                attributes[group_name] = value

                        entities.append(
                            create_entity(
                                match.group(0),
                                entity_type,
                                source_id,
                                tenant_id,
                                self.confidence,
                                start=match.start(),
                                length=match.end() - match.start(),
                                text=text,
                                window=self.context_window,
                                attributes=attributes,
                            )
                        )
                except Exception as exc:  # noqa: BLE001
                    logger.error(
                        "Error extracting entities using pattern {}: {}", pattern_name, exc
                    )

        logger.info("Extracted {} entities using regex patterns", len(entities))
        return entities

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        return extract_from_structured_data(
            self.extract_entities, data, source_id, tenant_id, extractor_name=self.name
        )

    def get_supported_entity_types(self) -> Set[EntityType]:
        return set(self._patterns)

    def add_pattern(
        self, entity_type: EntityType, pattern_name: str, pattern: str, flags: int = 0
    ) -> None:
        """Register a regex for an entity type.

        Raises:
            ValueError: If the name or pattern is empty, or the pattern does not compile.
        """
        if not pattern:
            raise ValueError("pattern must not be empty")
        if not pattern_name:
            raise ValueError("pattern_name must not be empty")

        try:
            compiled = re.compile(pattern, flags)
        except re.error as exc:
            raise ValueError(f"Invalid regex pattern '{pattern}': {exc}") from exc

        self._patterns.setdefault(entity_type, []).append((pattern_name, compiled))
        logger.debug("Added pattern {} for entity type {}", pattern_name, entity_type.value)

    def pattern_names(self, entity_type: EntityType) -> List[str]:
        return [name for name, _ in self._patterns.get(entity_type, [])]

    def _load_patterns(self, path: Path) -> List[Tuple[EntityType, str, str, int]]:
        """Read extra patterns from YAML.

        Expected layout::

            patterns:
              - entity_type: Project
                name: ProjectCode
                pattern: "\\bPRJ-\\d{4}\\b"
                flags: [IGNORECASE]
        """
        if not path.exists():
            logger.warning(f"Entity patterns file not found: {path}")
            return []

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Entity patterns file must be a mapping: {path}")

        loaded: List[Tuple[EntityType, str, str, int]] = []
        for item in data.get("patterns", []) or []:
            entity_type = EntityType.parse(str(item.get("entity_type", "")))
            flags = 0
            for flag_name in item.get("flags", []) or []:
                try:
                    flags |= _FLAG_NAMES[str(flag_name).upper()]
                except KeyError as exc:
                    raise ValueError(f"Unknown regex flag '{flag_name}' in {path}") from exc
            loaded.append((entity_type, str(item.get("name", "")), str(item.get("pattern", "")), flags))
        return loaded
