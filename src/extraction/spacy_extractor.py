"""spaCy-based entity extractor.

Wraps a spaCy pipeline (loaded by name or injected) and maps its entity labels
onto :class:`EntityType`. Labels without a mapping are dropped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

import spacy
from loguru import logger
from spacy.language import Language
from spacy.tokens import Doc

from src.extraction.base import (
    DEFAULT_CONTEXT_WINDOW,
    create_entity,
    extract_from_structured_data,
)
from src.extraction.models import AttributeKey, Entity, EntityType
from src.utils.config import SpacyConfig

DEFAULT_LABEL_MAP: Dict[str, EntityType] = {
    "PERSON": EntityType.PERSON,
    "ORG": EntityType.ORGANIZATION,
    "GPE": EntityType.LOCATION,
    "LOC": EntityType.LOCATION,
    "FAC": EntityType.LOCATION,
    "PRODUCT": EntityType.PRODUCT,
    "DATE": EntityType.DATE_TIME,
    "TIME": EntityType.DATE_TIME,
    "MONEY": EntityType.MONEY,
    "PERCENT": EntityType.PERCENTAGE,
    "QUANTITY": EntityType.MEASUREMENT,
    "CARDINAL": EntityType.NUMBER,
    "WORK_OF_ART": EntityType.DOCUMENT,
    "LAW": EntityType.DOCUMENT,
}


class SpacyEntityExtractor:
    """spaCy NER wrapper producing pipeline entities."""

    name = "spacy"

    def __init__(
        self,
        config: Optional[SpacyConfig] = None,
        nlp: Optional[Language] = None,
        *,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
    ) -> None:
        self.config = config or SpacyConfig()
        self.nlp: Language = nlp or self._load_model(self.config.model)
        self.context_window = context_window

        self.label_map: Dict[str, EntityType] = dict(DEFAULT_LABEL_MAP)
        for label, type_name in self.config.label_map.items():
            self.label_map[label.upper()] = EntityType.parse(type_name)

        logger.info(
            "Initialized SpacyEntityExtractor",
            model=self.config.model,
            pipes=list(self.nlp.pipe_names),
        )

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        if not text:
            logger.warning("Empty content provided for spaCy extraction")
            return []

        entities = self._collect_entities(self.nlp(text), source_id, tenant_id)
        logger.info("Extracted {} entities using spaCy", len(entities))
        return entities

    def extract_entities_batch(
        self, texts: Sequence[Optional[str]], source_id: Optional[str], tenant_id: str
    ) -> List[List[Entity]]:
        """Run several texts through ``nlp.pipe``; one entity list per input text."""
        results: List[List[Entity]] = [[] for _ in texts]
        indexed = [(index, text) for index, text in enumerate(texts) if text]
        if len(indexed) < len(texts):
            logger.warning(
                "Skipping empty texts in spaCy batch", skipped=len(texts) - len(indexed)
            )

        docs = self.nlp.pipe((text for _, text in indexed), batch_size=self.config.batch_size)
        for (index, _), doc in zip(indexed, docs):
            results[index] = self._collect_entities(doc, source_id, tenant_id)

        logger.info(
            "Extracted {} entities from {} texts using spaCy",
            sum(len(found) for found in results),
            len(texts),
        )
        return results

    def _collect_entities(
        self, doc: Doc, source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        entities: List[Entity] = []
        for ent in doc.ents:
            entity_type = self.label_map.get(ent.label_)
            if entity_type is None:
                logger.debug("Skipping unmapped spaCy label {}", ent.label_)
                continue
            entities.append(
                create_entity(
                    ent.text,
                    entity_type,
                    source_id,
                    tenant_id,
                    self.config.confidence,
                    start=ent.start_char,
                    length=ent.end_char - ent.start_char,
                    text=doc.text,
                    window=self.context_window,
                    attributes={
                        AttributeKey.SOURCE.value: "spacy",
                        "Label": ent.label_,
                    },
                )
            )
        return entities

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        return extract_from_structured_data(
            self.extract_entities, data, source_id, tenant_id, extractor_name=self.name
        )

    def get_supported_entity_types(self) -> Set[EntityType]:
        return set(self.label_map.values())

    def _load_model(self, model_name: str) -> Language:
        """Load spaCy model with minimal validation."""
        try:
            return spacy.load(model_name)
        except OSError as exc:
            raise RuntimeError(
                f"spaCy model '{model_name}' is not installed. "
                f"Install it with `python -m spacy download {model_name}`."
            ) from exc
