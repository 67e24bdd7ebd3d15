"""Orchestrates disambiguators and coreference resolution over an entity set."""

from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from src.disambiguation.base import EntityDisambiguator, merge_by_id
from src.disambiguation.coreference import CoreferenceResolver
from src.extraction.models import Entity


class DisambiguationService:
    """Runs disambiguators in order, then links coreferences.

    Each disambiguator only sees the entities whose type it supports; its
    results are merged back by id so later disambiguators observe earlier
    assignments (the first id assigned to an entity is kept).
    """

    def __init__(
        self,
        disambiguators: Sequence[EntityDisambiguator],
        coreference_resolver: CoreferenceResolver,
    ) -> None:
        if disambiguators is None:
            raise ValueError("disambiguators must not be None")
        if coreference_resolver is None:
            raise ValueError("coreference_resolver must not be None")
        self.disambiguators: List[EntityDisambiguator] = list(disambiguators)
        self.coreference_resolver = coreference_resolver

    def process_entities(
        self, entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        if entities is None:
            raise ValueError("entities must not be None")

        entity_list = list(entities)
        logger.info(
            "Processing {} entities for disambiguation for tenant {}", len(entity_list), tenant_id
        )
        if not entity_list:
            logger.info("No entities to process")
            return []

        processed = entity_list
        try:
            for disambiguator in self.disambiguators:
                supported = disambiguator.get_supported_entity_types()
                to_process = [entity for entity in processed if entity.type in supported]
                if not to_process:
                    continue
                logger.info(
                    "Applying {} disambiguator to {} entities", disambiguator.name, len(to_process)
                )
                processed = merge_by_id(
                    processed, disambiguator.disambiguate_entities(to_process, tenant_id)
                )
        except Exception as exc:
            logger.error("Error processing entities for disambiguation: {}", exc)
            raise

        logger.info("Completed entity disambiguation. Processed {} entities", len(processed))
        return processed

    def resolve_coreferences(
        self, text: Optional[str], entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        if not text:
            raise ValueError("text must not be empty")
        if entities is None:
            raise ValueError("entities must not be None")

        logger.info("Resolving coreferences in content for tenant {}", tenant_id)
        try:
            return self.coreference_resolver.resolve_coreferences(text, entities, tenant_id)
        except Exception as exc:
            logger.error("Error resolving coreferences: {}", exc)
            raise

    def disambiguate_and_resolve(
        self, text: Optional[str], entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        """Disambiguate, then resolve coreferences against the original text."""
        disambiguated = self.process_entities(entities, tenant_id)
        if not disambiguated:
            return []
        return self.resolve_coreferences(text, disambiguated, tenant_id)

    def resolve_against_knowledge_graph(self, entity: Optional[Entity], tenant_id: str) -> List[Entity]:
        """Known entities related to ``entity``, via the first disambiguator supporting its type."""
        if entity is None:
            raise ValueError("entity must not be None")

        logger.info(
            "Resolving entity '{}' of type {} against known entities for tenant {}",
            entity.name,
            entity.type.value,
            tenant_id,
        )
        disambiguator = next(
            (d for d in self.disambiguators if entity.type in d.get_supported_entity_types()),
            None,
        )
        if disambiguator is None:
            logger.warning("No disambiguator found for entity type {}", entity.type.value)
            return []

        try:
            return disambiguator.find_related_entities(entity, tenant_id)
        except Exception as exc:
            logger.error("Error resolving entity against known entities: {}", exc)
            raise
