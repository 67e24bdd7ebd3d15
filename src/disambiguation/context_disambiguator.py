"""Context-based disambiguation: groups mentions that appear in similar surroundings."""

from __future__ import annotations

from collections import defaultdict
from typing import DefaultDict, FrozenSet, List, Optional, Sequence, Set

from loguru import logger

from src.disambiguation.base import (
    group_similar_entities,
    label_group,
    merge_by_id,
    split_by_tenant,
)
from src.disambiguation.ids import IdGenerator, UuidIdGenerator
from src.disambiguation.similarity import extract_key_terms, jaccard_similarity
from src.extraction.models import AttributeKey, Entity, EntityType
from src.storage.entity_repository import EntityRepository

SUPPORTED_TYPES = frozenset(
    {
        EntityType.PERSON,
        EntityType.ORGANIZATION,
        EntityType.LOCATION,
        EntityType.PRODUCT,
        EntityType.TECHNICAL_TERM,
        EntityType.JOB_TITLE,
        EntityType.DATABASE_TABLE,
        EntityType.DATABASE_COLUMN,
        EntityType.API,
    }
)


class ContextBasedDisambiguator:
    """Clusters same-type entities by Jaccard overlap of their context key terms.

    Entities without ``original_context`` are passed through.
    """

    name = "context"
    method = "Context"

    def __init__(
        self,
        context_similarity_threshold: float = 0.6,
        *,
        id_generator: Optional[IdGenerator] = None,
        repository: Optional[EntityRepository] = None,
    ) -> None:
        self.context_similarity_threshold = max(0.0, min(1.0, context_similarity_threshold))
        self.id_generator = id_generator or UuidIdGenerator()
        self.repository = repository

    def get_supported_entity_types(self) -> Set[EntityType]:
        return set(SUPPORTED_TYPES)

    def context_similarity(self, first: Entity, second: Entity) -> float:
        if first.type != second.type:
            return 0.0
        return jaccard_similarity(
            extract_key_terms(first.original_context), extract_key_terms(second.original_context)
        )

    def disambiguate_entities(
        self, entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        if entities is None:
            raise ValueError("entities must not be None")

        entity_list = list(entities)
        logger.info(
            "Disambiguating {} entities using context-based approach for tenant {}",
            len(entity_list),
            tenant_id,
        )
        if not entity_list:
            logger.info("No entities to disambiguate")
            return []

        try:
            by_type: DefaultDict[EntityType, List[Entity]] = defaultdict(list)
            for entity in split_by_tenant(entity_list, tenant_id, self.name):
                if entity.type in SUPPORTED_TYPES and entity.original_context:
                    by_type[entity.type].append(entity)
            logger.debug(
                "Found {} entities with context information",
                sum(len(items) for items in by_type.values()),
            )

            updated: List[Entity] = []
            for entity_type, entities_of_type in by_type.items():
                terms: List[FrozenSet[str]] = [
                    extract_key_terms(entity.original_context) for entity in entities_of_type
                ]

                def score(i: int, j: int) -> float:
                    return jaccard_similarity(terms[i], terms[j])

                for group in group_similar_entities(
                    entities_of_type,
                    score,
                    self.context_similarity_threshold,
                    include_grouped_candidates=False,
                ):
                    _, labelled = label_group(
                        group,
                        self.id_generator,
                        self.method,
                        lambda member: (
                            {AttributeKey.CONTEXT_SIMILARITY_SCORE: group.scores[member.id]}
                            if member.id in group.scores
                            else {}
                        ),
                    )
                    updated.extend(labelled)
        except Exception as exc:
            logger.error("Error during context-based entity disambiguation: {}", exc)
            raise

        logger.info(
            "Completed context-based disambiguation. Updated {} of {} entities",
            len(updated),
            len(entity_list),
        )
        return merge_by_id(entity_list, updated)

    def find_related_entities(self, entity: Entity, tenant_id: str) -> List[Entity]:
        """Known entities of the same tenant and type appearing in a similar context."""
        if self.repository is None:
            logger.info("Finding related entities requires an entity repository; none configured")
            return []
        if not entity.original_context:
            return []

        return [
            candidate
            for candidate in self.repository.list_entities(tenant_id, entity_type=entity.type)
            if candidate.id != entity.id
            and self.context_similarity(entity, candidate) >= self.context_similarity_threshold
        ]
