"""Name-based disambiguation: groups mentions whose names are near-identical."""

from __future__ import annotations

from collections import defaultdict
from typing import DefaultDict, List, Optional, Sequence, Set

from loguru import logger

from src.disambiguation.base import (
    group_similar_entities,
    label_group,
    merge_by_id,
    split_by_tenant,
)
from src.disambiguation.ids import IdGenerator, UuidIdGenerator
from src.disambiguation.similarity import (
    calculate_similarity,
    name_similarity_matrix,
    person_adjusted_similarity,
)
from src.extraction.models import Entity, EntityType
from src.storage.entity_repository import EntityRepository

SUPPORTED_TYPES = frozenset(
    {
        EntityType.PERSON,
        EntityType.ORGANIZATION,
        EntityType.LOCATION,
        EntityType.PRODUCT,
        EntityType.PROJECT,
        EntityType.TECHNICAL_TERM,
        EntityType.JOB_TITLE,
    }
)


class NameBasedDisambiguator:
    """Clusters same-type entities by normalized edit-distance similarity of their names."""

    name = "name"
    method = "Name"

    def __init__(
        self,
        similarity_threshold: float = 0.8,
        *,
        id_generator: Optional[IdGenerator] = None,
        repository: Optional[EntityRepository] = None,
    ) -> None:
        self.similarity_threshold = max(0.0, min(1.0, similarity_threshold))
        self.id_generator = id_generator or UuidIdGenerator()
        self.repository = repository

    def get_supported_entity_types(self) -> Set[EntityType]:
        return set(SUPPORTED_TYPES)

    def similarity(self, first: Entity, second: Entity) -> float:
        """Name similarity with the same-surname floor for people."""
        return person_adjusted_similarity(first, second, calculate_similarity(first, second))

    def disambiguate_entities(
        self, entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        if entities is None:
            raise ValueError("entities must not be None")

        entity_list = list(entities)
        logger.info(
            "Disambiguating {} entities using name-based approach for tenant {}",
            len(entity_list),
            tenant_id,
        )
        if not entity_list:
            logger.info("No entities to disambiguate")
            return []

        try:
            by_type: DefaultDict[EntityType, List[Entity]] = defaultdict(list)
            for entity in split_by_tenant(entity_list, tenant_id, self.name):
                if entity.type in SUPPORTED_TYPES:
                    by_type[entity.type].append(entity)

            updated: List[Entity] = []
            for entity_type, entities_of_type in by_type.items():
                logger.debug(
                    "Processing {} entities of type {}", len(entities_of_type), entity_type.value
                )
                matrix = name_similarity_matrix([entity.name for entity in entities_of_type])

                def score(i: int, j: int) -> float:
                    return person_adjusted_similarity(
                        entities_of_type[i], entities_of_type[j], float(matrix[i, j])
                    )

                for group in group_similar_entities(entities_of_type, score, self.similarity_threshold):
                    _, labelled = label_group(group, self.id_generator, self.method)
                    updated.extend(labelled)
        except Exception as exc:
            logger.error("Error during name-based entity disambiguation: {}", exc)
            raise

        logger.info(
            "Completed name-based disambiguation. Updated {} of {} entities",
            len(updated),
            len(entity_list),
        )
        return merge_by_id(entity_list, updated)

    def find_related_entities(self, entity: Entity, tenant_id: str) -> List[Entity]:
        """Known entities of the same tenant and type whose names score above the threshold."""
        if self.repository is None:
            logger.info("Finding related entities requires an entity repository; none configured")
            return []

        related: List[Entity] = []
        for candidate in self.repository.list_entities(tenant_id, entity_type=entity.type):
            if candidate.id == entity.id:
                continue
            shares_group = (
                entity.is_disambiguated and candidate.disambiguation_id == entity.disambiguation_id
            )
            if shares_group or self.similarity(entity, candidate) >= self.similarity_threshold:
                related.append(candidate)
        return related
