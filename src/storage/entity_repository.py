"""Entity repository contract and an in-memory implementation.

Disambiguators consult a repository to relate new mentions to entities that
are already known for a tenant. Persistent stores implement
:class:`EntityRepository`; :class:`InMemoryEntityRepository` serves tests and
local runs.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from loguru import logger

from src.extraction.models import Entity, EntityType


class EntityRepository(Protocol):
    def add_entities(self, entities: Iterable[Entity]) -> None: ...

    def get_entity(self, tenant_id: str, entity_id: str) -> Entity | None: ...

    def list_entities(
        self, tenant_id: str, *, entity_type: EntityType | None = None
    ) -> List[Entity]: ...

    def find_by_disambiguation_id(self, tenant_id: str, disambiguation_id: str) -> List[Entity]: ...


class InMemoryEntityRepository:
    """Dictionary-backed repository keyed by tenant, then entity id."""

    def __init__(self, entities: Optional[Iterable[Entity]] = None) -> None:
        self._entities: Dict[str, Dict[str, Entity]] = {}
        if entities is not None:
            self.add_entities(entities)

    def add_entities(self, entities: Iterable[Entity]) -> None:
        count = 0
        for entity in entities:
            self._entities.setdefault(entity.tenant_id, {})[entity.id] = entity
            count += 1
        logger.debug("Stored {} entities in memory", count)

    def get_entity(self, tenant_id: str, entity_id: str) -> Entity | None:
        return self._entities.get(tenant_id, {}).get(entity_id)

    def list_entities(
        self, tenant_id: str, *, entity_type: EntityType | None = None
    ) -> List[Entity]:
        entities = list(self._entities.get(tenant_id, {}).values())
        if entity_type is None:
            return entities
        return [entity for entity in entities if entity.type == entity_type]

    def find_by_disambiguation_id(self, tenant_id: str, disambiguation_id: str) -> List[Entity]:
        return [
            entity
            for entity in self._entities.get(tenant_id, {}).values()
            if entity.disambiguation_id == disambiguation_id
        ]
