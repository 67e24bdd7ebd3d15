"""Disambiguator contract and the shared single-pass grouping routine."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from src.disambiguation.ids import IdGenerator
from src.extraction.models import AttributeKey, AttributeValue, Entity, EntityType

ScoreFn = Callable[[int, int], float]


class EntityDisambiguator(Protocol):
    """Strategy that links mentions of the same referent under one id."""

    name: str

    def disambiguate_entities(
        self, entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]: ...

    def find_related_entities(self, entity: Entity, tenant_id: str) -> List[Entity]: ...

    def get_supported_entity_types(self) -> Set[EntityType]: ...


class EntityGroup(BaseModel):
    """Members of one cluster, seed first, with each candidate's score against the seed."""

    model_config = ConfigDict(frozen=True)

    members: List[Entity]
    scores: Dict[str, float] = Field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.members)


def group_similar_entities(
    entities: Sequence[Entity],
    score: ScoreFn,
    threshold: float,
    *,
    include_grouped_candidates: bool = True,
) -> List[EntityGroup]:
    """Single-pass clustering of ``entities`` (all of one type).

    Entities are visited in order. Each unprocessed entity without a
    disambiguation id seeds a group and pulls in every other unprocessed entity
    scoring at least ``threshold`` against it. Entities that already carry an
    id never seed a group. With ``include_grouped_candidates`` they can still be
    pulled in as candidates; the group then takes over that id and every
    entity sharing it, and candidates carrying a different id are left out.
    Only groups with two or more members are returned.
    """
    processed: Set[str] = set()
    groups: List[EntityGroup] = []

    for seed_index, seed in enumerate(entities):
        if seed.id in processed or seed.is_disambiguated:
            continue
        processed.add(seed.id)

        members = [seed]
        scores: Dict[str, float] = {}
        adopted: Optional[str] = None
        for other_index, other in enumerate(entities):
            if other.id == seed.id or other.id in processed:
                continue
            if other.is_disambiguated:
                if not include_grouped_candidates:
                    continue
                if adopted is not None and other.disambiguation_id != adopted:
                    continue
            similarity = score(seed_index, other_index)
            if similarity >= threshold:
                members.append(other)
                scores[other.id] = similarity
                processed.add(other.id)
                if other.is_disambiguated:
                    adopted = other.disambiguation_id

        if adopted is not None:
            for sibling in entities:
                if sibling.disambiguation_id == adopted and sibling.id not in processed:
                    members.append(sibling)
                    processed.add(sibling.id)

        if len(members) > 1:
            groups.append(EntityGroup(members=members, scores=scores))

    return groups


def select_primary(members: Iterable[Entity]) -> Entity:
    """Highest confidence wins; ties go to the lowest entity id."""
    return min(members, key=lambda entity: (-entity.confidence_score, entity.id))


def label_group(
    group: EntityGroup,
    id_generator: IdGenerator,
    method: str,
    extra_attributes: Optional[Callable[[Entity], Dict[AttributeKey, AttributeValue]]] = None,
) -> Tuple[str, List[Entity]]:
    """Assign one disambiguation id to every member of ``group``.

    If members already carry an id the group adopts it. Those members keep
    their id and method; only their primary flag and group size are refreshed
    so the whole id group agrees on one primary. Returns the id and the
    updated copies of all members.
    """
    existing = next(
        (member.disambiguation_id for member in group.members if member.is_disambiguated), None
    )
    disambiguation_id = existing or id_generator.new_id()
    primary = select_primary(group.members)

    updated: List[Entity] = []
    for member in group.members:
        attributes: Dict[AttributeKey | str, AttributeValue] = {
            AttributeKey.IS_PRIMARY_ENTITY: member.id == primary.id,
            AttributeKey.ENTITY_GROUP_SIZE: group.size,
        }
        if member.is_disambiguated:
            updated.append(member.with_updates(attributes=attributes))
            continue
        attributes[AttributeKey.DISAMBIGUATION_METHOD] = method
        if extra_attributes is not None:
            attributes.update(extra_attributes(member))
        updated.append(member.with_updates(disambiguation_id=disambiguation_id, attributes=attributes))

    logger.info(
        "Disambiguated group of {} entities with ID {} using {}",
        group.size,
        disambiguation_id,
        method.lower(),
    )
    return disambiguation_id, updated


def split_by_tenant(
    entities: Sequence[Entity], tenant_id: str, disambiguator_name: str
) -> List[Entity]:
    """Entities belonging to ``tenant_id``; foreign ones are reported and left out."""
    own = [entity for entity in entities if entity.tenant_id == tenant_id]
    foreign = len(entities) - len(own)
    if foreign:
        logger.warning(
            "Skipping entities from other tenants during disambiguation",
            disambiguator=disambiguator_name,
            tenant_id=tenant_id,
            skipped=foreign,
        )
    return own


def merge_by_id(original: Sequence[Entity], updated: Iterable[Entity]) -> List[Entity]:
    """Replace entities in ``original`` by id, keeping the original order."""
    replacements = {entity.id: entity for entity in updated}
    return [replacements.get(entity.id, entity) for entity in original]
