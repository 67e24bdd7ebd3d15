"""Extractor contract and helpers shared by the extraction strategies."""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Protocol, Set, Tuple, runtime_checkable

from loguru import logger

from src.extraction.models import AttributeKey, AttributeValue, Entity, EntityType

DEFAULT_CONTEXT_WINDOW = 100


@runtime_checkable
class EntityExtractor(Protocol):
    """Strategy that scans text and produces candidate entities."""

    name: str

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]: ...

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]: ...

    def get_supported_entity_types(self) -> Set[EntityType]: ...


def context_window(
    text: str, start: int, length: int, window: int = DEFAULT_CONTEXT_WINDOW
) -> str:
    """Return ``window`` characters either side of a match, clipped to the text.

    The snippet starts at ``max(0, start - window)`` and holds at most
    ``length + 2 * window`` characters.
    """
    begin = max(0, start - window)
    size = min(len(text) - begin, length + 2 * window)
    return text[begin : begin + size]


def create_entity(
    name: str,
    entity_type: EntityType,
    source_id: Optional[str],
    tenant_id: str,
    confidence: float = 1.0,
    *,
    start: Optional[int] = None,
    length: Optional[int] = None,
    text: Optional[str] = None,
    window: int = DEFAULT_CONTEXT_WINDOW,
    attributes: Optional[Mapping[str, AttributeValue]] = None,
) -> Entity:
    """Build an entity, filling span and context when the match position is known."""
    start_position = end_position = None
    context = None
    if start is not None and length is not None:
        start_position = start
        end_position = start + length
        if text is not None:
            context = context_window(text, start, length, window)

    return Entity(
        name=name,
        type=entity_type,
        source_id=source_id,
        tenant_id=tenant_id,
        confidence_score=max(0.0, min(1.0, confidence)),
        start_position=start_position,
        end_position=end_position,
        original_context=context,
        attributes=dict(attributes or {}),
    )


def flatten_structured_data(data: Mapping[str, Any]) -> Tuple[str, List[Tuple[int, int, str]]]:
    """Render a field/value mapping as ``key: value`` lines, skipping ``None`` values.

    Returns the text and the ``(start, end, field)`` span of every line.
    """
    parts: List[str] = []
    spans: List[Tuple[int, int, str]] = []
    offset = 0
    for key, value in data.items():
        if value is None:
            continue
        line = f"{key}: {value}"
        parts.append(line + "\n")
        spans.append((offset, offset + len(line), str(key)))
        offset += len(line) + 1
    return "".join(parts), spans


def extract_from_structured_data(
    extract: Callable[[Optional[str], Optional[str], str], List[Entity]],
    data: Optional[Mapping[str, Any]],
    source_id: Optional[str],
    tenant_id: str,
    *,
    extractor_name: str,
) -> List[Entity]:
    """Default structured-data path: flatten to text and run text extraction.

    Entities whose span falls on a single field line are tagged with ``FieldName``.
    """
    logger.info("Processing structured data for entity extraction ({})", extractor_name)
    if not data:
        logger.warning("Empty structured data provided for extraction ({})", extractor_name)
        return []

    text, spans = flatten_structured_data(data)
    entities = extract(text, source_id, tenant_id)

    tagged: List[Entity] = []
    for entity in entities:
        field_name = _field_for_span(entity, spans)
        if field_name is None:
            tagged.append(entity)
            continue
        tagged.append(entity.with_updates(attributes={AttributeKey.FIELD_NAME: field_name}))
    return tagged


def _field_for_span(entity: Entity, spans: List[Tuple[int, int, str]]) -> Optional[str]:
    if not entity.has_span:
        return None
    for start, end, field_name in spans:
        if start <= entity.start_position and entity.end_position <= end:  # type: ignore[operator]
            return field_name
    return None
