"""Entity extraction pipeline.

Runs every registered extractor over one text unit (or one structured record)
and returns the union of their results. A failing extractor is logged and
skipped; the remaining strategies still contribute.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Sequence

from loguru import logger

from src.extraction.base import EntityExtractor
from src.extraction.models import Entity


class EntityExtractionPipeline:
    """Ordered collection of extractors with per-strategy failure isolation."""

    def __init__(
        self,
        extractors: Optional[Sequence[EntityExtractor]] = None,
        *,
        max_text_length: Optional[int] = None,
    ) -> None:
        self.max_text_length = max_text_length
        self._extractors: List[EntityExtractor] = []
        for extractor in extractors or []:
            self.register_extractor(extractor)

    def register_extractor(self, extractor: Optional[EntityExtractor]) -> None:
        if extractor is None:
            raise ValueError("extractor must not be None")
        self._extractors.append(extractor)
        logger.info("Registered entity extractor: {}", _extractor_label(extractor))

    def get_registered_extractors(self) -> List[EntityExtractor]:
        return list(self._extractors)

    def process(
        self,
        text: Optional[str],
        source_id: Optional[str],
        tenant_id: str,
        extractor_names: Optional[Sequence[str]] = None,
    ) -> List[Entity]:
        """Extract entities from ``text`` with all (or the named) extractors."""
        logger.info(
            "Processing content for entity extraction",
            source_id=source_id,
            tenant_id=tenant_id,
        )
        if not text:
            logger.warning("Empty content provided for entity extraction")
            return []

        if self.max_text_length is not None and len(text) > self.max_text_length:
            logger.warning(
                "Truncating content for entity extraction",
                length=len(text),
                max_text_length=self.max_text_length,
            )
            text = text[: self.max_text_length]

        content = text
        return self._run(
            lambda extractor: extractor.extract_entities(content, source_id, tenant_id),
            extractor_names,
            "content",
        )

    def process_structured_data(
        self,
        data: Optional[Mapping[str, Any]],
        source_id: Optional[str],
        tenant_id: str,
        extractor_names: Optional[Sequence[str]] = None,
    ) -> List[Entity]:
        """Extract entities from a flat field/value record."""
        logger.info(
            "Processing structured data for entity extraction",
            source_id=source_id,
            tenant_id=tenant_id,
        )
        if not data:
            logger.warning("Empty data provided for entity extraction")
            return []

        return self._run(
            lambda extractor: extractor.extract_entities_from_structured_data(
                data, source_id, tenant_id
            ),
            extractor_names,
            "structured data",
        )

    def _run(
        self,
        call: Callable[[EntityExtractor], List[Entity]],
        extractor_names: Optional[Sequence[str]],
        label: str,
    ) -> List[Entity]:
        extractors = self._select(extractor_names)
        if not extractors:
            logger.warning("No extractors available for processing")
            return []

        all_entities: List[Entity] = []
        for extractor in extractors:
            name = _extractor_label(extractor)
            try:
                entities = call(extractor) or []
            except Exception as exc:  # noqa: BLE001
                logger.error("Error running extractor {} on {}: {}", name, label, exc)
                continue
            logger.debug("Extractor {} found {} entities", name, len(entities))
            all_entities.extend(entities)

        logger.info(
            "Completed entity extraction from {}. Found {} entities in total",
            label,
            len(all_entities),
        )
        return all_entities

    def _select(self, extractor_names: Optional[Sequence[str]]) -> List[EntityExtractor]:
        if not extractor_names:
            return list(self._extractors)
        wanted = set(extractor_names)
        return [
            extractor
            for extractor in self._extractors
            if getattr(extractor, "name", None) in wanted or type(extractor).__name__ in wanted
        ]


def _extractor_label(extractor: EntityExtractor) -> str:
    return getattr(extractor, "name", None) or type(extractor).__name__
