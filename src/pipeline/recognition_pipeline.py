"""Named-entity recognition pipeline: extraction, disambiguation and coreference.

Typical use::

    config = load_config("config/config.yaml")
    pipeline = build_default_pipeline(config)
    entities = pipeline.extract_entities(text, source_id="doc-1", tenant_id="acme")
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Set

from loguru import logger

from src.disambiguation.factory import DisambiguationFactory
from src.disambiguation.ids import IdGenerator
from src.disambiguation.service import DisambiguationService
from src.extraction.base import EntityExtractor
from src.extraction.factory import EntityExtractorFactory
from src.extraction.models import Entity, EntityType
from src.pipeline.extraction_pipeline import EntityExtractionPipeline
from src.storage.entity_repository import EntityRepository
from src.utils.config import Config


class NamedEntityRecognitionPipeline:
    """Facade over the extraction pipeline and the disambiguation service."""

    def __init__(
        self,
        extraction_pipeline: EntityExtractionPipeline,
        disambiguation_service: DisambiguationService,
        *,
        resolve_coreferences_by_default: bool = True,
    ) -> None:
        self.extraction_pipeline = extraction_pipeline
        self.disambiguation_service = disambiguation_service
        self.resolve_coreferences_by_default = resolve_coreferences_by_default

    def extract_entities(
        self,
        text: Optional[str],
        source_id: Optional[str],
        tenant_id: str,
        extractor_names: Optional[Sequence[str]] = None,
        perform_disambiguation: bool = True,
        resolve_coreferences: Optional[bool] = None,
    ) -> List[Entity]:
        """Extract entities from text, then optionally disambiguate and link references."""
        if resolve_coreferences is None:
            resolve_coreferences = self.resolve_coreferences_by_default

        logger.info(
            "Extracting entities from content",
            source_id=source_id,
            tenant_id=tenant_id,
        )
        try:
            entities = self.extraction_pipeline.process(text, source_id, tenant_id, extractor_names)
            logger.info("Extracted {} entities from content", len(entities))

            if entities:
                if perform_disambiguation:
                    entities = self.disambiguation_service.process_entities(entities, tenant_id)
                if resolve_coreferences and text:
                    entities = self.disambiguation_service.resolve_coreferences(
                        text, entities, tenant_id
                    )
        except Exception as exc:
            logger.error(
                "Error extracting entities from content",
                source_id=source_id,
                tenant_id=tenant_id,
                error=str(exc),
            )
            raise

        logger.info(
            "Completed entity extraction and processing. Final entity count: {}", len(entities)
        )
        return entities

    def extract_entities_from_structured_data(
        self,
        data: Optional[Mapping[str, Any]],
        source_id: Optional[str],
        tenant_id: str,
        extractor_names: Optional[Sequence[str]] = None,
        perform_disambiguation: bool = True,
    ) -> List[Entity]:
        """Structured records are disambiguated but never coreference-resolved."""
        logger.info(
            "Extracting entities from structured data",
            source_id=source_id,
            tenant_id=tenant_id,
        )
        try:
            entities = self.extraction_pipeline.process_structured_data(
                data, source_id, tenant_id, extractor_names
            )
            if perform_disambiguation and entities:
                entities = self.disambiguation_service.process_entities(entities, tenant_id)
        except Exception as exc:
            logger.error(
                "Error extracting entities from structured data",
                source_id=source_id,
                tenant_id=tenant_id,
                error=str(exc),
            )
            raise

        logger.info(
            "Completed entity extraction from structured data. Final entity count: {}",
            len(entities),
        )
        return entities

    def disambiguate_entities(
        self, entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        return self.disambiguation_service.process_entities(entities, tenant_id)

    def resolve_coreferences(
        self, text: Optional[str], entities: Optional[Sequence[Entity]], tenant_id: str
    ) -> List[Entity]:
        return self.disambiguation_service.resolve_coreferences(text, entities, tenant_id)

    def get_registered_extractors(self) -> List[EntityExtractor]:
        return self.extraction_pipeline.get_registered_extractors()

    def get_supported_entity_types(self) -> Set[EntityType]:
        supported: Set[EntityType] = set()
        for extractor in self.get_registered_extractors():
            supported.update(extractor.get_supported_entity_types())
        return supported


def build_default_pipeline(
    config: Optional[Config] = None,
    *,
    id_generator: Optional[IdGenerator] = None,
    repository: Optional[EntityRepository] = None,
) -> NamedEntityRecognitionPipeline:
    """Compose extractors, disambiguators and the resolver from configuration."""
    config = config or Config()

    extractor_factory = EntityExtractorFactory.from_config(config.extraction)
    extraction_pipeline = EntityExtractionPipeline(
        extractor_factory.create_extractors(config.extraction.extractors),
        max_text_length=config.extraction.max_text_length,
    )
    disambiguation_service = DisambiguationFactory(
        config.disambiguation, id_generator=id_generator, repository=repository
    ).create_disambiguation_service()

    logger.info(
        "Built entity recognition pipeline",
        extractors=config.extraction.extractors,
        disambiguators=config.disambiguation.disambiguators,
    )
    return NamedEntityRecognitionPipeline(
        extraction_pipeline,
        disambiguation_service,
        resolve_coreferences_by_default=config.disambiguation.coreference_enabled,
    )
