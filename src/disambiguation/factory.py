"""Composition of the default disambiguators, resolver and service."""

from __future__ import annotations

from typing import List, Optional

from src.disambiguation.base import EntityDisambiguator
from src.disambiguation.context_disambiguator import ContextBasedDisambiguator
from src.disambiguation.coreference import CoreferenceResolver
from src.disambiguation.ids import IdGenerator, UuidIdGenerator
from src.disambiguation.name_disambiguator import NameBasedDisambiguator
from src.disambiguation.service import DisambiguationService
from src.storage.entity_repository import EntityRepository
from src.utils.config import DisambiguationConfig


class DisambiguationFactory:
    """Builds disambiguation components sharing one id generator and repository."""

    def __init__(
        self,
        config: Optional[DisambiguationConfig] = None,
        *,
        id_generator: Optional[IdGenerator] = None,
        repository: Optional[EntityRepository] = None,
    ) -> None:
        self.config = config or DisambiguationConfig()
        self.id_generator = id_generator or UuidIdGenerator(self.config.id_prefix)
        self.repository = repository

    def create_name_based_disambiguator(
        self, similarity_threshold: Optional[float] = None
    ) -> NameBasedDisambiguator:
        if similarity_threshold is None:
            similarity_threshold = self.config.name_similarity_threshold
        return NameBasedDisambiguator(
            similarity_threshold, id_generator=self.id_generator, repository=self.repository
        )

    def create_context_based_disambiguator(
        self, context_similarity_threshold: Optional[float] = None
    ) -> ContextBasedDisambiguator:
        if context_similarity_threshold is None:
            context_similarity_threshold = self.config.context_similarity_threshold
        return ContextBasedDisambiguator(
            context_similarity_threshold,
            id_generator=self.id_generator,
            repository=self.repository,
        )

    def create_all_disambiguators(self) -> List[EntityDisambiguator]:
        """Enabled disambiguators in configured order (name, then context, by default)."""
        builders = {
            "name": self.create_name_based_disambiguator,
            "context": self.create_context_based_disambiguator,
        }
        return [builders[name]() for name in self.config.disambiguators]

    def create_coreference_resolver(self) -> CoreferenceResolver:
        return CoreferenceResolver(
            id_generator=self.id_generator,
            confidence=self.config.coreference_confidence,
            context_window=self.config.coreference_context_window,
        )

    def create_disambiguation_service(self) -> DisambiguationService:
        return DisambiguationService(
            self.create_all_disambiguators(), self.create_coreference_resolver()
        )
