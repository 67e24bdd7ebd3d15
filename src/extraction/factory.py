"""Named registry of extractor builders."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from src.extraction.base import EntityExtractor
from src.extraction.dictionary_extractor import DictionaryEntityExtractor
from src.extraction.pattern_extractor import PatternEntityExtractor
from src.extraction.rule_extractor import RuleBasedEntityExtractor
from src.utils.config import ExtractionConfig
from src.utils.errors import ExtractorNotRegisteredError

ExtractorBuilder = Callable[[], EntityExtractor]


class EntityExtractorFactory:
    """Creates extractors by registered name."""

    def __init__(self) -> None:
        self._builders: Dict[str, ExtractorBuilder] = {}

    @classmethod
    def from_config(cls, config: Optional[ExtractionConfig] = None) -> "EntityExtractorFactory":
        """Factory with the built-in strategies registered and configured."""
        config = config or ExtractionConfig()
        factory = cls()
        factory.register_extractor_type(
            "pattern",
            lambda: PatternEntityExtractor(
                config.patterns_file,
                confidence=config.pattern_confidence,
                context_window=config.context_window,
            ),
        )
        factory.register_extractor_type(
            "dictionary",
            lambda: DictionaryEntityExtractor(
                config.terms_file,
                case_sensitive=config.case_sensitive_terms,
                context_window=config.context_window,
            ),
        )
        factory.register_extractor_type(
            "rule", lambda: RuleBasedEntityExtractor(context_window=config.context_window)
        )
        factory.register_extractor_type("spacy", lambda: _build_spacy_extractor(config))
        return factory

    def register_extractor_type(self, name: str, builder: Optional[ExtractorBuilder]) -> None:
        if not name:
            raise ValueError("extractor name must not be empty")
        if builder is None:
            raise ValueError("extractor builder must not be None")

        self._builders[name] = builder
        logger.info("Registered entity extractor type {}", name)

    def get_available_extractor_types(self) -> List[str]:
        return list(self._builders)

    def create_extractor(self, name: str) -> EntityExtractor:
        """Build the extractor registered under ``name``.

        Raises:
            ValueError: If ``name`` is empty.
            ExtractorNotRegisteredError: If nothing is registered under ``name``.
        """
        if not name:
            raise ValueError("extractor name must not be empty")
        builder = self._builders.get(name)
        if builder is None:
            raise ExtractorNotRegisteredError(name, list(self._builders))

        try:
            return builder()
        except Exception as exc:
            logger.error("Failed to create entity extractor {}: {}", name, exc)
            raise

    def create_extractors(self, names: Sequence[str]) -> List[EntityExtractor]:
        return [self.create_extractor(name) for name in names]

    def create_all_extractors(self) -> List[EntityExtractor]:
        """Build every registered extractor, skipping ones whose construction fails."""
        extractors: List[EntityExtractor] = []
        for name, builder in self._builders.items():
            try:
                extractors.append(builder())
            except Exception as exc:  # noqa: BLE001
                logger.warning("Skipping entity extractor {}", name, error=str(exc))
        return extractors


def _build_spacy_extractor(config: ExtractionConfig) -> EntityExtractor:
    # spaCy is imported only when this strategy is built.
    from src.extraction.spacy_extractor import SpacyEntityExtractor

    return SpacyEntityExtractor(config.spacy, context_window=config.context_window)
