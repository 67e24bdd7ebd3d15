"""Extraction package exports."""

from src.extraction.base import EntityExtractor
from src.extraction.dictionary_extractor import DictionaryEntityExtractor
from src.extraction.factory import EntityExtractorFactory
from src.extraction.models import AttributeKey, Entity, EntityType
from src.extraction.pattern_extractor import PatternEntityExtractor
from src.extraction.rule_extractor import ExtractionRule, RuleBasedEntityExtractor, RuleMatch

__all__ = [
    "AttributeKey",
    "Entity",
    "EntityType",
    "EntityExtractor",
    "PatternEntityExtractor",
    "DictionaryEntityExtractor",
    "RuleBasedEntityExtractor",
    "ExtractionRule",
    "RuleMatch",
    "EntityExtractorFactory",
]
