"""Entity disambiguation and coreference resolution."""

from src.disambiguation.base import EntityDisambiguator
from src.disambiguation.context_disambiguator import ContextBasedDisambiguator
from src.disambiguation.coreference import CoreferenceResolver
from src.disambiguation.factory import DisambiguationFactory
from src.disambiguation.ids import IdGenerator, SequentialIdGenerator, UuidIdGenerator
from src.disambiguation.name_disambiguator import NameBasedDisambiguator
from src.disambiguation.service import DisambiguationService

__all__ = [
    "EntityDisambiguator",
    "NameBasedDisambiguator",
    "ContextBasedDisambiguator",
    "CoreferenceResolver",
    "DisambiguationService",
    "DisambiguationFactory",
    "IdGenerator",
    "UuidIdGenerator",
    "SequentialIdGenerator",
]
