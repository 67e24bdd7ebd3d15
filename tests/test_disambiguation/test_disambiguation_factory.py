from __future__ import annotations

from src.disambiguation.context_disambiguator import ContextBasedDisambiguator
from src.disambiguation.factory import DisambiguationFactory
from src.disambiguation.ids import SequentialIdGenerator, UuidIdGenerator
from src.disambiguation.name_disambiguator import NameBasedDisambiguator
from src.disambiguation.service import DisambiguationService
from src.storage.entity_repository import InMemoryEntityRepository
from src.utils.config import DisambiguationConfig


def test_default_components_use_default_thresholds() -> None:
    factory = DisambiguationFactory()

    name, context = factory.create_all_disambiguators()

    assert isinstance(name, NameBasedDisambiguator)
    assert isinstance(context, ContextBasedDisambiguator)
    assert name.similarity_threshold == 0.8
    assert context.context_similarity_threshold == 0.6
    assert isinstance(factory.id_generator, UuidIdGenerator)
    assert factory.id_generator.new_id().startswith("dis-")


def test_config_controls_order_thresholds_and_resolver() -> None:
    config = DisambiguationConfig(
        disambiguators=["context", "name"],
        name_similarity_threshold=0.9,
        context_similarity_threshold=0.5,
        coreference_confidence=0.65,
        coreference_context_window=40,
        id_prefix="grp-",
    )
    factory = DisambiguationFactory(config)

    disambiguators = factory.create_all_disambiguators()
    resolver = factory.create_coreference_resolver()

    assert [d.name for d in disambiguators] == ["context", "name"]
    assert disambiguators[0].context_similarity_threshold == 0.5
    assert disambiguators[1].similarity_threshold == 0.9
    assert resolver.confidence == 0.65
    assert resolver.context_window == 40
    assert factory.id_generator.new_id().startswith("grp-")


def test_explicit_threshold_overrides_config() -> None:
    factory = DisambiguationFactory()

    assert factory.create_name_based_disambiguator(0.5).similarity_threshold == 0.5
    assert factory.create_context_based_disambiguator(0.3).context_similarity_threshold == 0.3


def test_service_components_share_generator_and_repository() -> None:
    ids = SequentialIdGenerator()
    repository = InMemoryEntityRepository()
    factory = DisambiguationFactory(id_generator=ids, repository=repository)

    service = factory.create_disambiguation_service()

    assert isinstance(service, DisambiguationService)
    assert all(d.id_generator is ids for d in service.disambiguators)
    assert all(d.repository is repository for d in service.disambiguators)
    assert service.coreference_resolver.id_generator is ids


def test_single_disambiguator_configuration() -> None:
    factory = DisambiguationFactory(DisambiguationConfig(disambiguators=["name"]))

    assert [d.name for d in factory.create_all_disambiguators()] == ["name"]
