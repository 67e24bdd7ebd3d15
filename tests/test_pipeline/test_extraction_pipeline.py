from __future__ import annotations

from typing import Any, List, Mapping, Optional, Set

import pytest

from src.extraction.base import extract_from_structured_data
from src.extraction.models import Entity, EntityType
from src.extraction.pattern_extractor import PatternEntityExtractor
from src.pipeline.extraction_pipeline import EntityExtractionPipeline


class _FakeExtractor:
    def __init__(self, name: str, entity_type: EntityType = EntityType.OTHER) -> None:
        self.name = name
        self.entity_type = entity_type
        self.seen: List[str] = []

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        self.seen.append(text or "")
        return [Entity(name=self.name, type=self.entity_type, tenant_id=tenant_id, source_id=source_id)]

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        return extract_from_structured_data(
            self.extract_entities, data, source_id, tenant_id, extractor_name=self.name
        )

    def get_supported_entity_types(self) -> Set[EntityType]:
        return {self.entity_type}


class _BrokenExtractor(_FakeExtractor):
    def extract_entities(self, text, source_id, tenant_id):
        raise RuntimeError("catastrophic backtracking")


def test_results_of_all_extractors_are_concatenated() -> None:
    pipeline = EntityExtractionPipeline([_FakeExtractor("one"), _FakeExtractor("two")])

    entities = pipeline.process("some text", "doc-1", "t1")

    assert [e.name for e in entities] == ["one", "two"]
    assert all(e.source_id == "doc-1" and e.tenant_id == "t1" for e in entities)


def test_failing_extractor_is_skipped() -> None:
    pipeline = EntityExtractionPipeline(
        [_FakeExtractor("one"), _BrokenExtractor("broken"), _FakeExtractor("three")]
    )

    entities = pipeline.process("some text", None, "t1")

    assert [e.name for e in entities] == ["one", "three"]


def test_empty_text_short_circuits() -> None:
    extractor = _FakeExtractor("one")
    pipeline = EntityExtractionPipeline([extractor])

    assert pipeline.process("", None, "t1") == []
    assert pipeline.process(None, None, "t1") == []
    assert extractor.seen == []


def test_no_extractors_yields_nothing() -> None:
    assert EntityExtractionPipeline().process("text", None, "t1") == []


def test_extractors_can_be_selected_by_name() -> None:
    pipeline = EntityExtractionPipeline(
        [_FakeExtractor("one"), _FakeExtractor("two"), PatternEntityExtractor()]
    )

    by_name = pipeline.process("mail a@b.com", None, "t1", extractor_names=["two", "pattern"])
    by_class = pipeline.process("mail a@b.com", None, "t1", ["PatternEntityExtractor"])

    assert [e.name for e in by_name] == ["two", "a@b.com"]
    assert [e.name for e in by_class] == ["a@b.com"]


def test_long_text_is_truncated() -> None:
    extractor = _FakeExtractor("one")
    pipeline = EntityExtractionPipeline([extractor], max_text_length=5)

    pipeline.process("abcdefghij", None, "t1")

    assert extractor.seen == ["abcde"]


def test_register_extractor() -> None:
    pipeline = EntityExtractionPipeline()
    extractor = _FakeExtractor("one")

    pipeline.register_extractor(extractor)

    assert pipeline.get_registered_extractors() == [extractor]
    with pytest.raises(ValueError):
        pipeline.register_extractor(None)


def test_structured_data_runs_every_extractor() -> None:
    pipeline = EntityExtractionPipeline(
        [PatternEntityExtractor(), _BrokenExtractor("broken")]
    )

    entities = pipeline.process_structured_data(
        {"email": "ops@example.com", "phone": "555-123-4567"}, "rec-9", "t1"
    )

    assert {(e.type, e.attribute("FieldName")) for e in entities} == {
        (EntityType.EMAIL, "email"),
        (EntityType.PHONE_NUMBER, "phone"),
    }
    assert pipeline.process_structured_data({}, "rec-9", "t1") == []
