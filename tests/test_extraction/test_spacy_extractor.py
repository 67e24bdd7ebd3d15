from __future__ import annotations

import pytest
import spacy

from src.extraction.models import EntityType
from src.extraction.spacy_extractor import SpacyEntityExtractor
from src.utils.config import SpacyConfig


def _build_nlp() -> spacy.language.Language:
    nlp = spacy.blank("en")
    ruler = nlp.add_pipe("entity_ruler")
    ruler.add_patterns(
        [
            {"label": "ORG", "pattern": "Acme"},
            {"label": "PERSON", "pattern": [{"LOWER": "jane"}, {"LOWER": "doe"}]},
            {"label": "GPE", "pattern": "Berlin"},
            {"label": "NORP", "pattern": "Germans"},
        ]
    )
    return nlp


def test_spacy_entities_are_mapped_to_entity_types() -> None:
    extractor = SpacyEntityExtractor(config=SpacyConfig(model="en_dummy"), nlp=_build_nlp())
    text = "Jane Doe joined Acme in Berlin."

    entities = extractor.extract_entities(text, "doc-1", "t1")

    assert [(e.type, e.name, e.start_position) for e in entities] == [
        (EntityType.PERSON, "Jane Doe", 0),
        (EntityType.ORGANIZATION, "Acme", 16),
        (EntityType.LOCATION, "Berlin", 24),
    ]
    assert all(e.confidence_score == 0.75 for e in entities)
    assert all(e.attribute("Source") == "spacy" for e in entities)
    assert entities[1].attribute("Label") == "ORG"
    assert all(e.original_context == text for e in entities)


def test_unmapped_labels_are_dropped() -> None:
    extractor = SpacyEntityExtractor(config=SpacyConfig(model="en_dummy"), nlp=_build_nlp())

    entities = extractor.extract_entities("The Germans met Acme.", None, "t1")

    assert [e.name for e in entities] == ["Acme"]


def test_label_map_override_and_confidence() -> None:
    config = SpacyConfig(model="en_dummy", confidence=0.5, label_map={"norp": "Other"})
    extractor = SpacyEntityExtractor(config=config, nlp=_build_nlp())

    entities = extractor.extract_entities("The Germans met Acme.", None, "t1")

    assert [(e.type, e.name) for e in entities] == [
        (EntityType.OTHER, "Germans"),
        (EntityType.ORGANIZATION, "Acme"),
    ]
    assert all(e.confidence_score == 0.5 for e in entities)
    assert EntityType.OTHER in extractor.get_supported_entity_types()


def test_empty_text_returns_no_entities() -> None:
    extractor = SpacyEntityExtractor(config=SpacyConfig(model="en_dummy"), nlp=_build_nlp())

    assert extractor.extract_entities("", None, "t1") == []


def test_batch_extraction_uses_pipe_with_configured_batch_size(monkeypatch) -> None:
    nlp = _build_nlp()
    extractor = SpacyEntityExtractor(config=SpacyConfig(model="en_dummy", batch_size=2), nlp=nlp)
    seen = {}
    original_pipe = nlp.pipe

    def _pipe(texts, batch_size):
        seen["batch_size"] = batch_size
        return original_pipe(texts, batch_size=batch_size)

    monkeypatch.setattr(nlp, "pipe", _pipe)

    results = extractor.extract_entities_batch(
        ["Jane Doe joined Acme.", "", "Berlin is large."], "doc-1", "t1"
    )

    assert seen["batch_size"] == 2
    assert [[e.name for e in found] for found in results] == [["Jane Doe", "Acme"], [], ["Berlin"]]
    assert results[2][0].original_context == "Berlin is large."


def test_structured_data_is_flattened() -> None:
    extractor = SpacyEntityExtractor(config=SpacyConfig(model="en_dummy"), nlp=_build_nlp())

    entities = extractor.extract_entities_from_structured_data(
        {"customer": "Acme", "city": "Berlin"}, "rec-1", "t1"
    )

    assert {(e.name, e.attribute("FieldName")) for e in entities} == {
        ("Acme", "customer"),
        ("Berlin", "city"),
    }


def test_missing_model_raises_runtime_error() -> None:
    with pytest.raises(RuntimeError, match="not installed"):
        SpacyEntityExtractor(config=SpacyConfig(model="kg_entity_pipeline_missing_model"))
