"""Tests for helpers shared by the extraction strategies."""

from __future__ import annotations

from src.extraction.base import (
    context_window,
    create_entity,
    extract_from_structured_data,
    flatten_structured_data,
)
from src.extraction.models import EntityType


def test_context_window_clips_at_text_start() -> None:
    text = "Acme Inc. hired John Smith."

    assert context_window(text, 0, 9, window=5) == "Acme Inc. hired Joh"


def test_context_window_clips_at_text_end() -> None:
    text = "Acme Inc. hired John Smith."

    assert context_window(text, 16, 10, window=5) == "ired John Smith."


def test_context_window_in_middle_of_text() -> None:
    text = "0123456789abcdefghij"

    assert context_window(text, 10, 2, window=3) == "789abcde"


def test_context_window_zero_window_returns_match() -> None:
    assert context_window("hello world", 6, 5, window=0) == "world"


def test_create_entity_fills_span_and_context() -> None:
    text = "Call 555-123-4567 now"

    entity = create_entity(
        "555-123-4567",
        EntityType.PHONE_NUMBER,
        "doc-1",
        "t1",
        0.9,
        start=5,
        length=12,
        text=text,
        window=4,
    )

    assert entity.start_position == 5
    assert entity.end_position == 17
    assert entity.original_context == "all 555-123-4567 now"
    assert entity.source_id == "doc-1"


def test_create_entity_without_position_has_no_span() -> None:
    entity = create_entity("Kubernetes", EntityType.TECHNICAL_TERM, None, "t1")

    assert entity.start_position is None
    assert entity.end_position is None
    assert entity.original_context is None


def test_create_entity_clamps_confidence() -> None:
    assert create_entity("x", EntityType.OTHER, None, "t1", 1.7).confidence_score == 1.0
    assert create_entity("x", EntityType.OTHER, None, "t1", -0.2).confidence_score == 0.0


def test_flatten_structured_data_skips_none_values() -> None:
    text, spans = flatten_structured_data({"email": "a@b.com", "phone": None, "owner": "Jane"})

    assert text == "email: a@b.com\nowner: Jane\n"
    assert spans == [(0, 14, "email"), (15, 26, "owner")]


def test_structured_extraction_tags_field_names() -> None:
    def _extract(text, source_id, tenant_id):
        start = text.index("a@b.com")
        return [
            create_entity(
                "a@b.com", EntityType.EMAIL, source_id, tenant_id, start=start, length=7, text=text
            ),
            create_entity("loose", EntityType.OTHER, source_id, tenant_id),
        ]

    entities = extract_from_structured_data(
        _extract, {"contact": "a@b.com"}, "rec-1", "t1", extractor_name="test"
    )

    assert entities[0].attribute("FieldName") == "contact"
    assert entities[1].attribute("FieldName") is None


def test_structured_extraction_with_empty_data_returns_empty() -> None:
    def _extract(text, source_id, tenant_id):
        raise AssertionError("should not be called")

    assert extract_from_structured_data(_extract, {}, None, "t1", extractor_name="test") == []
    assert extract_from_structured_data(_extract, None, None, "t1", extractor_name="test") == []
