from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from src.extraction.dictionary_extractor import DictionaryEntityExtractor
from src.extraction.models import EntityType


@pytest.fixture
def extractor() -> DictionaryEntityExtractor:
    return DictionaryEntityExtractor()


def test_single_token_terms_match_words(extractor) -> None:
    text = "We migrated from MySQL to PostgreSQL using Docker."

    entities = extractor.extract_entities(text, "doc-1", "t1")

    assert {(e.type, e.name) for e in entities} == {
        (EntityType.TECHNICAL_TERM, "MySQL"),
        (EntityType.TECHNICAL_TERM, "PostgreSQL"),
        (EntityType.TECHNICAL_TERM, "Docker"),
    }
    assert all(e.confidence_score == 0.8 for e in entities)
    docker = next(e for e in entities if e.name == "Docker")
    assert text[docker.start_position : docker.end_position] == "Docker"


def test_matching_ignores_case_by_default(extractor) -> None:
    entities = extractor.extract_entities("we deploy with kubernetes", None, "t1")

    assert [(e.type, e.name) for e in entities] == [(EntityType.TECHNICAL_TERM, "kubernetes")]


def test_case_sensitive_matching() -> None:
    extractor = DictionaryEntityExtractor(case_sensitive=True)

    entities = extractor.extract_entities("we use docker and Docker", None, "t1")

    assert [(e.name, e.start_position) for e in entities] == [("Docker", 18)]


def test_punctuation_separates_words(extractor) -> None:
    entities = extractor.extract_entities("Partners: Apple, Google.", None, "t1")

    organizations = [e for e in entities if e.type == EntityType.ORGANIZATION]
    assert [o.name for o in organizations] == ["Apple", "Google"]
    assert all(o.confidence_score == 0.9 for o in organizations)


def test_multi_word_terms_are_scanned(extractor) -> None:
    text = "She studies machine learning daily"

    entities = extractor.extract_entities(text, None, "t1")

    assert {(e.type, e.name, e.start_position) for e in entities} == {
        (EntityType.TECHNICAL_TERM, "Machine Learning", 12),
        (EntityType.SKILL, "Machine Learning", 12),
    }


def test_terms_containing_delimiters_are_scanned(extractor) -> None:
    entities = extractor.extract_entities("Our CI/CD pipeline", None, "t1")

    assert {(e.type, e.name) for e in entities} == {
        (EntityType.TECHNICAL_TERM, "CI/CD"),
        (EntityType.SKILL, "CI/CD"),
    }


def test_repeated_multi_word_term_found_each_time(extractor) -> None:
    text = "Big Data needs Big Data tools"

    entities = [e for e in extractor.extract_entities(text, None, "t1") if e.name == "Big Data"]

    assert [e.start_position for e in entities] == [0, 15]


def test_empty_text_returns_no_entities(extractor) -> None:
    assert extractor.extract_entities("", None, "t1") == []


def test_add_term_clamps_confidence_and_replaces_existing() -> None:
    extractor = DictionaryEntityExtractor(include_defaults=False)

    extractor.add_term(EntityType.ORGANIZATION, "Acme", 1.5)
    assert extractor.terms(EntityType.ORGANIZATION) == {"Acme": 1.0}

    extractor.add_term(EntityType.ORGANIZATION, "ACME", 0.4)
    assert extractor.terms(EntityType.ORGANIZATION) == {"ACME": 0.4}

    entities = extractor.extract_entities("acme ships", None, "t1")
    assert [(e.name, e.confidence_score) for e in entities] == [("acme", 0.4)]


def test_add_term_rejects_empty_term(extractor) -> None:
    with pytest.raises(ValueError):
        extractor.add_term(EntityType.SKILL, "")


def test_add_terms_skips_blank_entries() -> None:
    extractor = DictionaryEntityExtractor(include_defaults=False)

    extractor.add_terms(EntityType.SKILL, ["Rust", "", "  ", "Haskell"], 0.7)

    assert extractor.terms(EntityType.SKILL) == {"Rust": 0.7, "Haskell": 0.7}
    assert extractor.get_supported_entity_types() == {EntityType.SKILL}


def test_add_terms_rejects_none(extractor) -> None:
    with pytest.raises(ValueError):
        extractor.add_terms(EntityType.SKILL, None)


def test_terms_loaded_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "terms.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "terms": {
                    "Organization": {"confidence": 0.95, "values": ["Globex", "Initech"]},
                    "Project": ["Apollo"],
                }
            }
        ),
        encoding="utf-8",
    )

    extractor = DictionaryEntityExtractor(path, include_defaults=False)

    assert extractor.terms(EntityType.ORGANIZATION) == {"Globex": 0.95, "Initech": 0.95}
    assert extractor.terms(EntityType.PROJECT) == {"Apollo": 1.0}
    entities = extractor.extract_entities("Globex funds Apollo", None, "t1")
    assert {(e.type, e.name) for e in entities} == {
        (EntityType.ORGANIZATION, "Globex"),
        (EntityType.PROJECT, "Apollo"),
    }


def test_terms_file_with_non_mapping_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "terms.yaml"
    path.write_text(yaml.safe_dump(["Globex"]), encoding="utf-8")

    with pytest.raises(ValueError, match="must be a mapping"):
        DictionaryEntityExtractor(path)


def test_default_dictionaries_cover_expected_types(extractor) -> None:
    assert extractor.get_supported_entity_types() == {
        EntityType.ORGANIZATION,
        EntityType.TECHNICAL_TERM,
        EntityType.JOB_TITLE,
        EntityType.SKILL,
        EntityType.DATABASE_TABLE,
        EntityType.DATABASE_COLUMN,
    }
    assert extractor.terms(EntityType.JOB_TITLE)["CTO"] == 0.8
    assert extractor.terms(EntityType.DATABASE_COLUMN)["user_id"] == 0.6
