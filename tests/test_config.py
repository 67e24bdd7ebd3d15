"""Tests for configuration loading and override behavior."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from src.utils.config import (
    Config,
    DisambiguationConfig,
    ExtractionConfig,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def _reset_global_config() -> None:
    """Ensure config singleton doesn't leak between tests."""
    reset_config()
    yield
    reset_config()


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_defaults() -> None:
    cfg = Config()

    assert cfg.extraction.extractors == ["pattern", "dictionary", "rule"]
    assert cfg.extraction.context_window == 100
    assert cfg.extraction.pattern_confidence == 0.9
    assert cfg.disambiguation.disambiguators == ["name", "context"]
    assert cfg.disambiguation.name_similarity_threshold == 0.8
    assert cfg.disambiguation.context_similarity_threshold == 0.6
    assert cfg.disambiguation.coreference_context_window == 75
    assert cfg.disambiguation.coreference_confidence == 0.7
    assert cfg.default_tenant_id == "default"


def test_yaml_values_are_loaded(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(
        cfg_path,
        {
            "default_tenant_id": "acme",
            "extraction": {"extractors": ["Rule", "pattern"], "context_window": 40},
            "disambiguation": {"name_similarity_threshold": 0.85},
        },
    )

    cfg = load_config(cfg_path)

    assert cfg.default_tenant_id == "acme"
    assert cfg.extraction.extractors == ["rule", "pattern"]
    assert cfg.extraction.context_window == 40
    assert cfg.disambiguation.name_similarity_threshold == 0.85
    assert get_config() is cfg


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"extraction": {"context_window": 40}})

    monkeypatch.setenv("EXTRACTION__CONTEXT_WINDOW", "60")

    cfg = load_config(cfg_path)

    assert cfg.extraction.context_window == 60


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_yaml_root_type_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump(["not", "a", "mapping"]), encoding="utf-8")

    with pytest.raises(ValueError, match="YAML config root must be a mapping"):
        load_config(cfg_path)


def test_get_config_before_load_raises() -> None:
    with pytest.raises(RuntimeError, match="not initialized"):
        get_config()


def test_unknown_extractor_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown extractors"):
        ExtractionConfig(extractors=["pattern", "llm"])


def test_unknown_disambiguator_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown disambiguators"):
        DisambiguationConfig(disambiguators=["embedding"])


@pytest.mark.parametrize("threshold", [-0.1, 1.1])
def test_thresholds_must_be_between_zero_and_one(threshold: float) -> None:
    with pytest.raises(ValidationError):
        DisambiguationConfig(name_similarity_threshold=threshold)


def test_validate_config_checks_table_files(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"extraction": {"patterns_file": str(tmp_path / "nope.yaml")}})

    with pytest.raises(ValueError, match="patterns_file does not exist"):
        load_config(cfg_path)


def test_validate_config_requires_an_extractor(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"extraction": {"extractors": []}})

    with pytest.raises(ValueError, match="At least one extractor"):
        load_config(cfg_path)


def test_repository_config_file_is_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    root = Path(__file__).resolve().parent.parent
    monkeypatch.chdir(root)

    cfg = load_config(root / "config" / "config.yaml")

    assert cfg.extraction.patterns_file == "config/entity_patterns.yaml"
    assert cfg.extraction.spacy.label_map == {"NORP": "Other"}
