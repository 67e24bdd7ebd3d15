"""Configuration management using Pydantic for validation."""

from pathlib import Path
from typing import Any, Dict, List, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_EXTRACTORS = ("pattern", "dictionary", "rule", "spacy")
KNOWN_DISAMBIGUATORS = ("name", "context")


class SpacyConfig(BaseSettings):
    """spaCy NER configuration."""

    model: str = "en_core_web_sm"
    batch_size: int = Field(default=100, gt=0)
    confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    label_map: Dict[str, str] = Field(default_factory=dict)


class ExtractionConfig(BaseSettings):
    """Entity extraction configuration."""

    extractors: List[str] = Field(default=["pattern", "dictionary", "rule"])
    context_window: int = Field(default=100, ge=0)
    pattern_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    patterns_file: str | None = None
    terms_file: str | None = None
    case_sensitive_terms: bool = False
    max_text_length: int | None = Field(default=None, gt=0)
    spacy: SpacyConfig = Field(default_factory=SpacyConfig)

    @field_validator("extractors")
    @classmethod
    def validate_extractors(cls, v: List[str]) -> List[str]:
        """Validate extractor names against the known strategies."""
        normalized = [name.strip().lower() for name in v]
        unknown = sorted(set(normalized) - set(KNOWN_EXTRACTORS))
        if unknown:
            raise ValueError(f"Unknown extractors: {unknown}. Known: {list(KNOWN_EXTRACTORS)}")
        return normalized


class DisambiguationConfig(BaseSettings):
    """Disambiguation and coreference configuration."""

    disambiguators: List[str] = Field(default=["name", "context"])
    name_similarity_threshold: float = 0.8
    context_similarity_threshold: float = 0.6
    coreference_enabled: bool = True
    coreference_context_window: int = Field(default=75, ge=0)
    coreference_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    id_prefix: str = "dis-"

    @field_validator("name_similarity_threshold", "context_similarity_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Validate thresholds are between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError("Similarity thresholds must be between 0 and 1")
        return v

    @field_validator("disambiguators")
    @classmethod
    def validate_disambiguators(cls, v: List[str]) -> List[str]:
        normalized = [name.strip().lower() for name in v]
        unknown = sorted(set(normalized) - set(KNOWN_DISAMBIGUATORS))
        if unknown:
            raise ValueError(
                f"Unknown disambiguators: {unknown}. Known: {list(KNOWN_DISAMBIGUATORS)}"
            )
        return normalized


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"
    file: str | None = None
    rotation: str = "10 MB"
    retention: int = 3


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    disambiguation: DisambiguationConfig = Field(default_factory=DisambiguationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    default_tenant_id: str = "default"

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win).

        This is used to apply environment-derived overrides on top of YAML defaults.
        """
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML file is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        # Only non-default env values are layered over the YAML file.
        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def validate_config(self) -> None:
        """Validate configuration settings.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.extraction.extractors:
            raise ValueError("At least one extractor must be enabled")

        for path_name in ("patterns_file", "terms_file"):
            value = getattr(self.extraction, path_name)
            if value and not Path(value).exists():
                raise ValueError(f"extraction.{path_name} does not exist: {value}")

        if not self.default_tenant_id.strip():
            raise ValueError("default_tenant_id must not be empty")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create global configuration instance.

    Returns:
        Global Config instance

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path = "config/config.yaml") -> Config:
    """Load and validate configuration.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Loaded and validated Config instance
    """
    global _config
    _config = Config.from_yaml(yaml_path)
    _config.validate_config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
