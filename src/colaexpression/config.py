"""Configuration loading for cola-expression."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import jsonschema
import yaml

from colaexpression.engine import PatternMatcher
from colaexpression.models import CompileOption
from colaexpression.registry import PatternRegistry, load_registry

logger = logging.getLogger(__name__)

CONFIG_SCHEMA_PATH = Path(__file__).parent / "schemas" / "config-schema.json"


@dataclass(frozen=True)
class Settings:
    """Library settings read from a configuration file."""

    strict: bool = False
    pattern_paths: tuple[str, ...] = ()
    include_builtins: bool = True
    validate_schema: bool = True
    validate_examples: bool = True

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Settings":
        """Build settings from a configuration dictionary."""
        data = data or {}
        matching = data.get("matching") or {}
        registry = data.get("registry") or {}
        return cls(
            strict=matching.get("strict", False),
            pattern_paths=tuple(registry.get("paths", [])),
            include_builtins=registry.get("include_builtins", True),
            validate_schema=registry.get("validate_schema", True),
            validate_examples=registry.get("validate_examples", True),
        )

    def matcher(self, pattern: str, options: CompileOption = CompileOption(0)) -> PatternMatcher:
        """Create a matcher honouring the configured strictness."""
        return PatternMatcher(pattern, options, strict=self.strict)


def load_config(path: Union[str, Path]) -> dict[str, Any]:
    """
    Load and validate a YAML configuration file.

    Relative pattern paths are resolved against the configuration file's
    directory.

    Args:
        path: Configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or fails schema validation
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration {path}: {e}") from e

    _validate_config(data)

    registry = data.get("registry") or {}
    if "paths" in registry:
        registry["paths"] = [str(_resolve(path.parent, p)) for p in registry["paths"]]

    logger.info(f"Loaded configuration from {path}")
    return data


def load_settings(path: Union[str, Path]) -> Settings:
    """Load settings from a YAML configuration file."""
    return Settings.from_dict(load_config(path))


def build_registry(settings: Optional[Settings] = None) -> PatternRegistry:
    """Build a pattern registry from settings."""
    settings = settings or Settings()
    return load_registry(
        paths=list(settings.pattern_paths),
        validate_schema=settings.validate_schema,
        validate_examples=settings.validate_examples,
        include_builtins=settings.include_builtins,
        strict=settings.strict,
    )


def _validate_config(data: Any) -> None:
    """Validate configuration data against JSON schema."""
    with open(CONFIG_SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)

    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e.message}") from e


def _resolve(base: Path, value: str) -> Path:
    candidate = Path(value)
    return candidate if candidate.is_absolute() else base / candidate
