"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from colaexpression import PatternCompileError, Settings, build_registry, load_settings
from colaexpression.config import load_config


def write_yaml(path, data):
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return path


class TestSettings:
    """Tests for the Settings value."""

    def test_defaults(self):
        """Test default settings."""
        settings = Settings()

        assert not settings.strict
        assert settings.pattern_paths == ()
        assert settings.include_builtins
        assert settings.validate_schema
        assert settings.validate_examples

    def test_from_dict(self):
        """Test building settings from a dictionary."""
        settings = Settings.from_dict(
            {
                "matching": {"strict": True},
                "registry": {"paths": ["a.yml"], "include_builtins": False},
            }
        )

        assert settings.strict
        assert settings.pattern_paths == ("a.yml",)
        assert not settings.include_builtins
        assert settings.validate_examples

    def test_from_empty(self):
        """Test missing sections fall back to defaults."""
        assert Settings.from_dict(None) == Settings()
        assert Settings.from_dict({"matching": None}) == Settings()

    def test_matcher_strictness(self):
        """Test matchers follow the strict setting."""
        assert Settings().matcher("[a-z").matches("abc") == []
        with pytest.raises(PatternCompileError):
            Settings(strict=True).matcher("[a-z").matches("abc")


class TestLoadConfig:
    """Tests for configuration files."""

    def test_empty_file(self, tmp_path):
        """Test an empty file gives default settings."""
        path = tmp_path / "config.yml"
        path.write_text("", encoding="utf-8")

        assert load_settings(path) == Settings()

    def test_relative_paths(self, tmp_path):
        """Test pattern paths resolve against the config directory."""
        path = write_yaml(
            tmp_path / "config.yml",
            {"registry": {"paths": ["patterns/extra.yml", "/abs/other.yml"]}},
        )

        settings = load_settings(path)

        assert settings.pattern_paths == (
            str(tmp_path / "patterns" / "extra.yml"),
            str(Path("/abs/other.yml")),
        )

    def test_unknown_key(self, tmp_path):
        """Test unknown keys fail validation."""
        path = write_yaml(tmp_path / "config.yml", {"matching": {"greedy": True}})

        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_config(path)

    def test_wrong_type(self, tmp_path):
        """Test values of the wrong type fail validation."""
        path = write_yaml(tmp_path / "config.yml", {"matching": {"strict": "yes please"}})

        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML."""
        path = tmp_path / "config.yml"
        path.write_text("matching: {strict: true\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        """Test missing configuration files."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yml")


class TestBuildRegistry:
    """Tests for building a registry from settings."""

    def test_default(self):
        """Test the default registry."""
        registry = build_registry()

        assert len(registry) == 6

    def test_from_config_file(self, tmp_path):
        """Test a registry built from a configuration file."""
        write_yaml(
            tmp_path / "patterns.yml",
            {"namespace": "acme", "patterns": [{"id": "sku", "pattern": r"SKU-\d+"}]},
        )
        config = write_yaml(
            tmp_path / "config.yml",
            {
                "matching": {"strict": True},
                "registry": {"paths": ["patterns.yml"], "include_builtins": False},
            },
        )

        registry = build_registry(load_settings(config))

        assert len(registry) == 1
        assert registry.get_matcher("acme/sku").strict
        assert registry.get_matcher("acme/sku").first_match("item SKU-42") == "SKU-42"
