"""Tests for the pattern registry."""

import logging

import pytest
import yaml

from colaexpression import PatternMatcher, load_registry
from colaexpression.models import PatternDefinition
from colaexpression.registry import BUILTIN_NAMESPACE, PatternRegistry, builtin_definitions


def write_patterns(path, data):
    """Write a pattern file and return its path as a string."""
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return str(path)


@pytest.fixture
def order_file(tmp_path):
    """Pattern file with one valid pattern."""
    return write_patterns(
        tmp_path / "orders.yml",
        {
            "namespace": "acme",
            "description": "Order references",
            "patterns": [
                {
                    "id": "order_id",
                    "pattern": r"ORD-\d{6}",
                    "description": "Order identifier",
                    "flags": ["IGNORECASE"],
                    "examples": {
                        "match": ["ORD-123456", "ord-654321"],
                        "nomatch": ["ORD-12"],
                    },
                    "metadata": {"owner": "billing"},
                }
            ],
        },
    )


class TestBuiltins:
    """Tests for the built-in patterns in the registry."""

    def test_default_registry(self):
        """Test the default registry holds the built-ins."""
        registry = load_registry()

        ids = {p.id for p in registry.get_namespace_patterns(BUILTIN_NAMESPACE)}
        assert ids == {
            "email",
            "first_character",
            "last_character",
            "non_alphanumeric",
            "non_alphanumeric_space",
            "scientific_notation",
        }
        assert len(registry) == 6

    def test_builtin_matcher(self):
        """Test looking up a built-in matcher."""
        registry = load_registry()

        assert registry.get_matcher("common/email").is_match("admin@meniny.cn")
        assert registry.get_pattern("common/email").metadata == {"builtin": True}

    def test_builtin_definitions_strict(self):
        """Test strict built-in definitions."""
        assert all(d.matcher.strict for d in builtin_definitions(strict=True))
        assert not any(d.matcher.strict for d in builtin_definitions())

    def test_without_builtins(self):
        """Test an empty registry."""
        registry = load_registry(include_builtins=False)

        assert len(registry) == 0
        assert registry.get_all_patterns() == []


class TestLoadingFiles:
    """Tests for loading pattern files."""

    def test_load_file(self, order_file):
        """Test loading a valid pattern file."""
        registry = load_registry(paths=[order_file])

        definition = registry.get_pattern("acme/order_id")
        assert definition is not None
        assert definition.full_id == "acme/order_id"
        assert definition.description == "Order identifier"
        assert definition.flags == ["IGNORECASE"]
        assert definition.metadata == {"owner": "billing"}
        assert "acme/order_id" in registry
        assert len(registry) == 7

    def test_flags_applied(self, order_file):
        """Test flags become compile options."""
        matcher = load_registry(paths=[order_file]).get_matcher("acme/order_id")

        assert matcher.matches("ord-111111 and ORD-222222") == ["ord-111111", "ORD-222222"]

    def test_literal_flag(self, tmp_path):
        """Test LITERAL escapes metacharacters."""
        path = write_patterns(
            tmp_path / "literal.yml",
            {"namespace": "lit", "patterns": [{"id": "dot", "pattern": "a.b", "flags": ["LITERAL"]}]},
        )
        matcher = load_registry(paths=[path], include_builtins=False).get_matcher("lit/dot")

        assert matcher.is_match("a.b")
        assert not matcher.is_match("axb")

    def test_strict_matchers(self, order_file):
        """Test strict registries hand out strict matchers."""
        registry = load_registry(paths=[order_file], strict=True)

        assert registry.get_matcher("acme/order_id").strict

    def test_missing_file(self, tmp_path, caplog):
        """Test missing files are skipped with a warning."""
        with caplog.at_level(logging.WARNING):
            registry = load_registry(paths=[str(tmp_path / "absent.yml")])

        assert len(registry) == 6
        assert "Pattern file not found" in caplog.text

    def test_unknown_pattern(self):
        """Test unknown ids."""
        registry = load_registry()

        assert registry.get_pattern("acme/nothing") is None
        with pytest.raises(KeyError, match="Pattern not found"):
            registry.get_matcher("acme/nothing")


class TestValidation:
    """Tests for pattern file validation."""

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML."""
        path = tmp_path / "broken.yml"
        path.write_text("namespace: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_registry(paths=[str(path)])

    def test_not_a_mapping(self, tmp_path):
        """Test files whose top level is not a mapping."""
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_registry(paths=[str(path)])

    def test_schema_failure(self, tmp_path):
        """Test files missing required keys."""
        path = write_patterns(tmp_path / "bad.yml", {"namespace": "acme"})

        with pytest.raises(ValueError, match="schema validation failed"):
            load_registry(paths=[path])

    def test_missing_namespace_without_schema(self, tmp_path):
        """Test the namespace is required even without schema validation."""
        path = write_patterns(tmp_path / "bad.yml", {"patterns": []})

        with pytest.raises(ValueError, match="missing 'namespace'"):
            load_registry(paths=[path], validate_schema=False)

    def test_unknown_flag(self, tmp_path):
        """Test unknown flags are rejected."""
        path = write_patterns(
            tmp_path / "flags.yml",
            {"namespace": "acme", "patterns": [{"id": "x", "pattern": "x", "flags": ["NOPE"]}]},
        )

        with pytest.raises(ValueError, match="Unknown flag"):
            load_registry(paths=[path], validate_schema=False)

    def test_compile_failure(self, tmp_path):
        """Test patterns that do not compile are rejected."""
        path = write_patterns(
            tmp_path / "broken.yml",
            {"namespace": "acme", "patterns": [{"id": "broken", "pattern": "[a-z"}]},
        )

        with pytest.raises(ValueError, match="Failed to compile pattern acme/broken"):
            load_registry(paths=[path])

    def test_example_failure(self, tmp_path):
        """Test examples that contradict the pattern."""
        path = write_patterns(
            tmp_path / "examples.yml",
            {
                "namespace": "acme",
                "patterns": [
                    {"id": "digits", "pattern": r"\d+", "examples": {"nomatch": ["abc1"]}}
                ],
            },
        )

        with pytest.raises(ValueError, match="example validation failed"):
            load_registry(paths=[path])

    def test_example_validation_disabled(self, tmp_path):
        """Test example validation can be turned off."""
        path = write_patterns(
            tmp_path / "examples.yml",
            {
                "namespace": "acme",
                "patterns": [
                    {"id": "digits", "pattern": r"\d+", "examples": {"nomatch": ["abc1"]}}
                ],
            },
        )

        registry = load_registry(paths=[path], validate_examples=False)
        assert "acme/digits" in registry


class TestPatternRegistry:
    """Tests for the registry container."""

    def make_definition(self, pattern_id, source, namespace="acme"):
        matcher = PatternMatcher(source)
        return PatternDefinition(
            id=pattern_id, namespace=namespace, pattern=matcher.pattern, matcher=matcher
        )

    def test_add_and_lookup(self):
        """Test adding a definition."""
        registry = PatternRegistry()
        registry.add_pattern(self.make_definition("word", r"\w+"))

        assert registry.get_matcher("acme/word").source == r"\w+"
        assert registry.version == 1
        assert repr(registry) == "PatternRegistry(patterns=1, namespaces=['acme'])"

    def test_overwrite(self, caplog):
        """Test re-adding an id replaces the old definition."""
        registry = PatternRegistry()
        registry.add_pattern(self.make_definition("word", r"\w+"))

        with caplog.at_level(logging.WARNING):
            registry.add_pattern(self.make_definition("word", r"[a-z]+"))

        assert "already exists" in caplog.text
        assert len(registry) == 1
        assert [d.pattern.source for d in registry.get_namespace_patterns("acme")] == ["[a-z]+"]
        assert registry.version == 2

    def test_overwrite_across_files(self, tmp_path):
        """Test a later file overrides an earlier one."""
        first = write_patterns(
            tmp_path / "first.yml",
            {"namespace": "acme", "patterns": [{"id": "code", "pattern": "A+"}]},
        )
        second = write_patterns(
            tmp_path / "second.yml",
            {"namespace": "acme", "patterns": [{"id": "code", "pattern": "B+"}]},
        )

        registry = load_registry(paths=[first, second], include_builtins=False)

        assert len(registry) == 1
        assert registry.get_matcher("acme/code").matches("AABB") == ["BB"]
