"""Pattern registry for loading and managing named patterns."""

import logging
from pathlib import Path
from typing import Any, Optional

import jsonschema
import yaml

from colaexpression.engine import PatternCompileError, PatternMatcher
from colaexpression.models import CompileOption, Examples, PatternDefinition
from colaexpression.patterns import BUILTIN_PATTERNS

logger = logging.getLogger(__name__)

BUILTIN_NAMESPACE = "common"

SCHEMA_PATH = Path(__file__).parent / "schemas" / "pattern-schema.json"

FLAG_OPTIONS = {
    "IGNORECASE": CompileOption.CASE_INSENSITIVE,
    "VERBOSE": CompileOption.ALLOW_COMMENTS_AND_WHITESPACE,
    "LITERAL": CompileOption.IGNORE_METACHARACTERS,
    "DOTALL": CompileOption.DOT_MATCHES_LINE_SEPARATORS,
    "MULTILINE": CompileOption.ANCHORS_MATCH_LINES,
    "UNIX_LINES": CompileOption.USE_UNIX_LINE_SEPARATORS,
    "WORD": CompileOption.USE_UNICODE_WORD_BOUNDARIES,
}

_BUILTIN_DESCRIPTIONS = {
    "email": "Email address",
    "first_character": "First alphanumeric character of each word",
    "last_character": "Last alphanumeric character of each word",
    "non_alphanumeric": "Any character outside [A-Za-z0-9]",
    "non_alphanumeric_space": "Any character outside [A-Za-z0-9] and whitespace",
    "scientific_notation": "Signed mantissa with an E exponent",
}

_BUILTIN_EXAMPLES = {
    "email": Examples(
        match=["admin@meniny.cn", "john.doe+tag@company.co.uk"],
        nomatch=["not-an-email", "@example.com"],
    ),
    "first_character": Examples(match=["hello world", "snake_case"], nomatch=["", "   "]),
    "last_character": Examples(match=["hello", "snake_case"], nomatch=["", "!?"]),
    "non_alphanumeric": Examples(match=["hello world", "a_b"], nomatch=["abc123"]),
    "non_alphanumeric_space": Examples(match=["a-b"], nomatch=["hello world 42"]),
    "scientific_notation": Examples(
        match=["1.5E10", "-2.35E-5", "+9.0E3"],
        nomatch=["15E10", "1.5e10", "1.E5"],
    ),
}


class PatternRegistry:
    """Registry for named pattern definitions."""

    def __init__(self) -> None:
        """Initialize empty pattern registry."""
        self.patterns: dict[str, PatternDefinition] = {}  # full_id -> PatternDefinition
        self.namespaces: dict[str, list[PatternDefinition]] = {}  # namespace -> [PatternDefinition]
        self._version: int = 0

    def add_pattern(self, definition: PatternDefinition) -> None:
        """Add a pattern definition to the registry."""
        full_id = definition.full_id
        previous = self.patterns.get(full_id)
        if previous is not None:
            logger.warning(f"Pattern {full_id} already exists, overwriting")
            self.namespaces[previous.namespace].remove(previous)

        self.patterns[full_id] = definition
        self.namespaces.setdefault(definition.namespace, []).append(definition)
        self._version += 1

    def get_pattern(self, ns_id: str) -> Optional[PatternDefinition]:
        """Get pattern definition by full namespace/id."""
        return self.patterns.get(ns_id)

    def get_matcher(self, ns_id: str) -> PatternMatcher:
        """
        Get the matcher of a pattern by full namespace/id.

        Raises:
            KeyError: If pattern not found
        """
        definition = self.patterns.get(ns_id)
        if definition is None:
            raise KeyError(f"Pattern not found: {ns_id}")
        return definition.matcher

    def get_namespace_patterns(self, namespace: str) -> list[PatternDefinition]:
        """Get all pattern definitions for a namespace."""
        return self.namespaces.get(namespace, [])

    def get_all_patterns(self) -> list[PatternDefinition]:
        """Get all pattern definitions in registry."""
        return list(self.patterns.values())

    @property
    def version(self) -> int:
        """Get current registry version (increments on changes)."""
        return self._version

    def __contains__(self, ns_id: object) -> bool:
        return ns_id in self.patterns

    def __len__(self) -> int:
        """Return number of patterns."""
        return len(self.patterns)

    def __repr__(self) -> str:
        """String representation."""
        return f"PatternRegistry(patterns={len(self.patterns)}, namespaces={list(self.namespaces.keys())})"


def builtin_definitions(strict: bool = False) -> list[PatternDefinition]:
    """Return definitions for the built-in patterns in the common namespace."""
    definitions = []
    for name, matcher in BUILTIN_PATTERNS.items():
        if strict:
            matcher = PatternMatcher.from_pattern(matcher.pattern, strict=True)
        definitions.append(
            PatternDefinition(
                id=name,
                namespace=BUILTIN_NAMESPACE,
                pattern=matcher.pattern,
                matcher=matcher,
                description=_BUILTIN_DESCRIPTIONS[name],
                examples=_BUILTIN_EXAMPLES[name],
                metadata={"builtin": True},
            )
        )
    return definitions


def load_registry(
    paths: Optional[list[str]] = None,
    validate_schema: bool = True,
    validate_examples: bool = True,
    include_builtins: bool = True,
    strict: bool = False,
) -> PatternRegistry:
    """
    Load patterns from YAML files into registry.

    Args:
        paths: List of pattern files to load. If None, only built-ins are loaded.
        validate_schema: Whether to validate files against the JSON schema
        validate_examples: Whether to check examples against their patterns
        include_builtins: Whether to register the built-in patterns first
        strict: Whether the registered matchers raise on invalid patterns

    Returns:
        PatternRegistry with loaded patterns

    Raises:
        ValueError: If a pattern file fails validation
    """
    registry = PatternRegistry()

    if include_builtins:
        for definition in builtin_definitions(strict=strict):
            if validate_examples:
                _validate_examples(definition)
            registry.add_pattern(definition)

    for path_str in paths or []:
        path = Path(path_str)
        if not path.exists():
            logger.warning(f"Pattern file not found: {path}")
            continue

        logger.info(f"Loading patterns from {path}")
        data = _load_yaml_file(path)

        if validate_schema:
            _validate_schema(data)

        for definition in _parse_pattern_file(data, strict):
            if validate_examples and definition.examples:
                _validate_examples(definition)
            registry.add_pattern(definition)

    logger.info(f"Loaded {len(registry)} patterns from {len(registry.namespaces)} namespaces")
    return registry


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in pattern file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Pattern file {path} must contain a mapping")
    return data


def _validate_schema(data: dict[str, Any]) -> None:
    """Validate pattern data against JSON schema."""
    if not SCHEMA_PATH.exists():
        logger.warning("Pattern schema not found, skipping validation")
        return

    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)

    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Pattern schema validation failed: {e.message}") from e


def _parse_pattern_file(data: dict[str, Any], strict: bool = False) -> list[PatternDefinition]:
    """Parse pattern file data into PatternDefinition objects."""
    try:
        namespace = data["namespace"]
    except KeyError:
        raise ValueError("Pattern file is missing 'namespace'") from None

    return [
        _compile_definition(namespace, pattern_data, strict)
        for pattern_data in data.get("patterns", [])
    ]


def _compile_definition(
    namespace: str, data: dict[str, Any], strict: bool = False
) -> PatternDefinition:
    """Compile a single pattern definition."""
    try:
        pattern_id = data["id"]
        pattern_str = data["pattern"]
    except KeyError as e:
        raise ValueError(f"Pattern in namespace {namespace} is missing {e}") from e

    # Parse flags
    options = CompileOption(0)
    for flag_name in data.get("flags", []):
        try:
            options |= FLAG_OPTIONS[flag_name]
        except KeyError:
            raise ValueError(f"Unknown flag {flag_name!r} in pattern {namespace}/{pattern_id}") from None

    # Registry entries must compile even though matchers are fail-soft
    try:
        PatternMatcher(pattern_str, options, strict=True).compile()
    except PatternCompileError as e:
        raise ValueError(f"Failed to compile pattern {namespace}/{pattern_id}: {e.message}") from e

    matcher = PatternMatcher(pattern_str, options, strict=strict)

    examples = None
    if "examples" in data:
        examples = Examples(
            match=data["examples"].get("match", []),
            nomatch=data["examples"].get("nomatch", []),
        )

    return PatternDefinition(
        id=pattern_id,
        namespace=namespace,
        pattern=matcher.pattern,
        matcher=matcher,
        description=data.get("description", ""),
        flags=data.get("flags", []),
        examples=examples,
        metadata=data.get("metadata", {}),
    )


def _validate_examples(definition: PatternDefinition) -> None:
    """Validate pattern examples match/nomatch expectations."""
    if not definition.examples:
        return

    errors = []

    for example in definition.examples.match:
        if not definition.matcher.is_match(example):
            errors.append(f"Example should match but doesn't: '{example}'")

    for example in definition.examples.nomatch:
        if definition.matcher.is_match(example):
            errors.append(f"Example should NOT match but does: '{example}'")

    if errors:
        error_msg = f"Pattern {definition.full_id} example validation failed:\n" + "\n".join(
            errors
        )
        raise ValueError(error_msg)

    logger.debug(f"Pattern {definition.full_id} examples validated successfully")
