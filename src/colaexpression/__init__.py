"""
cola-expression: ergonomic regular expressions and string transformations.

This package wraps a regular expression engine with match testing, match
extraction, range extraction and substitution, and builds case conversion,
word splitting, padding and trimming helpers on top of it.
"""

__version__ = "0.1.0"

from colaexpression.engine import (
    PatternMatcher,
    PatternCompileError,
    compile_pattern,
    first_match,
    is_match,
    matched_ranges,
    matches,
    replace_occurrences,
    string_by_replacing_matches,
)
from colaexpression.models import (
    CompileOption,
    MatchOption,
    MatchRange,
    MatchResult,
    MatchStatus,
    Pattern,
)
from colaexpression.patterns import BUILTIN_PATTERNS, builtin, check_email, sanitize
from colaexpression.ranges import to_match_range
from colaexpression.registry import load_registry, PatternRegistry
from colaexpression.config import Settings, load_settings, build_registry

__all__ = [
    "PatternMatcher",
    "PatternCompileError",
    "compile_pattern",
    "first_match",
    "is_match",
    "matched_ranges",
    "matches",
    "replace_occurrences",
    "string_by_replacing_matches",
    "CompileOption",
    "MatchOption",
    "MatchRange",
    "MatchResult",
    "MatchStatus",
    "Pattern",
    "BUILTIN_PATTERNS",
    "builtin",
    "check_email",
    "sanitize",
    "to_match_range",
    "load_registry",
    "PatternRegistry",
    "Settings",
    "load_settings",
    "build_registry",
]
