"""Data models for cola-expression."""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Optional


class CompileOption(IntFlag):
    """Engine options applied when a pattern is compiled."""

    CASE_INSENSITIVE = 1
    ALLOW_COMMENTS_AND_WHITESPACE = 2
    IGNORE_METACHARACTERS = 4
    DOT_MATCHES_LINE_SEPARATORS = 8
    ANCHORS_MATCH_LINES = 16
    USE_UNIX_LINE_SEPARATORS = 32
    USE_UNICODE_WORD_BOUNDARIES = 64


class MatchOption(IntFlag):
    """Options applied while scanning a subject."""

    ANCHORED = 1
    WITH_TRANSPARENT_BOUNDS = 2
    WITHOUT_ANCHORING_BOUNDS = 4


class MatchStatus(str, Enum):
    """Outcome of a diagnostic find operation."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    PATTERN_INVALID = "pattern_invalid"


@dataclass(frozen=True)
class Pattern:
    """Regular expression source plus its compile options."""

    source: str
    options: CompileOption = CompileOption(0)

    def __str__(self) -> str:
        return self.source


@dataclass(frozen=True)
class MatchRange:
    """Half-open span over a subject, aligned to character clusters."""

    start: int
    end: int

    @property
    def length(self) -> int:
        """Return number of code points covered."""
        return self.end - self.start

    @property
    def span(self) -> tuple[int, int]:
        """Return (start, end) tuple."""
        return (self.start, self.end)

    def as_slice(self) -> slice:
        return slice(self.start, self.end)

    def extract(self, subject: str) -> str:
        """Return the part of subject covered by this range."""
        return subject[self.start : self.end]


@dataclass
class MatchResult:
    """Result from a diagnostic find operation."""

    text: str
    pattern: Pattern
    ranges: list[MatchRange] = field(default_factory=list)
    status: MatchStatus = MatchStatus.NO_MATCH
    error: Optional[str] = None  # engine message when the pattern is invalid

    @property
    def has_matches(self) -> bool:
        """Return True if any matches found."""
        return len(self.ranges) > 0

    @property
    def match_count(self) -> int:
        """Return number of matches."""
        return len(self.ranges)

    @property
    def is_valid(self) -> bool:
        """Return False only when the pattern failed to compile."""
        return self.status != MatchStatus.PATTERN_INVALID

    @property
    def substrings(self) -> list[str]:
        return [r.extract(self.text) for r in self.ranges]


@dataclass
class Examples:
    """Pattern validation examples."""

    match: list[str] = field(default_factory=list)
    nomatch: list[str] = field(default_factory=list)


@dataclass
class PatternDefinition:
    """Named pattern held by a registry."""

    id: str
    namespace: str
    pattern: Pattern
    matcher: Any  # PatternMatcher
    description: str = ""
    flags: list[str] = field(default_factory=list)
    examples: Optional[Examples] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def full_id(self) -> str:
        """Return full namespace/id identifier."""
        return f"{self.namespace}/{self.id}"
