"""Core pattern matching engine."""

import functools
import logging
from typing import Any, Iterator, Optional, Union

import regex

from colaexpression.models import (
    CompileOption,
    MatchOption,
    MatchRange,
    MatchResult,
    MatchStatus,
    Pattern,
)
from colaexpression.ranges import cluster_boundaries, to_match_range

logger = logging.getLogger(__name__)

# USE_UNIX_LINE_SEPARATORS has no entry: only "\n" ends a line unless WORD is set.
_ENGINE_FLAGS = {
    CompileOption.CASE_INSENSITIVE: regex.IGNORECASE,
    CompileOption.ALLOW_COMMENTS_AND_WHITESPACE: regex.VERBOSE,
    CompileOption.DOT_MATCHES_LINE_SEPARATORS: regex.DOTALL,
    CompileOption.ANCHORS_MATCH_LINES: regex.MULTILINE,
    CompileOption.USE_UNICODE_WORD_BOUNDARIES: regex.WORD,
}

# Global inline flags such as "(?x)" must stay at the start of a pattern
_GLOBAL_FLAGS = regex.compile(r"(?:\(\?(?:[abefiLmprsuwx]|V[01])+\))*")

Bounds = Union[MatchRange, tuple[int, int]]


class PatternCompileError(ValueError):
    """Raised in strict mode when a pattern cannot be compiled."""

    def __init__(self, pattern: Pattern, message: str) -> None:
        super().__init__(f"Failed to compile pattern {pattern.source!r}: {message}")
        self.pattern = pattern
        self.message = message


def engine_flags(options: CompileOption) -> int:
    """Translate compile options into regex engine flags."""
    flags = regex.V0
    for option, flag in _ENGINE_FLAGS.items():
        if options & option:
            flags |= flag
    return flags


@functools.lru_cache(maxsize=256)
def compile_pattern(source: str, options: CompileOption = CompileOption(0)) -> Any:
    """
    Compile a pattern source with the given options.

    Compiled handles are immutable and cached per (source, options).

    Raises:
        regex.error: If the source is not a valid pattern
    """
    if options & CompileOption.IGNORE_METACHARACTERS:
        source = regex.escape(source)
    return regex.compile(source, engine_flags(options))


@functools.lru_cache(maxsize=256)
def _compile_source(source: str, flags: int) -> Any:
    return regex.compile(source, flags)


def _replace_anchors(source: str, replacements: dict[str, str], verbose: bool) -> str:
    """
    Replace the anchors ^, $, \\A and \\Z of source.

    Anchors inside sets, comments and escapes such as \\p{^L} are left alone.
    """
    pieces = []
    index = 0
    in_set = False
    set_body = 0
    while index < len(source):
        char = source[index]
        if char == "\\":
            token = source[index : index + 2]
            if token[1:] in ("p", "P", "N", "x") and source.startswith("{", index + 2):
                close = source.find("}", index + 2)
                stop = len(source) if close == -1 else close + 1
                pieces.append(source[index:stop])
                index = stop
                continue
            pieces.append(token if in_set else replacements.get(token, token))
            index += 2
        elif in_set:
            if source.startswith("[:", index) and source.find(":]", index + 2) != -1:
                stop = source.find(":]", index + 2) + 2
                pieces.append(source[index:stop])
                index = stop
                continue
            # A "]" right after "[" or "[^" is a literal
            if char == "]" and index > set_body:
                in_set = False
            pieces.append(char)
            index += 1
        elif char == "[":
            in_set = True
            set_body = index + 2 if source.startswith("^", index + 1) else index + 1
            pieces.append(source[index:set_body])
            index = set_body
        elif source.startswith("(?#", index) or (verbose and char == "#"):
            close = source.find(")" if char == "(" else "\n", index)
            stop = len(source) if close == -1 else close + 1
            pieces.append(source[index:stop])
            index = stop
        else:
            pieces.append(replacements.get(char, char))
            index += 1
    return "".join(pieces)


def _confined(source: str, tail: int, verbose: bool) -> str:
    """Append a check that at least tail characters follow each match."""
    flags = _GLOBAL_FLAGS.match(source).group()
    body = source[len(flags) :]
    newline = "\n" if verbose else ""
    return f"{flags}(?:{body}{newline})(?=(?s:.){{{tail}}})"


def _bounded(
    compiled: Any, start: int, end: int, length: int, match_options: MatchOption
) -> Any:
    """
    Adjust compiled so that its anchors and match ends respect [start, end).

    Opaque bounds scan a slice, where the engine anchors at both slice edges.
    Transparent bounds scan the whole subject, where it anchors only at the
    subject's own edges and matches may run past end. Edges that coincide
    with the subject's own edges need no adjustment.
    """
    transparent = bool(match_options & MatchOption.WITH_TRANSPARENT_BOUNDS)
    anchoring = not match_options & MatchOption.WITHOUT_ANCHORING_BOUNDS
    tail = length - end

    replacements = {}
    if transparent and anchoring:
        if start > 0:
            at_start = rf"(?<=\A(?s:.){{{start}}})"
            replacements["^"] = rf"(?:^|{at_start})"
            replacements["\\A"] = rf"(?:\A|{at_start})"
        if tail > 0:
            at_end = rf"(?=(?s:.){{{tail}}}\Z)"
            replacements["$"] = rf"(?:$|{at_end})"
            replacements["\\Z"] = rf"(?:\Z|{at_end})"
    elif not transparent and not anchoring:
        if start > 0:
            replacements["^"] = r"(?:(?!\A)^)"
            replacements["\\A"] = "(?!)"
        if tail > 0:
            replacements["$"] = r"(?:(?!\Z)$)"
            replacements["\\Z"] = "(?!)"

    confine = transparent and tail > 0
    if not replacements and not confine:
        return compiled

    verbose = bool(compiled.flags & regex.VERBOSE)
    source = _replace_anchors(compiled.pattern, replacements, verbose)
    if confine:
        source = _confined(source, tail, verbose)
    return _compile_source(source, compiled.flags)


def _scan(
    compiled: Any,
    subject: str,
    match_options: MatchOption,
    start: int,
    end: int,
) -> Iterator[tuple[Any, int]]:
    """
    Yield (engine match, offset) pairs left to right within [start, end).

    Adding offset to a match's positions gives positions in subject.
    """
    compiled = _bounded(compiled, start, end, len(subject), match_options)
    if match_options & MatchOption.WITH_TRANSPARENT_BOUNDS:
        text, offset, pos, endpos = subject, 0, start, len(subject)
    else:
        text, offset, pos, endpos = subject[start:end], start, 0, end - start

    if match_options & MatchOption.ANCHORED:
        while pos <= endpos:
            match = compiled.match(text, pos, endpos)
            if match is None:
                return
            yield match, offset
            if match.end() == match.start():
                return
            pos = match.end()
        return

    for match in compiled.finditer(text, pos, endpos):
        yield match, offset


class PatternMatcher:
    """
    Immutable matcher evaluating one pattern against subject strings.

    Invalid patterns are fail-soft by default: matching operations report no
    matches and replacements return the subject unchanged. Pass strict=True to
    raise PatternCompileError instead.
    """

    __slots__ = ("_pattern", "_strict")

    def __init__(
        self,
        pattern: str,
        options: CompileOption = CompileOption(0),
        strict: bool = False,
    ) -> None:
        """
        Initialize matcher.

        Args:
            pattern: Regular expression source
            options: Compile options
            strict: Raise PatternCompileError for invalid patterns
        """
        self._pattern = Pattern(pattern, CompileOption(options))
        self._strict = strict

    @classmethod
    def from_pattern(cls, pattern: Pattern, strict: bool = False) -> "PatternMatcher":
        """Create a matcher for an existing Pattern value."""
        return cls(pattern.source, pattern.options, strict=strict)

    @property
    def pattern(self) -> Pattern:
        return self._pattern

    @property
    def source(self) -> str:
        return self._pattern.source

    @property
    def options(self) -> CompileOption:
        return self._pattern.options

    @property
    def strict(self) -> bool:
        return self._strict

    def compile(self) -> Optional[Any]:
        """
        Return the compiled engine handle.

        Returns:
            Compiled pattern, or None if the pattern is invalid

        Raises:
            PatternCompileError: If the pattern is invalid and strict is set
        """
        try:
            return compile_pattern(self._pattern.source, self._pattern.options)
        except regex.error as e:
            if self._strict:
                raise PatternCompileError(self._pattern, str(e)) from e
            logger.debug(f"Pattern {self._pattern.source!r} failed to compile, treating as no match: {e}")
            return None

    def matched_ranges(
        self, subject: str, match_options: MatchOption = MatchOption(0)
    ) -> list[MatchRange]:
        """
        Find all non-overlapping matches in subject.

        Args:
            subject: String to search
            match_options: Matching options

        Returns:
            Matched ranges in ascending order. Empty if nothing matched or the
            pattern is invalid.
        """
        compiled = self.compile()
        if compiled is None:
            return []
        return self._translated_ranges(compiled, subject, match_options)

    def matches(self, subject: str, match_options: MatchOption = MatchOption(0)) -> list[str]:
        """Return the matched substrings of subject in order."""
        return [r.extract(subject) for r in self.matched_ranges(subject, match_options)]

    def first_match(
        self, subject: str, match_options: MatchOption = MatchOption(0)
    ) -> Optional[str]:
        """Return the first matched substring, or None."""
        found = self.matches(subject, match_options)
        return found[0] if found else None

    def is_match(self, subject: str, match_options: MatchOption = MatchOption(0)) -> bool:
        """Return True if the pattern matches anywhere in subject."""
        return len(self.matched_ranges(subject, match_options)) > 0

    def find(self, subject: str, match_options: MatchOption = MatchOption(0)) -> MatchResult:
        """
        Find all matches, reporting an invalid pattern instead of hiding it.

        Never raises for invalid patterns, even in strict mode.
        """
        try:
            compiled = compile_pattern(self._pattern.source, self._pattern.options)
        except regex.error as e:
            return MatchResult(
                text=subject,
                pattern=self._pattern,
                status=MatchStatus.PATTERN_INVALID,
                error=str(e),
            )

        ranges = self._translated_ranges(compiled, subject, match_options)
        return MatchResult(
            text=subject,
            pattern=self._pattern,
            ranges=ranges,
            status=MatchStatus.MATCHED if ranges else MatchStatus.NO_MATCH,
        )

    def string_by_replacing_matches(
        self,
        subject: str,
        match_options: MatchOption = MatchOption(0),
        bounds: Optional[Bounds] = None,
        template: str = "",
    ) -> str:
        """
        Replace every match inside bounds with the expanded template.

        Args:
            subject: String to transform
            match_options: Matching options
            bounds: Region of subject to search. Defaults to all of it.
            template: Replacement template; may reference groups as \\1 or \\g<name>

        Returns:
            New string. The subject is returned unchanged if the pattern or
            template is invalid.

        Raises:
            ValueError: If bounds lie outside subject or split a character
            PatternCompileError: If the pattern is invalid and strict is set
        """
        compiled = self.compile()
        if compiled is None:
            return subject

        start, end = self._resolve_bounds(subject, bounds)

        pieces = []
        last = start
        try:
            for match, offset in _scan(compiled, subject, match_options, start, end):
                pieces.append(subject[last : match.start() + offset])
                pieces.append(match.expand(template))
                last = match.end() + offset
        except (regex.error, IndexError) as e:
            if self._strict:
                raise ValueError(f"Invalid replacement template {template!r}: {e}") from e
            logger.debug(f"Template {template!r} failed to expand, leaving subject unchanged: {e}")
            return subject

        return subject[:start] + "".join(pieces) + subject[last:]

    def replace_occurrences(self, subject: str, replacement: str) -> str:
        """
        Replace each matched range as a whole with one copy of replacement.

        The replacement is literal text, not a template.
        """
        result = subject
        # Replace from end to start to preserve positions
        for match_range in reversed(self.matched_ranges(subject)):
            result = result[: match_range.start] + replacement + result[match_range.end :]
        return result

    @staticmethod
    def _translated_ranges(
        compiled: Any, subject: str, match_options: MatchOption
    ) -> list[MatchRange]:
        boundaries = cluster_boundaries(subject)
        ranges = []
        for match, offset in _scan(compiled, subject, match_options, 0, len(subject)):
            match_range = to_match_range(
                match.start() + offset, match.end() + offset, subject, boundaries
            )
            if match_range is not None:
                ranges.append(match_range)
        return ranges

    @staticmethod
    def _resolve_bounds(subject: str, bounds: Optional[Bounds]) -> tuple[int, int]:
        if bounds is None:
            return 0, len(subject)
        if isinstance(bounds, MatchRange):
            start, end = bounds.span
        else:
            start, end = bounds
        if start < 0 or end < start or end > len(subject):
            raise ValueError(
                f"Bounds ({start}, {end}) outside subject of length {len(subject)}"
            )
        if to_match_range(start, end, subject) is None:
            raise ValueError(f"Bounds ({start}, {end}) split a character cluster")
        return start, end

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternMatcher):
            return NotImplemented
        return self._pattern == other._pattern and self._strict == other._strict

    def __hash__(self) -> int:
        return hash((self._pattern, self._strict))

    def __repr__(self) -> str:
        """String representation."""
        return f"PatternMatcher(pattern={self._pattern.source!r}, options={self._pattern.options!r})"


def matched_ranges(
    pattern: str,
    string: str,
    options: CompileOption = CompileOption(0),
    match_options: MatchOption = MatchOption(0),
) -> list[MatchRange]:
    """Return the ranges of string matched by pattern."""
    return PatternMatcher(pattern, options).matched_ranges(string, match_options)


def matches(
    pattern: str,
    string: str,
    options: CompileOption = CompileOption(0),
    match_options: MatchOption = MatchOption(0),
) -> list[str]:
    """Return the substrings of string matched by pattern."""
    return PatternMatcher(pattern, options).matches(string, match_options)


def first_match(
    pattern: str,
    string: str,
    options: CompileOption = CompileOption(0),
    match_options: MatchOption = MatchOption(0),
) -> Optional[str]:
    """Return the first substring of string matched by pattern, or None."""
    return PatternMatcher(pattern, options).first_match(string, match_options)


def is_match(
    pattern: str,
    string: str,
    options: CompileOption = CompileOption(0),
    match_options: MatchOption = MatchOption(0),
) -> bool:
    """Return True if pattern matches anywhere in string."""
    return PatternMatcher(pattern, options).is_match(string, match_options)


def string_by_replacing_matches(
    pattern: str,
    string: str,
    options: CompileOption = CompileOption(0),
    match_options: MatchOption = MatchOption(0),
    bounds: Optional[Bounds] = None,
    template: str = "",
) -> str:
    """Replace matches of pattern in string with the expanded template."""
    return PatternMatcher(pattern, options).string_by_replacing_matches(
        string, match_options, bounds=bounds, template=template
    )


def replace_occurrences(pattern: str, string: str, replacement: str) -> str:
    """Replace each match of pattern in string with one copy of replacement."""
    return PatternMatcher(pattern).replace_occurrences(string, replacement)
