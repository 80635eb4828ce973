"""Built-in patterns and the helpers built directly on them."""

from types import MappingProxyType
from typing import Mapping

from colaexpression.engine import PatternMatcher

#: Matches email addresses.
EMAIL = PatternMatcher(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}")

#: Matches the first alphanumeric character of each word, treating "_" as a separator.
FIRST_CHARACTER = PatternMatcher(r"(\b\w|(?<=_)[^_])")

#: Matches the last alphanumeric character of each word, treating "_" as a separator.
LAST_CHARACTER = PatternMatcher(r"(\w\b|[^_](?=_))")

#: Matches non-alphanumeric characters.
NON_ALPHANUMERIC = PatternMatcher(r"[^a-zA-Z\d]")

#: Matches characters that are neither alphanumeric nor whitespace.
NON_ALPHANUMERIC_SPACE = PatternMatcher(r"[^a-zA-Z\d\s]")

#: Matches numbers written in scientific notation, e.g. "-1.5E-10".
SCIENTIFIC_NOTATION = PatternMatcher(r"^([+-]?)((?<!0)\d\.\d{1,})E([-]?)(\d+)$")

BUILTIN_PATTERNS: Mapping[str, PatternMatcher] = MappingProxyType(
    {
        "email": EMAIL,
        "first_character": FIRST_CHARACTER,
        "last_character": LAST_CHARACTER,
        "non_alphanumeric": NON_ALPHANUMERIC,
        "non_alphanumeric_space": NON_ALPHANUMERIC_SPACE,
        "scientific_notation": SCIENTIFIC_NOTATION,
    }
)


def builtin(name: str) -> PatternMatcher:
    """
    Get a built-in pattern by name.

    Raises:
        KeyError: If no built-in pattern has that name
    """
    try:
        return BUILTIN_PATTERNS[name]
    except KeyError:
        raise KeyError(f"Unknown built-in pattern: {name}") from None


def first_character_of_each_word(string: str) -> list[str]:
    """Return the first letter of each word in string."""
    return FIRST_CHARACTER.matches(string)


def last_character_of_each_word(string: str) -> list[str]:
    """Return the last letter of each word in string."""
    return LAST_CHARACTER.matches(string)


def check_email(email: str) -> bool:
    """Return True if email looks like an email address."""
    return EMAIL.is_match(email)


def is_scientific_notation(string: str) -> bool:
    return SCIENTIFIC_NOTATION.is_match(string)


def sanitize(string: str) -> str:
    """
    Replace every non-alphanumeric character with a space and strip the result.

        >>> sanitize("hello_world!")
        'hello world'
    """
    return NON_ALPHANUMERIC.replace_occurrences(string, " ").strip()
