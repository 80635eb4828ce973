"""
String transformations built on the pattern matcher.

Every length and position used here counts user-perceived characters
(grapheme clusters), so "e" followed by a combining accent is one character.
"""

import math
import unicodedata
from typing import Callable, Optional

from unidecode import unidecode

from colaexpression.patterns import FIRST_CHARACTER, sanitize
from colaexpression.ranges import cluster_count, clusters

ELLIPSIS = "..."

# Unicode general category prefixes
LETTERS = ("L", "M")
ALPHANUMERICS = ("L", "M", "N")
DECIMAL_DIGITS = ("Nd",)


# Case operations


def capitalized(string: str) -> str:
    """
    Uppercase the first character of every word.

    Words separated by underscores are treated independently and the rest of
    each word is left untouched.

        >>> capitalized("hello wORLD_foo")
        'Hello WORLD_Foo'
    """
    return _convert_first_characters(string, str.upper)


def decapitalized(string: str) -> str:
    """Lowercase the first character of every word."""
    return _convert_first_characters(string, str.lower)


def _convert_first_characters(string: str, convert: Callable[[str], str]) -> str:
    result = string
    for match_range in reversed(FIRST_CHARACTER.matched_ranges(string)):
        converted = convert(match_range.extract(string))
        result = result[: match_range.start] + converted + result[match_range.end :]
    return result


def split_words_by_case(string: str) -> str:
    """
    Split a string into space separated words at case transitions.

    The string is sanitized first. A space is inserted before an uppercase
    letter that follows a non-uppercase character, and before the last
    capital of an acronym run that starts a new word.

        >>> split_words_by_case("helloWorld")
        'hello World'
        >>> split_words_by_case("XMLParser")
        'XML Parser'
    """
    characters = clusters(sanitize(string))
    pieces = []
    for index, character in enumerate(characters):
        if index > 0 and _is_upper_letter(character):
            previous = characters[index - 1]
            following = characters[index + 1] if index + 1 < len(characters) else ""
            if not _is_upper_letter(previous) or _is_lower_letter(following):
                pieces.append(" ")
        pieces.append(character)
    return " ".join("".join(pieces).split())


def pascal_cased(string: str) -> str:
    """
    Return the PascalCase form of string.

        >>> pascal_cased("HELLO WORLD")
        'HelloWorld'
    """
    words = split_words_by_case(string).split()
    return "".join(capitalized(word.lower()) for word in words)


def camel_cased(string: str) -> str:
    """
    Return the camelCase form of string.

        >>> camel_cased("Hello World")
        'helloWorld'
    """
    return decapitalized(pascal_cased(string))


def kebab_cased(string: str) -> str:
    """Return the kebab-case (slug) form of string."""
    return "-".join(split_words_by_case(string).split()).lower()


def snake_cased(string: str) -> str:
    """Return the snake_case form of string."""
    return "_".join(split_words_by_case(string).split()).lower()


def swap_cased(string: str) -> str:
    """Uppercase lowercase characters and lowercase everything else."""
    return "".join(
        character.upper() if character == character.lower() else character.lower()
        for character in clusters(string)
    )


def _is_upper_letter(character: str) -> bool:
    return character == character.upper() and character != character.lower()


def _is_lower_letter(character: str) -> bool:
    return character == character.lower() and character != character.upper()


# Predicates


def contains_only(string: str, categories: tuple[str, ...]) -> bool:
    """
    Return True if every character belongs to the given Unicode categories.

    Args:
        string: String to test
        categories: General category names or prefixes, e.g. ("L", "Nd")
    """
    return all(
        unicodedata.category(scalar).startswith(categories)
        for character in clusters(string)
        for scalar in character
    )


def is_alpha(string: str) -> bool:
    """Return True if all characters are letters."""
    return contains_only(string, LETTERS)


def is_alphanumeric(string: str) -> bool:
    """Return True if all characters are letters or numbers."""
    return contains_only(string, ALPHANUMERICS)


def is_numeric(string: str) -> bool:
    """Return True if all characters are decimal digits."""
    return contains_only(string, DECIMAL_DIGITS)


def is_uppercased(string: str) -> bool:
    return string == string.upper()


def is_lowercased(string: str) -> bool:
    return string == string.lower()


def is_capitalized(string: str) -> bool:
    """Return True if capitalized() would leave string unchanged."""
    return string == capitalized(string)


def is_decapitalized(string: str) -> bool:
    """Return True if decapitalized() would leave string unchanged."""
    return string == decapitalized(string)


# Character operations


def first_character(string: str) -> str:
    """Return the first character of string, or "" if it is empty."""
    characters = clusters(string)
    return characters[0] if characters else ""


def last_character(string: str) -> str:
    """Return the last character of string, or "" if it is empty."""
    characters = clusters(string)
    return characters[-1] if characters else ""


def length(string: str) -> int:
    """Return the number of characters in string."""
    return cluster_count(string)


def reversed_string(string: str) -> str:
    """Reverse string without splitting characters apart."""
    return "".join(reversed(clusters(string)))


def without_accents(string: str) -> str:
    """
    Strip diacritics.

        >>> without_accents("Crème brûlée")
        'Creme brulee'
    """
    decomposed = unicodedata.normalize("NFD", string)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def latinized(string: str) -> str:
    """Transliterate string to Latin script without diacritics."""
    return without_accents(unidecode(string))


# Padding operations


def padding_conditions_satisfied(string: str, length: int, token: str) -> bool:
    """Return True if string can be padded to length with token."""
    return length > cluster_count(string) and cluster_count(token) == 1


def padding(string: str, length: int, token: str = " ") -> str:
    """
    Center string within length characters.

    When the padding needed is odd, the right side gets the extra token.
    Returns string unchanged if length is not greater than its length or
    token is not a single character.

        >>> padding("Hello World", 13, "*")
        '*Hello World*'
    """
    if not padding_conditions_satisfied(string, length, token):
        return string

    delta = math.ceil((length - cluster_count(string)) / 2)
    return padding_right(padding_left(string, length - delta, token), length, token)


def padding_left(string: str, length: int, token: str = " ") -> str:
    """Left-pad string to length characters with token."""
    if not padding_conditions_satisfied(string, length, token):
        return string
    return token * (length - cluster_count(string)) + string


def padding_right(string: str, length: int, token: str = " ") -> str:
    """Right-pad string to length characters with token."""
    if not padding_conditions_satisfied(string, length, token):
        return string
    return string + token * (length - cluster_count(string))


# Trimming operations


def trim_left(
    string: str, *, keeping: Optional[int] = None, removing: Optional[int] = None
) -> str:
    """
    Keep the first characters of string, or drop characters from its start.

        >>> trim_left("Hello World", keeping=7)
        'Hello W'
        >>> trim_left("Hello World", removing=7)
        'orld'

    Args:
        string: String to trim
        keeping: Number of leading characters to keep
        removing: Number of leading characters to drop. If this is not less
                  than the string's length, string is returned unchanged.

    Raises:
        ValueError: Unless exactly one of keeping and removing is given
    """
    _check_trim_arguments(keeping, removing)
    characters = clusters(string)
    if keeping is not None:
        return _prefix(characters, keeping)

    remaining = len(characters) - removing
    if remaining <= 0:
        return string
    return _suffix(characters, remaining)


def trim_right(
    string: str, *, keeping: Optional[int] = None, removing: Optional[int] = None
) -> str:
    """
    Keep the last characters of string, or drop characters from its end.

    Mirrors trim_left, including returning string unchanged when asked to
    remove at least as many characters as it has.

        >>> trim_right("Hello World", keeping=7)
        'o World'
        >>> trim_right("Hello World", removing=7)
        'Hell'
    """
    _check_trim_arguments(keeping, removing)
    characters = clusters(string)
    if keeping is not None:
        return _suffix(characters, keeping)

    remaining = len(characters) - removing
    if remaining <= 0:
        return string
    return _prefix(characters, remaining)


def truncated(string: str, length: int) -> str:
    """
    Shorten string to length characters, ending with an ellipsis.

    The ellipsis counts towards length. string is returned unchanged if it
    already fits or length leaves no room for any of its characters.

        >>> truncated("Hello World", 8)
        'Hello...'
    """
    if cluster_count(string) - length <= 0:
        return string

    visible = length - len(ELLIPSIS)
    if visible <= 0:
        return string
    return trim_left(string, keeping=visible) + ELLIPSIS


def _check_trim_arguments(keeping: Optional[int], removing: Optional[int]) -> None:
    if (keeping is None) == (removing is None):
        raise ValueError("Exactly one of keeping or removing must be given")


def _prefix(characters: list[str], count: int) -> str:
    count = min(max(count, 0), len(characters))
    return "".join(characters[:count])


def _suffix(characters: list[str], count: int) -> str:
    count = min(max(count, 0), len(characters))
    return "".join(characters[len(characters) - count :])
