"""Character cluster segmentation and engine span translation."""

import logging
from typing import Iterable, Optional

import regex

from colaexpression.models import MatchRange

logger = logging.getLogger(__name__)

_CLUSTER = regex.compile(r"\X")


def clusters(string: str) -> list[str]:
    """Split string into user-perceived characters (extended grapheme clusters)."""
    return _CLUSTER.findall(string)


def cluster_count(string: str) -> int:
    """Return the number of user-perceived characters in string."""
    return len(clusters(string))


def cluster_boundaries(string: str) -> frozenset[int]:
    """
    Return every string index that starts or ends a character cluster.

    Index 0 and len(string) are always included.
    """
    boundaries = {0}
    for match in _CLUSTER.finditer(string):
        boundaries.add(match.end())
    return frozenset(boundaries)


def to_match_range(
    start: int,
    end: int,
    subject: str,
    boundaries: Optional[Iterable[int]] = None,
) -> Optional[MatchRange]:
    """
    Translate an engine-reported span into a MatchRange.

    Args:
        start: Span start reported by the engine
        end: Span end reported by the engine
        subject: String the span was reported for
        boundaries: Precomputed cluster boundaries of subject. Computed when
                    omitted; pass them in when translating many spans.

    Returns:
        MatchRange, or None if the span lies outside subject, is inverted, or
        splits a character cluster.
    """
    if start < 0 or end < start or end > len(subject):
        logger.debug(f"Span ({start}, {end}) out of range for subject of length {len(subject)}")
        return None

    if boundaries is None:
        boundaries = cluster_boundaries(subject)

    if start not in boundaries or end not in boundaries:
        logger.debug(f"Span ({start}, {end}) splits a character cluster, dropping")
        return None

    return MatchRange(start, end)
