"""
Locates AI-quoted text in a document and substitutes it exactly once.

Strategies run in order of decreasing strictness; the first one that yields
a span wins. A strategy never guesses: it either returns the first, minimal
span it is sure about or nothing.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import structlog

from textmend.normalize import fold, math_pattern, project_span, strip_whitespace_char, whitespace_pattern

logger = structlog.get_logger(__name__)

Span = Tuple[int, int]
Strategy = Callable[[str, str], Optional[Span]]


@dataclass(frozen=True)
class Match:
    strategy: str
    start: int
    end: int


def _exact(document: str, query: str) -> Optional[Span]:
    idx = document.find(query)
    if idx == -1:
        return None
    return idx, idx + len(query)


def _regex_search(document: str, pattern: str, strategy: str) -> Optional[Span]:
    try:
        match = re.search(pattern, document)
    except re.error as e:
        logger.warning("Pattern construction failed", strategy=strategy, error=str(e))
        return None
    # A zero-width hit (e.g. a lone optional "$") locates nothing
    if match is None or match.end() == match.start():
        return None
    return match.start(), match.end()


def _whitespace(document: str, query: str) -> Optional[Span]:
    return _regex_search(document, whitespace_pattern(query), "whitespace")


def _math(document: str, query: str) -> Optional[Span]:
    return _regex_search(document, math_pattern(query), "math")


def _anchor(document: str, query: str) -> Optional[Span]:
    """
    Fingerprint match: compares both strings with all whitespace removed
    (punctuation and Markdown kept), then projects the hit back onto the
    untouched document.
    """
    folded_query = fold(query, strip_whitespace_char)
    if not folded_query:
        return None

    idx = fold(document, strip_whitespace_char).find(folded_query)
    if idx == -1:
        return None

    return project_span(document, idx, idx + len(folded_query), strip_whitespace_char)


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("exact", _exact),
    ("whitespace", _whitespace),
    ("math", _math),
    ("anchor", _anchor),
)


def find_match(document: str, query: str) -> Optional[Match]:
    """
    Returns the first span any strategy finds, or None.
    An empty or whitespace-only query never matches, nor does an empty document.
    """
    if not query.strip() or not document:
        return None

    for name, strategy in STRATEGIES:
        span = strategy(document, query)
        if span is not None:
            start, end = span
            logger.debug("Matched reference text", strategy=name, start=start, end=end)
            return Match(strategy=name, start=start, end=end)

    logger.debug("Reference text not located", preview=query[:50])
    return None


def splice(document: str, start: int, end: int, replacement: str) -> str:
    return document[:start] + replacement + document[end:]


def attempt_replace(document: str, query: str, replacement: str) -> Optional[str]:
    """
    Replaces the first occurrence of `query` in `document` with `replacement`.

    `replacement` is written verbatim (no regex template expansion).
    Returns the new document, or None when no strategy locates the query.
    """
    match = find_match(document, query)
    if match is None:
        return None
    return splice(document, match.start, match.end, replacement)
