"""
Best-effort span search used only to *suggest* a location after the matcher
has failed. Nothing found here is applied without the user's consent.
"""

from typing import Optional, Tuple

import structlog

from textmend.normalize import fold, fold_alnum_char, project_span

logger = structlog.get_logger(__name__)

# Head/tail anchoring is only attempted for quotes longer than this.
HEAD_TAIL_MIN_LENGTH = 20
# Number of literal characters taken from each end of the quote.
ANCHOR_LENGTH = 10
# A head/tail span must be shorter than this multiple of the quote length.
MAX_SPAN_FACTOR = 2


def _alnum_span(document: str, query: str) -> Optional[Tuple[int, int]]:
    folded_query = fold(query, fold_alnum_char)
    if not folded_query:
        return None

    idx = fold(document, fold_alnum_char).find(folded_query)
    if idx == -1:
        return None

    return project_span(document, idx, idx + len(folded_query), fold_alnum_char)


def _head_tail_span(document: str, query: str) -> Optional[Tuple[int, int]]:
    if len(query) <= HEAD_TAIL_MIN_LENGTH:
        return None

    head = query[:ANCHOR_LENGTH]
    tail = query[-ANCHOR_LENGTH:]

    start = document.find(head)
    if start == -1:
        return None

    tail_idx = document.find(tail, start)
    if tail_idx == -1:
        return None

    end = tail_idx + len(tail)
    # Guard against bridging two distant paragraphs
    if end - start >= len(query) * MAX_SPAN_FACTOR:
        logger.debug("Head/tail span rejected as too long", start=start, end=end, query_length=len(query))
        return None

    return start, end


def find_best_span(document: str, query: str) -> Optional[Tuple[int, int]]:
    """
    Returns a half-open (start, end) span of `document` that most likely
    corresponds to `query`, or None.

    1. Alphanumeric fingerprint: ignores case, whitespace, punctuation and
       Markdown decoration.
    2. Head/tail anchors: the first and last characters of a long quote
       found literally, in order, within a bounded distance.
    """
    if not document or not query:
        return None

    span = _alnum_span(document, query)
    if span is not None:
        return span

    return _head_tail_span(document, query)
