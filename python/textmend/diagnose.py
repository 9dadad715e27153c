"""
Explains why a reference text could not be matched and offers safe recovery actions.
"""

from typing import List

import structlog

from textmend.locator import find_best_span
from textmend.models import Diagnosis, FixKind, FixSuggestion
from textmend.normalize import squash, strip_markdown

logger = structlog.get_logger(__name__)

NO_REFERENCE = "No original-text reference was provided."
EMPTY_DOCUMENT = "The document is empty."
FORMATTING_MISMATCH = "Formatting or symbol differences detected."
MARKDOWN_MISMATCH = "Markdown formatting characters interfere with the match."
SECOND_HALF_MISMATCH = "The second half of the reference text does not match (the AI likely altered the quoted passage)."
FIRST_HALF_MISMATCH = "The first half of the reference text does not match (the AI likely altered the quoted passage)."
NOT_FOUND = "Reference text not found at all; it may have been altered or hallucinated."

MANUAL_SUGGESTION_ID = "manual"
FUZZY_SUGGESTION_ID = "fuzzy"


def _manual_suggestion() -> FixSuggestion:
    return FixSuggestion(
        id=MANUAL_SUGGESTION_ID,
        kind=FixKind.REPLACE_SELECTION,
        label="Replace the current selection",
    )


def _classify(document: str, query: str) -> str:
    clean_document = squash(document)
    clean_query = squash(query)

    stripped_query = strip_markdown(clean_query)
    if stripped_query and stripped_query in strip_markdown(clean_document):
        # Normally caught by the locator already
        return MARKDOWN_MISMATCH

    half = len(clean_query) // 2
    first_half = clean_query[:half]
    if first_half and first_half in clean_document:
        return SECOND_HALF_MISMATCH

    second_half = clean_query[half:]
    if second_half and second_half in clean_document:
        return FIRST_HALF_MISMATCH

    return NOT_FOUND


def diagnose(document: str, query: str) -> Diagnosis:
    """
    Classifies a failed match. The first applicable reason wins:

    - no reference / empty document
    - the locator finds a likely span (a forced range replace is offered first)
    - the quote only differs by Markdown decoration
    - only one half of the quote is present
    - nothing recognisable is present

    Every diagnosis offers replacing the user's current selection.
    """
    suggestions: List[FixSuggestion] = [_manual_suggestion()]

    if not query:
        return Diagnosis(reason=NO_REFERENCE, suggestions=suggestions)
    if not document:
        return Diagnosis(reason=EMPTY_DOCUMENT, suggestions=suggestions)

    span = find_best_span(document, query)
    if span is not None:
        suggestions.insert(
            0,
            FixSuggestion(
                id=FUZZY_SUGGESTION_ID,
                kind=FixKind.FORCE_REPLACE_RANGE,
                label="Force replace (ignore formatting differences)",
                indices=span,
            ),
        )
        logger.debug("Diagnosed formatting mismatch", start=span[0], end=span[1])
        return Diagnosis(reason=FORMATTING_MISMATCH, suggestions=suggestions)

    reason = _classify(document, query)
    logger.debug("Diagnosed unmatched reference", reason=reason)
    return Diagnosis(reason=reason, suggestions=suggestions)
