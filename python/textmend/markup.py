"""
Renders a set of edit tasks as CriticMarkup over the document, without applying them.
"""

import re
from typing import Iterable, List, Tuple

import structlog
from diff_match_patch import diff_match_patch

from textmend.matcher import find_match
from textmend.models import EditTask, TaskStatus

logger = structlog.get_logger(__name__)


_WORD_TOKEN_RE = re.compile(r"\S+|\s+")


def _encode_tokens(*texts: str) -> Tuple[List[str], List[str]]:
    """
    Encodes each text as a string with one character per word or whitespace run.
    Returns the encoded texts and the vocabulary, indexed by code point minus 0x100.
    """
    vocabulary: List[str] = []
    codes = {}
    encoded = []
    for text in texts:
        chars = []
        for token in _WORD_TOKEN_RE.findall(text):
            if token not in codes:
                codes[token] = chr(0x100 + len(vocabulary))
                vocabulary.append(token)
            chars.append(codes[token])
        encoded.append("".join(chars))
    return encoded, vocabulary


def diff_words(old_text: str, new_text: str) -> List[Tuple[int, str]]:
    """
    Diffs two strings word by word. Punctuation stays with its word.
    Returns diff-match-patch ops: 0 kept, -1 removed, 1 added.
    """
    (old_encoded, new_encoded), vocabulary = _encode_tokens(old_text, new_text)
    if not old_encoded and not new_encoded:
        return []

    dmp = diff_match_patch()
    diffs = dmp.diff_main(old_encoded, new_encoded)
    dmp.diff_cleanupSemantic(diffs)

    return [(op, "".join(vocabulary[ord(c) - 0x100] for c in chunk)) for op, chunk in diffs if chunk]


def _build_critic_markup(matched_text: str, new_text: str, comment: str, edit_index: int, include_index: bool) -> str:
    parts = []
    for op, text in diff_words(matched_text, new_text):
        if op == 0:
            parts.append(text)
        elif op == -1:
            parts.append(f"{{--{text}--}}")
        else:
            parts.append(f"{{++{text}++}}")

    meta_parts = []
    if comment:
        meta_parts.append(comment)
    if include_index:
        meta_parts.append(f"[Edit:{edit_index}]")
    if meta_parts:
        parts.append(f"{{>>{' '.join(meta_parts)}<<}}")

    return "".join(parts)


def render_task_markup(document: str, tasks: Iterable[EditTask], include_index: bool = False) -> str:
    """
    Shows where each pending task would land, as CriticMarkup:
    {--deleted--}{++inserted++}{>>explanation<<}

    Tasks are located independently against `document`. When two matches
    overlap, the earlier task in the list wins. Unlocated tasks are skipped.
    """
    matched: List[Tuple[int, int, EditTask, int]] = []
    for idx, task in enumerate(tasks):
        if task.status != TaskStatus.PENDING:
            continue
        match = find_match(document, task.original_text)
        if match is None:
            logger.warning("Skipping task in preview: reference not found", task_id=task.id)
            continue
        matched.append((match.start, match.end, task, idx))

    kept: List[Tuple[int, int, EditTask, int]] = []
    for start, end, task, idx in matched:
        if any(start < k_end and end > k_start for k_start, k_end, _, _ in kept):
            logger.warning("Skipping task in preview: overlaps an earlier task", task_id=task.id)
            continue
        kept.append((start, end, task, idx))

    # Apply from the end so earlier offsets stay valid
    kept.sort(key=lambda item: item[0], reverse=True)

    result = document
    for start, end, task, idx in kept:
        markup = _build_critic_markup(
            matched_text=document[start:end],
            new_text=task.replacement_text,
            comment=task.explanation,
            edit_index=idx,
            include_index=include_index,
        )
        result = result[:start] + markup + result[end:]

    return result
