"""
Pure text canonicalization used to compare AI-quoted text with the document.

Folds are lossy and one-way: they only ever locate a region, the text written
back always comes from the caller. Each fold is expressed per character so a
match found in the folded string can be projected back onto the original.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

FoldChar = Callable[[str], str]

# LaTeX spelling -> Unicode glyph. Spellings sharing a glyph are equivalent
# to each other as well (e.g. \to, \rightarrow and the arrow glyph).
MATH_EQUIVALENTS: List[Tuple[str, str]] = [
    ("\\alpha", "α"),
    ("\\beta", "β"),
    ("\\gamma", "γ"),
    ("\\delta", "δ"),
    ("\\epsilon", "ε"),
    ("\\zeta", "ζ"),
    ("\\eta", "η"),
    ("\\theta", "θ"),
    ("\\iota", "ι"),
    ("\\kappa", "κ"),
    ("\\lambda", "λ"),
    ("\\mu", "μ"),
    ("\\nu", "ν"),
    ("\\xi", "ξ"),
    ("\\pi", "π"),
    ("\\rho", "ρ"),
    ("\\sigma", "σ"),
    ("\\tau", "τ"),
    ("\\upsilon", "υ"),
    ("\\phi", "φ"),
    ("\\chi", "χ"),
    ("\\psi", "ψ"),
    ("\\omega", "ω"),
    ("\\Delta", "Δ"),
    ("\\Sigma", "Σ"),
    ("\\Omega", "Ω"),
    ("\\times", "×"),
    ("\\cdot", "·"),
    ("\\leq", "≤"),
    ("\\geq", "≥"),
    ("\\neq", "≠"),
    ("\\approx", "≈"),
    ("\\infty", "∞"),
    ("\\pm", "±"),
    ("\\bmod", "mod"),
    ("\\pmod", "mod"),
    ("\\to", "→"),
    ("\\rightarrow", "→"),
    ("\\leftarrow", "←"),
]

MARKDOWN_CHARS = "*_#`~>[]()-"

_MARKDOWN_RE = re.compile("[" + re.escape(MARKDOWN_CHARS) + "]")
_WHITESPACE_RE = re.compile(r"\s+")


def _build_math_classes(pairs: List[Tuple[str, str]]) -> Dict[str, str]:
    """Maps every spelling to a non-capturing alternation of its whole equivalence class."""
    groups: Dict[str, List[str]] = {}
    for latex, glyph in pairs:
        groups.setdefault(glyph, []).append(latex)

    classes: Dict[str, str] = {}
    for glyph, latex_spellings in groups.items():
        spellings = latex_spellings + [glyph]
        alternation = "(?:" + "|".join(_math_token_source(s) for s in spellings) + ")"
        for spelling in spellings:
            classes[spelling] = alternation
    return classes


def _math_token_source(spelling: str) -> str:
    # \to must not match the head of \top, on either side of the equivalence
    if spelling.startswith("\\"):
        return re.escape(spelling) + "(?![A-Za-z])"
    return re.escape(spelling)


_MATH_CLASSES = _build_math_classes(MATH_EQUIVALENTS)

# Group 1: whitespace, Group 2: dollar delimiter, Group 3: math spelling.
# Longest spelling first so \rightarrow wins over any shorter prefix.
_MATH_TOKEN_RE = re.compile(
    r"(\s+)|(\$)|("
    + "|".join(_math_token_source(s) for s in sorted(_MATH_CLASSES, key=len, reverse=True))
    + ")"
)


def whitespace_pattern(query: str) -> str:
    """
    Regex source for `query` where every run of whitespace matches any
    non-empty run of whitespace. All other characters are matched literally.
    """
    parts = []
    last_idx = 0
    for match in _WHITESPACE_RE.finditer(query):
        literal = query[last_idx : match.start()]
        if literal:
            parts.append(re.escape(literal))
        parts.append(r"\s+")
        last_idx = match.end()

    remaining = query[last_idx:]
    if remaining:
        parts.append(re.escape(remaining))

    return "".join(parts)


def math_pattern(query: str) -> str:
    """
    Whitespace-fold pattern that additionally:
    - makes every `$` delimiter optional
    - lets a LaTeX command match its Unicode glyph and vice versa (\\sigma <-> σ)

    Tokenisation is a single pass, so inserted alternations are never rewritten.
    """
    parts = []
    last_idx = 0
    for match in _MATH_TOKEN_RE.finditer(query):
        literal = query[last_idx : match.start()]
        if literal:
            parts.append(re.escape(literal))

        g_space, g_dollar, g_symbol = match.groups()

        if g_space:
            parts.append(r"\s+")
        elif g_dollar:
            parts.append(r"\$?")
        else:
            parts.append(_MATH_CLASSES[g_symbol])

        last_idx = match.end()

    remaining = query[last_idx:]
    if remaining:
        parts.append(re.escape(remaining))

    return "".join(parts)


def strip_whitespace_char(ch: str) -> str:
    return "" if ch.isspace() else ch


def fold_alnum_char(ch: str) -> str:
    """Keeps Unicode letters and digits (lowercased); drops symbols, punctuation and whitespace."""
    return ch.lower() if ch.isalnum() else ""


def fold(text: str, fold_char: FoldChar) -> str:
    return "".join(fold_char(ch) for ch in text)


def project_span(text: str, folded_start: int, folded_end: int, fold_char: FoldChar) -> Optional[Tuple[int, int]]:
    """
    Maps a half-open span of `fold(text, fold_char)` back onto `text`.

    Walks `text` once, counting folded characters, and records the original
    index where the count crosses the start and end boundaries. Characters
    folded away inside the span are kept; those before or after it are not.
    """
    if folded_start < 0 or folded_start >= folded_end:
        return None

    count = 0
    start = None
    for i, ch in enumerate(text):
        width = len(fold_char(ch))
        if not width:
            continue
        if start is None and count + width > folded_start:
            start = i
        count += width
        if count >= folded_end:
            return start, i + 1

    return None


def strip_markdown(text: str) -> str:
    return _MARKDOWN_RE.sub("", text)


def squash(text: str) -> str:
    """Drops all whitespace and lowercases; the coarse fold used for diagnostics."""
    return _WHITESPACE_RE.sub("", text).lower()
