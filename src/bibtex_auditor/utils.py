"""Shared text utilities for bibliography auditing.

This module provides common functionality used by:
- parser.py (entry extraction)
- duplicates.py (in-document duplicate detection)
- verifier.py (cross-source verification)

Includes whitespace/brace cleanup, title normalization, word-overlap
similarity, author parsing and arXiv identifier recognition.
"""

from __future__ import annotations

import re
from enum import Enum

# ------------- Constants & Regex -------------

ARXIV_INLINE_RE = re.compile(r"arXiv:\s*(?P<id>\d{4}\.\d{4,5})", re.IGNORECASE)
ARXIV_BARE_RE = re.compile(r"^(?P<id>\d{4}\.\d{4,5})")

_WS_RE = re.compile(r"\s+")
_BRACES_RE = re.compile(r"[{}]")
_NON_WORD_RE = re.compile(r"[^\w\s]|_")
_NON_ALNUM_RE = re.compile(r"[\W_]+")
_AUTHOR_SEP_RE = re.compile(r"\s+\band\b\s+", re.IGNORECASE)

# Words of this length or shorter are ignored by the similarity scorer
SHORT_WORD_MAX_LEN = 2


# ------------- Text Normalization -------------


def collapse_whitespace(text: str) -> str:
    """Collapse newlines, tabs and runs of spaces into single spaces and trim."""
    return _WS_RE.sub(" ", text or "").strip()


def strip_braces(text: str) -> str:
    """Remove every brace character (e.g. '{PaLI}' -> 'PaLI')."""
    return _BRACES_RE.sub("", text or "")


def clean_value(text: str) -> str:
    """Clean a raw field value: drop nested braces and collapse whitespace."""
    return collapse_whitespace(strip_braces(text))


def normalize_title(title: str) -> str:
    """Normalize a title for exact duplicate comparison.

    Lowercases and keeps only letters and digits, so
    'Attention Is All You Need' and 'attention-is all you need!' compare equal.
    Applying it twice gives the same result as applying it once.
    """
    return _NON_ALNUM_RE.sub("", (title or "").lower())


def normalize_title_words(title: str) -> str:
    """Looser normalization used before word-set similarity.

    Lowercases, drops characters that are neither letters, digits nor
    whitespace, and collapses whitespace. Word boundaries are preserved.
    """
    return collapse_whitespace(_NON_WORD_RE.sub("", (title or "").lower()))


def significant_words(title: str) -> set[str]:
    """Return the set of words longer than two characters."""
    return {w for w in normalize_title_words(title).split() if len(w) > SHORT_WORD_MAX_LEN}


# ------------- Matching Utilities -------------


class OverlapMode(Enum):
    """Denominator policy for title_similarity.

    SUBSET divides by the smaller word set, so an abbreviated title still scores
    high against its longer form (in-document duplicates). STRICT divides by the
    larger set and requires near-total overlap (confirming an external record).
    """

    SUBSET = "subset"
    STRICT = "strict"


def title_similarity(title_a: str, title_b: str, mode: OverlapMode = OverlapMode.SUBSET) -> float:
    """Word-overlap similarity between two titles in [0, 1].

    Args:
        title_a: First title
        title_b: Second title
        mode: Denominator policy (see OverlapMode)

    Returns:
        Count of shared significant words divided by the min (SUBSET) or max
        (STRICT) word-set size; 0.0 if either title has no significant words.
    """
    words_a = significant_words(title_a)
    words_b = significant_words(title_b)
    if not words_a or not words_b:
        return 0.0
    common = len(words_a & words_b)
    if mode is OverlapMode.STRICT:
        return common / max(len(words_a), len(words_b))
    return common / min(len(words_a), len(words_b))


# ------------- Author Handling -------------


def split_authors_bibtex(author_field: str) -> list[str]:
    """Split BibTeX 'A and B and C' author string into individual names."""
    if not author_field:
        return []
    parts = [collapse_whitespace(p) for p in _AUTHOR_SEP_RE.split(author_field)]
    return [p for p in parts if p]


def first_author_surname(name: str) -> str:
    """Extract a lowercase surname from a person name.

    Handles both 'Family, Given' and 'Given Family' formats.
    """
    if "," in name:
        last = name.split(",", 1)[0].strip()
    else:
        toks = name.split()
        last = toks[-1] if toks else ""
    return last.lower()


# ------------- arXiv Utilities -------------


def extract_arxiv_id_from_text(text: str) -> str | None:
    """Find an inline 'arXiv:NNNN.NNNNN' token anywhere in text."""
    if not text:
        return None
    m = ARXIV_INLINE_RE.search(text)
    return m.group("id") if m else None


def arxiv_id_from_eprint(value: str | None) -> str | None:
    """Accept an eprint field value shaped like 'NNNN.NNNNN' (optionally versioned)."""
    if not value:
        return None
    m = ARXIV_BARE_RE.match(value.strip())
    return m.group("id") if m else None
