"""BibTeX entry extraction with balanced-brace scanning.

Field values may contain nested braces (e.g. ``title = {The {PaLI} Model}``),
so entry and field boundaries are found by counting brace depth instead of
matching up to the first closing brace.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bibtex_auditor.utils import (
    arxiv_id_from_eprint,
    clean_value,
    extract_arxiv_id_from_text,
    split_authors_bibtex,
)

logger = logging.getLogger(__name__)

ENTRY_HEADER_RE = re.compile(r"@(?P<type>\w+)\s*\{\s*(?P<key>[^,\s{}]+)\s*,")

# Block types that share the @type{...} syntax but are not bibliographic records
NON_ENTRY_TYPES = frozenset({"comment", "string", "preamble"})


@dataclass(frozen=True)
class BibEntry:
    """A single parsed bibliography entry."""

    key: str
    entry_type: str
    title: str
    year: int | None = None
    authors: tuple[str, ...] = ()
    arxiv_id: str | None = None


def find_closing_brace(text: str, start: int) -> int | None:
    """Return the index of the brace that balances the first '{' at or after start.

    Scans forward counting '{' and '}'. The span ends where the running depth
    returns to zero after having gone positive. Returns None if the input ends
    first.
    """
    depth = 0
    opened = False
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
            opened = True
        elif ch == "}":
            depth -= 1
        if opened and depth == 0:
            return i
    return None


def _find_closing_quote(text: str, start: int) -> int | None:
    """Index of the next '"' after start that is not backslash-escaped."""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i
        i += 1
    return None


def extract_field(body: str, field_name: str) -> str | None:
    """Extract and clean a named field value from an entry body.

    Handles braced (balanced), quoted and bare values. Returns None when the
    field is absent or its value is unterminated.
    """
    m = re.search(rf"(?<![\w-]){re.escape(field_name)}\s*=\s*", body, re.IGNORECASE)
    if not m:
        return None
    start = m.end()
    if start >= len(body):
        return None

    if body[start] == "{":
        end = find_closing_brace(body, start)
        if end is None:
            return None
        value = body[start + 1 : end]
    elif body[start] == '"':
        end = _find_closing_quote(body, start)
        if end is None:
            return None
        value = body[start + 1 : end]
    else:
        end = len(body)
        for stop in (",", "\n"):
            idx = body.find(stop, start)
            if idx != -1 and idx < end:
                end = idx
        value = body[start:end]

    return clean_value(value)


def extract_arxiv_id(body: str) -> str | None:
    """arXiv id from an inline 'arXiv:' token, falling back to the eprint field."""
    return extract_arxiv_id_from_text(body) or arxiv_id_from_eprint(extract_field(body, "eprint"))


def _parse_year(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_bibtex(text: str) -> list[BibEntry]:
    """Parse raw BibTeX text into entries, in document order.

    Entries without a balancing closing brace are skipped and scanning resumes
    right after their header, so a malformed entry never swallows the ones
    after it. Entries without a title are dropped.
    """
    entries: list[BibEntry] = []
    pos = 0
    while True:
        header = ENTRY_HEADER_RE.search(text, pos)
        if header is None:
            break
        entry_type = header.group("type").lower()
        key = header.group("key")

        end = find_closing_brace(text, header.start())
        if end is None:
            logger.debug("Skipping malformed entry %s: no closing brace", key)
            pos = header.end()
            continue
        pos = end + 1

        if entry_type in NON_ENTRY_TYPES:
            continue

        body = text[header.end() : end]
        title = extract_field(body, "title")
        if not title:
            logger.debug("Dropping entry %s: missing title", key)
            continue

        entries.append(
            BibEntry(
                key=key,
                entry_type=entry_type,
                title=title,
                year=_parse_year(extract_field(body, "year")),
                authors=tuple(split_authors_bibtex(extract_field(body, "author") or "")),
                arxiv_id=extract_arxiv_id(body),
            )
        )
    return entries


def load_entries(path: str) -> list[BibEntry]:
    """Read a BibTeX file as UTF-8 and parse it."""
    with open(path, encoding="utf-8") as f:
        content = f.read()
    entries = parse_bibtex(content)
    logger.info("Loaded %d entries from %s", len(entries), path)
    return entries
