#!/usr/bin/env python3
"""Duplicate detection within a single BibTeX file.

Three independent passes are merged into one set of pair reports:
1. SAME_TITLE: identical normalized titles
2. SAME_ARXIV_ID: identical arXiv identifiers
3. FUZZY_SIMILARITY: high word overlap between titles that are not identical

Usage:
    bibtex-dupes references.bib
    bibtex-dupes references.bib --threshold 0.9 --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from bibtex_auditor.config import AuditConfig, load_config
from bibtex_auditor.parser import BibEntry, load_entries
from bibtex_auditor.utils import OverlapMode, normalize_title, title_similarity

# ------------- Data Classes -------------


class DuplicateReason(Enum):
    """Why two entries were reported as duplicates."""

    SAME_TITLE = "same_title"
    SAME_ARXIV_ID = "same_arxiv_id"
    FUZZY_SIMILARITY = "fuzzy_similarity"


@dataclass(frozen=True)
class DuplicatePair:
    """An unordered pair of entry keys flagged for one reason.

    Build instances with create() so that (A, B) and (B, A) are the same value.
    Only the keys and the reason take part in equality and hashing.
    """

    key_a: str
    key_b: str
    reason: DuplicateReason
    score: float | None = field(default=None, compare=False)
    title_a: str | None = field(default=None, compare=False)
    title_b: str | None = field(default=None, compare=False)
    arxiv_id: str | None = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        key_a: str,
        key_b: str,
        reason: DuplicateReason,
        score: float | None = None,
        title_a: str | None = None,
        title_b: str | None = None,
        arxiv_id: str | None = None,
    ) -> DuplicatePair:
        if key_b < key_a:
            key_a, key_b = key_b, key_a
            title_a, title_b = title_b, title_a
        return cls(key_a, key_b, reason, score, title_a, title_b, arxiv_id)


# ------------- Detector -------------


class DuplicateDetector:
    """Finds exact and near-duplicate entries in a parsed bibliography."""

    def __init__(self, config: AuditConfig | None = None, logger: logging.Logger | None = None):
        self.config = config or AuditConfig()
        self.logger = logger or logging.getLogger("duplicates")

    def _same_title_pairs(self, entries: Sequence[BibEntry]) -> Iterable[DuplicatePair]:
        seen: dict[str, str] = {}
        for entry in entries:
            norm = normalize_title(entry.title)
            if len(norm) < self.config.min_title_length:
                continue
            if norm in seen:
                yield DuplicatePair.create(seen[norm], entry.key, DuplicateReason.SAME_TITLE)
            else:
                seen[norm] = entry.key

    def _same_arxiv_pairs(self, entries: Sequence[BibEntry]) -> Iterable[DuplicatePair]:
        seen: dict[str, str] = {}
        for entry in entries:
            if not entry.arxiv_id:
                continue
            if entry.arxiv_id in seen:
                yield DuplicatePair.create(
                    seen[entry.arxiv_id], entry.key, DuplicateReason.SAME_ARXIV_ID, arxiv_id=entry.arxiv_id
                )
            else:
                seen[entry.arxiv_id] = entry.key

    def _fuzzy_pairs(self, entries: Sequence[BibEntry]) -> Iterable[DuplicatePair]:
        # O(n^2); bibliographies are small enough
        normalized = [normalize_title(e.title) for e in entries]
        for i in range(len(entries)):
            for j in range(i + 1, len(entries)):
                if normalized[i] == normalized[j]:
                    continue
                a, b = entries[i], entries[j]
                score = title_similarity(a.title, b.title, OverlapMode.SUBSET)
                if score > self.config.duplicate_threshold:
                    yield DuplicatePair.create(
                        a.key,
                        b.key,
                        DuplicateReason.FUZZY_SIMILARITY,
                        score=score,
                        title_a=a.title,
                        title_b=b.title,
                    )

    def find_duplicates(self, entries: Sequence[BibEntry]) -> set[DuplicatePair]:
        """Run all three passes and return the merged set of pair reports."""
        pairs: set[DuplicatePair] = set()
        pairs.update(self._same_title_pairs(entries))
        pairs.update(self._same_arxiv_pairs(entries))
        pairs.update(self._fuzzy_pairs(entries))
        self.logger.debug("Checked %d entries, %d duplicate pairs", len(entries), len(pairs))
        return pairs


def find_duplicates(entries: Sequence[BibEntry], config: AuditConfig | None = None) -> set[DuplicatePair]:
    """Convenience wrapper around DuplicateDetector.find_duplicates."""
    return DuplicateDetector(config).find_duplicates(entries)


# ------------- CLI -------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(
        description="Find duplicate and near-duplicate entries in a BibTeX file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bibtex-dupes references.bib
  bibtex-dupes references.bib --threshold 0.9 --json
  bibtex-dupes references.bib --config audit.yaml --strict
        """,
    )
    p.add_argument("bibfile", help="BibTeX file to check")
    p.add_argument("--config", "-c", metavar="FILE", help="YAML configuration file")
    p.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Fuzzy title similarity threshold (default: 0.85)",
    )
    p.add_argument(
        "--min-title-length",
        type=int,
        default=None,
        help="Minimum normalized title length for exact-title matching (default: 10)",
    )
    p.add_argument("--json", action="store_true", help="Print results as JSON")
    p.add_argument("--strict", action="store_true", help="Exit with code 4 if duplicates are found")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    from bibtex_auditor.report import duplicates_to_dict, format_duplicates

    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logger = logging.getLogger("duplicates")

    try:
        config = load_config(args.config)
        overrides = {"duplicate_threshold": args.threshold, "min_title_length": args.min_title_length}
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    try:
        entries = load_entries(args.bibfile)
    except FileNotFoundError:
        logger.error("File not found: %s", args.bibfile)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", args.bibfile, e)
        return 1

    logger.info("Checking %d entries for duplicates...", len(entries))
    pairs = DuplicateDetector(config, logger).find_duplicates(entries)

    if args.json:
        print(json.dumps(duplicates_to_dict(pairs), indent=2, ensure_ascii=False))
    else:
        for line in format_duplicates(pairs):
            print(line)

    if args.strict and pairs:
        logger.warning("Strict mode: %d potential duplicate pairs found", len(pairs))
        return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())
