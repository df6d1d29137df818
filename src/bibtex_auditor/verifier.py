#!/usr/bin/env python3
"""Cross-check BibTeX entries against external bibliographic indexes.

For every entry the title is searched in each lookup service in order
(DBLP first, then Semantic Scholar). The first hit whose strict title
similarity clears the threshold is accepted and compared field by field:
- YEAR_MISMATCH: years differ by more than the tolerance
- AUTHOR_MISMATCH: first-author surnames do not contain one another

Entries with no accepted hit are reported as unverified (possible
hallucinations). Lookups run in small concurrent batches with a pause
between batches.

Usage:
    bibtex-verify references.bib
    bibtex-verify references.bib --whitelist simeoni2025dinov3 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from rapidfuzz.fuzz import token_sort_ratio

from bibtex_auditor.clients import (
    AsyncHttpClient,
    DBLPClient,
    LookupFailure,
    LookupRecord,
    SemanticScholarClient,
)
from bibtex_auditor.config import AuditConfig, load_config
from bibtex_auditor.parser import BibEntry, load_entries
from bibtex_auditor.utils import OverlapMode, first_author_surname, title_similarity

# ------------- Enums & Data Classes -------------


class VerificationStatus(Enum):
    """Outcome of verifying a single entry."""

    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    LOOKUP_ERROR = "lookup_error"
    WHITELISTED = "whitelisted"


class FindingKind(Enum):
    """Advisory mismatches found on an accepted match."""

    YEAR_MISMATCH = "year_mismatch"
    AUTHOR_MISMATCH = "author_mismatch"


@dataclass(frozen=True)
class MatchCandidate:
    """An external record accepted as the same work as a local entry."""

    source_entry_key: str
    found_title: str
    year: int | None = None
    authors: tuple[str, ...] = ()
    source: str | None = None


@dataclass
class Finding:
    """A detail mismatch between a local entry and its accepted match."""

    kind: FindingKind
    local_value: str
    remote_value: str
    message: str


@dataclass
class EntryVerification:
    """Complete result of verifying a single entry."""

    key: str
    title: str
    status: VerificationStatus
    match: MatchCandidate | None = None
    findings: list[Finding] = field(default_factory=list)
    error: str | None = None
    # Best rejected hit, for unverified entries only
    closest_title: str | None = None
    closest_score: float | None = None


@dataclass
class VerificationReport:
    """Per-entry results in input order."""

    results: list[EntryVerification] = field(default_factory=list)

    def _count(self, status: VerificationStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def unverified_count(self) -> int:
        return self._count(VerificationStatus.UNVERIFIED)

    @property
    def verified_count(self) -> int:
        return self._count(VerificationStatus.VERIFIED)

    @property
    def error_count(self) -> int:
        return self._count(VerificationStatus.LOOKUP_ERROR)

    @property
    def whitelisted_count(self) -> int:
        return self._count(VerificationStatus.WHITELISTED)

    def summary(self) -> dict[str, Any]:
        """Summary statistics for the run."""
        return {
            "total": len(self.results),
            "status_counts": {s.value: self._count(s) for s in VerificationStatus},
            "with_findings": sum(1 for r in self.results if r.findings),
        }


class LookupService(Protocol):
    """Title search over an external bibliographic index."""

    name: str

    async def search(self, query: str, limit: int) -> list[LookupRecord]: ...


# ------------- Mismatch Heuristics -------------


def check_details(entry: BibEntry, candidate: MatchCandidate, year_tolerance: int = 1) -> list[Finding]:
    """Compare year and first author of an entry against its accepted match."""
    findings: list[Finding] = []

    if entry.year and candidate.year and abs(entry.year - candidate.year) > year_tolerance:
        findings.append(
            Finding(
                kind=FindingKind.YEAR_MISMATCH,
                local_value=str(entry.year),
                remote_value=str(candidate.year),
                message=f"Year mismatch: Local {entry.year} vs Remote {candidate.year}",
            )
        )

    if entry.authors and candidate.authors:
        local_surname = first_author_surname(entry.authors[0])
        remote_surname = first_author_surname(candidate.authors[0])
        # Substring check tolerates initials and particles
        if local_surname not in remote_surname and remote_surname not in local_surname:
            findings.append(
                Finding(
                    kind=FindingKind.AUTHOR_MISMATCH,
                    local_value=entry.authors[0],
                    remote_value=candidate.authors[0],
                    message=f"First author mismatch? Local: {entry.authors[0]} vs Remote: {candidate.authors[0]}",
                )
            )

    return findings


# ------------- Verifier -------------


class Verifier:
    """Verifies entries against an ordered list of lookup services."""

    def __init__(
        self,
        lookups: Sequence[LookupService],
        config: AuditConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.lookups = list(lookups)
        self.config = config or AuditConfig()
        self.logger = logger or logging.getLogger("verifier")

    async def _search(self, service: LookupService, title: str) -> list[LookupRecord]:
        try:
            return await asyncio.wait_for(
                service.search(title, self.config.lookup_limit), timeout=self.config.lookup_timeout
            )
        except asyncio.TimeoutError as e:
            raise LookupFailure(f"{service.name} timed out after {self.config.lookup_timeout:g}s") from e

    def _best_record(self, title: str, records: Iterable[LookupRecord]) -> tuple[LookupRecord | None, float]:
        best: LookupRecord | None = None
        best_score = 0.0
        for rec in records:
            score = title_similarity(title, rec.title, OverlapMode.STRICT)
            if best is None or score > best_score:
                best, best_score = rec, score
        return best, best_score

    async def verify_entry(self, entry: BibEntry) -> EntryVerification:
        """Look up one entry, trying each service until a hit clears the threshold.

        A failing lookup ends the check for this entry with LOOKUP_ERROR.
        """
        closest_title: str | None = None
        closest_score = -1.0
        try:
            for service in self.lookups:
                records = await self._search(service, entry.title)
                best, score = self._best_record(entry.title, records)
                if best is None:
                    self.logger.debug("[%s] no results from %s", entry.key, service.name)
                    continue
                if score > self.config.verify_threshold:
                    candidate = MatchCandidate(
                        source_entry_key=entry.key,
                        found_title=best.title,
                        year=best.year,
                        authors=best.authors,
                        source=service.name,
                    )
                    return EntryVerification(
                        key=entry.key,
                        title=entry.title,
                        status=VerificationStatus.VERIFIED,
                        match=candidate,
                        findings=check_details(entry, candidate, self.config.year_tolerance),
                    )
                ratio = token_sort_ratio(entry.title, best.title) / 100.0
                self.logger.debug("[%s] %s hit rejected (similarity %.2f)", entry.key, service.name, score)
                if ratio > closest_score:
                    closest_title, closest_score = best.title, ratio
        except Exception as exc:
            self.logger.error("Lookup failed for %s: %s", entry.key, exc)
            return EntryVerification(
                key=entry.key,
                title=entry.title,
                status=VerificationStatus.LOOKUP_ERROR,
                error=str(exc) or type(exc).__name__,
            )

        return EntryVerification(
            key=entry.key,
            title=entry.title,
            status=VerificationStatus.UNVERIFIED,
            closest_title=closest_title,
            closest_score=closest_score if closest_title is not None else None,
        )

    async def _check(self, entry: BibEntry, whitelist: set[str]) -> EntryVerification:
        if entry.key in whitelist:
            self.logger.debug("[%s] whitelisted, skipping lookup", entry.key)
            return EntryVerification(key=entry.key, title=entry.title, status=VerificationStatus.WHITELISTED)
        return await self.verify_entry(entry)

    async def verify(self, entries: Sequence[BibEntry], whitelist: Iterable[str] | None = None) -> VerificationReport:
        """Verify all entries in batches and return results in input order.

        Args:
            entries: Parsed entries
            whitelist: Extra keys to skip, merged with config.whitelist
        """
        skip = self.config.whitelist | set(whitelist or ())
        size = self.config.batch_size
        n_batches = (len(entries) + size - 1) // size
        report = VerificationReport()

        for index in range(n_batches):
            if index > 0 and self.config.batch_delay > 0:
                await asyncio.sleep(self.config.batch_delay)
            batch = entries[index * size : (index + 1) * size]
            self.logger.info("Checking batch %d/%d (%d entries)", index + 1, n_batches, len(batch))
            report.results.extend(await asyncio.gather(*(self._check(e, skip) for e in batch)))

        return report


def verify_entries(
    entries: Sequence[BibEntry],
    lookups: Sequence[LookupService],
    config: AuditConfig | None = None,
    whitelist: Iterable[str] | None = None,
) -> VerificationReport:
    """Synchronous convenience wrapper around Verifier.verify."""
    return asyncio.run(Verifier(lookups, config).verify(entries, whitelist))


# ------------- CLI -------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(
        description="Verify BibTeX entries against DBLP and Semantic Scholar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bibtex-verify references.bib
  bibtex-verify references.bib --whitelist simeoni2025dinov3
  bibtex-verify references.bib --config audit.yaml --json --strict
        """,
    )
    p.add_argument("bibfile", help="BibTeX file to check")
    p.add_argument("--config", "-c", metavar="FILE", help="YAML configuration file")
    p.add_argument(
        "--whitelist",
        "-w",
        metavar="KEY",
        action="append",
        default=[],
        help="Entry key verified manually; skip lookups for it (repeatable)",
    )
    p.add_argument("--json", action="store_true", help="Print results as JSON")
    p.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 4 if unverified entries remain",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    thresholds = p.add_argument_group("thresholds")
    thresholds.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Title similarity needed to accept a match (default: 0.8)",
    )
    thresholds.add_argument(
        "--year-tolerance",
        type=int,
        default=None,
        help="Year tolerance in years (default: 1)",
    )

    api_opts = p.add_argument_group("API options")
    api_opts.add_argument("--batch-size", type=int, default=None, help="Concurrent lookups per batch (default: 5)")
    api_opts.add_argument(
        "--batch-delay",
        type=float,
        default=None,
        help="Pause between batches in seconds (default: 1.2)",
    )
    api_opts.add_argument("--timeout", type=float, default=None, help="Per-lookup timeout in seconds (default: 20)")
    api_opts.add_argument(
        "--s2-api-key",
        metavar="KEY",
        help="Semantic Scholar API key (or set S2_API_KEY env var)",
    )
    return p


def _apply_overrides(config: AuditConfig, args: argparse.Namespace) -> AuditConfig:
    overrides = {
        "verify_threshold": args.threshold,
        "year_tolerance": args.year_tolerance,
        "batch_size": args.batch_size,
        "batch_delay": args.batch_delay,
        "lookup_timeout": args.timeout,
        "s2_api_key": args.s2_api_key or os.environ.get("S2_API_KEY") or config.s2_api_key,
    }
    data = {**config.__dict__, **{k: v for k, v in overrides.items() if v is not None}}
    data["whitelist"] = config.whitelist | set(args.whitelist)
    return AuditConfig(**data)


async def _run(entries: list[BibEntry], config: AuditConfig, logger: logging.Logger) -> VerificationReport:
    async with AsyncHttpClient(timeout=config.lookup_timeout) as http:
        lookups = [DBLPClient(http), SemanticScholarClient(http, api_key=config.s2_api_key)]
        return await Verifier(lookups, config, logger).verify(entries)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    from bibtex_auditor.report import format_verification, verification_to_dict

    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logger = logging.getLogger("verifier")

    try:
        config = _apply_overrides(load_config(args.config), args)
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

    if config.s2_api_key:
        logger.info("Using Semantic Scholar API key (authenticated rate limits)")

    report = asyncio.run(_run(entries, config, logger))

    if args.json:
        print(json.dumps(verification_to_dict(report), indent=2, ensure_ascii=False))
    else:
        for line in format_verification(report):
            print(line)

    summary = report.summary()
    logger.info("=" * 60)
    logger.info("SUMMARY: %d entries checked", summary["total"])
    for status, count in summary["status_counts"].items():
        if count > 0:
            logger.info("  %s: %d", status.upper(), count)

    if args.strict and report.unverified_count > 0:
        logger.warning("Strict mode: %d unverified entries found", report.unverified_count)
        return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())
