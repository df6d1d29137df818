"""Text and JSON rendering of duplicate and verification results."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from bibtex_auditor.duplicates import DuplicatePair, DuplicateReason
from bibtex_auditor.verifier import VerificationReport, VerificationStatus

_REASON_ORDER = {reason: i for i, reason in enumerate(DuplicateReason)}


def _sorted_pairs(pairs: Iterable[DuplicatePair]) -> list[DuplicatePair]:
    return sorted(pairs, key=lambda p: (p.key_a, p.key_b, _REASON_ORDER[p.reason]))


# ------------- Duplicates -------------


def describe_pair(pair: DuplicatePair) -> list[str]:
    """Render one duplicate pair as one or more lines."""
    head = f"- {pair.key_a} <==> {pair.key_b}"
    if pair.reason is DuplicateReason.SAME_TITLE:
        return [f"{head} (Same Title)"]
    if pair.reason is DuplicateReason.SAME_ARXIV_ID:
        return [f"{head} (Same arXiv ID: {pair.arxiv_id})"]
    return [
        f"{head} (Sim: {pair.score:.2f})",
        f'   "{pair.title_a}"',
        f'   "{pair.title_b}"',
    ]


def format_duplicates(pairs: Iterable[DuplicatePair]) -> list[str]:
    """Render duplicate pairs sorted by key pair, then reason."""
    ordered = _sorted_pairs(pairs)
    if not ordered:
        return ["No duplicates found."]
    lines = [f"Found {len(ordered)} potential duplicate pairs:"]
    for pair in ordered:
        lines.extend(describe_pair(pair))
    return lines


def duplicates_to_dict(pairs: Iterable[DuplicatePair]) -> dict[str, Any]:
    """JSON-ready representation of duplicate pairs."""
    ordered = _sorted_pairs(pairs)
    return {
        "total": len(ordered),
        "pairs": [
            {
                "key_a": p.key_a,
                "key_b": p.key_b,
                "reason": p.reason.value,
                "score": p.score,
                "title_a": p.title_a,
                "title_b": p.title_b,
                "arxiv_id": p.arxiv_id,
            }
            for p in ordered
        ],
    }


# ------------- Verification -------------


def format_verification(report: VerificationReport) -> list[str]:
    """Render per-entry findings in input order, followed by the summary line."""
    lines: list[str] = []
    for r in report.results:
        if r.status is VerificationStatus.UNVERIFIED:
            lines.append(f"[{r.key}] NOT FOUND or Low Similarity")
            lines.append(f"   Local Title: {r.title}")
            if r.closest_title is not None:
                lines.append(f"   Closest: {r.closest_title} ({r.closest_score:.2f})")
        elif r.status is VerificationStatus.LOOKUP_ERROR:
            lines.append(f"ERROR [{r.key}]: {r.error}")
        elif r.findings:
            lines.append(f"[{r.key}] matched on {r.match.source if r.match else '?'}")
            lines.extend(f"    {f.message}" for f in r.findings)
    lines.append("")
    lines.append(f"Done. {report.unverified_count} remaining potential hallucinations.")
    return lines


def verification_to_dict(report: VerificationReport) -> dict[str, Any]:
    """JSON-ready representation of a verification run."""
    entries = []
    for r in report.results:
        entries.append(
            {
                "key": r.key,
                "title": r.title,
                "status": r.status.value,
                "source": r.match.source if r.match else None,
                "found_title": r.match.found_title if r.match else None,
                "findings": [
                    {"kind": f.kind.value, "local": f.local_value, "remote": f.remote_value} for f in r.findings
                ],
                "error": r.error,
                "closest_title": r.closest_title,
                "closest_score": r.closest_score,
            }
        )
    return {"summary": report.summary(), "entries": entries}
