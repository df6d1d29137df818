"""BibTeX Auditor - duplicate detection and citation verification for BibTeX files.

This package provides tools for:
- Parsing BibTeX entries with nested braces in field values
- Finding duplicate and near-duplicate entries within one bibliography
- Cross-checking entries against DBLP and Semantic Scholar to flag
  citations that cannot be confirmed to exist

Example usage:
    from bibtex_auditor import DuplicateDetector, Verifier, parse_bibtex

    entries = parse_bibtex(text)

    # Duplicate pairs within the file
    pairs = DuplicateDetector().find_duplicates(entries)

    # Verification against external indexes
    report = await Verifier([dblp, s2]).verify(entries, whitelist={"key2025"})
"""

from bibtex_auditor._version import __version__
from bibtex_auditor.clients import (
    AsyncHttpClient,
    DBLPClient,
    LookupFailure,
    LookupRecord,
    SemanticScholarClient,
    dblp_hit_to_record,
    s2_data_to_record,
)
from bibtex_auditor.config import AuditConfig, load_config
from bibtex_auditor.duplicates import (
    DuplicateDetector,
    DuplicatePair,
    DuplicateReason,
    find_duplicates,
)
from bibtex_auditor.parser import (
    BibEntry,
    extract_field,
    find_closing_brace,
    load_entries,
    parse_bibtex,
)
from bibtex_auditor.utils import (
    OverlapMode,
    clean_value,
    collapse_whitespace,
    first_author_surname,
    normalize_title,
    normalize_title_words,
    significant_words,
    split_authors_bibtex,
    title_similarity,
)
from bibtex_auditor.verifier import (
    EntryVerification,
    Finding,
    FindingKind,
    LookupService,
    MatchCandidate,
    VerificationReport,
    VerificationStatus,
    Verifier,
    check_details,
    verify_entries,
)

__all__ = [
    # Version
    "__version__",
    # Parsing
    "BibEntry",
    "extract_field",
    "find_closing_brace",
    "load_entries",
    "parse_bibtex",
    # Text normalization & matching
    "OverlapMode",
    "clean_value",
    "collapse_whitespace",
    "first_author_surname",
    "normalize_title",
    "normalize_title_words",
    "significant_words",
    "split_authors_bibtex",
    "title_similarity",
    # Configuration
    "AuditConfig",
    "load_config",
    # Duplicate detection
    "DuplicateDetector",
    "DuplicatePair",
    "DuplicateReason",
    "find_duplicates",
    # Verification
    "EntryVerification",
    "Finding",
    "FindingKind",
    "LookupService",
    "MatchCandidate",
    "VerificationReport",
    "VerificationStatus",
    "Verifier",
    "check_details",
    "verify_entries",
    # Lookup clients
    "AsyncHttpClient",
    "DBLPClient",
    "LookupFailure",
    "LookupRecord",
    "SemanticScholarClient",
    "dblp_hit_to_record",
    "s2_data_to_record",
]
