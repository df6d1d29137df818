"""Configuration for duplicate detection and verification."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

import yaml

_NUMERIC_FIELDS = {
    "verify_threshold": float,
    "duplicate_threshold": float,
    "min_title_length": int,
    "batch_size": int,
    "batch_delay": float,
    "lookup_limit": int,
    "lookup_timeout": float,
    "year_tolerance": int,
}

@dataclass
class AuditConfig:
    """Thresholds and throttling settings for an audit run.

    Attributes:
        whitelist: Entry keys that were verified manually and are never looked up
        verify_threshold: Minimum strict title similarity (exclusive) to accept
            an external record as the same work
        duplicate_threshold: Minimum subset title similarity (exclusive) to flag
            two entries in the same document as near-duplicates
        min_title_length: Normalized titles shorter than this are not used for
            exact-title duplicate matching
        batch_size: Number of entries looked up concurrently
        batch_delay: Pause in seconds between consecutive batches
        lookup_limit: Number of results requested from each lookup service
        lookup_timeout: Upper bound in seconds for a single lookup call
        year_tolerance: Allowed year difference before a mismatch is reported
        s2_api_key: Optional Semantic Scholar API key
    """

    whitelist: set[str] = field(default_factory=set)
    verify_threshold: float = 0.8
    duplicate_threshold: float = 0.85
    min_title_length: int = 10
    batch_size: int = 5
    batch_delay: float = 1.2
    lookup_limit: int = 1
    lookup_timeout: float = 20.0
    year_tolerance: int = 1
    s2_api_key: str | None = None

    def __post_init__(self) -> None:
        # A bare string would otherwise be split into characters
        if isinstance(self.whitelist, str):
            self.whitelist = {self.whitelist}
        elif self.whitelist is None:
            self.whitelist = set()
        elif isinstance(self.whitelist, (list, tuple, set, frozenset)):
            self.whitelist = {str(key) for key in self.whitelist}
        else:
            raise ValueError(f"whitelist must be a list of entry keys, got {type(self.whitelist).__name__}")

        for name, kind in _NUMERIC_FIELDS.items():
            value = getattr(self, name)
            if isinstance(value, bool):
                raise ValueError(f"{name} must be a number, got {value!r}")
            try:
                setattr(self, name, kind(value))
            except (TypeError, ValueError) as e:
                raise ValueError(f"{name} must be a number, got {value!r}") from e

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.batch_delay < 0:
            raise ValueError(f"batch_delay must not be negative, got {self.batch_delay}")
        if self.lookup_limit < 1:
            raise ValueError(f"lookup_limit must be at least 1, got {self.lookup_limit}")
        if self.lookup_timeout <= 0:
            raise ValueError(f"lookup_timeout must be positive, got {self.lookup_timeout}")
        if self.year_tolerance < 0:
            raise ValueError(f"year_tolerance must not be negative, got {self.year_tolerance}")
        if self.min_title_length < 0:
            raise ValueError(f"min_title_length must not be negative, got {self.min_title_length}")
        for name in ("verify_threshold", "duplicate_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditConfig:
        """Create config from a dictionary (e.g., loaded from YAML)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary for serialization.

        s2_api_key is left out so the secret never ends up in reports or
        written config files; from_dict(to_dict()) therefore drops it.
        """
        return {
            "whitelist": sorted(self.whitelist),
            "verify_threshold": self.verify_threshold,
            "duplicate_threshold": self.duplicate_threshold,
            "min_title_length": self.min_title_length,
            "batch_size": self.batch_size,
            "batch_delay": self.batch_delay,
            "lookup_limit": self.lookup_limit,
            "lookup_timeout": self.lookup_timeout,
            "year_tolerance": self.year_tolerance,
        }


def load_config(path: str | None) -> AuditConfig:
    """Load an AuditConfig from a YAML file, or defaults when path is None."""
    if path is None:
        return AuditConfig()
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return AuditConfig.from_dict(data)
