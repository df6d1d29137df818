"""Shared fixtures for bibtex_auditor tests."""

from __future__ import annotations

import asyncio
import logging

import pytest

from bibtex_auditor import AuditConfig, BibEntry, LookupRecord


@pytest.fixture
def make_entry():
    """Factory fixture for creating parsed entries."""

    def _make_entry(key: str = "testkey", title: str = "Example Title For Testing", **kwargs) -> BibEntry:
        return BibEntry(
            key=key,
            entry_type=kwargs.pop("entry_type", "article"),
            title=title,
            year=kwargs.pop("year", None),
            authors=tuple(kwargs.pop("authors", ())),
            arxiv_id=kwargs.pop("arxiv_id", None),
        )

    return _make_entry


@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


@pytest.fixture
def fast_config():
    """AuditConfig without the inter-batch pause."""
    return AuditConfig(batch_delay=0)


class FakeLookup:
    """Fake lookup service returning predetermined records per query.

    Args:
        name: Service name reported in matches
        records: Mapping of query title to the records to return
        errors: Mapping of query title to an exception to raise
        delays: Mapping of query title to seconds to wait before answering
    """

    def __init__(self, name="fake", records=None, errors=None, delays=None):
        self.name = name
        self.records = records or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search(self, query: str, limit: int) -> list[LookupRecord]:
        self.calls.append((query, limit))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(query, 0))
            if query in self.errors:
                raise self.errors[query]
            return list(self.records.get(query, []))[:limit]
        finally:
            self.in_flight -= 1

    @property
    def queries(self) -> list[str]:
        return [q for q, _ in self.calls]


@pytest.fixture
def fake_lookup():
    """Factory fixture for creating fake lookup services."""

    def _create(name="fake", records=None, errors=None, delays=None):
        return FakeLookup(name=name, records=records, errors=errors, delays=delays)

    return _create


SAMPLE_BIB = r"""
% Sample bibliography
@inproceedings{vaswani2017attention,
  title     = {Attention Is All You Need},
  author    = {Vaswani, Ashish and Shazeer, Noam and Parmar, Niki},
  booktitle = {Advances in Neural Information Processing Systems},
  year      = {2017}
}

@article{chen2022pali,
  title = {{PaLI}: A Jointly-Scaled Multilingual {Language-Image} Model},
  author = {Chen, Xi and
            Wang, Xiao},
  journal = {arXiv preprint arXiv:2209.06794},
  year = 2022,
}

@misc{dehghani2023scaling,
  title = "Scaling Vision Transformers to 22 Billion Parameters",
  author = "Mostafa Dehghani and Josip Djolonga",
  eprint = {2302.05442},
  archivePrefix = {arXiv},
  year = {2023}
}
"""


@pytest.fixture
def sample_bib():
    """A small well-formed bibliography."""
    return SAMPLE_BIB
