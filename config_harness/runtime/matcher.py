"""
Config Harness Runtime - Golden Candidate Matcher

Decides pass/fail for one model given its actual text and the golden
files ("expected*") stored in its directory.

Matching rules:
- Goldens are compared byte for byte with the UTF-8 encoding of the
  actual text.
- An expected value shorter than the actual value is compared with the
  same-length prefix of the actual value; otherwise both must be equal.
- The model passes at the first matching candidate.
- With no match, the last compared candidate is kept for reporting.
- With no candidates at all, the model passes.

Golden content never aborts a run: undecodable bytes are a mismatch,
and an unreadable file reads as empty.

The functions here are pure except read_candidates(), which lazily reads
candidate files so that matching stops reading at the first match.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import AnyStr, Iterable, Iterator, Optional

from config_harness.runtime.models import EXPECTED_PREFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A golden output: entry name and its raw content."""

    name: str
    data: bytes

    @property
    def text(self) -> str:
        """Content for display; undecodable bytes are replaced."""
        return self.data.decode("utf-8", errors="replace")


@dataclass
class MatchResult:
    """Outcome of matching an actual text against golden candidates."""

    passed: bool
    matched: Optional[str] = None
    exemplar_name: Optional[str] = None
    exemplar_text: Optional[str] = None
    candidates_compared: int = 0


def real_entry_name(entry: str) -> str:
    """Strip anything after the first '/' (directory listings may mark dirs)."""
    return entry.split("/", 1)[0]


def is_candidate_name(entry: str) -> bool:
    """Check if a directory entry names a golden output."""
    return real_entry_name(entry).startswith(EXPECTED_PREFIX)


def select_candidates(entries: Iterable[str]) -> list[str]:
    """Return the golden entry names among entries, in listing order."""
    return [real_entry_name(e) for e in entries if is_candidate_name(e)]


def matches_expected(expected: AnyStr, actual: AnyStr) -> bool:
    """
    Compare an expected value with an actual value of the same type.

    Actual output may continue past what the golden captured; every
    byte the golden does contain must match exactly.
    """
    if len(expected) < len(actual):
        return expected == actual[: len(expected)]
    return expected == actual


def match_candidates(actual: str, candidates: Iterable[Candidate]) -> MatchResult:
    """
    Match actual against candidates in order.

    Stops consuming candidates at the first match.
    """
    actual_bytes = actual.encode("utf-8")
    result = MatchResult(passed=True)
    for candidate in candidates:
        result.candidates_compared += 1
        if matches_expected(candidate.data, actual_bytes):
            result.passed = True
            result.matched = candidate.name
            result.exemplar_name = None
            result.exemplar_text = None
            return result

        result.passed = False
        result.exemplar_name = candidate.name
        result.exemplar_text = candidate.text

    return result


def list_candidate_names(model_path: Path) -> list[str]:
    """
    List golden entry names under model_path.

    A directory that cannot be listed has no candidates.
    """
    try:
        entries = os.listdir(model_path)
    except OSError as e:
        logger.warning(
            "Unable to list golden candidates",
            extra={"path": str(model_path), "error": str(e)},
        )
        return []
    return select_candidates(entries)


def read_candidates(model_path: Path, names: Iterable[str]) -> Iterator[Candidate]:
    """Yield candidates read from model_path, one file at a time."""
    for name in names:
        path = Path(model_path) / name
        logger.info("Comparing with %s", path)
        yield Candidate(name=name, data=read_expected(path))


def read_expected(path: Path) -> bytes:
    """
    Read a golden file as raw bytes.

    A candidate that is a directory, or that cannot be read, reads as
    empty content.
    """
    if path.is_dir():
        logger.warning("Golden candidate is a directory, reading as empty", extra={"path": str(path)})
        return b""
    try:
        return path.read_bytes()
    except OSError as e:
        logger.warning(
            "Unable to read golden candidate, reading as empty",
            extra={"path": str(path), "error": str(e)},
        )
        return b""
