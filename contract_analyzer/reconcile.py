"""Merge per-chunk clause lists into one ordered, deduplicated, renumbered list."""

from dataclasses import replace
from typing import Iterable, Optional

from .config import DEDUP_PREFIX_LENGTH
from .models import Finding


def dedup_key(text: str, length: int = DEDUP_PREFIX_LENGTH) -> str:
    """Lowercased excerpt prefix with whitespace collapsed."""
    return " ".join(text.split()).lower()[:length]


_ELLIPSES = ("...", "…")


def _same_clause(a: str, b: str) -> bool:
    if a == b:
        return True
    short, long = sorted((a, b), key=len)
    if short.endswith(_ELLIPSES):
        # Excerpt cut off by the model
        stem = short.rstrip(".… ")
        return bool(stem) and long.startswith(stem)
    # A short heading is not the same clause as every subsection under it
    return len(short) >= DEDUP_PREFIX_LENGTH // 2 and long.startswith(short)


def _seen_before(key: str, seen: list[str]) -> bool:
    return any(_same_clause(key, k) for k in seen)


def renumber(findings: list[Finding]) -> list[Finding]:
    """Copies of `findings` numbered 1..n in list order."""
    return [replace(f, clause_number=n) for n, f in enumerate(findings, start=1)]


def reconcile_findings(per_chunk: Iterable[Optional[list[Finding]]]) -> list[Finding]:
    """
    Flatten chunk results in chunk order, drop overlap duplicates, renumber.

    Neighbouring chunks share an overlap window, so a clause near a split
    point can be extracted twice. The first occurrence wins. Clauses with
    an empty excerpt are never treated as duplicates.

    Args:
        per_chunk: One findings list per chunk ordinal; None entries are skipped

    Returns:
        New Finding objects with clause_number 1..n
    """
    kept: list[Finding] = []
    seen: list[str] = []
    for findings in per_chunk:
        for finding in findings or []:
            key = dedup_key(finding.original_text)
            if key:
                if _seen_before(key, seen):
                    continue
                seen.append(key)
            kept.append(finding)
    return renumber(kept)
