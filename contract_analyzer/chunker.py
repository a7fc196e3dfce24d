"""Split contract text into overlapping chunks for parallel analysis.

Small contracts come back as a single chunk. Larger ones are cut at the
most structural boundary the text offers (page breaks, then numbered
headings, then blank lines, then sentence ends) and grouped greedily up to
the target size. Each chunk after the first re-reads the last
CHUNK_OVERLAP characters of its predecessor so a clause sitting on a split
point is seen whole by at least one side.
"""

import re

from .config import (
    CHUNK_OVERLAP,
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
    SMALL_DOCUMENT_THRESHOLD,
    TARGET_CHUNK_SIZE,
)
from .models import Segment


# ---------------------------------------------------------------------------
# Boundary detectors, most structural first
# ---------------------------------------------------------------------------

_HEADING_RE = re.compile(r"\n(?=(?i:article|section|part)\s+\d+|\d+\.\s+[A-Z])")
_PARAGRAPH_RE = re.compile(r"\n\n+")
_SENTENCE_RE = re.compile(r"[.!?]\s+(?=[A-Z])")


def _page_breaks(text: str) -> list[int]:
    """Form-feed characters (left in place by PDF extraction)."""
    return [m.start() for m in re.finditer("\f", text)]


def _section_headings(text: str) -> list[int]:
    return [m.start() for m in _HEADING_RE.finditer(text)]


def _paragraph_breaks(text: str) -> list[int]:
    return [m.start() for m in _PARAGRAPH_RE.finditer(text)]


def _sentence_breaks(text: str) -> list[int]:
    # Split just after the punctuation mark
    return [m.start() + 1 for m in _SENTENCE_RE.finditer(text)]


_DETECTORS = (_page_breaks, _section_headings, _paragraph_breaks, _sentence_breaks)


def find_boundaries(text: str) -> list[int]:
    """Candidate split points from the first detector that finds any.

    Always starts with 0 and ends with len(text). If no detector finds an
    internal point the whole text is one span.
    """
    internal: list[int] = []
    for detect in _DETECTORS:
        internal = sorted({p for p in detect(text) if 0 < p < len(text)})
        if internal:
            break
    return [0, *internal, len(text)]


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------

def segment_text(
    text: str,
    target_size: int = TARGET_CHUNK_SIZE,
    *,
    small_threshold: int = SMALL_DOCUMENT_THRESHOLD,
    min_size: int = MIN_CHUNK_SIZE,
    max_size: int = MAX_CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> list[Segment]:
    """
    Split contract text into ordered, slightly overlapping segments.

    Args:
        text: Full contract text (callers reject empty text beforehand)
        target_size: Size at which a growing chunk is closed
        small_threshold: Texts up to this length are returned whole
        min_size: No chunk except the last is shorter than this
        max_size: No chunk is longer than this
        overlap: Characters each chunk repeats from the end of the previous one

    Returns:
        Segments indexed 0..n-1 with non-decreasing start offsets
    """
    if len(text) <= small_threshold:
        return [Segment(index=0, text=text, start_offset=0, end_offset=len(text))]

    # The overlap has to stay below the minimum or a chunk could fail to advance
    overlap = max(0, min(overlap, min_size - 1))

    spans: list[tuple[int, int]] = []
    start = 0
    last = 0  # furthest candidate boundary absorbed into the current chunk

    for boundary in find_boundaries(text)[1:]:
        while boundary - start >= target_size:
            if last - start >= min_size:
                # Close at the previous boundary, never mid-span
                end = last
            elif boundary - start > max_size:
                # One undivided run is too long; cut it at the hard maximum
                end = start + max_size
            else:
                end = boundary
            spans.append((start, end))
            start = end - overlap
            last = start
        last = boundary

    tail = len(text) - start
    if tail > overlap or not spans:
        prev_start = spans[-1][0] if spans else 0
        if spans and tail < min_size and len(text) - prev_start <= max_size:
            spans[-1] = (prev_start, len(text))
        else:
            spans.append((start, len(text)))

    return [
        Segment(index=i, text=text[s:e], start_offset=s, end_offset=e)
        for i, (s, e) in enumerate(spans)
    ]
