"""Chunked, parallel LLM review of long contracts."""

from .chunker import segment_text
from .errors import InferenceError, PipelineError, SegmentFailure
from .models import Finding, PlaybookRule, PlaybookViolation, Segment
from .pipeline import run_pipeline
from .reconcile import reconcile_findings

__all__ = [
    "Finding",
    "InferenceError",
    "PipelineError",
    "PlaybookRule",
    "PlaybookViolation",
    "Segment",
    "SegmentFailure",
    "reconcile_findings",
    "run_pipeline",
    "segment_text",
]
