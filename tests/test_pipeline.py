"""Tests for pipeline.py: end-to-end runs with a fake per-chunk analyzer."""
from __future__ import annotations

import threading

import pytest

from conftest import make_finding, make_paragraph_text
from contract_analyzer import pipeline
from contract_analyzer.chunker import segment_text
from contract_analyzer.errors import PipelineError, SegmentFailure
from contract_analyzer.pipeline import run_pipeline


def _first_sentence_analyzer(text, index, total, rules):
    """One finding per paragraph whose start lies inside the chunk."""
    paragraphs = [p for p in text.split("\n\n") if p.startswith("Paragraph")]
    return [make_finding(p[:80], number=n) for n, p in enumerate(paragraphs, start=1)]


class TestRunPipeline:
    def test_long_document_end_to_end(self, recording_sink):
        text = make_paragraph_text(20)
        findings = run_pipeline(
            text, [], recording_sink,
            analyzer=_first_sentence_analyzer, concurrency=3, retry_delay=0,
        )

        assert [f.clause_number for f in findings] == list(range(1, len(findings) + 1))
        assert [f.original_text.split(" ")[1] for f in findings] == [str(i) for i in range(20)]
        assert len(recording_sink.calls) == len(segment_text(text))

    def test_overlap_duplicates_are_merged(self):
        text = make_paragraph_text(20)

        def analyzer(text, index, total, rules):
            # Every chunk also reports a clause straddling its boundary
            return [
                make_finding("Shared boundary clause about payment."),
                make_finding(f"Unique clause {index}"),
            ]

        findings = run_pipeline(text, [], analyzer=analyzer, retry_delay=0)
        texts = [f.original_text for f in findings]
        assert texts.count("Shared boundary clause about payment.") == 1
        assert texts[0] == "Shared boundary clause about payment."
        assert len(findings) == 1 + len(segment_text(text))

    def test_small_document_single_analyzer_call(self, recording_sink):
        calls = []

        def analyzer(text, index, total, rules):
            calls.append((index, total))
            return [make_finding("The only clause.")]

        findings = run_pipeline("Short NDA text.", [], recording_sink, analyzer=analyzer, retry_delay=0)
        assert calls == [(0, 1)]
        assert len(findings) == 1
        assert recording_sink.calls == [(0, 1, 1, 1)]

    def test_rules_passed_through(self, sample_rules):
        received = []
        lock = threading.Lock()

        def analyzer(text, index, total, rules):
            with lock:
                received.append(rules)
            return []

        run_pipeline(make_paragraph_text(20), sample_rules, analyzer=analyzer, retry_delay=0)
        assert received and all(r is sample_rules for r in received)

    @pytest.mark.parametrize("text", ["", "   \n\n  "])
    def test_empty_text_rejected(self, text):
        with pytest.raises(ValueError):
            run_pipeline(text, [], analyzer=_first_sentence_analyzer)

    def test_chunk_failure_returns_no_results(self, recording_sink):
        def analyzer(text, index, total, rules):
            if index == 2:
                raise RuntimeError("rate limited")
            return [make_finding(f"Clause {index}")]

        with pytest.raises(PipelineError) as exc_info:
            run_pipeline(make_paragraph_text(20), [], recording_sink,
                         analyzer=analyzer, concurrency=1, max_retries=1, retry_delay=0)

        assert exc_info.value.failed_index == 2
        assert isinstance(exc_info.value.__cause__, SegmentFailure)
        assert "chunk 3 of" in str(exc_info.value)

    def test_default_analyzer_is_claude(self, monkeypatch):
        seen = []

        def fake_analyze_segment(text, index, total, rules, contract_type="Contract"):
            seen.append(contract_type)
            return [make_finding("Clause")]

        monkeypatch.setattr(pipeline, "analyze_segment", fake_analyze_segment)
        run_pipeline("Some contract text.", [], contract_type="NDA", retry_delay=0)
        assert seen == ["NDA"]
