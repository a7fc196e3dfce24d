"""Tests for output.py."""
from __future__ import annotations

from contract_analyzer.output import print_rich_summary, rank_findings, summarize_findings


def test_rank_puts_high_risk_and_critical_first(sample_findings):
    ranked = rank_findings(sample_findings)
    assert [f.clause_number for f in ranked] == [2, 4, 1]


def test_summarize_findings(sample_findings):
    summary = summarize_findings(sample_findings)

    assert summary["total_clauses"] == 3
    assert summary["risk_breakdown"] == {"high": 2, "low": 1}
    assert summary["violation_breakdown"] == {"critical": 1}
    assert summary["high_risk_count"] == 2
    assert summary["redlines_suggested"] == 1
    assert summary["top_risks"][0]["clause_type"] == "Indemnification"


def test_summarize_empty():
    summary = summarize_findings([])
    assert summary["total_clauses"] == 0
    assert summary["top_risks"] == []


def test_print_rich_summary(sample_findings, capsys):
    summary = summarize_findings(sample_findings)
    print_rich_summary(summary, sample_findings, {"chunks": 2, "llm_model": "test-model"})
    out = capsys.readouterr().out
    assert "Contract Review Summary" in out
    assert "Clauses Analyzed: 3" in out
    assert "Top Risk Clauses" in out
