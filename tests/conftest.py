"""Shared pytest fixtures for contract_analyzer unit tests."""
from __future__ import annotations

import threading

import pytest

from contract_analyzer import config
from contract_analyzer.models import Finding, PlaybookRule, PlaybookViolation


def make_finding(text: str, number: int = 1, risk: str = "medium", clause_type: str = "Other") -> Finding:
    return Finding(
        clause_number=number,
        clause_type=clause_type,
        original_text=text,
        risk_level=risk,
        explanation=f"Explanation for: {text[:20]}",
    )


def make_paragraph_text(paragraphs: int, paragraph_size: int = 2000) -> str:
    """Paragraphs of exactly `paragraph_size` chars (including the blank-line separator)."""
    sentence = "The parties agree to perform their obligations in good faith. "
    body_size = paragraph_size - 2
    parts = []
    for i in range(paragraphs):
        body = (f"Paragraph {i} states that " + sentence * 40)[:body_size - 1] + "."
        parts.append(body)
    return "\n\n".join(parts) + "\n\n"


class RecordingSink:
    """Progress sink that remembers every report call."""

    def __init__(self):
        self.calls: list[tuple[int, int, int, int]] = []
        self._lock = threading.Lock()

    def report(self, index, findings, completed, total):
        with self._lock:
            self.calls.append((index, len(findings), completed, total))


@pytest.fixture()
def sample_rules() -> list[PlaybookRule]:
    return [
        PlaybookRule(
            name="Indemnity Cap", category="Indemnity", severity="critical",
            condition="Indemnity cap should not exceed 2x annual fees",
        ),
        PlaybookRule(
            name="Governing Law", category="Governing Law", severity="info",
            condition="Governing law should specify Delaware or California law",
            enabled=False,
        ),
    ]


@pytest.fixture()
def sample_findings() -> list[Finding]:
    return [
        make_finding("Payment terms require net 90 days.", number=4, risk="high"),
        Finding(
            clause_number=2,
            clause_type="Indemnification",
            original_text="Vendor shall indemnify Customer without limit.",
            risk_level="high",
            explanation="Uncapped indemnity.",
            playbook_violations=[PlaybookViolation(
                rule_name="Indemnity Cap", category="Indemnity", severity="critical",
                description="No cap.",
            )],
            redline_suggestion="Vendor shall indemnify Customer up to 2x annual fees.",
            redline_explanation="Aligns with playbook cap.",
        ),
        make_finding("This Agreement is governed by the laws of Delaware.", number=1, risk="low"),
    ]


@pytest.fixture()
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    path = tmp_path / "contracts.db"
    monkeypatch.setattr(config, "DB_PATH", path)
    return path
