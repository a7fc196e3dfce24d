"""Data classes for the review pipeline."""

import threading
from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Segment:
    index: int
    text: str
    start_offset: int   # document[start_offset:end_offset] == text
    end_offset: int


@dataclass
class PlaybookViolation:
    rule_name: str
    category: str = ""
    severity: str = "info"      # "critical", "warning" or "info"
    description: str = ""


@dataclass
class Finding:
    clause_number: int
    clause_type: str
    original_text: str
    risk_level: str             # "high", "medium" or "low"
    explanation: str = ""
    playbook_violations: list[PlaybookViolation] = field(default_factory=list)
    redline_suggestion: Optional[str] = None
    redline_explanation: Optional[str] = None
    # Reviewer state; set only once the clause is stored
    id: Optional[int] = None
    status: str = "pending"     # "pending", "accepted", "rejected" or "modified"
    user_redline: Optional[str] = None
    user_note: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        violations = [
            PlaybookViolation(**v) if isinstance(v, dict) else v
            for v in data.get("playbook_violations") or []
        ]
        return cls(
            clause_number=data.get("clause_number", 0),
            clause_type=data.get("clause_type", "Other"),
            original_text=data.get("original_text", ""),
            risk_level=data.get("risk_level", "low"),
            explanation=data.get("explanation", ""),
            playbook_violations=violations,
            redline_suggestion=data.get("redline_suggestion"),
            redline_explanation=data.get("redline_explanation"),
            id=data.get("id"),
            status=data.get("status") or "pending",
            user_redline=data.get("user_redline"),
            user_note=data.get("user_note"),
        )


@dataclass
class PlaybookRule:
    name: str
    category: str
    condition: str
    severity: str = "warning"   # "critical", "warning" or "info"
    description: str = ""
    enabled: bool = True
    id: Optional[int] = None
    profile_id: Optional[int] = None


@dataclass
class PlaybookProfile:
    """A named rule set, optionally tied to one contract type."""
    name: str
    contract_type: Optional[str] = None
    description: str = ""
    is_default: bool = False
    id: Optional[int] = None
    rules: list[PlaybookRule] = field(default_factory=list)


@dataclass
class ContractClassification:
    contract_type: str
    paper_type: str             # "internal" or "external"
    parties: list[str] = field(default_factory=list)
    effective_date: Optional[str] = None
    summary: str = ""


@dataclass
class ReviewSummary:
    overall_risk: str
    executive_summary: str
    key_findings: list[str] = field(default_factory=list)
    missing_clauses: list[str] = field(default_factory=list)


class RunState:
    """Per-run bookkeeping shared by the analysis workers.

    Every mutation happens under one lock: claiming the next chunk,
    filling a result slot, bumping the completed count and recording a
    failure. Each slot is written exactly once.
    """

    def __init__(self, total: int):
        self.total = total
        self.completed = 0
        self.results: list[Optional[list[Finding]]] = [None] * total
        self.failure: Optional[BaseException] = None
        self.failed_index: Optional[int] = None
        self._cursor = 0
        self._lock = threading.Lock()

    def claim_next(self) -> Optional[int]:
        """Return the next unclaimed ordinal, or None when done or failed."""
        with self._lock:
            if self.failure is not None or self._cursor >= self.total:
                return None
            index = self._cursor
            self._cursor += 1
            return index

    def record(self, index: int, findings: list[Finding]) -> int:
        """Fill the slot for `index` and return the new completed count."""
        with self._lock:
            if self.results[index] is not None:
                raise RuntimeError(f"Result slot {index} already filled")
            self.results[index] = findings
            self.completed += 1
            return self.completed

    def record_failure(self, index: int, exc: BaseException) -> None:
        with self._lock:
            # Keep the first failure; later ones come from already in-flight chunks
            if self.failure is None:
                self.failure = exc
                self.failed_index = index

    @property
    def is_complete(self) -> bool:
        return self.failure is None and all(r is not None for r in self.results)
