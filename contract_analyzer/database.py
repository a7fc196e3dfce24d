"""SQLite persistence for contracts, analysis progress, clauses, reviewer decisions and playbooks."""

import json
import sqlite3
from datetime import datetime

from . import config
from .models import ContractClassification, Finding, PlaybookProfile, PlaybookRule, ReviewSummary
from .reconcile import reconcile_findings

_CREATE_SQL = """
CREATE TABLE IF NOT EXISTS contracts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filename TEXT NOT NULL,
    original_text TEXT NOT NULL,
    status TEXT DEFAULT 'uploaded',
    contract_type TEXT,
    paper_type TEXT,
    parties_json TEXT,
    analysis_progress INTEGER DEFAULT 0,
    analysis_stage TEXT,
    total_chunks INTEGER DEFAULT 0,
    completed_chunks INTEGER DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS chunk_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contract_id INTEGER NOT NULL,
    chunk_index INTEGER NOT NULL,
    findings_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (contract_id) REFERENCES contracts(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS clauses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contract_id INTEGER NOT NULL,
    clause_number INTEGER NOT NULL,
    clause_type TEXT NOT NULL,
    original_text TEXT NOT NULL,
    risk_level TEXT NOT NULL,
    explanation TEXT DEFAULT '',
    violations_json TEXT,
    redline_suggestion TEXT,
    redline_explanation TEXT,
    status TEXT DEFAULT 'pending',
    user_redline TEXT,
    user_note TEXT,
    action_timestamp TEXT,
    FOREIGN KEY (contract_id) REFERENCES contracts(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS summaries (
    contract_id INTEGER PRIMARY KEY,
    overall_risk TEXT NOT NULL,
    executive_summary TEXT DEFAULT '',
    key_findings_json TEXT,
    missing_clauses_json TEXT,
    FOREIGN KEY (contract_id) REFERENCES contracts(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS playbook_profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    contract_type TEXT,
    description TEXT DEFAULT '',
    is_default INTEGER DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS playbook_rules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    profile_id INTEGER,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT DEFAULT '',
    condition TEXT NOT NULL,
    severity TEXT DEFAULT 'warning',
    enabled INTEGER DEFAULT 1,
    FOREIGN KEY (profile_id) REFERENCES playbook_profiles(id) ON DELETE CASCADE
);
"""

_CONTRACT_FIELDS = {
    "status", "contract_type", "paper_type", "parties_json", "analysis_progress",
    "analysis_stage", "total_chunks", "completed_chunks",
}


def get_db() -> sqlite3.Connection:
    db = sqlite3.connect(str(config.DB_PATH))
    db.row_factory = sqlite3.Row
    db.execute("PRAGMA journal_mode=WAL")
    db.execute("PRAGMA foreign_keys=ON")
    db.executescript(_CREATE_SQL)
    return db


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

def create_contract(filename: str, original_text: str) -> int:
    db = get_db()
    cursor = db.execute(
        "INSERT INTO contracts (filename, original_text, created_at) VALUES (?, ?, ?)",
        (filename, original_text, datetime.now().isoformat()),
    )
    contract_id = cursor.lastrowid
    db.commit()
    db.close()
    return contract_id


def get_contract(contract_id: int) -> dict:
    """Raises KeyError if the contract does not exist."""
    db = get_db()
    row = db.execute("SELECT * FROM contracts WHERE id = ?", (contract_id,)).fetchone()
    db.close()
    if row is None:
        raise KeyError(f"Contract {contract_id} not found")
    contract = dict(row)
    contract["parties"] = json.loads(contract.pop("parties_json") or "[]")
    return contract


def list_contracts() -> list[dict]:
    db = get_db()
    rows = db.execute(
        "SELECT id, filename, status, contract_type, analysis_progress, created_at "
        "FROM contracts ORDER BY created_at DESC, id DESC"
    ).fetchall()
    db.close()
    return [dict(r) for r in rows]


def update_contract(contract_id: int, **fields) -> None:
    unknown = set(fields) - _CONTRACT_FIELDS
    if unknown:
        raise ValueError(f"Unknown contract fields: {sorted(unknown)}")
    if not fields:
        return
    assignments = ", ".join(f"{name}=?" for name in fields)
    db = get_db()
    db.execute(
        f"UPDATE contracts SET {assignments} WHERE id=?",
        (*fields.values(), contract_id),
    )
    db.commit()
    db.close()


def save_classification(contract_id: int, classification: ContractClassification) -> None:
    update_contract(
        contract_id,
        contract_type=classification.contract_type,
        paper_type=classification.paper_type,
        parties_json=json.dumps(classification.parties),
        analysis_progress=10,
        analysis_stage="analyzing",
    )


def begin_analysis(contract_id: int) -> bool:
    """Atomically move a contract into the analyzing state.

    Returns False when a review is already running for it.
    """
    db = get_db()
    cursor = db.execute(
        "UPDATE contracts SET status='analyzing', analysis_progress=0, "
        "analysis_stage='classifying', total_chunks=0, completed_chunks=0 "
        "WHERE id=? AND status != 'analyzing'",
        (contract_id,),
    )
    db.commit()
    db.close()
    return cursor.rowcount == 1


def reset_interrupted_reviews() -> int:
    """Mark reviews left running by a previous process as failed."""
    db = get_db()
    cursor = db.execute(
        "UPDATE contracts SET status='error', analysis_stage='error' WHERE status='analyzing'"
    )
    db.commit()
    db.close()
    return cursor.rowcount


# ---------------------------------------------------------------------------
# Partial (per-chunk) and final clause results
# ---------------------------------------------------------------------------

def save_chunk_result(contract_id: int, chunk_index: int, findings: list[Finding]) -> None:
    """Append one chunk's findings. Rows are never updated or removed by a run."""
    db = get_db()
    db.execute(
        "INSERT INTO chunk_results (contract_id, chunk_index, findings_json, created_at) "
        "VALUES (?, ?, ?, ?)",
        (contract_id, chunk_index, json.dumps([f.to_dict() for f in findings]),
         datetime.now().isoformat()),
    )
    db.commit()
    db.close()


def get_chunk_results(contract_id: int) -> dict[int, list[Finding]]:
    db = get_db()
    rows = db.execute(
        "SELECT chunk_index, findings_json FROM chunk_results WHERE contract_id = ? "
        "ORDER BY chunk_index, id",
        (contract_id,),
    ).fetchall()
    db.close()
    results: dict[int, list[Finding]] = {}
    for row in rows:
        # A re-run appends again; the latest row for a chunk wins
        results[row["chunk_index"]] = [Finding.from_dict(d) for d in json.loads(row["findings_json"])]
    return results


def clear_analysis(contract_id: int) -> None:
    """Drop results of a previous run before starting a new one."""
    db = get_db()
    db.execute("DELETE FROM chunk_results WHERE contract_id = ?", (contract_id,))
    db.execute("DELETE FROM clauses WHERE contract_id = ?", (contract_id,))
    db.execute("DELETE FROM summaries WHERE contract_id = ?", (contract_id,))
    db.commit()
    db.close()


def save_clauses(contract_id: int, findings: list[Finding]) -> None:
    db = get_db()
    db.executemany(
        """INSERT INTO clauses (contract_id, clause_number, clause_type, original_text,
           risk_level, explanation, violations_json, redline_suggestion, redline_explanation)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        [
            (contract_id, f.clause_number, f.clause_type, f.original_text, f.risk_level,
             f.explanation, json.dumps(f.to_dict()["playbook_violations"]),
             f.redline_suggestion, f.redline_explanation)
            for f in findings
        ],
    )
    db.commit()
    db.close()


def get_clauses(contract_id: int) -> list[Finding]:
    db = get_db()
    rows = db.execute(
        "SELECT * FROM clauses WHERE contract_id = ? ORDER BY clause_number", (contract_id,)
    ).fetchall()
    db.close()
    return [_row_to_clause(r) for r in rows]


CLAUSE_STATUSES = ("pending", "accepted", "rejected", "modified")


def _row_to_clause(row) -> Finding:
    return Finding.from_dict({**dict(row), "playbook_violations": json.loads(row["violations_json"] or "[]")})


def get_clause(clause_id: int) -> Finding:
    """Raises KeyError if the clause does not exist."""
    db = get_db()
    row = db.execute("SELECT * FROM clauses WHERE id = ?", (clause_id,)).fetchone()
    db.close()
    if row is None:
        raise KeyError(f"Clause {clause_id} not found")
    return _row_to_clause(row)


def update_clause(clause_id: int, status: str | None = None,
                  user_redline: str | None = None, user_note: str | None = None) -> Finding:
    """
    Record a reviewer's decision on one stored clause.

    Only the arguments that are not None are written.

    Raises:
        ValueError: nothing to update, or an unknown status
        KeyError: the clause does not exist
    """
    fields = {}
    if status is not None:
        if status not in CLAUSE_STATUSES:
            raise ValueError(f"Invalid clause status: {status}")
        fields["status"] = status
    if user_redline is not None:
        fields["user_redline"] = user_redline
    if user_note is not None:
        fields["user_note"] = user_note
    if not fields:
        raise ValueError("No valid fields to update")

    fields["action_timestamp"] = datetime.now().isoformat()
    assignments = ", ".join(f"{name}=?" for name in fields)
    db = get_db()
    cursor = db.execute(
        f"UPDATE clauses SET {assignments} WHERE id=?",
        (*fields.values(), clause_id),
    )
    db.commit()
    db.close()
    if cursor.rowcount == 0:
        raise KeyError(f"Clause {clause_id} not found")
    return get_clause(clause_id)


def get_contract_clauses(contract_id: int) -> list[Finding]:
    """Final clauses if the run has saved them, else the partial chunk results merged so far."""
    clauses = get_clauses(contract_id)
    if clauses:
        return clauses
    partial = get_chunk_results(contract_id)
    return reconcile_findings(partial[i] for i in sorted(partial))


def save_summary(contract_id: int, summary: ReviewSummary) -> None:
    db = get_db()
    db.execute(
        """INSERT OR REPLACE INTO summaries (contract_id, overall_risk, executive_summary,
           key_findings_json, missing_clauses_json) VALUES (?, ?, ?, ?, ?)""",
        (contract_id, summary.overall_risk, summary.executive_summary,
         json.dumps(summary.key_findings), json.dumps(summary.missing_clauses)),
    )
    db.commit()
    db.close()


def get_summary(contract_id: int) -> ReviewSummary | None:
    db = get_db()
    row = db.execute("SELECT * FROM summaries WHERE contract_id = ?", (contract_id,)).fetchone()
    db.close()
    if row is None:
        return None
    return ReviewSummary(
        overall_risk=row["overall_risk"],
        executive_summary=row["executive_summary"],
        key_findings=json.loads(row["key_findings_json"] or "[]"),
        missing_clauses=json.loads(row["missing_clauses_json"] or "[]"),
    )


# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------

class DatabaseProgressSink:
    """Persists each finished chunk and the overall progress of one contract.

    Chunk analysis covers the 10-80% band of the progress bar; classification
    takes it to 10 before and summarizing takes it past 80 after.
    """

    def __init__(self, contract_id: int):
        self.contract_id = contract_id

    def report(self, index: int, findings: list[Finding], completed: int, total: int) -> None:
        save_chunk_result(self.contract_id, index, findings)
        update_contract(
            self.contract_id,
            completed_chunks=completed,
            analysis_progress=10 + round(completed / total * 70),
        )


# ---------------------------------------------------------------------------
# Playbook profiles and rules
# ---------------------------------------------------------------------------

DEFAULT_PROFILE_NAME = "Standard Corporate Playbook"


def _row_to_rule(row) -> PlaybookRule:
    return PlaybookRule(
        id=row["id"], profile_id=row["profile_id"], name=row["name"],
        category=row["category"], description=row["description"],
        condition=row["condition"], severity=row["severity"], enabled=bool(row["enabled"]),
    )


def _row_to_profile(row, rules: list[PlaybookRule]) -> PlaybookProfile:
    return PlaybookProfile(
        id=row["id"], name=row["name"], contract_type=row["contract_type"],
        description=row["description"], is_default=bool(row["is_default"]), rules=rules,
    )


def create_profile(name: str, contract_type: str | None = None, description: str = "",
                   is_default: bool = False) -> int:
    db = get_db()
    if is_default:
        # Only one default profile at a time
        db.execute("UPDATE playbook_profiles SET is_default=0")
    cursor = db.execute(
        "INSERT INTO playbook_profiles (name, contract_type, description, is_default, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (name, contract_type or None, description, int(is_default), datetime.now().isoformat()),
    )
    profile_id = cursor.lastrowid
    db.commit()
    db.close()
    return profile_id


def get_profile(profile_id: int) -> PlaybookProfile:
    """Profile with its rules. Raises KeyError if it does not exist."""
    db = get_db()
    row = db.execute("SELECT * FROM playbook_profiles WHERE id = ?", (profile_id,)).fetchone()
    db.close()
    if row is None:
        raise KeyError(f"Playbook profile {profile_id} not found")
    return _row_to_profile(row, list_rules(profile_id=profile_id))


def list_profiles() -> list[PlaybookProfile]:
    db = get_db()
    rows = db.execute("SELECT * FROM playbook_profiles ORDER BY created_at, id").fetchall()
    db.close()
    return [_row_to_profile(r, list_rules(profile_id=r["id"])) for r in rows]


def find_profile(contract_type: str | None) -> PlaybookProfile | None:
    """The profile for `contract_type`, else the default profile, else None."""
    db = get_db()
    row = db.execute(
        "SELECT * FROM playbook_profiles WHERE contract_type = ? OR is_default = 1 "
        "ORDER BY is_default ASC, id ASC LIMIT 1",
        (contract_type,),
    ).fetchone()
    db.close()
    if row is None:
        return None
    return _row_to_profile(row, list_rules(profile_id=row["id"]))


def list_rules(enabled_only: bool = False, profile_id: int | None = None) -> list[PlaybookRule]:
    db = get_db()
    sql = "SELECT * FROM playbook_rules WHERE 1=1"
    params: list = []
    if enabled_only:
        sql += " AND enabled = 1"
    if profile_id is not None:
        sql += " AND profile_id = ?"
        params.append(profile_id)
    rows = db.execute(sql + " ORDER BY id", params).fetchall()
    db.close()
    return [_row_to_rule(r) for r in rows]


def add_rules(rules: list[PlaybookRule], profile_id: int) -> int:
    db = get_db()
    db.executemany(
        "INSERT INTO playbook_rules (profile_id, name, category, description, condition, severity, enabled) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [(profile_id, r.name, r.category, r.description, r.condition, r.severity, int(r.enabled))
         for r in rules],
    )
    db.commit()
    db.close()
    return len(rules)


def set_rule_enabled(rule_id: int, enabled: bool) -> PlaybookRule:
    """Raises KeyError if the rule does not exist."""
    db = get_db()
    cursor = db.execute("UPDATE playbook_rules SET enabled=? WHERE id=?", (int(enabled), rule_id))
    db.commit()
    row = db.execute("SELECT * FROM playbook_rules WHERE id = ?", (rule_id,)).fetchone()
    db.close()
    if cursor.rowcount == 0 or row is None:
        raise KeyError(f"Rule {rule_id} not found")
    return _row_to_rule(row)


def seed_default_playbook(rules: list[PlaybookRule]) -> int:
    """Create the default profile holding `rules` when no profile exists yet.

    Returns the number of rules added.
    """
    if list_profiles():
        return 0
    profile_id = create_profile(
        DEFAULT_PROFILE_NAME,
        description="Standard corporate counsel review rules for commercial contracts.",
        is_default=True,
    )
    return add_rules(rules, profile_id)
