"""Centralized prompts for contract analysis.

All LLM prompts live here so they can be reviewed, versioned, and tuned in one place.
"""

from .models import Finding, PlaybookRule


# ---------------------------------------------------------------------------
# System Prompt: shared by every call
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are a senior legal AI assistant helping an experienced corporate counsel review contracts.
You provide precise, business-practical legal analysis. Focus on:
- Identifying dealbreakers vs. nice-to-haves
- Flagging deviations from market-standard positions
- Providing actionable redline suggestions with legal reasoning
- Being concise but thorough

Always respond with valid JSON matching the requested schema. Do not wrap your response in markdown code fences."""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

CLASSIFY_EXCERPT_CHARS = 8000


def build_classify_message(text: str) -> str:
    return f"""Analyze this contract and classify it. Respond with JSON only:
{{
  "contract_type": "NDA" | "MSA" | "SaaS Agreement" | "Employment Agreement" | "Consulting Agreement" | "License Agreement" | "Services Agreement" | "Other",
  "paper_type": "internal" | "external",
  "parties": ["Party A name", "Party B name"],
  "effective_date": "date if found or null",
  "summary": "1-2 sentence summary of the contract"
}}

Determine "paper_type" based on:
- "internal" = appears to be drafted by/favorable to the reviewing party (standard company template)
- "external" = appears to be drafted by/favorable to the counterparty

CONTRACT TEXT:
{text[:CLASSIFY_EXCERPT_CHARS]}"""


# ---------------------------------------------------------------------------
# Clause analysis: one call per chunk
# ---------------------------------------------------------------------------

def format_rules(rules: list[PlaybookRule]) -> str:
    """Render enabled playbook rules, one per line."""
    lines = [
        f"- [{r.severity.upper()}] {r.name} ({r.category}): {r.condition}"
        for r in rules if r.enabled
    ]
    return "\n".join(lines) or "No custom rules. Use standard corporate counsel best practices."


def build_analysis_message(
    text: str,
    contract_type: str,
    rules: list[PlaybookRule],
    chunk_index: int = 0,
    total_chunks: int = 1,
) -> str:
    if total_chunks > 1:
        position = (
            f"You are reviewing PART {chunk_index + 1} OF {total_chunks} of a longer {contract_type}.\n"
            "The text may start or end in the middle of a clause. Analyze every clause that is "
            "present, including partial ones at the edges, and do not comment on the cut itself.\n\n"
        )
    else:
        position = ""

    return f"""{position}Analyze this {contract_type} contract clause by clause. For each clause:
1. Identify the clause type
2. Assess risk level (high/medium/low)
3. Check against the playbook rules below
4. Provide a plain-language explanation
5. Suggest redline edits if needed

PLAYBOOK RULES:
{format_rules(rules)}

{ANALYSIS_RESPONSE_FORMAT}

CONTRACT TEXT:
{text}"""


ANALYSIS_RESPONSE_FORMAT = """Respond with a JSON array of clauses:
[{
  "clause_number": 1,
  "clause_type": "Indemnification" | "Limitation of Liability" | "Termination" | "Confidentiality" | "IP Ownership" | "Data Privacy" | "Non-Compete" | "Payment Terms" | "Representations & Warranties" | "Governing Law" | "Assignment" | "Force Majeure" | "Insurance" | "Auto-Renewal" | "SLA" | "Other",
  "original_text": "exact verbatim text of the clause",
  "risk_level": "high" | "medium" | "low",
  "explanation": "plain-language explanation of what this clause does and any concerns",
  "playbook_violations": [{"rule_name": "...", "category": "...", "severity": "critical|warning|info", "description": "why this violates the rule"}],
  "redline_suggestion": "suggested revised text (null if clause is acceptable)",
  "redline_explanation": "why this change is recommended (null if no redline)"
}]"""


# ---------------------------------------------------------------------------
# Executive summary
# ---------------------------------------------------------------------------

SUMMARY_EXCERPT_CHARS = 4000


def build_summary_message(text: str, contract_type: str, findings: list[Finding]) -> str:
    high_risk = [f for f in findings if f.risk_level == "high"]
    violations = [v for f in findings for v in f.playbook_violations]
    critical = sum(1 for v in violations if v.severity == "critical")

    clause_lines = []
    for f in findings:
        line = f"- Clause {f.clause_number} ({f.clause_type}): {f.risk_level} risk"
        if f.playbook_violations:
            line += f", {len(f.playbook_violations)} violation(s)"
        clause_lines.append(line)

    return f"""Generate an executive summary for this {contract_type} contract review.

High-risk clauses found: {len(high_risk)}
Total playbook violations: {len(violations)}
Critical violations: {critical}

Clause analysis summary:
{chr(10).join(clause_lines)}

Respond with JSON:
{{
  "overall_risk": "high" | "medium" | "low",
  "executive_summary": "2-3 paragraph executive summary suitable for a busy GC, highlighting key concerns and recommendations",
  "key_findings": ["finding 1", "finding 2", ...],
  "missing_clauses": ["clause type that should be present but is missing", ...]
}}

CONTRACT TEXT (first {SUMMARY_EXCERPT_CHARS} chars for context):
{text[:SUMMARY_EXCERPT_CHARS]}"""
