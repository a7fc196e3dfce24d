"""LLM calls: contract classification, per-chunk clause analysis, executive summary."""

import json

from .config import (
    ANALYZE_MAX_TOKENS,
    ANTHROPIC_API_KEY,
    CLASSIFY_MAX_TOKENS,
    LLM_MODEL,
    SUMMARY_MAX_TOKENS,
)
from .errors import InferenceError
from .models import (
    ContractClassification,
    Finding,
    PlaybookRule,
    PlaybookViolation,
    ReviewSummary,
)
from .prompts import (
    SYSTEM_PROMPT,
    build_analysis_message,
    build_classify_message,
    build_summary_message,
)

_RISK_LEVELS = ("high", "medium", "low")
_SEVERITIES = ("critical", "warning", "info")

_llm_client = None


def _get_llm_client():
    global _llm_client
    if _llm_client is None:
        if not ANTHROPIC_API_KEY:
            raise ValueError("ANTHROPIC_API_KEY not configured. Cannot run LLM analysis.")
        import anthropic
        _llm_client = anthropic.Anthropic(api_key=ANTHROPIC_API_KEY)
    return _llm_client


def _call_claude(user_message: str, max_tokens: int) -> tuple[str, str | None]:
    """Send one message and return (text, stop_reason)."""
    client = _get_llm_client()
    response = client.messages.create(
        model=LLM_MODEL,
        max_tokens=max_tokens,
        system=SYSTEM_PROMPT,
        messages=[{"role": "user", "content": user_message}],
    )
    text = "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    )
    if not text:
        raise InferenceError("Unexpected response type: no text content returned.")
    return text, response.stop_reason


def _recover_truncated_json(text: str) -> list[dict]:
    """Try to recover complete objects from a truncated JSON array.

    When the LLM response hits max_tokens, the JSON gets cut mid-object.
    This extracts all complete top-level objects before the truncation point.
    """
    results = []
    depth = 0
    obj_start = None
    in_string = False
    escape_next = False

    # Skip the opening bracket of the array so its elements are top level
    start = text.find("[")
    for i in range(start + 1 if start != -1 else 0, len(text)):
        ch = text[i]

        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if ch == "{":
            if depth == 0:
                obj_start = i
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0 and obj_start is not None:
                try:
                    results.append(json.loads(text[obj_start:i + 1]))
                except json.JSONDecodeError:
                    pass
                obj_start = None

    return results


def extract_json(text: str, stop_reason: str | None = None, recover_list: bool = False):
    """Parse a model response as JSON.

    Strips markdown fences. A response cut at max_tokens is salvaged only when
    `recover_list` is set and at least one complete array element survived.
    Anything unusable raises InferenceError.
    """
    text = text.strip()

    # Strip markdown code fences if present
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0].strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        if stop_reason == "max_tokens":
            if recover_list:
                print("  Warning: Response truncated at max_tokens. Recovering complete objects...")
                results = _recover_truncated_json(text)
                if results:
                    print(f"  Recovered {len(results)} complete clause analyses from truncated response.")
                    return results
            raise InferenceError("Claude response was truncated. The contract may be too long.") from e
        raise InferenceError(f"Claude returned invalid JSON: {text[:200]}") from e


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _normalize_violations(raw) -> list[PlaybookViolation]:
    if not isinstance(raw, list):
        return []
    violations = []
    for v in raw:
        if not isinstance(v, dict):
            continue
        severity = str(v.get("severity") or "info").lower()
        violations.append(PlaybookViolation(
            rule_name=v.get("rule_name") or "",
            category=v.get("category") or "",
            severity=severity if severity in _SEVERITIES else "info",
            description=v.get("description") or "",
        ))
    return violations


def normalize_findings(items) -> list[Finding]:
    """Validate raw clause dicts from the model and fill defaults.

    Items that are not objects or carry no clause text are dropped.
    """
    if not isinstance(items, list):
        raise InferenceError(f"Expected JSON array from LLM, got {type(items).__name__}")

    findings = []
    for n, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            continue

        # The model sends null for fields it has nothing for
        original_text = item.get("original_text") or ""
        if not original_text.strip():
            continue

        risk = str(item.get("risk_level") or "low").lower()
        number = item.get("clause_number")
        findings.append(Finding(
            clause_number=number if isinstance(number, int) else n,
            clause_type=item.get("clause_type") or "Other",
            original_text=original_text,
            risk_level=risk if risk in _RISK_LEVELS else "low",
            explanation=item.get("explanation") or "",
            playbook_violations=_normalize_violations(item.get("playbook_violations")),
            redline_suggestion=item.get("redline_suggestion") or None,
            redline_explanation=item.get("redline_explanation") or None,
        ))
    return findings


# ---------------------------------------------------------------------------
# Public calls
# ---------------------------------------------------------------------------

def classify_contract(text: str) -> ContractClassification:
    """Identify contract type, paper type and parties from the opening text."""
    raw, stop_reason = _call_claude(build_classify_message(text), CLASSIFY_MAX_TOKENS)
    data = extract_json(raw, stop_reason)
    if not isinstance(data, dict):
        raise InferenceError(f"Expected JSON object from LLM, got {type(data).__name__}")

    paper_type = data.get("paper_type") or "external"
    return ContractClassification(
        contract_type=data.get("contract_type") or "Other",
        paper_type=paper_type if paper_type in ("internal", "external") else "external",
        parties=[p for p in data.get("parties") or [] if isinstance(p, str)],
        effective_date=data.get("effective_date") or None,
        summary=data.get("summary") or "",
    )


def analyze_segment(
    text: str,
    index: int,
    total: int,
    rules: list[PlaybookRule],
    contract_type: str = "Contract",
) -> list[Finding]:
    """
    Analyze one chunk of a contract against the playbook rules.

    Args:
        text: Chunk text, possibly cut mid-clause at either edge
        index: 0-based position of the chunk
        total: Number of chunks in the contract
        rules: Playbook rules; only enabled ones are sent
        contract_type: Type from classification, used in the prompt

    Returns:
        Findings numbered locally within this chunk

    Raises:
        InferenceError: the response could not be parsed into clauses.
        Errors from the Anthropic SDK propagate unchanged.
    """
    message = build_analysis_message(text, contract_type, rules, index, total)
    raw, stop_reason = _call_claude(message, ANALYZE_MAX_TOKENS)
    return normalize_findings(extract_json(raw, stop_reason, recover_list=True))


def generate_summary(text: str, contract_type: str, findings: list[Finding]) -> ReviewSummary:
    """Executive summary over the final, reconciled clause list."""
    raw, stop_reason = _call_claude(
        build_summary_message(text, contract_type, findings), SUMMARY_MAX_TOKENS,
    )
    data = extract_json(raw, stop_reason)
    if not isinstance(data, dict):
        raise InferenceError(f"Expected JSON object from LLM, got {type(data).__name__}")

    overall = str(data.get("overall_risk") or "medium").lower()
    return ReviewSummary(
        overall_risk=overall if overall in _RISK_LEVELS else "medium",
        executive_summary=data.get("executive_summary") or "",
        key_findings=[k for k in data.get("key_findings") or [] if isinstance(k, str)],
        missing_clauses=[m for m in data.get("missing_clauses") or [] if isinstance(m, str)],
    )
