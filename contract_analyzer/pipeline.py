"""Main orchestration: chunk, analyze in parallel, merge; plus the background review job."""

import threading
import time
import traceback
from functools import partial

from . import database
from .analysis import analyze_segment, classify_contract, generate_summary
from .chunker import segment_text
from .config import (
    ANALYSIS_CONCURRENCY,
    CHUNK_MAX_RETRIES,
    CHUNK_RETRY_DELAY,
    TARGET_CHUNK_SIZE,
)
from .errors import ReviewInProgress
from .models import Finding, PlaybookRule, Segment
from .playbook import DEFAULT_RULES
from .reconcile import reconcile_findings
from .scheduler import Analyzer, run_segments


def run_pipeline(
    document_text: str,
    rules: list[PlaybookRule],
    progress_sink=None,
    *,
    analyzer: Analyzer | None = None,
    contract_type: str = "Contract",
    segments: list[Segment] | None = None,
    target_size: int = TARGET_CHUNK_SIZE,
    concurrency: int = ANALYSIS_CONCURRENCY,
    max_retries: int = CHUNK_MAX_RETRIES,
    retry_delay: float = CHUNK_RETRY_DELAY,
) -> list[Finding]:
    """
    Chunk a contract, analyze the chunks in parallel and merge the results.

    Args:
        document_text: Full contract text, non-empty
        rules: Playbook rules, handed to the analyzer as-is
        progress_sink: Optional object with report(index, findings, completed, total)
        analyzer: Per-chunk analysis call; defaults to Claude via analyze_segment
        contract_type: Used by the default analyzer's prompt
        segments: Pre-computed chunks; computed from document_text when omitted

    Returns:
        Clauses in document order, overlap duplicates removed, numbered from 1

    Raises:
        ValueError: empty document text
        PipelineError: a chunk failed on every attempt; no partial list is returned
    """
    if not document_text or not document_text.strip():
        raise ValueError("Document text is empty; nothing to analyze.")

    if analyzer is None:
        analyzer = partial(analyze_segment, contract_type=contract_type)
    if segments is None:
        segments = segment_text(document_text, target_size)

    workers = min(concurrency, len(segments))
    print(f"  {len(segments)} chunk(s), {workers} worker(s)")

    state = run_segments(
        segments, analyzer, rules, progress_sink,
        concurrency=concurrency, max_retries=max_retries, retry_delay=retry_delay,
    )

    raw_count = sum(len(r) for r in state.results)
    findings = reconcile_findings(state.results)
    if raw_count != len(findings):
        print(f"  Merged {raw_count} chunk clauses into {len(findings)} "
              f"({raw_count - len(findings)} overlap duplicates)")
    return findings


# ---------------------------------------------------------------------------
# Full contract review (classification → clauses → summary), database-backed
# ---------------------------------------------------------------------------

def run_contract_review(contract_id: int) -> list[Finding]:
    """Run a complete review and store every stage in the database.

    Progress and partial clauses are visible through the database while the
    run is going. Errors propagate; start_review_in_background records them.
    """
    contract = database.get_contract(contract_id)
    text = contract["original_text"]
    t0 = time.time()

    print(f"Contract review #{contract_id}: {contract['filename']}")

    print("[Step 1/4] Classifying contract...")
    classification = classify_contract(text)
    database.save_classification(contract_id, classification)
    print(f"  {classification.contract_type} ({classification.paper_type} paper)")

    print("[Step 2/4] Loading playbook rules...")
    database.seed_default_playbook(DEFAULT_RULES)
    profile = database.find_profile(classification.contract_type)
    if profile is None:
        print("  Warning: No matching or default playbook profile. Reviewing without rules.")
        rules = []
    else:
        rules = [r for r in profile.rules if r.enabled]
        print(f"  {profile.name}: {len(rules)} enabled rules")

    print("[Step 3/4] Analyzing clauses...")
    segments = segment_text(text)
    database.update_contract(contract_id, total_chunks=len(segments), completed_chunks=0)
    findings = run_pipeline(
        text, rules, database.DatabaseProgressSink(contract_id),
        contract_type=classification.contract_type,
        segments=segments,
    )
    database.save_clauses(contract_id, findings)
    database.update_contract(contract_id, analysis_progress=85, analysis_stage="summarizing")

    print("[Step 4/4] Generating executive summary...")
    summary = generate_summary(text, classification.contract_type, findings)
    database.save_summary(contract_id, summary)
    database.update_contract(
        contract_id, status="completed", analysis_progress=100, analysis_stage="complete",
    )

    print(f"  Done in {round(time.time() - t0, 1)}s, {len(findings)} clauses, "
          f"overall risk {summary.overall_risk}")
    return findings


def _review_in_thread(contract_id: int) -> None:
    try:
        run_contract_review(contract_id)
    except Exception as e:
        # Partial chunk results already stored stay in place for the UI
        print(f"  Analysis pipeline error for contract #{contract_id}: {e}")
        traceback.print_exc()
        database.update_contract(contract_id, status="error", analysis_stage="error")


def start_review_in_background(contract_id: int) -> threading.Thread:
    """Mark the contract as analyzing and run the review on a daemon thread.

    The outcome is only observable through the database.

    Raises:
        KeyError: the contract does not exist
        ReviewInProgress: a review of this contract is already running
    """
    database.get_contract(contract_id)
    if not database.begin_analysis(contract_id):
        raise ReviewInProgress(f"Contract {contract_id} is already being analyzed")
    database.clear_analysis(contract_id)
    thread = threading.Thread(
        target=_review_in_thread, args=(contract_id,), daemon=True,
        name=f"contract-review-{contract_id}",
    )
    thread.start()
    return thread
