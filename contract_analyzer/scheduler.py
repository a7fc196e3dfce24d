"""Parallel chunk analysis: bounded retries per chunk, fixed-size worker pool.

Workers pull the next unclaimed chunk from a shared cursor, so a slow chunk
never leaves the others idle. Results land in the RunState slot for the
chunk's ordinal regardless of completion order.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import ANALYSIS_CONCURRENCY, CHUNK_MAX_RETRIES, CHUNK_RETRY_DELAY
from .errors import PipelineError, SegmentFailure
from .models import Finding, PlaybookRule, RunState, Segment

# (chunk_text, chunk_index, total_chunks, rules) -> findings
Analyzer = Callable[[str, int, int, list[PlaybookRule]], list[Finding]]


def analyze_with_retry(
    segment: Segment,
    total: int,
    rules: list[PlaybookRule],
    analyzer: Analyzer,
    max_retries: int = CHUNK_MAX_RETRIES,
    retry_delay: float = CHUNK_RETRY_DELAY,
) -> list[Finding]:
    """Run the analyzer on one chunk, retrying any failure with a fixed delay.

    Raises:
        SegmentFailure: every attempt failed; chained from the last error.
    """
    attempts = max_retries + 1

    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        print(f"  Chunk {segment.index + 1}/{total} attempt {retry_state.attempt_number} "
              f"failed ({exc}). Retrying in {retry_delay:g}s...")

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(retry_delay),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry,
        reraise=True,
    )
    try:
        return retrying(analyzer, segment.text, segment.index, total, rules)
    except Exception as e:
        raise SegmentFailure(segment.index, attempts) from e


def _report_progress(progress_sink, index: int, findings: list[Finding],
                     completed: int, total: int) -> None:
    """Best-effort progress update; a lost update never fails the run."""
    if progress_sink is None:
        return
    try:
        progress_sink.report(index, findings, completed, total)
    except Exception as e:
        print(f"  Progress update failed for chunk {index + 1}/{total}: {e}")


def run_segments(
    segments: list[Segment],
    analyzer: Analyzer,
    rules: list[PlaybookRule],
    progress_sink=None,
    concurrency: int = ANALYSIS_CONCURRENCY,
    max_retries: int = CHUNK_MAX_RETRIES,
    retry_delay: float = CHUNK_RETRY_DELAY,
) -> RunState:
    """
    Analyze every segment with at most `concurrency` chunks in flight.

    Args:
        segments: Chunks indexed 0..n-1
        analyzer: Called as analyzer(text, index, total, rules)
        rules: Passed through to the analyzer untouched
        progress_sink: Optional object with report(index, findings, completed, total),
            called once per finished chunk before its worker claims another
        concurrency: Maximum number of parallel workers
        max_retries: Extra attempts per chunk after the first
        retry_delay: Seconds between attempts

    Returns:
        RunState with every result slot filled

    Raises:
        PipelineError: a chunk failed on every attempt. Chunks already in
            flight are allowed to finish first; no new ones are started.
    """
    state = RunState(len(segments))
    if not segments:
        return state

    # Serializes slot writes with their progress reports so `completed`
    # reaches the sink in increasing order
    report_lock = threading.Lock()

    def worker() -> None:
        while True:
            index = state.claim_next()
            if index is None:
                return
            segment = segments[index]
            try:
                findings = analyze_with_retry(
                    segment, state.total, rules, analyzer,
                    max_retries=max_retries, retry_delay=retry_delay,
                )
            except SegmentFailure as e:
                print(f"  Chunk {index + 1}/{state.total} failed after {e.attempts} attempts: {e.__cause__}")
                state.record_failure(index, e)
                return
            with report_lock:
                completed = state.record(index, findings)
                _report_progress(progress_sink, segment.index, findings, completed, state.total)

    workers = max(1, min(concurrency, len(segments)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunk-worker") as pool:
        futures = [pool.submit(worker) for _ in range(workers)]
    for future in futures:
        future.result()

    if state.failure is not None:
        raise PipelineError(
            f"Analysis failed on chunk {state.failed_index + 1} of {state.total} "
            f"({state.completed} chunks completed)",
            failed_index=state.failed_index,
            completed=state.completed,
            total=state.total,
        ) from state.failure
    return state
