#!/usr/bin/env python3
"""
Contract Review Tool

Reads a contract (PDF, DOCX or TXT), splits long documents into
overlapping chunks, analyzes the chunks in parallel with Claude against a
playbook of rules, and prints a merged clause-by-clause review.

Usage:
    python main.py <contract.pdf|.docx|.txt> [--rules <rulebook.xlsx>] [--json <out.json>]

Without --rules, rulebook.xlsx next to the project is used if present,
otherwise the standard corporate playbook.
"""

import json
import sys
import time
from pathlib import Path

from contract_analyzer.analysis import classify_contract
from contract_analyzer.chunker import segment_text
from contract_analyzer.config import ANTHROPIC_API_KEY, LLM_MODEL, RULEBOOK_PATH
from contract_analyzer.errors import PipelineError
from contract_analyzer.extractors import load_rulebook, read_contract_file
from contract_analyzer.output import print_rich_summary, summarize_findings
from contract_analyzer.pipeline import run_pipeline
from contract_analyzer.playbook import DEFAULT_RULES


class ConsoleProgress:
    """Prints one line per finished chunk."""

    def __init__(self, started: float):
        self.started = started

    def report(self, index, findings, completed, total):
        elapsed = time.time() - self.started
        print(f"  [{completed}/{total}] chunk {index + 1} done, "
              f"{len(findings)} clauses ({elapsed:.1f}s)")


def main() -> None:
    # ---- Parse args ----
    args = sys.argv[1:]
    if not args:
        print("Usage: python main.py <contract.pdf|.docx|.txt> [--rules <rulebook.xlsx>] [--json <out.json>]")
        print("\nExamples:")
        print("  python main.py msa.pdf")
        print("  python main.py nda.docx --rules playbook.xlsx --json review.json")
        sys.exit(0)

    input_arg = None
    rules_path = None
    json_path = None
    i = 0
    while i < len(args):
        if args[i] == "--rules" and i + 1 < len(args):
            rules_path = Path(args[i + 1])
            i += 2
        elif args[i] == "--json" and i + 1 < len(args):
            json_path = Path(args[i + 1])
            i += 2
        else:
            input_arg = args[i]
            i += 1

    if not input_arg:
        print("Error: no contract file given.")
        sys.exit(1)
    input_path = Path(input_arg)
    if not input_path.exists():
        print(f"Error: File not found: {input_path}")
        sys.exit(1)
    if not ANTHROPIC_API_KEY:
        print("Error: ANTHROPIC_API_KEY not set.")
        sys.exit(1)

    print("Contract Review Tool")
    print(f"Input: {input_path}")
    print(f"Model: {LLM_MODEL}")
    print()
    t0 = time.time()

    # ---- Step 1: Read contract ----
    print("[Step 1/4] Reading contract...")
    try:
        text = read_contract_file(input_path)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    if not text:
        print("Error: No text extracted from contract.")
        sys.exit(1)
    print(f"  {len(text):,} characters")

    # ---- Step 2: Rules ----
    print("\n[Step 2/4] Loading playbook rules...")
    if rules_path is None and RULEBOOK_PATH.exists():
        rules_path = RULEBOOK_PATH
    try:
        rules = load_rulebook(rules_path) if rules_path else DEFAULT_RULES
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"  {sum(1 for r in rules if r.enabled)} enabled rules"
          f"{'' if rules_path else ' (standard playbook)'}")

    # ---- Step 3: Classify ----
    print("\n[Step 3/4] Classifying contract...")
    classification = classify_contract(text)
    print(f"  {classification.contract_type} ({classification.paper_type} paper)")

    # ---- Step 4: Chunked analysis ----
    print("\n[Step 4/4] Analyzing clauses...")
    segments = segment_text(text)
    try:
        findings = run_pipeline(
            text, rules, ConsoleProgress(time.time()),
            contract_type=classification.contract_type,
            segments=segments,
        )
    except PipelineError as e:
        print(f"\nError: {e}")
        print("  The review is incomplete. Re-run to try again.")
        sys.exit(1)

    summary = summarize_findings(findings)
    metadata = {
        "input_source": input_path.name,
        "contract_type": classification.contract_type,
        "paper_type": classification.paper_type,
        "rules_loaded": len(rules),
        "chunks": len(segments),
        "llm_model": LLM_MODEL,
        "elapsed_seconds": round(time.time() - t0, 1),
    }

    if json_path:
        output = {
            "metadata": metadata,
            "summary": summary,
            "clauses": [f.to_dict() for f in findings],
        }
        with open(json_path, "w") as f:
            json.dump(output, f, indent=2, ensure_ascii=False)
        print(f"  JSON written to: {json_path}")

    print_rich_summary(summary, findings, metadata)


if __name__ == "__main__":
    main()
