"""Configuration constants, paths, and tunables."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).parent.parent


def _parse_env_line(line: str):
    """(key, value) for a KEY=value line, or None for blanks and comments."""
    line = line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key or key.startswith("#"):
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def _load_env_file(path: Path) -> list[str]:
    """Copy settings from a .env file into os.environ.

    Variables already set in the environment win. Returns the keys applied.
    """
    if not path.is_file():
        return []
    applied = []
    for line in path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(line)
        if parsed is None:
            continue
        key, value = parsed
        if key not in os.environ:
            os.environ[key] = value
            applied.append(key)
    return applied


_load_env_file(BASE_DIR / ".env")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
DB_PATH = Path(os.environ.get("CONTRACT_DB_PATH", BASE_DIR / "contracts.db"))
RULEBOOK_PATH = BASE_DIR / "rulebook.xlsx"

# ---------------------------------------------------------------------------
# LLM Settings
# ---------------------------------------------------------------------------
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
LLM_MODEL = os.environ.get("LLM_MODEL", "claude-sonnet-4-5-20250929")
CLASSIFY_MAX_TOKENS = 1024
ANALYZE_MAX_TOKENS = 8192
SUMMARY_MAX_TOKENS = 2048

# ---------------------------------------------------------------------------
# Chunking (characters)
# ---------------------------------------------------------------------------
SMALL_DOCUMENT_THRESHOLD = int(os.environ.get("SMALL_DOCUMENT_THRESHOLD", 15000))
TARGET_CHUNK_SIZE = int(os.environ.get("TARGET_CHUNK_SIZE", 12000))  # ~3K tokens
MIN_CHUNK_SIZE = int(os.environ.get("MIN_CHUNK_SIZE", 1000))
MAX_CHUNK_SIZE = int(os.environ.get("MAX_CHUNK_SIZE", 20000))
CHUNK_OVERLAP = int(os.environ.get("CHUNK_OVERLAP", 200))

# ---------------------------------------------------------------------------
# Parallel analysis
# ---------------------------------------------------------------------------
ANALYSIS_CONCURRENCY = int(os.environ.get("ANALYSIS_CONCURRENCY", 4))
CHUNK_MAX_RETRIES = int(os.environ.get("CHUNK_MAX_RETRIES", 2))
CHUNK_RETRY_DELAY = float(os.environ.get("CHUNK_RETRY_DELAY", 2.0))  # seconds

# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------
DEDUP_PREFIX_LENGTH = 100
