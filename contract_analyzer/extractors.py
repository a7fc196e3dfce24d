"""Contract text extraction (PDF / DOCX / TXT) and rulebook loading."""

import io
import re
from pathlib import Path

from .models import PlaybookRule

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


# ---------------------------------------------------------------------------
# Contract text
# ---------------------------------------------------------------------------

def clean_text(text: str) -> str:
    """Normalize extracted text. Form-feeds survive as page markers."""
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def _pdf_text(content: bytes) -> str:
    import pdfplumber

    pages = []
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
    # Keep page boundaries visible to the chunker
    return "\f".join(pages)


def _docx_text(content: bytes) -> str:
    from docx import Document

    doc = Document(io.BytesIO(content))
    return "\n\n".join(p.text.strip() for p in doc.paragraphs if p.text.strip())


def parse_contract(content: bytes, filename: str) -> str:
    """
    Extract plain text from an uploaded contract.

    Args:
        content: Raw file bytes
        filename: Original file name; its extension picks the reader

    Returns:
        Cleaned contract text

    Raises:
        ValueError: unsupported file type
    """
    ext = Path(filename).suffix.lower()
    if ext == ".pdf":
        return clean_text(_pdf_text(content))
    if ext == ".docx":
        return clean_text(_docx_text(content))
    if ext == ".txt":
        return clean_text(content.decode("utf-8", errors="replace"))
    raise ValueError(
        f"Unsupported file type: {ext or filename}. Please upload PDF, DOCX, or TXT files."
    )


def read_contract_file(path: Path) -> str:
    return parse_contract(path.read_bytes(), path.name)


# ---------------------------------------------------------------------------
# Load Rulebook from XLSX
# ---------------------------------------------------------------------------

_SEVERITIES = ("critical", "warning", "info")


def load_rulebook(path: Path) -> list[PlaybookRule]:
    """
    Parse a playbook rulebook .xlsx.

    Every sheet is read; columns are located by header keywords so their order
    does not matter. Rows without a name or condition are skipped. A missing
    severity defaults to "warning", a missing enabled flag to enabled.
    """
    import openpyxl

    if not path.exists():
        raise FileNotFoundError(f"Rulebook not found: {path}")

    wb = openpyxl.load_workbook(str(path), read_only=True)
    rules: list[PlaybookRule] = []

    for ws in wb.worksheets:
        rows = list(ws.iter_rows(values_only=True))
        if len(rows) < 2:
            continue

        header = [str(c).lower().strip() if c else "" for c in rows[0]]

        def find_col(*keywords):
            for i, h in enumerate(header):
                if any(kw in h for kw in keywords):
                    return i
            return None

        col_name = find_col("name", "rule")
        col_cat = find_col("category")
        col_desc = find_col("description")
        col_cond = find_col("condition", "requirement")
        col_sev = find_col("severity", "risk")
        col_enabled = find_col("enabled", "active")

        if col_name is None or col_cond is None:
            continue

        for row in rows[1:]:
            def cell(idx):
                if idx is None or idx >= len(row):
                    return ""
                return str(row[idx]).strip() if row[idx] is not None else ""

            name = cell(col_name)
            condition = cell(col_cond)
            if not name or not condition:
                continue

            severity = cell(col_sev).lower()
            enabled = cell(col_enabled).lower()
            rules.append(PlaybookRule(
                name=name,
                category=cell(col_cat) or ws.title,
                description=cell(col_desc),
                condition=condition,
                severity=severity if severity in _SEVERITIES else "warning",
                enabled=enabled not in ("false", "no", "0", "n"),
            ))

    wb.close()
    return rules
