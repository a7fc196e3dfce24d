"""FastAPI backend for the contract review tool.

Wraps the contract_analyzer/ package as REST API endpoints. Analysis runs
in the background; the frontend polls the clauses endpoint for progress.
"""

from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from contract_analyzer import database
from contract_analyzer.config import ANTHROPIC_API_KEY, LLM_MODEL
from contract_analyzer.errors import ReviewInProgress
from contract_analyzer.extractors import SUPPORTED_EXTENSIONS, parse_contract
from contract_analyzer.models import PlaybookRule
from contract_analyzer.pipeline import start_review_in_background


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A review thread does not survive a restart
    stuck = database.reset_interrupted_reviews()
    if stuck:
        print(f"  Marked {stuck} interrupted review(s) as error")
    yield


app = FastAPI(title="Contract Review API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_contract_or_404(contract_id: int) -> dict:
    try:
        return database.get_contract(contract_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")


# ---------------------------------------------------------------------------
# GET /api/config: LLM availability check
# ---------------------------------------------------------------------------
@app.get("/api/config")
def api_config():
    return {
        "llm_available": bool(ANTHROPIC_API_KEY),
        "llm_model": LLM_MODEL,
        "supported_extensions": list(SUPPORTED_EXTENSIONS),
    }


# ---------------------------------------------------------------------------
# POST /api/contracts: Upload and parse a contract
# ---------------------------------------------------------------------------
@app.post("/api/contracts", status_code=201)
async def api_upload_contract(file: UploadFile = File(...)):
    content = await file.read()
    try:
        text = parse_contract(content, file.filename or "")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not text:
        raise HTTPException(status_code=400, detail="No text could be extracted from the file")

    contract_id = database.create_contract(file.filename, text)
    return {"id": contract_id, "filename": file.filename, "characters": len(text)}


# ---------------------------------------------------------------------------
# GET /api/contracts: List contracts
# ---------------------------------------------------------------------------
@app.get("/api/contracts")
def api_list_contracts():
    return database.list_contracts()


# ---------------------------------------------------------------------------
# GET /api/contracts/{id}: Single contract with summary
# ---------------------------------------------------------------------------
@app.get("/api/contracts/{contract_id}")
def api_get_contract(contract_id: int):
    contract = _get_contract_or_404(contract_id)
    summary = database.get_summary(contract_id)
    contract["summary"] = asdict(summary) if summary else None
    return contract


# ---------------------------------------------------------------------------
# POST /api/contracts/{id}/analyze: Start analysis, return immediately
# ---------------------------------------------------------------------------
@app.post("/api/contracts/{contract_id}/analyze", status_code=202)
def api_analyze(contract_id: int):
    try:
        start_review_in_background(contract_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
    except ReviewInProgress:
        raise HTTPException(status_code=409, detail="Analysis already in progress")
    return {"status": "analyzing", "contract_id": contract_id}


# ---------------------------------------------------------------------------
# GET /api/contracts/{id}/clauses: Poll progress and (partial) clauses
# ---------------------------------------------------------------------------
@app.get("/api/contracts/{contract_id}/clauses")
def api_contract_clauses(contract_id: int):
    contract = _get_contract_or_404(contract_id)
    summary = database.get_summary(contract_id)
    return {
        "status": contract["status"],
        "analysis_progress": contract["analysis_progress"],
        "analysis_stage": contract["analysis_stage"],
        "total_chunks": contract["total_chunks"],
        "completed_chunks": contract["completed_chunks"],
        "clauses": [f.to_dict() for f in database.get_contract_clauses(contract_id)],
        "summary": asdict(summary) if summary else None,
    }


# ---------------------------------------------------------------------------
# PATCH /api/contracts/clauses/{id}: Reviewer accepts, rejects or edits a clause
# ---------------------------------------------------------------------------
@app.patch("/api/contracts/clauses/{clause_id}")
def api_update_clause(clause_id: int, body: dict):
    def text_field(key):
        value = body.get(key)
        return value.strip() if isinstance(value, str) else None

    try:
        clause = database.update_clause(
            clause_id,
            status=text_field("status"),
            user_redline=text_field("user_redline"),
            user_note=text_field("user_note"),
        )
    except KeyError:
        raise HTTPException(status_code=404, detail="Clause not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return clause.to_dict()


# ---------------------------------------------------------------------------
# Playbook profiles
# ---------------------------------------------------------------------------
@app.get("/api/playbook")
def api_list_profiles():
    return [asdict(p) for p in database.list_profiles()]


@app.post("/api/playbook", status_code=201)
def api_create_profile(body: dict):
    name = (body.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Profile name is required")
    profile_id = database.create_profile(
        name,
        contract_type=(body.get("contract_type") or "").strip() or None,
        description=body.get("description") or "",
        is_default=bool(body.get("is_default", False)),
    )
    return asdict(database.get_profile(profile_id))


# ---------------------------------------------------------------------------
# Playbook rules
# ---------------------------------------------------------------------------
@app.get("/api/playbook/rules")
def api_list_rules():
    return [asdict(r) for r in database.list_rules()]


@app.post("/api/playbook/{profile_id}/rules", status_code=201)
def api_add_rule(profile_id: int, body: dict):
    try:
        database.get_profile(profile_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Profile not found")

    name = (body.get("name") or "").strip()
    condition = (body.get("condition") or "").strip()
    if not name or not condition:
        raise HTTPException(status_code=400, detail="Rule name and condition are required")
    severity = body.get("severity", "warning")
    if severity not in ("critical", "warning", "info"):
        raise HTTPException(status_code=400, detail=f"Invalid severity: {severity}")

    database.add_rules([PlaybookRule(
        name=name,
        category=body.get("category", "General"),
        description=body.get("description", ""),
        condition=condition,
        severity=severity,
        enabled=body.get("enabled") is not False,
    )], profile_id)
    return {"name": name, "profile_id": profile_id, "status": "created"}


@app.patch("/api/playbook/rules/{rule_id}")
def api_update_rule(rule_id: int, body: dict):
    try:
        rule = database.set_rule_enabled(rule_id, bool(body.get("enabled", True)))
    except KeyError:
        raise HTTPException(status_code=404, detail="Rule not found")
    return asdict(rule)
