from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .data.repository import load_repository
from .errors import InvalidCategoryError, UnknownPartError
from .llm.providers import configured_provider
from .llm.ranker import AIRanker
from .schemas import (
    Build,
    BuildInput,
    CompatibilityRequest,
    ExplainRequest,
    SuggestRequest,
    WizardRequest,
)
from .service import AdvisorService

ROOT = Path(__file__).resolve().parents[2]

load_dotenv(ROOT / ".env")

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    path = Path(raw)
    return path if path.is_absolute() else ROOT / path


PARTS_DATA_PATH = _env_path("PARTS_DATA_PATH", ROOT / "data" / "parts.json")
AI_RANK_TIMEOUT_SECONDS = _env_float("AI_RANK_TIMEOUT_SECONDS", 15.0)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

repo = load_repository(PARTS_DATA_PATH)
service = AdvisorService(repo, AIRanker(timeout_seconds=AI_RANK_TIMEOUT_SECONDS))

app = FastAPI(title="RigCheck")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _resolve(parts: BuildInput, name: Optional[str] = None) -> Build:
    try:
        return service.resolve_build(parts, name)
    except InvalidCategoryError as err:
        raise HTTPException(status_code=400, detail=str(err))
    except UnknownPartError as err:
        raise HTTPException(status_code=404, detail=str(err))


@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "parts": len(repo.all_parts()),
        "llm_provider": configured_provider() or "none",
    }


@app.post("/api/compatibility")
def compatibility(payload: CompatibilityRequest):
    build = _resolve(payload.parts, payload.name)
    report = service.evaluate(build)
    return {**report.model_dump(by_alias=True), "compatible": report.compatible}


@app.post("/api/ai/suggest")
def suggest(payload: SuggestRequest):
    build = _resolve(payload.build)
    try:
        result = service.suggest(build, payload.target_category, payload.limit)
    except InvalidCategoryError as err:
        raise HTTPException(status_code=400, detail=str(err))
    return {"success": True, **result.model_dump()}


@app.post("/api/ai/wizard")
def wizard(payload: WizardRequest):
    result = service.generate_build(payload.use_case, payload.platform, payload.budget)
    body = result.model_dump()
    if result.report is not None:
        body["report"] = result.report.model_dump(by_alias=True)
    return {"success": True, **body}


@app.post("/api/compatibility/explain")
def explain(payload: ExplainRequest):
    build = _resolve(payload.parts)
    result = service.explain(build)
    return {"success": True, **result.model_dump()}


@app.get("/api/components/{category}")
def components(
    category: str,
    cpu: Optional[str] = None,
    motherboard: Optional[str] = None,
    ram: Optional[str] = None,
    compatible_only: bool = False,
):
    build = _resolve({"cpu": cpu, "motherboard": motherboard, "ram": ram})
    try:
        items = service.components(category, build)
    except InvalidCategoryError as err:
        raise HTTPException(status_code=400, detail=str(err))
    if compatible_only:
        items = [item for item in items if item["compatible"]]
    return items


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=_env_int("PORT", 8000))


if __name__ == "__main__":
    run()
