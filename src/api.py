"""
FastAPI service for the activity dashboard frontend.

Serves the latest published AnalyticsResult and the refresh status.  Route
handlers are defined here; shared utilities live in routes/helpers.py.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from engine_config import load_engine_config, load_source_config
from pipeline.refresh_pipeline import RefreshPipeline, RefreshScheduler
from result_store import MemoryResultStore
from routes.helpers import _insights_payload, _origins, _to_jsonable

log = logging.getLogger("api")

store = MemoryResultStore()
source_config = load_source_config()
pipeline = RefreshPipeline(store, load_engine_config(), source_config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load data once on startup, then keep it fresh on a timer."""
    scheduler = RefreshScheduler(pipeline, source_config.refresh_interval_minutes)
    if source_config.workbook_path or source_config.sheet_id:
        log.info("Parsing workbook on startup...")
        status = await run_in_threadpool(pipeline.run)
        if status.get("overall_status") == "failed":
            log.error("Initial refresh failed: %s", ", ".join(status.get("degraded_reasons", [])))
        scheduler.start()
    else:
        log.warning("No WORKBOOK_PATH or GOOGLE_SHEET_ID set; serving without data")
    yield
    scheduler.stop()


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Activity Tracker API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "activity-tracker-api", "status": "ok"}


@app.get("/health-check")
def health_check() -> Dict[str, Any]:
    result = store.get()
    return {
        "status": "Online" if result is not None else "Waiting for data",
        "published": result is not None,
        "lastRefresh": _to_jsonable(store.published_at),
    }


@app.get("/api/data")
def get_data() -> Dict[str, Any]:
    result = store.get()
    if result is None:
        raise HTTPException(status_code=404, detail="No data available")
    return _to_jsonable(result)


@app.get("/api/insights")
def get_insights() -> Dict[str, Any]:
    result = store.get()
    if result is None:
        raise HTTPException(status_code=404, detail="No data available")
    return _insights_payload(result.insights)


@app.get("/api/refresh/status")
def refresh_status() -> Dict[str, Any]:
    return pipeline.refresh_status()


@app.post("/api/refresh", status_code=202)
def trigger_refresh(background_tasks: BackgroundTasks) -> Dict[str, Any]:
    if not (source_config.workbook_path or source_config.sheet_id):
        raise HTTPException(status_code=503, detail="No workbook source configured")
    background_tasks.add_task(pipeline.run)
    return {"status": "scheduled"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(app, host="0.0.0.0", port=5000)
