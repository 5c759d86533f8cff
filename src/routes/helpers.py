"""
Shared helpers for API routes.
Contains: JSON serialization of result models, CORS origin parsing.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List

from pydantic import BaseModel

log = logging.getLogger("api")

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _origins() -> List[str]:
    raw = os.getenv("FRONTEND_ORIGINS", "")
    return [o.strip() for o in raw.split(",") if o.strip()] or list(DEFAULT_ORIGINS)


def _insights_payload(insights) -> Dict[str, Any]:
    items = _to_jsonable(list(insights))
    return {"insights": items, "count": len(items)}
