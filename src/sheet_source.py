"""
Tracking Workbook -> Observations
=================================
Reads the tracking workbook (local .xlsx or a Google Sheets export) and
turns its two known layouts into Observation records.

  history  - header on row 1: Date | MM | Week | Day | J | A | M
             data from row 2
  backup   - row 0 holds the year above each block, row 1 repeats
             Date | J | A | M once per year, data from row 3

A blank or "###" date cell (a column too narrow to render the date)
continues from the previous valid date + 1 day.  Rows before the first
valid date and rows whose date cannot be parsed are dropped.
"""

from __future__ import annotations

import io
import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import requests

from constants import ENTITIES
from schemas import Observation

log = logging.getLogger("sheet_source")

GOOGLE_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=xlsx"
EXCEL_EPOCH = date(1899, 12, 30)

HISTORY_SHEET = "history"
BACKUP_SHEET = "backup"
HEADER_ROW = 1
HISTORY_FIRST_DATA_ROW = 2
BACKUP_FIRST_DATA_ROW = 3


class SheetSourceError(RuntimeError):
    """The workbook could not be fetched or read."""


# ─── Cell coercion ──────────────────────────────────────────

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return str(value).strip() == ""


def parse_sheet_date(value: Any) -> Optional[date]:
    """Coerce a cell to a date: datetime, ISO-ish string or Excel serial."""
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0:
            return None
        try:
            return EXCEL_EPOCH + timedelta(days=int(value))
        except (OverflowError, ValueError):
            return None
    try:
        ts = pd.to_datetime(str(value).strip())
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def parse_count(value: Any) -> int:
    """Non-numeric or blank cells count as 0; negatives are clamped to 0."""
    if _is_blank(value):
        return 0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0
    if n != n or n <= 0 or math.isinf(n):
        return 0
    return int(n)


# ─── Layout parsers ─────────────────────────────────────────

def _rows_to_observations(rows: Sequence[Sequence[Any]], date_col: int,
                          entity_cols: Dict[str, int], first_row: int) -> List[Observation]:
    out: List[Observation] = []
    last_valid: Optional[date] = None
    for i in range(first_row, len(rows)):
        row = rows[i]
        if row is None or all(_is_blank(c) for c in row):
            continue

        raw = row[date_col] if date_col < len(row) else None
        if _is_blank(raw) or "#" in str(raw):
            if last_valid is None:
                continue
            day = last_valid + timedelta(days=1)
        else:
            day = parse_sheet_date(raw)
            if day is None:
                log.debug("Dropping row %d: unparseable date %r", i, raw)
                continue
        last_valid = day

        for entity, col in entity_cols.items():
            value = row[col] if col < len(row) else None
            out.append(Observation(date=day, entity=entity, count=parse_count(value)))
    return out


def parse_history_sheet(df: pd.DataFrame, entities: Sequence[str] = ENTITIES) -> List[Observation]:
    """Parse the single-block history layout."""
    rows = df.values.tolist()
    if len(rows) <= HEADER_ROW:
        log.warning("No header row found in history sheet")
        return []
    header = [str(c).strip() if not _is_blank(c) else "" for c in rows[HEADER_ROW]]
    needed = ["Date", *entities]
    missing = [c for c in needed if c not in header]
    if missing:
        log.warning("History sheet is missing columns: %s", ", ".join(missing))
        return []

    date_col = header.index("Date")
    entity_cols = {e: header.index(e) for e in entities}
    log.info("History sheet columns - Date:%d %s", date_col,
             " ".join(f"{e}:{c}" for e, c in entity_cols.items()))
    return _rows_to_observations(rows, date_col, entity_cols, HISTORY_FIRST_DATA_ROW)


def parse_backup_sheet(df: pd.DataFrame, entities: Sequence[str] = ENTITIES) -> List[Observation]:
    """Parse the side-by-side yearly blocks of the backup layout."""
    rows = df.values.tolist()
    if len(rows) <= HEADER_ROW:
        return []
    header = [str(c).strip() if not _is_blank(c) else "" for c in rows[HEADER_ROW]]
    date_cols = [i for i, c in enumerate(header) if c == "Date"]
    log.info("Backup sheet has %d date column(s) at %s", len(date_cols), date_cols)

    out: List[Observation] = []
    for date_col in date_cols:
        entity_cols = {e: date_col + 1 + k for k, e in enumerate(entities)}
        out.extend(_rows_to_observations(rows, date_col, entity_cols, BACKUP_FIRST_DATA_ROW))
    return out


def parse_workbook(sheets: Dict[str, pd.DataFrame],
                   entities: Sequence[str] = ENTITIES) -> List[Observation]:
    """Observations from every known sheet; unknown sheets are ignored."""
    log.info("Available sheets: %s", list(sheets))
    observations: List[Observation] = []

    if HISTORY_SHEET in sheets:
        history = parse_history_sheet(sheets[HISTORY_SHEET], entities)
        log.info("Parsed %d observations from history sheet", len(history))
        observations.extend(history)
    else:
        log.warning('Sheet "%s" not found', HISTORY_SHEET)

    if BACKUP_SHEET in sheets:
        backup = parse_backup_sheet(sheets[BACKUP_SHEET], entities)
        log.info("Parsed %d observations from backup sheet", len(backup))
        observations.extend(backup)
    else:
        log.warning('Sheet "%s" not found', BACKUP_SHEET)

    return observations


# ─── Loading ────────────────────────────────────────────────

def read_workbook(source: Any) -> Dict[str, pd.DataFrame]:
    """Read every sheet raw (no header inference) from a path or buffer."""
    try:
        return pd.read_excel(source, sheet_name=None, header=None, engine="openpyxl")
    except (OSError, ValueError) as e:
        raise SheetSourceError(f"Could not read workbook: {e}") from e


def fetch_google_sheet(sheet_id: str, timeout: float = 30.0) -> Dict[str, pd.DataFrame]:
    """Download a Google Sheet as .xlsx and read it."""
    url = GOOGLE_EXPORT_URL.format(sheet_id=sheet_id)
    log.info("Fetching workbook %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SheetSourceError(f"Failed to fetch Google Sheet: {e}") from e
    return read_workbook(io.BytesIO(resp.content))


def load_observations(workbook_path: Optional[str] = None, sheet_id: Optional[str] = None,
                      timeout: float = 30.0,
                      entities: Sequence[str] = ENTITIES) -> List[Observation]:
    """Load observations from a local workbook, else from a Google Sheet."""
    if workbook_path:
        log.info("Reading workbook %s", workbook_path)
        sheets = read_workbook(workbook_path)
    elif sheet_id:
        sheets = fetch_google_sheet(sheet_id, timeout=timeout)
    else:
        raise SheetSourceError("No workbook source configured (set WORKBOOK_PATH or GOOGLE_SHEET_ID)")
    return parse_workbook(sheets, entities)
