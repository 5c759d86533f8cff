"""Refresh pipeline orchestration with explicit health signaling."""

from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from activity_engine import ActivityEngine
from engine_config import EngineConfig, SourceConfig
from pipeline.insight_builder import format_insight_lines
from result_store import ResultStore
from schemas import AnalyticsResult, Observation
from sheet_source import load_observations

log = logging.getLogger("refresh_pipeline")

Loader = Callable[[], List[Observation]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshPipeline:
    """Fetch observations, run the engine, publish the result."""

    def __init__(self, store: ResultStore,
                 engine_config: Optional[EngineConfig] = None,
                 source_config: Optional[SourceConfig] = None,
                 loader: Optional[Loader] = None):
        self.store = store
        self.engine_config = engine_config or EngineConfig()
        self.source_config = source_config or SourceConfig()
        self.loader = loader or self._load_from_source
        self._run_lock = threading.Lock()
        self.last_status: Optional[Dict[str, Any]] = None
        self.last_refresh: Optional[datetime] = None

    def run(self, now: Optional[date] = None) -> Dict[str, Any]:
        """Execute one refresh and return a machine-readable status record.

        A failed run leaves the previously published result in place.  A run
        that is already in progress makes this call return immediately with
        status "skipped".
        """
        if not self._run_lock.acquire(blocking=False):
            log.info("Refresh already in progress; skipping")
            return {"overall_status": "skipped", "degraded_reasons": ["refresh_in_progress"]}

        status: Dict[str, Any] = {
            "run_date": (now or date.today()).isoformat(),
            "run_started_at": _utcnow().isoformat(),
            "fetch_ok": False,
            "analysis_ok": False,
            "publish_ok": False,
            "n_observations": 0,
            "n_days": 0,
            "degraded_reasons": [],
        }
        result: Optional[AnalyticsResult] = None

        try:
            log.info("Step 1/3: Loading observations...")
            try:
                observations = self.loader()
                status["fetch_ok"] = True
                status["n_observations"] = len(observations)
            except Exception as e:
                log.exception("Fetching observations failed: %s", e)
                status["degraded_reasons"].append("fetch_failed")
                return status

            log.info("Step 2/3: Running activity engine on %d observations...", len(observations))
            try:
                result = ActivityEngine(self.engine_config).run(observations, now=now)
                status["analysis_ok"] = True
                status["n_days"] = len(result.data_points)
            except Exception as e:
                log.exception("Activity engine failed: %s", e)
                status["degraded_reasons"].append("analysis_failed")
                return status

            if not result.data_points:
                status["degraded_reasons"].append("no_observations")

            log.info("Step 3/3: Publishing result...")
            self.store.set(result)
            status["publish_ok"] = True
            self.last_refresh = _utcnow()
            return status
        finally:
            status["run_finished_at"] = _utcnow().isoformat()
            status["overall_status"] = self._overall_status(status)
            self.last_status = status
            self._write_pipeline_status_file(status)
            self._print_summary(result, status)
            self._run_lock.release()

    def refresh_status(self, at: Optional[datetime] = None) -> Dict[str, Any]:
        """Last/next refresh times for the status endpoint."""
        at = at or _utcnow()
        interval = self.source_config.refresh_interval_minutes
        last = self.last_refresh
        nxt = last + timedelta(minutes=interval) if last and interval > 0 else None
        remaining = max(0.0, (nxt - at).total_seconds()) if nxt else None
        return {
            "lastRefresh": last.isoformat() if last else None,
            "nextRefresh": nxt.isoformat() if nxt else None,
            "timeUntilNextRefresh": remaining,
            "status": (self.last_status or {}).get("overall_status", "never_run"),
        }

    def _load_from_source(self) -> List[Observation]:
        sc = self.source_config
        return load_observations(
            workbook_path=sc.workbook_path,
            sheet_id=sc.sheet_id,
            timeout=sc.fetch_timeout,
            entities=self.engine_config.entities,
        )

    @staticmethod
    def _overall_status(status: Dict[str, Any]) -> str:
        if not status.get("fetch_ok", False):
            return "failed"
        if not status.get("analysis_ok", False) or not status.get("publish_ok", False):
            return "failed"
        if status.get("degraded_reasons"):
            return "degraded"
        return "success"

    def _write_pipeline_status_file(self, status: Dict[str, Any]) -> None:
        path = self.source_config.status_path
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(status, fh, indent=2, ensure_ascii=False)
            log.info("Pipeline status written to %s", path)
        except OSError as e:
            log.warning("Failed to write pipeline status file: %s", e)

    @staticmethod
    def _print_summary(result: Optional[AnalyticsResult], status: Dict[str, Any]) -> None:
        log.info("REFRESH SUMMARY:")
        log.info("  Observations: %d", status.get("n_observations", 0))
        log.info("  Timeline days: %d", status.get("n_days", 0))
        reasons = status.get("degraded_reasons") or []
        if reasons:
            log.info("  Degraded reasons: %s", ", ".join(reasons))
        log.info("  Overall status: %s", status.get("overall_status"))
        if result is not None:
            for line in format_insight_lines(result.insights, limit=3):
                log.info("  %s", line)


class RefreshScheduler:
    """Runs a pipeline every *interval_minutes* on a daemon thread."""

    def __init__(self, pipeline: RefreshPipeline, interval_minutes: int):
        self.pipeline = pipeline
        self.interval_minutes = interval_minutes
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.interval_minutes <= 0:
            log.info("Periodic refresh disabled (interval=%s)", self.interval_minutes)
            return
        self._thread = threading.Thread(target=self._loop, name="refresh-scheduler", daemon=True)
        self._thread.start()
        log.info("Periodic refresh every %d minute(s)", self.interval_minutes)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_minutes * 60):
            try:
                self.pipeline.run()
            except Exception as e:
                log.warning("Scheduled refresh raised: %s", e)
