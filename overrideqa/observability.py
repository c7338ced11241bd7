"""Structured observability sink for suite telemetry."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .telemetry import TelemetrySink


logger = logging.getLogger(__name__)


class SuiteObservability(TelemetrySink):
    """Aggregates telemetry into JSONL logs and a metrics summary per run."""

    def __init__(self, storage_root: Path | str = "artifacts/runs") -> None:
        self.storage_root = Path(storage_root)
        self._metrics_cache: Dict[str, Dict[str, Any]] = {}

    # ------------------------------------------------------------------ public
    def emit(self, event: str, payload: Dict[str, object]) -> None:
        run_id = self._extract_run_id(payload)
        if not run_id:
            logger.debug("Telemetry event %s missing run_id; dropping", event)
            return

        entry = dict(payload)
        entry.setdefault("run_id", run_id)
        entry.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        entry["event"] = event
        self._append_log(run_id, entry)

        metrics = self._metrics_cache.setdefault(run_id, {"run_id": run_id})
        self._update_metrics(metrics, entry)
        self._persist_metrics(run_id, metrics)

    def metrics(self, run_id: str) -> Dict[str, Any]:
        return dict(self._metrics_cache.get(run_id, {}))

    # ---------------------------------------------------------------- internal
    def _append_log(self, run_id: str, entry: Dict[str, object]) -> None:
        logs_path = self._logs_path(run_id)
        logs_path.parent.mkdir(parents=True, exist_ok=True)
        with logs_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry) + "\n")

    def _update_metrics(self, metrics: Dict[str, Any], entry: Dict[str, object]) -> None:
        event = entry.get("event", "")
        if event == "baseline.reset":
            metrics["baseline"] = {
                "token": entry.get("token"),
                "theme": entry.get("theme"),
                "deleted": entry.get("deleted"),
            }
        elif event in {"check.passed", "check.failed"}:
            checks = metrics.setdefault("checks", {})
            name = str(entry.get("check", "unknown"))
            counts = checks.setdefault(name, {"passed": 0, "failed": 0})
            key = "passed" if event == "check.passed" else "failed"
            counts[key] = int(counts.get(key, 0)) + 1
            if event == "check.failed":
                errors = metrics.setdefault("error_types", {})
                error_type = str(entry.get("error_type") or "unknown")
                errors[error_type] = int(errors.get(error_type, 0)) + 1
        elif event == "scenario.completed":
            scenarios = metrics.setdefault("scenarios", {})
            scenarios[str(entry.get("slug"))] = "passed" if entry.get("passed") else "failed"
        elif event == "suite.completed":
            suite = metrics.setdefault("suite", {})
            suite["status"] = "Passed" if entry.get("passed") else "Failed"
            suite["completed_at"] = entry.get("timestamp")
        elif event == "suite.failed":
            suite = metrics.setdefault("suite", {})
            suite["status"] = "Aborted"
            suite["error"] = entry.get("error")

    def _persist_metrics(self, run_id: str, metrics: Dict[str, Any]) -> None:
        metrics_path = self._logs_path(run_id).parent / "metrics.json"
        metrics_path.write_text(json.dumps(metrics, indent=2), encoding="utf-8")

    def _logs_path(self, run_id: str) -> Path:
        return self.storage_root / run_id / "observability" / "logs.jsonl"

    @staticmethod
    def _extract_run_id(payload: Dict[str, object]) -> str:
        for key in ("run_id", "runId", "id"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        return ""


__all__ = ["SuiteObservability"]
