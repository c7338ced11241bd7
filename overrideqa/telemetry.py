"""Telemetry sink interfaces for suite events."""
from __future__ import annotations

from typing import Dict, List, Tuple


class TelemetrySink:
    """Base class for sinks that consume structured suite events."""

    def emit(self, event: str, payload: Dict[str, object]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


class NoOpTelemetry(TelemetrySink):
    def emit(self, event: str, payload: Dict[str, object]) -> None:  # pragma: no cover - intentionally empty
        return


class RecordingTelemetry(TelemetrySink):
    """Keeps events in memory; handy for pytest assertions."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, object]]] = []

    def emit(self, event: str, payload: Dict[str, object]) -> None:
        self.events.append((event, dict(payload)))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


__all__ = ["TelemetrySink", "NoOpTelemetry", "RecordingTelemetry"]
