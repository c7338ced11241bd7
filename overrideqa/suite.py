"""Suite orchestration: baseline reset followed by sequential verification."""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .clients import SuiteClients
from .config import SuiteConfig
from .errors import SuiteSetupError
from .models import TemplateScenario
from .snapshots import SnapshotStore
from .telemetry import NoOpTelemetry, TelemetrySink
from .verifier import Baseline, TemplateOverrideVerifier, VerificationResult


logger = logging.getLogger(__name__)

TEMPLATE_POST_TYPES = ("wp_template", "wp_template_part")


@dataclass(slots=True)
class SuiteReport:
    run_id: str
    baseline: Baseline
    results: List[VerificationResult] = field(default_factory=list)
    started_at: str = ""
    finished_at: str = ""

    @property
    def passed(self) -> bool:
        return bool(self.results) and all(result.passed for result in self.results)

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def failures(self) -> List[Dict[str, object]]:
        return [
            {
                "slug": result.slug,
                "check": outcome.name,
                "error_type": outcome.error_type,
                "error": outcome.error,
            }
            for result in self.results
            for outcome in result.failures
        ]

    def to_dict(self) -> Dict[str, object]:
        return {
            "run_id": self.run_id,
            "passed": self.passed,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "baseline": self.baseline.to_dict(),
            "scenarios": [result.to_dict() for result in self.results],
            "failures": self.failures(),
        }


class SuiteRunner:
    """Resets the site once, then verifies each scenario in order."""

    def __init__(
        self,
        clients: SuiteClients,
        config: SuiteConfig | None = None,
        *,
        telemetry: TelemetrySink | None = None,
        snapshots: SnapshotStore | None = None,
        run_id: str | None = None,
        verifier_factory: Optional[Callable[..., TemplateOverrideVerifier]] = None,
    ) -> None:
        self.clients = clients
        self.config = config or SuiteConfig()
        self.telemetry = telemetry or NoOpTelemetry()
        self.snapshots = snapshots or SnapshotStore(
            self.config.snapshot_dir, update=self.config.update_snapshots
        )
        self.run_id = run_id or self._generate_run_id()
        self.run_dir = Path(self.config.storage_root) / self.run_id
        self.verifier_factory = verifier_factory or TemplateOverrideVerifier

    def reset_baseline(self) -> Baseline:
        """Activate the block theme and delete all user-authored templates.

        Failures are fatal: no scenario can assume a clean baseline otherwise.
        """

        theme = self.config.theme
        deleted = 0
        try:
            self.clients.resetter.activate_theme(theme)
            for post_type in TEMPLATE_POST_TYPES:
                deleted += int(self.clients.resetter.delete_all_templates(post_type))
        except Exception as exc:
            logger.exception("Baseline reset failed")
            self._emit("suite.failed", {"phase": "baseline", "error": str(exc), "exception": exc.__class__.__name__})
            raise SuiteSetupError(f"baseline reset failed: {exc}") from exc

        baseline = Baseline(
            token=uuid.uuid4().hex,
            run_id=self.run_id,
            created_at=datetime.now(timezone.utc).isoformat(),
            theme=theme,
            deleted=deleted,
        )
        logger.info("Baseline %s ready (theme=%s, deleted=%d)", baseline.token, theme, deleted)
        self._emit("baseline.reset", {"token": baseline.token, "theme": theme, "deleted": deleted})
        return baseline

    def build_verifier(self, baseline: Baseline) -> TemplateOverrideVerifier:
        return self.verifier_factory(
            self.clients.editor,
            self.clients.listing,
            self.clients.public,
            baseline,
            config=self.config,
            snapshots=self.snapshots,
            telemetry=self.telemetry,
            evidence=self._evidence_hook() if self.clients.screenshot else None,
        )

    def run(self, scenarios: Iterable[TemplateScenario]) -> SuiteReport:
        scenario_list = list(scenarios)
        if not scenario_list:
            raise ValueError("at least one scenario is required")
        _ensure_unique_slugs(scenario_list)

        started_at = datetime.now(timezone.utc).isoformat()
        self._emit("suite.started", {"scenario_count": len(scenario_list)})
        baseline = self.reset_baseline()
        verifier = self.build_verifier(baseline)

        report = SuiteReport(run_id=self.run_id, baseline=baseline, started_at=started_at)
        for scenario in scenario_list:
            report.results.append(verifier.verify(scenario))
        report.finished_at = datetime.now(timezone.utc).isoformat()

        self._write_report(report)
        self._emit(
            "suite.completed",
            {
                "passed": report.passed,
                "scenario_count": len(report.results),
                "failure_count": len(report.failures()),
            },
        )
        logger.info(
            "Suite %s finished: %s (%d failing checks)",
            self.run_id,
            "passed" if report.passed else "failed",
            len(report.failures()),
        )
        return report

    # ---------------------------------------------------------------- helpers
    def _evidence_hook(self) -> Callable[[TemplateScenario, str], Sequence[str]]:
        screenshot = self.clients.screenshot
        evidence_dir = self.run_dir / "evidence"

        def capture(scenario: TemplateScenario, check: str) -> Sequence[str]:
            target = evidence_dir / f"{scenario.slug}-{check}.png"
            return [screenshot(target).relative_to(self.run_dir).as_posix()]

        return capture

    def _write_report(self, report: SuiteReport) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        path = self.run_dir / "report.json"
        path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        return path

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        entry = dict(payload)
        entry.setdefault("run_id", self.run_id)
        try:
            self.telemetry.emit(event, entry)
        except Exception:  # pragma: no cover - defensive logging
            logger.exception("telemetry emit failed for %s", event)

    @staticmethod
    def _generate_run_id() -> str:
        return f"RUN-{uuid.uuid4().hex[:12].upper()}"


def _ensure_unique_slugs(scenarios: Sequence[TemplateScenario]) -> None:
    seen: set[str] = set()
    for scenario in scenarios:
        if scenario.slug in seen:
            raise ValueError(f"duplicate scenario slug {scenario.slug}")
        seen.add(scenario.slug)


__all__ = ["SuiteRunner", "SuiteReport", "TEMPLATE_POST_TYPES"]
