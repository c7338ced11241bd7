"""Template override verification protocol.

Each scenario walks a realistic user journey against one default template:

1. ``default_available``: the contributor's default is listed without actions.
2. ``fallback_content``: the unmodified template holds exactly one legacy
   block with the expected template key (plus a structural snapshot).
3. ``customization_actions``: after adding a paragraph and saving, the
   listing exposes the actions menu.
4. ``customization_visible``: the paragraph renders both in the editor and
   on the public page routed to the template.

Checks run in order and each records its own outcome, so one scenario can
report several independent failures.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .clients import EditingSurfaceClient, ListingQueryClient, PublicSiteClient
from .config import SuiteConfig
from .errors import (
    ActionAffordanceNotSet,
    CustomizationNotVisible,
    MissingDefaultTemplate,
    UnexpectedFallbackContent,
    VerificationError,
)
from .models import TemplateListingEntry, TemplateScenario
from .snapshots import SnapshotStore
from .telemetry import NoOpTelemetry, TelemetrySink


logger = logging.getLogger(__name__)

CHECK_DEFAULT_AVAILABLE = "default_available"
CHECK_FALLBACK_CONTENT = "fallback_content"
CHECK_CUSTOMIZATION_ACTIONS = "customization_actions"
CHECK_CUSTOMIZATION_VISIBLE = "customization_visible"

CHECK_NAMES = (
    CHECK_DEFAULT_AVAILABLE,
    CHECK_FALLBACK_CONTENT,
    CHECK_CUSTOMIZATION_ACTIONS,
    CHECK_CUSTOMIZATION_VISIBLE,
)

EvidenceHook = Callable[[TemplateScenario, str], Sequence[str]]


@dataclass(slots=True, frozen=True)
class Baseline:
    """Token proving the suite baseline reset completed."""

    token: str
    run_id: str
    created_at: str
    theme: str
    deleted: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "token": self.token,
            "run_id": self.run_id,
            "created_at": self.created_at,
            "theme": self.theme,
            "deleted": self.deleted,
        }


@dataclass(slots=True)
class CheckOutcome:
    name: str
    passed: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    surface: Optional[str] = None
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    evidence: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "name": self.name,
            "passed": self.passed,
            "duration_ms": self.duration_ms,
            "details": dict(self.details),
        }
        if not self.passed:
            payload["error"] = self.error
            payload["error_type"] = self.error_type
        if self.surface:
            payload["surface"] = self.surface
        if self.evidence:
            payload["evidence"] = list(self.evidence)
        return payload


@dataclass(slots=True)
class VerificationResult:
    slug: str
    title: str
    baseline: str
    checks: List[CheckOutcome] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.checks) and all(check.passed for check in self.checks)

    @property
    def failures(self) -> List[CheckOutcome]:
        return [check for check in self.checks if not check.passed]

    def check(self, name: str) -> CheckOutcome:
        for outcome in self.checks:
            if outcome.name == name:
                return outcome
        raise KeyError(name)

    def to_dict(self) -> Dict[str, object]:
        return {
            "slug": self.slug,
            "title": self.title,
            "baseline": self.baseline,
            "passed": self.passed,
            "checks": [check.to_dict() for check in self.checks],
        }


class TemplateOverrideVerifier:
    """Runs the four ordered checks for a scenario against one baseline."""

    def __init__(
        self,
        editor: EditingSurfaceClient,
        listing: ListingQueryClient,
        public: PublicSiteClient,
        baseline: Baseline,
        *,
        config: SuiteConfig | None = None,
        snapshots: SnapshotStore | None = None,
        telemetry: TelemetrySink | None = None,
        evidence: EvidenceHook | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not isinstance(baseline, Baseline):
            raise TypeError("a Baseline from the suite reset phase is required")
        self.editor = editor
        self.listing = listing
        self.public = public
        self.baseline = baseline
        self.config = config or SuiteConfig()
        self.snapshots = snapshots
        self.telemetry = telemetry or NoOpTelemetry()
        self.evidence = evidence
        self._clock = clock
        self._sleep = sleep
        self._customized: set[str] = set()

    @property
    def customized(self) -> frozenset[str]:
        return frozenset(self._customized)

    def verify(self, scenario: TemplateScenario) -> VerificationResult:
        result = VerificationResult(
            slug=scenario.slug,
            title=scenario.title,
            baseline=self.baseline.token,
        )
        logger.info("Verifying template %s (%s)", scenario.slug, scenario.title)
        for name, check in self._checks():
            result.checks.append(self._run_check(scenario, name, check))
        self._emit(
            "scenario.completed",
            {
                "slug": scenario.slug,
                "passed": result.passed,
                "failed_checks": ",".join(outcome.name for outcome in result.failures),
            },
        )
        return result

    # ------------------------------------------------------------------ checks
    def check_default_available(self, scenario: TemplateScenario) -> Dict[str, Any]:
        entries = self.listing.list_templates(self.config.contributor)
        matches = [entry for entry in entries if entry.template_title == scenario.title]
        if not matches:
            titles = sorted({entry.template_title for entry in entries})
            raise MissingDefaultTemplate(
                f"no template titled {scenario.title!r} in the listing (saw {titles})"
            )
        if len(matches) > 1:
            raise MissingDefaultTemplate(
                f"expected exactly one template titled {scenario.title!r}, found {len(matches)}"
            )
        entry = matches[0]
        self._require_contributor(entry, MissingDefaultTemplate)

        # Once customized under this baseline the entry keeps its actions menu.
        expected_actions = scenario.slug in self._customized
        if entry.has_actions != expected_actions:
            if expected_actions:
                raise ActionAffordanceNotSet(
                    f"{scenario.title!r} lost its actions menu after being customized"
                )
            raise MissingDefaultTemplate(
                f"{scenario.title!r} already has actions; the default template is not pristine"
            )
        return {"added_by": entry.added_by, "has_actions": entry.has_actions}

    def check_fallback_content(self, scenario: TemplateScenario) -> Dict[str, Any]:
        expected = scenario.expected_fallback
        self.editor.open_template(scenario.slug)
        self.editor.wait_until_content_ready()

        blocks = [block for block in self.editor.list_content_blocks() if block.name == expected.name]
        if len(blocks) != 1:
            raise UnexpectedFallbackContent(
                f"expected exactly one {expected.name} block in {scenario.slug}, found {len(blocks)}"
            )
        attributes = blocks[0].attributes
        template_key = attributes.get("template")
        if template_key != expected.template:
            raise UnexpectedFallbackContent(
                f"{expected.name} template is {template_key!r}, expected {expected.template!r}"
            )
        # Only the template key is reliable; other attributes are informational.
        for attribute, wanted in (("title", expected.title), ("placeholder", expected.placeholder)):
            observed = attributes.get(attribute)
            if observed is not None and observed != wanted:
                logger.debug(
                    "%s %s attribute is %r (expected %r)", scenario.slug, attribute, observed, wanted
                )

        details: Dict[str, Any] = {"block": expected.name, "template": template_key}
        if self.snapshots is not None:
            snapshot = self.editor.get_rendered_snapshot()
            comparison = self.snapshots.match(scenario.slug, snapshot.markup)
            details["snapshot"] = comparison.status
            if not comparison.ok:
                diff = "\n".join(comparison.diff[:40])
                raise UnexpectedFallbackContent(
                    f"template content differs from snapshot {comparison.path}:\n{diff}"
                )
        return details

    def check_customization_actions(self, scenario: TemplateScenario) -> Dict[str, Any]:
        marker = self.config.customization_text
        self.editor.open_template(scenario.slug)
        self.editor.wait_until_content_ready()
        self.editor.insert_block("Paragraph")
        self.editor.type_text(marker)
        # A save can land on the server even when its confirmation times out.
        self._customized.add(scenario.slug)
        self.editor.save()

        last_seen: List[TemplateListingEntry] = []

        def find_entry() -> Optional[TemplateListingEntry]:
            entries = [
                entry
                for entry in self.listing.list_templates(self.config.contributor)
                if entry.template_title == scenario.title
            ]
            last_seen[:] = entries
            for entry in entries:
                if entry.has_actions and self.config.contributor.matches(entry.added_by):
                    return entry
            return None

        entry = self._poll(find_entry, self.config.visibility_timeout)
        if entry is None:
            observed = [(item.added_by, item.has_actions) for item in last_seen]
            raise ActionAffordanceNotSet(
                f"{scenario.title!r} still has no actions menu after customization (observed {observed})"
            )
        return {"added_by": entry.added_by, "has_actions": entry.has_actions}

    def check_customization_visible(self, scenario: TemplateScenario) -> Dict[str, Any]:
        marker = self.config.customization_text
        editor_visible, editor_reason = self._check_surface(
            "editor", lambda: self._editor_shows(scenario, marker)
        )
        url: Optional[str] = None

        def public_shows() -> bool:
            nonlocal url
            url = self.public.resolve_route(scenario.public_route)
            return self._poll(
                lambda: self.public.fetch_rendered_page(url).contains_paragraph(marker),
                self.config.visibility_timeout,
            )

        public_visible, public_reason = self._check_surface("public", public_shows)
        details: Dict[str, Any] = {"editor": editor_visible, "public": public_visible, "url": url}

        if editor_visible and public_visible:
            return details
        if not editor_visible and not public_visible:
            surface = "both"
        elif not editor_visible:
            surface = "editor"
        else:
            surface = "public"
        reasons = [reason for reason in (editor_reason, public_reason) if reason]
        message = f"{marker!r} not visible on {surface} surface for {scenario.slug}"
        if reasons:
            message = f"{message} ({'; '.join(reasons)})"
        raise CustomizationNotVisible(surface, message)

    # ---------------------------------------------------------------- helpers
    def _checks(self) -> Tuple[Tuple[str, Callable[[TemplateScenario], Dict[str, Any]]], ...]:
        return (
            (CHECK_DEFAULT_AVAILABLE, self.check_default_available),
            (CHECK_FALLBACK_CONTENT, self.check_fallback_content),
            (CHECK_CUSTOMIZATION_ACTIONS, self.check_customization_actions),
            (CHECK_CUSTOMIZATION_VISIBLE, self.check_customization_visible),
        )

    def _run_check(
        self,
        scenario: TemplateScenario,
        name: str,
        check: Callable[[TemplateScenario], Dict[str, Any]],
    ) -> CheckOutcome:
        start_time = time.monotonic()
        try:
            details = check(scenario) or {}
        except VerificationError as exc:
            outcome = CheckOutcome(
                name=name,
                passed=False,
                error=str(exc),
                error_type=exc.__class__.__name__,
                surface=getattr(exc, "surface", None),
            )
        except Exception as exc:
            logger.exception("Check %s for %s raised unexpectedly", name, scenario.slug)
            outcome = CheckOutcome(
                name=name,
                passed=False,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
        else:
            outcome = CheckOutcome(name=name, passed=True, details=details)
        outcome.duration_ms = round((time.monotonic() - start_time) * 1000, 2)

        if outcome.passed:
            logger.info("%s/%s passed", scenario.slug, name)
            self._emit("check.passed", {"slug": scenario.slug, "check": name, "duration_ms": outcome.duration_ms})
        else:
            logger.warning("%s/%s failed: %s", scenario.slug, name, outcome.error)
            outcome.evidence = self._capture_evidence(scenario, name)
            self._emit(
                "check.failed",
                {
                    "slug": scenario.slug,
                    "check": name,
                    "error": outcome.error,
                    "error_type": outcome.error_type,
                    "surface": outcome.surface,
                },
            )
        return outcome

    def _editor_shows(self, scenario: TemplateScenario, marker: str) -> bool:
        self.editor.open_template(scenario.slug)
        self.editor.wait_until_content_ready()
        return self._poll(
            lambda: self.editor.get_rendered_snapshot().contains_paragraph(marker),
            self.config.visibility_timeout,
        )

    def _check_surface(self, surface: str, read: Callable[[], Any]) -> Tuple[bool, Optional[str]]:
        try:
            visible = bool(read())
        except Exception as exc:
            logger.warning("Checking %s surface failed", surface, exc_info=True)
            return False, f"{surface}: {exc.__class__.__name__}: {exc}"
        if not visible:
            return False, f"{surface}: timed out after {self.config.visibility_timeout}s"
        return True, None

    def _poll(self, read: Callable[[], Any], timeout: float) -> Any:
        deadline = self._clock() + timeout
        while True:
            value = read()
            if value:
                return value
            if self._clock() >= deadline:
                return None
            self._sleep(self.config.poll_interval)

    def _require_contributor(self, entry: TemplateListingEntry, error: type[VerificationError]) -> None:
        contributor = self.config.contributor
        if not contributor.matches(entry.added_by):
            raise error(
                f"{entry.template_title!r} added by {entry.added_by!r}, "
                f"expected {contributor.raw_id!r} or {contributor.display_name!r}"
            )

    def _capture_evidence(self, scenario: TemplateScenario, name: str) -> List[str]:
        if self.evidence is None:
            return []
        try:
            return [str(path) for path in self.evidence(scenario, name)]
        except Exception:  # pragma: no cover - evidence is best effort
            logger.warning("Evidence capture failed for %s/%s", scenario.slug, name, exc_info=True)
            return []

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        entry = dict(payload)
        entry.setdefault("run_id", self.baseline.run_id)
        entry.setdefault("baseline", self.baseline.token)
        try:
            self.telemetry.emit(event, entry)
        except Exception:  # pragma: no cover - defensive logging
            logger.exception("telemetry emit failed for %s", event)


__all__ = [
    "Baseline",
    "CheckOutcome",
    "VerificationResult",
    "TemplateOverrideVerifier",
    "CHECK_NAMES",
    "CHECK_DEFAULT_AVAILABLE",
    "CHECK_FALLBACK_CONTENT",
    "CHECK_CUSTOMIZATION_ACTIONS",
    "CHECK_CUSTOMIZATION_VISIBLE",
]
