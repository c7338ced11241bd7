"""Command-line entry point that runs the template override suite once."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from playwright.sync_api import Error as PlaywrightError

from .auth import AuthenticationError
from .config import SuiteConfig
from .errors import SuiteSetupError
from .models import TemplateScenario, ValidationError
from .observability import SuiteObservability
from .scenarios import DEFAULT_SCENARIOS, load_scenarios
from .suite import SuiteReport, SuiteRunner

EXIT_OK = 0
EXIT_CHECKS_FAILED = 1
EXIT_SETUP_FAILED = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="overrideqa",
        description="Verify plugin template defaults and user overrides in the site editor",
    )
    parser.add_argument(
        "--scenarios",
        type=Path,
        help="JSON file with a scenario table (default: built-in WooCommerce templates)",
    )
    parser.add_argument("--base-url", help="Site under test (default: $OVERRIDEQA_BASE_URL)")
    parser.add_argument(
        "--storage-root",
        type=Path,
        help="Directory where run reports are written (default: artifacts/runs)",
    )
    parser.add_argument("--snapshot-dir", type=Path, help="Directory holding template snapshots")
    parser.add_argument("--update-snapshots", action="store_true", help="Rewrite mismatching snapshots")
    parser.add_argument("--headed", action="store_true", help="Run the browser with a visible window")
    parser.add_argument("--only", action="append", default=[], metavar="SLUG", help="Run only these slugs")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SuiteConfig:
    config = SuiteConfig()
    if args.base_url:
        config.base_url = args.base_url
    if args.storage_root:
        config.storage_root = args.storage_root
    if args.snapshot_dir:
        config.snapshot_dir = args.snapshot_dir
    if args.update_snapshots:
        config.update_snapshots = True
    if args.headed:
        config.playwright_headless = False
    return config


def select_scenarios(args: argparse.Namespace) -> List[TemplateScenario]:
    scenarios = load_scenarios(args.scenarios) if args.scenarios else list(DEFAULT_SCENARIOS)
    if args.only:
        wanted = set(args.only)
        unknown = wanted - {scenario.slug for scenario in scenarios}
        if unknown:
            raise ValidationError({"only": f"unknown scenario slugs: {', '.join(sorted(unknown))}"})
        scenarios = [scenario for scenario in scenarios if scenario.slug in wanted]
    return scenarios


def _run_with_browser(config: SuiteConfig, scenarios: List[TemplateScenario]) -> SuiteReport:
    from .browser import BrowserSession

    with BrowserSession(config) as session:
        runner = SuiteRunner(
            session.clients(),
            config,
            telemetry=SuiteObservability(config.storage_root),
        )
        return runner.run(scenarios)


def main(
    argv: list[str] | None = None,
    *,
    execute: Optional[Callable[[SuiteConfig, List[TemplateScenario]], SuiteReport]] = None,
) -> int:
    logging.basicConfig(
        level=os.getenv("OVERRIDEQA_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args(argv)
    config = build_config(args)
    try:
        scenarios = select_scenarios(args)
    except FileNotFoundError:
        print(f"Scenario file not found: {args.scenarios}", file=sys.stderr)
        return EXIT_SETUP_FAILED
    except ValidationError as exc:
        print("Invalid scenario table. See validation errors below:", file=sys.stderr)
        for field_name, message in exc.errors.items():
            print(f" - {field_name}: {message}", file=sys.stderr)
        return EXIT_SETUP_FAILED

    runner = execute or _run_with_browser
    try:
        report = runner(config, scenarios)
    except (SuiteSetupError, AuthenticationError, PlaywrightError) as exc:
        print(f"Suite setup failed: {exc}", file=sys.stderr)
        return EXIT_SETUP_FAILED

    print(json.dumps(report.to_dict(), indent=2))
    return EXIT_OK if report.passed else EXIT_CHECKS_FAILED


def run() -> None:  # pragma: no cover - console script shim
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover
    run()
