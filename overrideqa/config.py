"""Runtime configuration for suite runs."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .models import Contributor


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


CUSTOMIZED_STRING = "My awesome customization"


@dataclass(slots=True)
class SuiteConfig:
    """Configuration shared by the verifier, the browser session and the CLI."""

    base_url: str = field(default_factory=lambda: os.getenv("OVERRIDEQA_BASE_URL", "http://localhost:8889"))
    admin_user: str = field(default_factory=lambda: os.getenv("OVERRIDEQA_ADMIN_USER", "admin"))
    admin_password: str = field(default_factory=lambda: os.getenv("OVERRIDEQA_ADMIN_PASSWORD", "password"))
    application_password: Optional[str] = field(
        default_factory=lambda: os.getenv("OVERRIDEQA_APPLICATION_PASSWORD")
    )
    theme: str = field(default_factory=lambda: os.getenv("OVERRIDEQA_THEME", "emptytheme"))
    template_namespace: str = "woocommerce/woocommerce"
    contributor: Contributor = field(
        default_factory=lambda: Contributor(raw_id="woocommerce/woocommerce", display_name="WooCommerce")
    )
    customization_text: str = CUSTOMIZED_STRING
    readiness_timeout: float = field(default_factory=lambda: _env_float("OVERRIDEQA_READINESS_TIMEOUT", 30.0))
    visibility_timeout: float = field(default_factory=lambda: _env_float("OVERRIDEQA_VISIBILITY_TIMEOUT", 30.0))
    poll_interval: float = 0.5
    request_timeout: float = 15.0
    playwright_browser: str = field(default_factory=lambda: os.getenv("OVERRIDEQA_BROWSER", "chromium"))
    playwright_headless: bool = field(default_factory=lambda: _env_bool("OVERRIDEQA_HEADLESS", True))
    storage_root: Path = field(
        default_factory=lambda: Path(os.getenv("OVERRIDEQA_STORAGE_ROOT", "artifacts/runs"))
    )
    snapshot_dir: Path = field(
        default_factory=lambda: Path(os.getenv("OVERRIDEQA_SNAPSHOT_DIR", "tests/e2e/__snapshots__"))
    )
    update_snapshots: bool = field(default_factory=lambda: _env_bool("OVERRIDEQA_UPDATE_SNAPSHOTS", False))
    storage_state_key: Optional[str] = field(
        default_factory=lambda: os.getenv("OVERRIDEQA_STORAGE_STATE_KEY")
    )
    storage_state_filename: str = "storageState.json.enc"
    capture_evidence: bool = True

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    @property
    def readiness_timeout_ms(self) -> float:
        return self.readiness_timeout * 1000


__all__ = ["SuiteConfig", "CUSTOMIZED_STRING"]
