"""wp-admin login and encrypted storage-state persistence."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .config import SuiteConfig

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when logging into wp-admin fails."""


USERNAME_SELECTORS = ("#user_login", "input[name=log]")
PASSWORD_SELECTORS = ("#user_pass", "input[name=pwd]")
SUBMIT_SELECTORS = ("#wp-submit", "input[type=submit]")
LOGGED_IN_SELECTOR = "#wpadminbar"


class StorageEncryptor:
    """Encrypts storage state payloads before persistence."""

    def encrypt_and_write(self, plaintext: str, target: Path) -> Path:  # pragma: no cover - interface
        raise NotImplementedError

    def decrypt(self, source: Path) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class FernetStorageEncryptor(StorageEncryptor):
    """Encrypts storage state using Fernet symmetric encryption."""

    def __init__(self, key: str) -> None:
        from cryptography.fernet import Fernet

        key_bytes = key.encode("utf-8") if isinstance(key, str) else key
        self._fernet = Fernet(key_bytes)

    def encrypt_and_write(self, plaintext: str, target: Path) -> Path:
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(token)
        return target

    def decrypt(self, source: Path) -> str:
        payload = source.read_bytes()
        return self._fernet.decrypt(payload).decode("utf-8")


def generate_encryption_key() -> str:
    """Generate a new Fernet-compatible encryption key."""

    from cryptography.fernet import Fernet

    return Fernet.generate_key().decode("utf-8")


class StorageStateCache:
    """Keeps the logged-in browser storage state encrypted on disk.

    Without a key nothing is persisted and every session logs in again.
    """

    def __init__(self, config: SuiteConfig, encryptor: StorageEncryptor | None = None) -> None:
        self.path = Path(config.storage_root) / "_auth" / config.storage_state_filename
        if encryptor is None and config.storage_state_key:
            encryptor = FernetStorageEncryptor(config.storage_state_key)
        self.encryptor = encryptor

    @property
    def enabled(self) -> bool:
        return self.encryptor is not None

    def load(self) -> Optional[Dict[str, Any]]:
        if self.encryptor is None or not self.path.exists():
            return None
        from cryptography.fernet import InvalidToken

        try:
            return json.loads(self.encryptor.decrypt(self.path))
        except (InvalidToken, json.JSONDecodeError):
            logger.warning("Discarding unreadable storage state at %s", self.path)
            return None

    def store(self, state: Dict[str, Any]) -> Optional[Path]:
        if self.encryptor is None:
            return None
        return self.encryptor.encrypt_and_write(json.dumps(state), self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def login(page: Any, config: SuiteConfig) -> None:
    """Log into wp-admin through the login form."""

    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

    login_url = config.url("/wp-login.php")
    try:
        page.goto(login_url, wait_until="domcontentloaded")
        _fill_first_selector(page, USERNAME_SELECTORS, config.admin_user)
        _fill_first_selector(page, PASSWORD_SELECTORS, config.admin_password)
        _click_first_selector(page, SUBMIT_SELECTORS)
        page.wait_for_selector(LOGGED_IN_SELECTOR, timeout=config.readiness_timeout_ms)
    except PlaywrightTimeoutError as exc:
        raise AuthenticationError(f"Login as {config.admin_user} did not reach wp-admin") from exc
    except PlaywrightError as exc:
        raise AuthenticationError(f"Unable to load {login_url}: {exc}") from exc
    logger.info("Logged into %s as %s", config.base_url, config.admin_user)


def is_logged_in(page: Any, config: SuiteConfig) -> bool:
    from playwright.sync_api import Error as PlaywrightError

    admin_url = config.url("/wp-admin/")
    try:
        page.goto(admin_url, wait_until="domcontentloaded")
    except PlaywrightError as exc:
        raise AuthenticationError(f"Unable to load {admin_url}: {exc}") from exc
    return "wp-login.php" not in page.url


def _fill_first_selector(page: Any, selectors: Iterable[str], value: str) -> None:
    for selector in selectors:
        if page.locator(selector).count():
            page.fill(selector, value)
            return
    raise AuthenticationError(f"Unable to fill any selector from {tuple(selectors)}")


def _click_first_selector(page: Any, selectors: Iterable[str]) -> None:
    for selector in selectors:
        if page.locator(selector).count():
            page.click(selector)
            return
    raise AuthenticationError(f"Unable to click any selector from {tuple(selectors)}")


__all__ = [
    "AuthenticationError",
    "FernetStorageEncryptor",
    "StorageEncryptor",
    "StorageStateCache",
    "generate_encryption_key",
    "is_logged_in",
    "login",
]
