"""Browser session lifecycle for suite runs."""
from __future__ import annotations

import logging
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from .auth import StorageStateCache, is_logged_in, login
from .clients import SuiteClients
from .config import SuiteConfig
from .errors import SuiteSetupError
from .site_editor import SiteEditorClient, StorefrontClient, WordPressBaseline, build_rest_client

logger = logging.getLogger(__name__)


class BrowserSession:
    """One Playwright browser, context and page shared by every scenario.

    Scenarios must run sequentially against a session; the editor, listing
    and storefront clients all drive the same page.
    """

    def __init__(self, config: SuiteConfig, *, state_cache: StorageStateCache | None = None) -> None:
        self.config = config
        self.state_cache = state_cache or StorageStateCache(config)
        self._playwright: Any = None
        self.browser: Any = None
        self.context: Any = None
        self.page: Any = None

    def __enter__(self) -> "BrowserSession":
        try:
            self.start()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def start(self) -> None:
        """Launch the browser and make sure the page is logged into wp-admin.

        Launch failures raise ``SuiteSetupError``; login failures raise
        ``AuthenticationError``.
        """

        storage_state = self.state_cache.load()
        try:
            self._playwright = sync_playwright().start()
            browser_type = getattr(self._playwright, self.config.playwright_browser)
            self.browser = browser_type.launch(headless=self.config.playwright_headless)
            self.context = self.browser.new_context(
                storage_state=storage_state,
                viewport={"width": 1280, "height": 900},
                ignore_https_errors=True,
            )
            self.context.set_default_timeout(self.config.readiness_timeout_ms)
            self.page = self.context.new_page()
        except PlaywrightError as exc:
            raise SuiteSetupError(
                f"unable to launch {self.config.playwright_browser}: {exc}"
            ) from exc
        if storage_state is None or not is_logged_in(self.page, self.config):
            login(self.page, self.config)
            stored = self.state_cache.store(self.context.storage_state())
            if stored:
                logger.info("Stored encrypted storage state at %s", stored)

    def close(self) -> None:
        if self.browser is not None:
            self.browser.close()
            self.browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def clients(self) -> SuiteClients:
        if self.page is None:
            raise RuntimeError("BrowserSession.start() must be called first")
        rest = build_rest_client(self.page, self.config)
        editor = SiteEditorClient(self.page, self.config)
        return SuiteClients(
            editor=editor,
            listing=editor,
            public=StorefrontClient(self.page, self.config, rest),
            resetter=WordPressBaseline(self.page, self.config, rest),
            screenshot=editor.screenshot if self.config.capture_evidence else None,
        )


__all__ = ["BrowserSession"]
