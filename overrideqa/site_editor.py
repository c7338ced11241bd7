"""Playwright-backed clients for the WordPress site editor and storefront."""
from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Any, List
from urllib.parse import urlencode

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .clients import BaselineResetter, EditingSurfaceClient, ListingQueryClient, PublicSiteClient
from .config import SuiteConfig
from .errors import TimeoutWaitingForReadiness
from .models import ContentBlock, Contributor, PublicRoute, RenderedContent, TemplateListingEntry
from .rest import TEMPLATE_ENDPOINTS, WordPressRestClient

logger = logging.getLogger(__name__)

SITE_EDITOR_PATH = "/wp-admin/site-editor.php"

SELECTORS = {
    "canvas": 'iframe[name="editor-canvas"]',
    "canvas_root": ".is-root-container",
    "paragraph": '[data-type="core/paragraph"]',
    "inserter_toggle": 'button[aria-label="Toggle block inserter"]',
    "inserter_search": ".block-editor-inserter__search input",
    "inserter_item": ".block-editor-block-types-list__item",
    "save_button": ".edit-site-save-button__button",
    "save_idle": ".edit-site-save-button__button:not(.is-busy)",
    "entities_save": ".editor-entities-saved-states__save-button",
    "list_rows": ".edit-site-list-table-row",
    "public_paragraph": "p",
}

_LIST_ROWS_SCRIPT = """
(rows) => rows.map((row) => {
    const cells = row.querySelectorAll('.edit-site-list-table-column');
    const heading = row.querySelector('[data-wp-component="Heading"], h3, h4');
    const titleSource = heading || cells[0];
    return {
        templateTitle: titleSource ? titleSource.innerText.trim() : '',
        addedBy: cells.length > 1 ? cells[1].innerText.trim() : '',
        hasActions: Boolean(row.querySelector('[aria-label="Actions"]')),
    };
})
"""

_BLOCKS_READY_SCRIPT = """
() => {
    const store = window.wp && window.wp.data && window.wp.data.select('core/block-editor');
    return Boolean(store) && store.getBlocks().length > 0;
}
"""

_FLATTEN_BLOCKS_SCRIPT = """
() => {
    const flatten = (blocks) => blocks.flatMap((block) => [
        { name: block.name, attributes: block.attributes },
        ...flatten(block.innerBlocks || []),
    ]);
    return flatten(window.wp.data.select('core/block-editor').getBlocks());
}
"""

_EDITOR_CONTENT_SCRIPT = """
() => {
    const site = window.wp.data.select('core/edit-site');
    const postId = site.getEditedPostId();
    const postType = site.getEditedPostType();
    const record = window.wp.data.select('core').getEditedEntityRecord('postType', postType, postId);
    if (!record) {
        return '';
    }
    if (typeof record.content === 'function') {
        return record.content(record);
    }
    if (record.blocks) {
        return window.wp.blocks.__unstableSerializeAndClean(record.blocks);
    }
    return record.content || '';
}
"""

_DISMISS_WELCOME_GUIDE_SCRIPT = """
() => {
    const preferences = window.wp && window.wp.data && window.wp.data.dispatch('core/preferences');
    if (preferences && preferences.set) {
        preferences.set('core/edit-site', 'welcomeGuide', false);
        preferences.set('core/edit-site', 'welcomeGuideStyles', false);
    }
}
"""

_API_FETCH_SCRIPT = """
async ({ path, method }) => window.wp.apiFetch({ path, method })
"""


def site_editor_url(config: SuiteConfig, **query: str) -> str:
    suffix = f"?{urlencode(query)}" if query else ""
    return config.url(SITE_EDITOR_PATH) + suffix


class SiteEditorClient(EditingSurfaceClient, ListingQueryClient):
    """Editing surface and template listing over one Playwright page."""

    def __init__(self, page: Any, config: SuiteConfig) -> None:
        self.page = page
        self.config = config

    # ---------------------------------------------------------------- listing
    def list_templates(self, contributor: Contributor) -> List[TemplateListingEntry]:
        """Return every listed template; the caller judges the contributor."""

        self.page.goto(site_editor_url(self.config, postType="wp_template"), wait_until="domcontentloaded")
        self._dismiss_welcome_guide()
        self._wait_for(SELECTORS["list_rows"], "template listing rows")
        rows = self.page.eval_on_selector_all(SELECTORS["list_rows"], _LIST_ROWS_SCRIPT)
        entries = [TemplateListingEntry.from_row(row) for row in rows if isinstance(row, dict)]
        entries = [entry for entry in entries if entry.template_title]
        logger.debug(
            "Listing has %d templates, %d from %s",
            len(entries),
            sum(1 for entry in entries if contributor.matches(entry.added_by)),
            contributor.display_name,
        )
        return entries

    # ----------------------------------------------------------------- editor
    def open_template(self, slug: str) -> None:
        post_id = f"{self.config.template_namespace}//{slug}"
        url = site_editor_url(self.config, postId=post_id, postType="wp_template")
        logger.debug("Opening template %s", post_id)
        self.page.goto(url, wait_until="domcontentloaded")
        self._dismiss_welcome_guide()

    def wait_until_content_ready(self) -> None:
        self._wait_for(SELECTORS["canvas"], "editor canvas")
        canvas = self.page.frame_locator(SELECTORS["canvas"])
        try:
            canvas.locator(SELECTORS["canvas_root"]).first.wait_for(timeout=self.config.readiness_timeout_ms)
            self.page.wait_for_function(_BLOCKS_READY_SCRIPT, timeout=self.config.readiness_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutWaitingForReadiness(
                f"editor content not ready after {self.config.readiness_timeout}s"
            ) from exc

    def list_content_blocks(self) -> List[ContentBlock]:
        raw = self.page.evaluate(_FLATTEN_BLOCKS_SCRIPT)
        return [
            ContentBlock(name=str(item.get("name")), attributes=dict(item.get("attributes") or {}))
            for item in raw
            if isinstance(item, dict)
        ]

    def insert_block(self, name: str) -> None:
        self.page.click(SELECTORS["inserter_toggle"])
        self.page.fill(SELECTORS["inserter_search"], name)
        item = self.page.locator(SELECTORS["inserter_item"], has_text=name).first
        item.click(timeout=self.config.readiness_timeout_ms)

    def type_text(self, text: str) -> None:
        self.page.keyboard.type(text)

    def save(self) -> None:
        self.page.click(SELECTORS["save_button"])
        self.page.click(SELECTORS["entities_save"])
        self._wait_for(SELECTORS["save_idle"], "template save")

    def get_rendered_snapshot(self) -> RenderedContent:
        markup = self.page.evaluate(_EDITOR_CONTENT_SCRIPT)
        canvas = self.page.frame_locator(SELECTORS["canvas"])
        paragraphs = canvas.locator(SELECTORS["paragraph"]).all_inner_texts()
        return RenderedContent(markup=str(markup or ""), paragraphs=paragraphs, url=self.page.url)

    def screenshot(self, target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        self.page.screenshot(path=str(target), full_page=True)
        return target

    # -------------------------------------------------------------- internals
    def _wait_for(self, selector: str, description: str) -> None:
        try:
            self.page.wait_for_selector(selector, timeout=self.config.readiness_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutWaitingForReadiness(
                f"{description} not ready after {self.config.readiness_timeout}s"
            ) from exc

    def _dismiss_welcome_guide(self) -> None:
        try:
            self.page.evaluate(_DISMISS_WELCOME_GUIDE_SCRIPT)
        except PlaywrightError:
            logger.debug("Welcome guide preference store unavailable")


class BrowserRestClient:
    """Calls the REST API from inside wp-admin using ``wp.apiFetch``.

    Used when no application password is configured; the logged-in cookie
    and nonce of the admin page authenticate the requests.
    """

    def __init__(self, page: Any, config: SuiteConfig) -> None:
        self.page = page
        self.config = config

    def delete_all_templates(self, post_type: str = "wp_template") -> int:
        endpoint = TEMPLATE_ENDPOINTS.get(post_type)
        if endpoint is None:
            raise ValueError(f"Unsupported template post type: {post_type}")
        self._ensure_admin_page()
        templates = self._fetch(f"/wp/v2/{endpoint}?context=edit&per_page=100")
        deleted = 0
        for template in templates or []:
            if not template.get("wp_id"):
                continue
            self._fetch(f"/wp/v2/{endpoint}/{template['id']}?force=true", method="DELETE")
            deleted += 1
        logger.info("Deleted %d user-authored %s entries", deleted, post_type)
        return deleted

    def find_post_link(self, post_type: str, title: str) -> str:
        self._ensure_admin_page()
        posts = self._fetch(f"/wp/v2/{post_type}?{urlencode({'search': title, 'per_page': 20})}")
        for post in posts or []:
            rendered = (post.get("title") or {}).get("rendered", "")
            if html.unescape(str(rendered)).strip() == title and post.get("link"):
                return str(post["link"])
        raise LookupError(f"No {post_type} titled {title!r} found")

    def _fetch(self, path: str, method: str = "GET") -> Any:
        return self.page.evaluate(_API_FETCH_SCRIPT, {"path": path, "method": method})

    def _ensure_admin_page(self) -> None:
        if SITE_EDITOR_PATH in self.page.url:
            return
        self.page.goto(site_editor_url(self.config, postType="wp_template"), wait_until="domcontentloaded")
        self.page.wait_for_function(
            "() => Boolean(window.wp && window.wp.apiFetch)",
            timeout=self.config.readiness_timeout_ms,
        )


class StorefrontClient(PublicSiteClient):
    """Resolves public routes and reads the rendered storefront pages."""

    def __init__(self, page: Any, config: SuiteConfig, rest: Any) -> None:
        self.page = page
        self.config = config
        self.rest = rest

    def resolve_route(self, route: PublicRoute) -> str:
        if route.path is not None:
            return self.config.url(route.path)
        return self.rest.find_post_link(route.post_type, route.post_title)

    def fetch_rendered_page(self, url: str) -> RenderedContent:
        self.page.goto(url, wait_until="domcontentloaded")
        paragraphs = self.page.locator(SELECTORS["public_paragraph"]).all_inner_texts()
        return RenderedContent(markup=self.page.content(), paragraphs=paragraphs, url=self.page.url)


class WordPressBaseline(BaselineResetter):
    """Theme activation through wp-admin and template cleanup through REST."""

    def __init__(self, page: Any, config: SuiteConfig, rest: Any) -> None:
        self.page = page
        self.config = config
        self.rest = rest

    def activate_theme(self, theme: str) -> None:
        self.page.goto(self.config.url("/wp-admin/themes.php"), wait_until="domcontentloaded")
        active = self.page.locator(f'.theme.active[data-slug="{theme}"]')
        if active.count():
            logger.info("Theme %s already active", theme)
            return
        activate = self.page.locator(f'.theme[data-slug="{theme}"] .button.activate')
        if not activate.count():
            raise LookupError(f"Theme {theme} is not installed")
        activate.first.click()
        self.page.wait_for_selector(
            f'.theme.active[data-slug="{theme}"]', timeout=self.config.readiness_timeout_ms
        )
        logger.info("Activated theme %s", theme)

    def delete_all_templates(self, post_type: str) -> int:
        return self.rest.delete_all_templates(post_type)


def build_rest_client(page: Any, config: SuiteConfig) -> Any:
    """Prefer application-password REST; fall back to in-browser apiFetch."""

    if config.application_password:
        return WordPressRestClient(
            config.base_url,
            config.admin_user,
            config.application_password,
            timeout_seconds=config.request_timeout,
        )
    return BrowserRestClient(page, config)


__all__ = [
    "SELECTORS",
    "SiteEditorClient",
    "StorefrontClient",
    "BrowserRestClient",
    "WordPressBaseline",
    "build_rest_client",
    "site_editor_url",
]
