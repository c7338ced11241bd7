"""In-memory stand-ins for the site editor, template listing and storefront."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from overrideqa.clients import (
    BaselineResetter,
    EditingSurfaceClient,
    ListingQueryClient,
    PublicSiteClient,
    SuiteClients,
)
from overrideqa.errors import TimeoutWaitingForReadiness
from overrideqa.models import (
    ContentBlock,
    Contributor,
    PublicRoute,
    RenderedContent,
    TemplateListingEntry,
    TemplateScenario,
)
from overrideqa.scenarios import DEFAULT_SCENARIOS

SITE_URL = "http://site.test"
PRODUCT_LINKS = {("product", "Woo Single #1"): f"{SITE_URL}/product/woo-single-1/"}


@dataclass
class FakeTemplate:
    scenario: TemplateScenario
    blocks: List[ContentBlock]
    paragraphs: List[str] = field(default_factory=list)
    customized: bool = False


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSite(EditingSurfaceClient, ListingQueryClient, PublicSiteClient, BaselineResetter):
    """Behaves like a healthy site unless a test flips one of its switches."""

    def __init__(self, scenarios: Optional[List[TemplateScenario]] = None, *, added_by: str = "woocommerce/woocommerce") -> None:
        self.templates: Dict[str, FakeTemplate] = {}
        self.routes: Dict[str, str] = {}
        for scenario in scenarios or DEFAULT_SCENARIOS:
            fallback = scenario.expected_fallback
            block = ContentBlock(
                name=fallback.name,
                attributes={
                    "template": fallback.template,
                    "title": fallback.title,
                    "placeholder": fallback.placeholder,
                },
            )
            group = ContentBlock(name="core/group", attributes={"tagName": "main"})
            self.templates[scenario.slug] = FakeTemplate(scenario=scenario, blocks=[group, block])
            self.routes[self.resolve_route(scenario.public_route)] = scenario.slug
        self.added_by = added_by
        self.calls: List[str] = []
        self.ready = True
        self.editor_renders = True
        self.publishes = True
        self.actions_after_queries = 0
        self.revert_actions = False
        self.theme: Optional[str] = None
        self.fail_reset: Optional[Exception] = None
        self.fail_on: Dict[str, Exception] = {}
        self.fail_after_save: Optional[Exception] = None
        self._open: Optional[str] = None
        self._draft: List[str] = []
        self._listing_queries = 0

    # ---------------------------------------------------------------- listing
    def list_templates(self, contributor: Contributor) -> List[TemplateListingEntry]:
        self.calls.append("list_templates")
        self._listing_queries += 1
        entries = []
        for template in self.templates.values():
            has_actions = template.customized and self._listing_queries > self.actions_after_queries
            if self.revert_actions:
                has_actions = False
            entries.append(
                TemplateListingEntry(
                    template_title=template.scenario.title,
                    added_by=self.added_by,
                    has_actions=has_actions,
                )
            )
        return entries

    # ----------------------------------------------------------------- editor
    def open_template(self, slug: str) -> None:
        self._maybe_fail("open_template")
        self.calls.append(f"open_template:{slug}")
        self._open = slug
        self._draft = list(self.templates[slug].paragraphs)

    def wait_until_content_ready(self) -> None:
        self.calls.append("wait_until_content_ready")
        if not self.ready:
            raise TimeoutWaitingForReadiness("editor canvas not ready after 0.1s")

    def list_content_blocks(self) -> List[ContentBlock]:
        template = self._current()
        paragraphs = [ContentBlock(name="core/paragraph", attributes={"content": text}) for text in self._draft]
        return list(template.blocks) + paragraphs

    def insert_block(self, name: str) -> None:
        self._maybe_fail("insert_block")
        self.calls.append(f"insert_block:{name}")
        self._draft.append("")

    def type_text(self, text: str) -> None:
        self._draft[-1] += text

    def save(self) -> None:
        self._maybe_fail("save")
        self.calls.append("save")
        template = self._current()
        template.paragraphs = list(self._draft)
        template.customized = True
        if self.fail_after_save is not None:
            raise self.fail_after_save

    def get_rendered_snapshot(self) -> RenderedContent:
        template = self._current()
        markup_lines = []
        for block in template.blocks:
            markup_lines.append(f"<!-- wp:{block.name} {json.dumps(block.attributes, sort_keys=True)} /-->")
        for text in self._draft:
            markup_lines.append(f"<!-- wp:paragraph -->\n<p>{text}</p>\n<!-- /wp:paragraph -->")
        paragraphs = list(self._draft) if self.editor_renders else []
        return RenderedContent(markup="\n".join(markup_lines), paragraphs=paragraphs)

    # ----------------------------------------------------------------- public
    def resolve_route(self, route: PublicRoute) -> str:
        if route.path is not None:
            return SITE_URL + route.path
        try:
            return PRODUCT_LINKS[(route.post_type, route.post_title)]
        except KeyError:
            raise LookupError(f"No {route.post_type} titled {route.post_title!r} found") from None

    def fetch_rendered_page(self, url: str) -> RenderedContent:
        self.calls.append(f"fetch:{url}")
        template = self.templates[self.routes[url]]
        paragraphs = list(template.paragraphs) if self.publishes else []
        markup = "".join(f"<p>{text}</p>" for text in paragraphs)
        return RenderedContent(markup=f"<html><body>{markup}</body></html>", paragraphs=paragraphs, url=url)

    # --------------------------------------------------------------- baseline
    def activate_theme(self, theme: str) -> None:
        self.calls.append(f"activate_theme:{theme}")
        if self.fail_reset is not None:
            raise self.fail_reset
        self.theme = theme

    def delete_all_templates(self, post_type: str) -> int:
        self.calls.append(f"delete_all_templates:{post_type}")
        if post_type != "wp_template":
            return 0
        deleted = 0
        for template in self.templates.values():
            if template.customized:
                template.customized = False
                template.paragraphs = []
                deleted += 1
        return deleted

    # -------------------------------------------------------------- internals
    def _current(self) -> FakeTemplate:
        assert self._open is not None, "open_template must be called first"
        return self.templates[self._open]

    def _maybe_fail(self, name: str) -> None:
        error = self.fail_on.get(name)
        if error is not None:
            raise error


def suite_clients(site: FakeSite, screenshots: Optional[List[Path]] = None) -> SuiteClients:
    screenshot = None
    if screenshots is not None:

        def screenshot(target: Path) -> Path:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"\x89PNG")
            screenshots.append(target)
            return target

    return SuiteClients(
        editor=site,
        listing=site,
        public=site,
        resetter=site,
        screenshot=screenshot,
    )
