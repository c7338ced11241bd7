"""Capability interfaces the verifier consumes."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .models import ContentBlock, Contributor, PublicRoute, RenderedContent, TemplateListingEntry


class EditingSurfaceClient:
    """Drives the template editing surface."""

    def open_template(self, slug: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def wait_until_content_ready(self) -> None:  # pragma: no cover - interface only
        """Block until the editing surface has loaded template content.

        Implementations raise ``TimeoutWaitingForReadiness`` when the bound
        elapses.
        """

        raise NotImplementedError

    def list_content_blocks(self) -> List[ContentBlock]:  # pragma: no cover - interface only
        raise NotImplementedError

    def insert_block(self, name: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def type_text(self, text: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def save(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def get_rendered_snapshot(self) -> RenderedContent:  # pragma: no cover - interface only
        raise NotImplementedError


class ListingQueryClient:
    def list_templates(self, contributor: Contributor) -> List[TemplateListingEntry]:  # pragma: no cover
        raise NotImplementedError


class PublicSiteClient:
    def resolve_route(self, route: PublicRoute) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    def fetch_rendered_page(self, url: str) -> RenderedContent:  # pragma: no cover - interface only
        raise NotImplementedError


class BaselineResetter:
    """Puts the site back into a known state before a suite run."""

    def activate_theme(self, theme: str) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def delete_all_templates(self, post_type: str) -> int:  # pragma: no cover - interface only
        raise NotImplementedError


@dataclass(slots=True)
class SuiteClients:
    """Collaborators one suite run drives, all sharing one browser session."""

    editor: EditingSurfaceClient
    listing: ListingQueryClient
    public: PublicSiteClient
    resetter: BaselineResetter
    screenshot: Optional[Callable[[Path], Path]] = None


__all__ = [
    "EditingSurfaceClient",
    "ListingQueryClient",
    "PublicSiteClient",
    "BaselineResetter",
    "SuiteClients",
]
