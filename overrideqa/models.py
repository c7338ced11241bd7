"""Core data models for template override verification."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit


class ValidationError(Exception):
    """Raised when a scenario definition fails validation."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("Scenario validation failed")
        self.errors = errors

    def __str__(self) -> str:  # pragma: no cover - debug convenience
        return f"ValidationError(errors={self.errors!r})"


@dataclass(slots=True, frozen=True)
class Contributor:
    """Plugin or theme credited with registering a default template.

    The listing reports either the raw identifier or the parsed display name
    depending on how far the editor got resolving it; both denote the same
    contributor.
    """

    raw_id: str
    display_name: str

    def matches(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        normalized = value.strip()
        return normalized in {self.raw_id, self.display_name}


@dataclass(slots=True, frozen=True)
class FallbackBlock:
    """Legacy block expected inside an unmodified default template."""

    name: str
    title: str
    template: str
    placeholder: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "attributes": {
                "placeholder": self.placeholder,
                "template": self.template,
                "title": self.title,
            },
        }


@dataclass(slots=True, frozen=True)
class PublicRoute:
    """Either a site path or a ``post_type:title`` lookup key."""

    path: Optional[str] = None
    post_type: Optional[str] = None
    post_title: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "PublicRoute":
        raw = value.strip()
        parts = urlsplit(raw)
        if parts.scheme and parts.netloc:
            raise ValueError("public_route must be a site path such as '/shop', not a full URL")
        if raw.startswith("/"):
            return cls(path=raw)
        post_type, sep, post_title = raw.partition(":")
        if not sep or not post_type.strip() or not post_title.strip():
            raise ValueError("public_route must be a path starting with '/' or 'post_type:title'")
        return cls(post_type=post_type.strip(), post_title=post_title.strip())

    @property
    def is_lookup(self) -> bool:
        return self.path is None

    def __str__(self) -> str:
        if self.path is not None:
            return self.path
        return f"{self.post_type}:{self.post_title}"


@dataclass(slots=True, frozen=True)
class TemplateScenario:
    slug: str
    title: str
    expected_fallback: FallbackBlock
    public_route: PublicRoute

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "TemplateScenario":
        errors: Dict[str, str] = {}

        slug = str(raw.get("slug") or "").strip()
        if not slug:
            errors["slug"] = "slug is required"
        elif not _SLUG_PATTERN.match(slug):
            errors["slug"] = "slug may contain lowercase letters, numbers, '-' and '_'"

        title = str(raw.get("title") or "").strip()
        if not title:
            errors["title"] = "title is required"

        fallback_raw = raw.get("expected_fallback") or {}
        if not isinstance(fallback_raw, dict):
            errors["expected_fallback"] = "expected_fallback must be an object"
            fallback_raw = {}
        attributes = fallback_raw.get("attributes") or {}
        if not isinstance(attributes, dict):
            errors["expected_fallback.attributes"] = "attributes must be an object"
            attributes = {}
        block_name = str(fallback_raw.get("name") or LEGACY_BLOCK_NAME)
        template_key = str(attributes.get("template") or slug)
        if not template_key:
            errors["expected_fallback.attributes.template"] = "template key is required"
        fallback = FallbackBlock(
            name=block_name,
            title=str(attributes.get("title") or ""),
            template=template_key,
            placeholder=str(attributes.get("placeholder") or template_key),
        )

        route_raw = raw.get("public_route")
        route = PublicRoute(path="/")
        if not isinstance(route_raw, str) or not route_raw.strip():
            errors["public_route"] = "public_route is required"
        else:
            try:
                route = PublicRoute.parse(route_raw)
            except ValueError as exc:
                errors["public_route"] = str(exc)

        if errors:
            raise ValidationError(errors)

        return cls(slug=slug, title=title, expected_fallback=fallback, public_route=route)

    def to_dict(self) -> Dict[str, object]:
        return {
            "slug": self.slug,
            "title": self.title,
            "expected_fallback": self.expected_fallback.to_dict(),
            "public_route": str(self.public_route),
        }


@dataclass(slots=True, frozen=True)
class TemplateListingEntry:
    template_title: str
    added_by: str
    has_actions: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TemplateListingEntry":
        return cls(
            template_title=str(row.get("templateTitle") or "").strip(),
            added_by=str(row.get("addedBy") or "").strip(),
            has_actions=bool(row.get("hasActions")),
        )


@dataclass(slots=True)
class ContentBlock:
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RenderedContent:
    """Rendered markup plus the visible paragraph texts extracted from it."""

    markup: str
    paragraphs: List[str] = field(default_factory=list)
    url: Optional[str] = None

    def contains_paragraph(self, text: str) -> bool:
        return any(text in paragraph for paragraph in self.paragraphs)


LEGACY_BLOCK_NAME = "woocommerce/legacy-template"

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:[-_][a-z0-9]+)*$")


__all__ = [
    "Contributor",
    "ContentBlock",
    "FallbackBlock",
    "LEGACY_BLOCK_NAME",
    "PublicRoute",
    "RenderedContent",
    "TemplateListingEntry",
    "TemplateScenario",
    "ValidationError",
]
