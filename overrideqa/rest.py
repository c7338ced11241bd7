"""WordPress REST helpers used for baseline resets and permalink lookups."""
from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

TEMPLATE_ENDPOINTS = {
    "wp_template": "templates",
    "wp_template_part": "template-parts",
}


class RestError(RuntimeError):
    """Raised when the WordPress REST API rejects a request."""


class WordPressRestClient:
    """Thin client for the ``wp/v2`` namespace using an application password."""

    def __init__(
        self,
        base_url: str,
        username: str,
        application_password: Optional[str],
        *,
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        if application_password:
            self.session.auth = (username, application_password)
        self.session.headers.update({"Accept": "application/json"})

    # -------------------------------------------------------------- templates
    def list_templates(self, post_type: str = "wp_template") -> List[Dict[str, Any]]:
        endpoint = self._template_endpoint(post_type)
        payload = self._request("GET", endpoint, params={"context": "edit", "per_page": 100})
        if not isinstance(payload, list):
            raise RestError(f"Unexpected payload listing {post_type}: {payload!r}")
        return payload

    def delete_template(self, post_type: str, template_id: str) -> None:
        endpoint = f"{self._template_endpoint(post_type)}/{quote(template_id, safe='/')}"
        self._request("DELETE", endpoint, params={"force": "true"})

    def delete_all_templates(self, post_type: str = "wp_template") -> int:
        """Delete every user-authored template of ``post_type``.

        Plugin and theme defaults have no ``wp_id`` and cannot be deleted;
        removing the user-authored entries restores them.
        """

        deleted = 0
        for template in self.list_templates(post_type):
            if not template.get("wp_id"):
                continue
            template_id = str(template.get("id") or "")
            if not template_id:
                continue
            self.delete_template(post_type, template_id)
            logger.debug("Deleted %s %s", post_type, template_id)
            deleted += 1
        logger.info("Deleted %d user-authored %s entries", deleted, post_type)
        return deleted

    # ------------------------------------------------------------------ posts
    def find_post_link(self, post_type: str, title: str) -> str:
        payload = self._request("GET", post_type, params={"search": title, "per_page": 20})
        if not isinstance(payload, list):
            raise RestError(f"Unexpected payload searching {post_type}: {payload!r}")
        for post in payload:
            rendered = (post.get("title") or {}).get("rendered", "")
            if html.unescape(str(rendered)).strip() == title and post.get("link"):
                return str(post["link"])
        raise LookupError(f"No {post_type} titled {title!r} found")

    # -------------------------------------------------------------- internals
    def _template_endpoint(self, post_type: str) -> str:
        try:
            return TEMPLATE_ENDPOINTS[post_type]
        except KeyError:
            raise ValueError(f"Unsupported template post type: {post_type}") from None

    def _request(self, method: str, endpoint: str, *, params: Dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/wp-json/wp/v2/{endpoint.lstrip('/')}"
        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RestError(f"{method} {url} failed: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RestError(f"{method} {url} returned invalid JSON") from exc


__all__ = ["WordPressRestClient", "RestError", "TEMPLATE_ENDPOINTS"]
