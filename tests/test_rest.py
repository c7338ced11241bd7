import json

import pytest
import requests

from overrideqa.rest import RestError, WordPressRestClient


class StubResponse:
    def __init__(self, payload=None, status_code: int = 200, raw: bytes | None = None) -> None:
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        else:
            self.content = b"" if payload is None else json.dumps(payload).encode("utf-8")

    def json(self):
        return json.loads(self.content.decode("utf-8"))

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class StubSession:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.headers: dict = {}
        self.auth = None
        self.calls: list[tuple] = []

    def request(self, method, url, params=None, timeout=None):  # noqa: D401 - stub for tests
        self.calls.append((method, url, params, timeout))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(session: StubSession, password: str | None = "app pass") -> WordPressRestClient:
    return WordPressRestClient(
        "http://site.test/",
        "admin",
        password,
        timeout_seconds=5,
        session=session,
    )


def test_client_configures_session_auth() -> None:
    session = StubSession([])
    _client(session)
    assert session.auth == ("admin", "app pass")
    assert session.headers["Accept"] == "application/json"

    anonymous = StubSession([])
    _client(anonymous, password=None)
    assert anonymous.auth is None


def test_delete_all_templates_only_removes_user_entries() -> None:
    session = StubSession(
        [
            StubResponse(
                [
                    {"id": "woocommerce/woocommerce//single-product", "wp_id": None},
                    {"id": "emptytheme//archive-product", "wp_id": 12},
                    {"id": "emptytheme//taxonomy-product_cat", "wp_id": 13},
                ]
            ),
            StubResponse({"deleted": True}),
            StubResponse({"deleted": True}),
        ]
    )

    deleted = _client(session).delete_all_templates("wp_template")

    assert deleted == 2
    methods = [(method, url) for method, url, _, _ in session.calls]
    assert methods == [
        ("GET", "http://site.test/wp-json/wp/v2/templates"),
        ("DELETE", "http://site.test/wp-json/wp/v2/templates/emptytheme//archive-product"),
        ("DELETE", "http://site.test/wp-json/wp/v2/templates/emptytheme//taxonomy-product_cat"),
    ]
    assert session.calls[1][2] == {"force": "true"}
    assert all(timeout == 5 for *_, timeout in session.calls)


def test_template_parts_use_their_own_endpoint() -> None:
    session = StubSession([StubResponse([])])

    assert _client(session).delete_all_templates("wp_template_part") == 0
    assert session.calls[0][1] == "http://site.test/wp-json/wp/v2/template-parts"


def test_unknown_post_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        _client(StubSession([])).list_templates("wp_block")


def test_http_errors_become_rest_errors() -> None:
    session = StubSession([StubResponse({"code": "rest_forbidden"}, status_code=403)])
    with pytest.raises(RestError) as excinfo:
        _client(session).list_templates()
    assert "403" in str(excinfo.value)


def test_connection_errors_become_rest_errors() -> None:
    session = StubSession([requests.ConnectionError("refused")])
    with pytest.raises(RestError):
        _client(session).list_templates()


def test_invalid_json_is_reported() -> None:
    session = StubSession([StubResponse(raw=b"<html>not json</html>")])
    with pytest.raises(RestError) as excinfo:
        _client(session).list_templates()
    assert "invalid JSON" in str(excinfo.value)


def test_find_post_link_matches_unescaped_title() -> None:
    session = StubSession(
        [
            StubResponse(
                [
                    {"title": {"rendered": "Woo Single #10"}, "link": "http://site.test/product/woo-single-10/"},
                    {"title": {"rendered": "Woo Single &#035;1"}, "link": "http://site.test/product/woo-single-1/"},
                ]
            )
        ]
    )

    link = _client(session).find_post_link("product", "Woo Single #1")

    assert link == "http://site.test/product/woo-single-1/"
    assert session.calls[0][1] == "http://site.test/wp-json/wp/v2/product"
    assert session.calls[0][2]["search"] == "Woo Single #1"


def test_find_post_link_raises_lookup_error_when_missing() -> None:
    session = StubSession([StubResponse([])])
    with pytest.raises(LookupError):
        _client(session).find_post_link("product", "Woo Single #1")
