"""Tests unitaires du fetch HTTP (statut 200 strict, libération du corps, annulation)."""

from __future__ import annotations

import httpx
import pytest

from cartooncrawl.core.errors import CrawlCancelled, HttpStatusError, NetworkError
from cartooncrawl.core.utils import http as http_utils
from cartooncrawl.core.utils.http import HttpSession, fetch_html


class _TrackingStream(httpx.SyncByteStream):
    def __init__(self, body: bytes):
        self._body = body
        self.iterated = False
        self.close_calls = 0

    def __iter__(self):
        self.iterated = True
        yield self._body

    def close(self) -> None:
        self.close_calls += 1


def _client_with(stream: _TrackingStream, status_code: int, seen: list[httpx.Request] | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, stream=stream, headers={"Content-Type": "text/html"})

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_fetch_html_returns_body_and_releases_it_once() -> None:
    stream = _TrackingStream(b"<html>ok</html>")
    with _client_with(stream, 200) as client:
        html = fetch_html("https://example.test/page", client=client)

    assert html == "<html>ok</html>"
    assert stream.iterated
    assert stream.close_calls == 1


def test_fetch_html_404_raises_without_reading_body() -> None:
    stream = _TrackingStream(b"not found")
    with _client_with(stream, 404) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            fetch_html("https://example.test/missing", client=client)

    assert exc_info.value.code == 404
    assert exc_info.value.url == "https://example.test/missing"
    assert not stream.iterated
    assert stream.close_calls == 1


@pytest.mark.parametrize("status_code", [201, 204, 301, 500])
def test_fetch_html_rejects_every_non_200_status(status_code: int) -> None:
    stream = _TrackingStream(b"")
    with _client_with(stream, status_code) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            fetch_html("https://example.test/page", client=client)
    assert exc_info.value.code == status_code


def test_fetch_html_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError) as exc_info:
            fetch_html("https://example.test/down", client=client)

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_fetch_html_cancelled_before_request_sends_nothing() -> None:
    seen: list[httpx.Request] = []
    stream = _TrackingStream(b"<html></html>")
    with _client_with(stream, 200, seen) as client:
        with pytest.raises(CrawlCancelled):
            fetch_html("https://example.test/page", client=client, is_cancelled=lambda: True)

    assert seen == []


def test_fetch_html_sends_user_agent() -> None:
    seen: list[httpx.Request] = []
    stream = _TrackingStream(b"<html></html>")
    with _client_with(stream, 200, seen) as client:
        fetch_html("https://example.test/page", client=client, user_agent="CartoonCrawl/test")

    assert seen[0].headers["User-Agent"] == "CartoonCrawl/test"


def test_fetch_html_without_client_creates_and_closes_one(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[httpx.Client] = []
    real_client = httpx.Client

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(lambda request: httpx.Response(200, text="<p>hi</p>"))
        client = real_client(*args, **kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(http_utils.httpx, "Client", factory)

    assert fetch_html("https://example.test/page", timeout_s=5.0) == "<p>hi</p>"
    assert len(created) == 1
    assert created[0].is_closed


def test_http_session_with_cancel_combines_tokens() -> None:
    outer = {"cancelled": False}
    extra = {"cancelled": False}
    session = HttpSession(is_cancelled=lambda: outer["cancelled"]).with_cancel(lambda: extra["cancelled"])

    assert not session.is_cancelled()
    extra["cancelled"] = True
    assert session.is_cancelled()
    extra["cancelled"] = False
    outer["cancelled"] = True
    assert session.is_cancelled()


def test_fetch_html_unusable_url_becomes_network_error() -> None:
    seen: list[httpx.Request] = []
    stream = _TrackingStream(b"")
    with _client_with(stream, 200, seen) as client:
        with pytest.raises(NetworkError) as exc_info:
            fetch_html("https://www.lacartoons.comjavascript:void(0)", client=client)

    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)
    assert seen == []
