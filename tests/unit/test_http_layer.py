# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import httpx

from vulnscope.config import ScannerSettings
from vulnscope.errors import ErrorCategory
from vulnscope.http import create_default_http_client
from vulnscope.http.adapters import StubHttpClient
from vulnscope.http.httpx_client import HttpxClient
from vulnscope.http.models import HttpRequest, HttpResponse


def _client(handler, settings=None):
    settings = settings or ScannerSettings(user_agent="UA/1.0")
    return HttpxClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_httpx_client_success_and_headers():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, text="created")

    async def scenario():
        client = _client(handler)
        try:
            return await client.request(HttpRequest(url="http://svc/api", method="POST", headers={"X": "1"}, body="payload"))
        finally:
            await client.aclose()

    resp = asyncio.run(scenario())
    assert resp.ok is True
    assert resp.is_success is True
    assert resp.status_code == 201
    assert resp.reason_phrase == "Created"
    assert resp.text == "created"
    assert resp.meta["body_truncated"] is False
    assert seen[0].method == "POST"
    assert seen[0].headers["User-Agent"] == "UA/1.0"
    assert seen[0].headers["X"] == "1"
    assert seen[0].content == b"payload"


def test_httpx_client_http_error_status_still_reaches_server():
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(503)

    resp = asyncio.run(_client(handler).request(HttpRequest(url="http://svc/")))
    assert resp.ok is True
    assert resp.is_success is False
    assert resp.status_code == 503
    assert resp.reason_phrase == "Service Unavailable"


def test_httpx_client_truncates_large_bodies():
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(200, content=b"x" * 64)

    settings = ScannerSettings(max_body_bytes=10)
    resp = asyncio.run(_client(handler, settings).request(HttpRequest(url="http://svc/")))
    assert resp.ok is True
    assert len(resp.content) == 10
    assert resp.meta["body_truncated"] is True


def test_httpx_client_converts_transport_errors():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    refused = asyncio.run(_client(refuse).request(HttpRequest(url="http://svc/")))
    assert refused.ok is False
    assert refused.status_code is None
    assert refused.error_message == "connection refused"
    assert refused.error_type == "ConnectError"
    assert refused.meta["error_category"] == ErrorCategory.CONNECTION_ERROR.value

    timed_out = asyncio.run(_client(slow).request(HttpRequest(url="http://svc/")))
    assert timed_out.ok is False
    assert timed_out.meta["error_category"] == ErrorCategory.TIMEOUT.value


def test_http_response_json_helper():
    assert HttpResponse(ok=True, text='{"a": 1}').json() == {"a": 1}


def test_stub_http_client_records_requests_and_defaults_to_failure():
    stub = StubHttpClient()
    stub.add("post", "http://svc/api/scan", HttpResponse(ok=True, status_code=200, text="{}"))

    async def scenario():
        hit = await stub.request(HttpRequest(url="http://svc/api/scan", method="POST"))
        miss = await stub.request(HttpRequest(url="http://svc/other"))
        await stub.aclose()
        return hit, miss

    hit, miss = asyncio.run(scenario())
    assert hit.status_code == 200
    assert miss.ok is False
    assert len(stub.requests) == 2
    assert stub.closed is True


def test_create_default_http_client_uses_settings():
    settings = ScannerSettings(timeout=3.0, user_agent="UA/2")
    client = create_default_http_client(settings)
    assert isinstance(client, HttpxClient)
    assert client.settings is settings
    asyncio.run(client.aclose())
