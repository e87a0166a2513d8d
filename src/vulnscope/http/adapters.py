# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process HttpClient implementations."""

from __future__ import annotations

import asyncio

from .client import HttpClient
from .models import HttpRequest, HttpResponse


class StubHttpClient(HttpClient):
    """
    Deterministic, programmable HttpClient for tests.

    Responses are keyed by ``(method, url)``. When ``gate`` is set every request
    waits on it before answering, which lets callers observe the in-flight window.
    """

    def __init__(
        self,
        responses: dict[tuple[str, str], HttpResponse] | None = None,
        *,
        gate: asyncio.Event | None = None,
    ):
        self._responses = responses or {}
        self.gate = gate
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, method: str, url: str, response: HttpResponse) -> None:
        self._responses[(method.upper(), url)] = response

    async def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        key = (request.method.upper(), request.url)
        if key in self._responses:
            return self._responses[key]
        return HttpResponse(ok=False, status_code=None, error_message="No stubbed response configured", error_type="LookupError")

    async def aclose(self) -> None:
        self.closed = True
