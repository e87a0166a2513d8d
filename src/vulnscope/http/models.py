# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by the scanning service client."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

Headers = dict[str, str]


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: Headers | None = None
    body: bytes | str | None = None
    timeout: float | None = None


@dataclass
class HttpResponse:
    """
    Normalized HTTP response.

    ``ok`` reports whether the exchange reached the server at all; HTTP error
    statuses are still ``ok=True`` with ``status_code`` set. Transport failures
    carry ``error_message``/``error_type`` and no status code.
    """

    ok: bool
    status_code: int | None = None
    reason_phrase: str = ""
    headers: Headers = field(default_factory=dict)
    text: str = ""
    content: bytes = b""
    url: str | None = None
    error_message: str | None = None
    error_type: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.ok and self.status_code is not None and 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON; raises ValueError when it is not JSON."""
        return json.loads(self.text)
