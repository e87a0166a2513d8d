# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client for the external scanning service."""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import ScannerSettings, load_settings
from .errors import (
    MALFORMED_RESPONSE_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    ErrorCategory,
    RequestErrorKind,
    ScanRequestError,
    error_category_to_reason,
)
from .http.client import HttpClient, create_default_http_client
from .http.models import HttpRequest, HttpResponse
from .models.scan import ScanRequest, ScanResult

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
# Valid JSON can still be hostile: deep nesting or huge numbers raise outside ValueError.
_DECODE_ERRORS = (ValueError, TypeError, OverflowError, RecursionError)


def _server_message(response: HttpResponse) -> str | None:
    """Return the ``message`` field of an error body, if the body carries one."""
    if not response.text:
        return None
    try:
        data: Any = response.json()
    except _DECODE_ERRORS:
        return None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def error_message_for(response: HttpResponse) -> str:
    """
    Derive the user-facing message for a non-2xx response.

    Preference order: the server's ``message`` field, then the status text.
    """
    message = _server_message(response)
    if message:
        return message
    status_text = response.reason_phrase or (str(response.status_code) if response.status_code is not None else "")
    return f"Server error: {status_text}".rstrip()


class ScanServiceClient:
    """
    Issues scan requests against ``POST {base_url}/api/scan``.

    Exactly one HTTP exchange per call; failures are never retried and always
    surface as ``ScanRequestError``.
    """

    def __init__(self, http_client: HttpClient | None = None, settings: ScannerSettings | None = None):
        self.settings = settings or load_settings()
        self._owns_client = http_client is None
        self.http_client = http_client or create_default_http_client(self.settings)

    async def scan(self, request: ScanRequest) -> ScanResult:
        http_request = HttpRequest(
            url=self.settings.scan_endpoint,
            method="POST",
            headers=dict(JSON_HEADERS),
            body=json.dumps(request.to_payload()),
            timeout=self.settings.timeout,
        )
        logger.info("Dispatching %s scan for %s", request.scan_mode.value, request.target_url)
        response = await self.http_client.request(http_request)

        if not response.ok:
            category = ErrorCategory(response.meta.get("error_category", ErrorCategory.UNKNOWN_ERROR.value))
            logger.warning(
                "Scan request did not reach the service: %s (%s)",
                error_category_to_reason(category),
                response.error_message or response.error_type or "no detail",
            )
            raise ScanRequestError(RequestErrorKind.NETWORK_FAILURE, NETWORK_ERROR_MESSAGE, category=category)

        logger.info("Scan service responded with status %s", response.status_code)
        if not response.is_success:
            raise ScanRequestError(
                RequestErrorKind.SERVER_ERROR,
                error_message_for(response),
                status_code=response.status_code,
            )

        if response.meta.get("body_truncated"):
            logger.warning("Scan response exceeded %s bytes", response.meta.get("body_bytes_limit"))
            raise ScanRequestError(RequestErrorKind.MALFORMED_RESPONSE, MALFORMED_RESPONSE_MESSAGE, status_code=response.status_code)
        try:
            result = ScanResult.from_mapping(response.json())
        except _DECODE_ERRORS as exc:
            logger.warning("Scan response could not be decoded: %s", exc)
            raise ScanRequestError(
                RequestErrorKind.MALFORMED_RESPONSE,
                MALFORMED_RESPONSE_MESSAGE,
                status_code=response.status_code,
            ) from exc

        logger.debug(
            "Scan returned %d findings, score=%s, duration=%sms",
            len(result.vulnerabilities),
            result.severity_score,
            result.scan_duration_ms,
        )
        return result

    async def health(self) -> bool:
        """Return True when the service's health endpoint reports ``healthy``."""
        response = await self.http_client.request(
            HttpRequest(url=self.settings.health_endpoint, headers={"Accept": "application/json"}, timeout=self.settings.timeout)
        )
        if not response.is_success:
            return False
        try:
            data = response.json()
        except _DECODE_ERRORS:
            return False
        return isinstance(data, dict) and data.get("status") == "healthy"

    async def aclose(self) -> None:
        if self._owns_client:
            try:
                await self.http_client.aclose()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Closing the scanning service client failed: %s", exc)


__all__ = ["JSON_HEADERS", "ScanServiceClient", "error_message_for"]
