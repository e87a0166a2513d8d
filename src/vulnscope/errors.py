# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum

import httpx

NETWORK_ERROR_MESSAGE = "Network error. Please check if the backend is running."
MALFORMED_RESPONSE_MESSAGE = "Received an invalid response from the scanning service."


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (ssl_module.SSLError, ssl_module.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    # httpx wraps the OS error; look one level down before settling on a generic bucket.
    cause = exc.__cause__ or exc.__context__
    if isinstance(cause, (ssl_module.SSLError, socket.gaierror, socket.herror)):
        return categorize_exception(cause)

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """Log-friendly reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Scanning service did not respond in time",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.UNKNOWN_ERROR: "Network error while contacting the scanning service",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Network error while contacting the scanning service")


class VulnscopeError(Exception):
    """Base class for errors surfaced to the scan workflow."""


class ValidationErrorKind(str, Enum):
    EMPTY_INPUT = "EmptyInput"
    MALFORMED_URL = "MalformedUrl"
    UNSUPPORTED_SCHEME = "UnsupportedScheme"


_VALIDATION_MESSAGES = {
    ValidationErrorKind.EMPTY_INPUT: "Please enter a URL",
    ValidationErrorKind.MALFORMED_URL: "Please enter a valid URL starting with http:// or https://",
    ValidationErrorKind.UNSUPPORTED_SCHEME: "Please enter a valid URL starting with http:// or https://",
}


class UrlValidationError(VulnscopeError, ValueError):
    """A candidate target URL was rejected before any network activity."""

    def __init__(self, kind: ValidationErrorKind, raw: str = ""):
        self.kind = kind
        self.raw = raw
        super().__init__(_VALIDATION_MESSAGES[kind])

    @property
    def message(self) -> str:
        return str(self)


class RequestErrorKind(str, Enum):
    NETWORK_FAILURE = "NetworkFailure"
    SERVER_ERROR = "ServerError"
    MALFORMED_RESPONSE = "MalformedResponse"


class ScanRequestError(VulnscopeError):
    """A dispatched scan request failed; terminal for the current episode."""

    def __init__(
        self,
        kind: RequestErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        category: ErrorCategory = ErrorCategory.NONE,
    ):
        self.kind = kind
        self.status_code = status_code
        self.category = category
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)


__all__ = [
    "MALFORMED_RESPONSE_MESSAGE",
    "NETWORK_ERROR_MESSAGE",
    "ErrorCategory",
    "RequestErrorKind",
    "ScanRequestError",
    "UrlValidationError",
    "ValidationErrorKind",
    "VulnscopeError",
    "categorize_exception",
    "error_category_to_reason",
]
