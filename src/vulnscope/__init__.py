# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
vulnscope package entrypoint.

This package drives a single-form scan workflow against a remote vulnerability
scanning service: target validation, one in-flight request at a time, simulated
progress and status lines while waiting, and severity classification of the
returned findings. HTTP behavior is abstracted behind an injectable async client
interface, and domain objects are modeled with typed dataclasses.
"""

from .activity import DEFAULT_SCAN_LOG_LINES, ActivityLog
from .config import ScannerSettings, load_settings
from .errors import (
    RequestErrorKind,
    ScanRequestError,
    UrlValidationError,
    ValidationErrorKind,
    VulnscopeError,
)
from .http import (
    HttpClient,
    HttpRequest,
    HttpResponse,
    HttpxClient,
    StubHttpClient,
    create_default_http_client,
)
from .log import setup_logging
from .models import (
    Finding,
    FormValues,
    ScanMode,
    ScanReport,
    ScanRequest,
    ScanResult,
    SessionSnapshot,
    SessionState,
)
from .progress import ProgressSimulator
from .service import ScanServiceClient
from .session import ScanSession
from .severity import SeverityTier, ThreatLevel, classify_findings, threat_level_of, tier_of
from .timers import periodic
from .validation import is_valid_url, validate
from .version import __version__

__all__ = [
    "DEFAULT_SCAN_LOG_LINES",
    "ActivityLog",
    "Finding",
    "FormValues",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpxClient",
    "ProgressSimulator",
    "RequestErrorKind",
    "ScanMode",
    "ScanReport",
    "ScanRequest",
    "ScanResult",
    "ScanRequestError",
    "ScanServiceClient",
    "ScanSession",
    "ScannerSettings",
    "SessionSnapshot",
    "SessionState",
    "SeverityTier",
    "StubHttpClient",
    "ThreatLevel",
    "UrlValidationError",
    "ValidationErrorKind",
    "VulnscopeError",
    "classify_findings",
    "create_default_http_client",
    "is_valid_url",
    "load_settings",
    "periodic",
    "setup_logging",
    "threat_level_of",
    "tier_of",
    "validate",
    "__version__",
]
