# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for vulnscope."""

from ..http.models import Headers, HttpRequest, HttpResponse
from .report import ScanReport
from .scan import Finding, ScanMode, ScanRequest, ScanResult
from .session import FormValues, SessionSnapshot, SessionState

__all__ = [
    "Finding",
    "FormValues",
    "Headers",
    "HttpRequest",
    "HttpResponse",
    "ScanMode",
    "ScanReport",
    "ScanRequest",
    "ScanResult",
    "SessionSnapshot",
    "SessionState",
]
