# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Scan request/result models."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ScanMode(str, Enum):
    QUICK = "quick"
    DEEP = "deep"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def parse(cls, value: ScanMode | str) -> ScanMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown scan mode {value!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class ScanRequest:
    """A validated target plus scan depth; immutable once dispatched."""

    target_url: str
    scan_mode: ScanMode = ScanMode.QUICK

    def to_payload(self) -> dict[str, str]:
        return {"url": self.target_url, "scanType": self.scan_mode.value}


def _require_str(data: Mapping[str, Any], key: str, *, required: bool) -> str:
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"finding is missing {key!r}")
        return ""
    if not isinstance(value, str):
        raise ValueError(f"finding field {key!r} must be a string, got {type(value).__name__}")
    return value


def _require_number(data: Mapping[str, Any], key: str) -> float | int:
    value = data.get(key)
    # bool is an int subclass; the service never sends one for a metric.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key!r} must be a number, got {type(value).__name__}")
    if (isinstance(value, float) and not math.isfinite(value)) or value < 0:
        raise ValueError(f"{key!r} must be a finite non-negative number, got {value!r}")
    return value


@dataclass(frozen=True)
class Finding:
    """One reported vulnerability, exactly as the service described it."""

    vuln_type: str
    severity: str
    description: str = ""
    location: str = ""
    recommendation: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Finding:
        if not isinstance(data, Mapping):
            raise ValueError(f"finding must be an object, got {type(data).__name__}")
        return cls(
            vuln_type=_require_str(data, "vuln_type", required=True),
            severity=_require_str(data, "severity", required=True),
            description=_require_str(data, "description", required=False),
            location=_require_str(data, "location", required=False),
            recommendation=_require_str(data, "recommendation", required=False),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "vuln_type": self.vuln_type,
            "severity": self.severity,
            "description": self.description,
            "location": self.location,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class ScanResult:
    """Successful service response. Findings keep the order the server sent them in."""

    vulnerabilities: tuple[Finding, ...] = ()
    severity_score: float | int = 0
    scan_duration_ms: int = 0

    @classmethod
    def from_mapping(cls, data: Any) -> ScanResult:
        """Build a result from the decoded JSON body; raises ValueError on schema mismatch."""
        if not isinstance(data, Mapping):
            raise ValueError(f"scan result must be an object, got {type(data).__name__}")
        raw_findings = data.get("vulnerabilities")
        if not isinstance(raw_findings, list):
            raise ValueError("'vulnerabilities' must be a list")
        findings = tuple(Finding.from_mapping(item) for item in raw_findings)
        score = _require_number(data, "severity_score")
        duration = _require_number(data, "scan_duration_ms")
        return cls(
            vulnerabilities=findings,
            severity_score=score,
            scan_duration_ms=int(duration),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vulnerabilities": [finding.to_dict() for finding in self.vulnerabilities],
            "severity_score": self.severity_score,
            "scan_duration_ms": self.scan_duration_ms,
        }
