# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Presentation view of a scan result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..severity import ClassifiedFinding, SeverityTier, ThreatLevel, classify_findings, threat_level_of
from .scan import ScanResult

CLEAN_REPORT_TITLE = "No vulnerabilities detected!"
CLEAN_REPORT_DETAIL = "Your site appears to have good security measures in place."


@dataclass(frozen=True)
class ScanReport:
    """A ScanResult with every finding tiered and the aggregate score bucketed."""

    result: ScanResult
    threat_level: ThreatLevel
    findings: tuple[ClassifiedFinding, ...] = field(default_factory=tuple)

    @classmethod
    def from_result(cls, result: ScanResult) -> ScanReport:
        return cls(
            result=result,
            threat_level=threat_level_of(result.severity_score),
            findings=tuple(classify_findings(result.vulnerabilities)),
        )

    @property
    def is_clean(self) -> bool:
        return not self.findings

    def tier_counts(self) -> dict[SeverityTier, int]:
        counts = {tier: 0 for tier in SeverityTier}
        for item in self.findings:
            counts[item.tier] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "threat_level": self.threat_level.value,
            "severity_score": self.result.severity_score,
            "scan_duration_ms": self.result.scan_duration_ms,
            "clean": self.is_clean,
            "tier_counts": {tier.value: count for tier, count in self.tier_counts().items()},
            "vulnerabilities": [{**item.finding.to_dict(), "tier": item.tier.value} for item in self.findings],
        }
