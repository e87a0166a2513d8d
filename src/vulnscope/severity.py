# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Severity classification for scan findings and aggregate scores.

Two independent buckets are derived for presentation:

- a per-finding ``SeverityTier`` from the server's free-form severity label
- a report-wide ``ThreatLevel`` from the aggregate severity score

Both mappings are total: unknown labels and out-of-range scores still land in a
bucket, so rendering never has to handle a classification failure.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models.scan import Finding


class SeverityTier(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def weight(self) -> int:
        """Presentation rank, higher sorts first."""
        return _TIER_WEIGHTS[self]

    @property
    def score_weight(self) -> int:
        """Contribution of one finding of this tier to the service's aggregate score."""
        return _TIER_SCORE_WEIGHTS[self]


_TIER_WEIGHTS = {
    SeverityTier.CRITICAL: 4,
    SeverityTier.HIGH: 3,
    SeverityTier.MEDIUM: 2,
    SeverityTier.LOW: 1,
    SeverityTier.UNKNOWN: 0,
}

_TIER_SCORE_WEIGHTS = {
    SeverityTier.CRITICAL: 10,
    SeverityTier.HIGH: 7,
    SeverityTier.MEDIUM: 4,
    SeverityTier.LOW: 1,
    SeverityTier.UNKNOWN: 0,
}

_LABEL_TO_TIER = {
    "critical": SeverityTier.CRITICAL,
    "high": SeverityTier.HIGH,
    "medium": SeverityTier.MEDIUM,
    "low": SeverityTier.LOW,
}


class ThreatLevel(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    SECURE = "SECURE"


# Lower bounds are inclusive; anything at or below zero falls through to SECURE.
THREAT_THRESHOLDS: tuple[tuple[float, ThreatLevel], ...] = (
    (50, ThreatLevel.CRITICAL),
    (30, ThreatLevel.HIGH),
    (15, ThreatLevel.MEDIUM),
)


def tier_of(label: Any) -> SeverityTier:
    """Map a severity label to its tier. Case-insensitive; never raises."""
    if not isinstance(label, str):
        return SeverityTier.UNKNOWN
    return _LABEL_TO_TIER.get(label.lower(), SeverityTier.UNKNOWN)


def threat_level_of(score: float | int) -> ThreatLevel:
    """Bucket an aggregate severity score into a threat level."""
    if isinstance(score, int) and not isinstance(score, bool):
        # Compared exactly; float() overflows on very large integers.
        value: float | int = score
    else:
        try:
            value = float(score)
        except (TypeError, ValueError, OverflowError):
            return ThreatLevel.SECURE
    if isinstance(value, float) and math.isnan(value):
        return ThreatLevel.SECURE
    for lower_bound, level in THREAT_THRESHOLDS:
        if value >= lower_bound:
            return level
    if value > 0:
        return ThreatLevel.LOW
    return ThreatLevel.SECURE


@dataclass(frozen=True)
class ClassifiedFinding:
    finding: Finding
    tier: SeverityTier

    @property
    def badge(self) -> str:
        return self.finding.severity.upper()


def classify_findings(findings: Iterable[Finding]) -> list[ClassifiedFinding]:
    """Attach a tier to each finding, keeping input order."""
    return [ClassifiedFinding(finding=finding, tier=tier_of(finding.severity)) for finding in findings]


def expected_score(findings: Iterable[Finding]) -> int:
    """Recompute the aggregate score the service would assign to ``findings``."""
    return sum(tier_of(finding.severity).score_weight for finding in findings)


__all__ = [
    "THREAT_THRESHOLDS",
    "ClassifiedFinding",
    "SeverityTier",
    "ThreatLevel",
    "classify_findings",
    "expected_score",
    "threat_level_of",
    "tier_of",
]
