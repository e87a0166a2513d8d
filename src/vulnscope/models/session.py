# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Scan session state models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import UrlValidationError
from .report import ScanReport
from .scan import ScanMode, ScanResult


class SessionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class FormValues:
    """Form fields as edited by the user, not yet submitted."""

    url: str = ""
    scan_mode: ScanMode = ScanMode.QUICK


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a ScanSession handed to listeners and renderers."""

    state: SessionState
    form: FormValues
    progress: float = 0.0
    log_lines: tuple[str, ...] = ()
    result: ScanResult | None = None
    report: ScanReport | None = None
    error_message: str | None = None
    validation_error: UrlValidationError | None = None

    @property
    def is_pending(self) -> bool:
        return self.state is SessionState.PENDING

    @property
    def can_submit(self) -> bool:
        return not self.is_pending

    @property
    def can_clear(self) -> bool:
        return self.state in {SessionState.SUCCEEDED, SessionState.FAILED}

    @property
    def message(self) -> str | None:
        """The single user-facing error line, if any."""
        if self.validation_error is not None:
            return self.validation_error.message
        return self.error_message
