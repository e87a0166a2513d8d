# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Narrative status lines shown while a scan request is outstanding."""

from __future__ import annotations

from collections.abc import Callable, Sequence

DEFAULT_SCAN_LOG_LINES: tuple[str, ...] = (
    "[*] Initializing scan engine...",
    "[*] Resolving target host...",
    "[*] Establishing connection to target...",
    "[*] Fetching landing page...",
    "[*] Analyzing HTTP response headers...",
    "[*] Checking transport security (HTTPS/HSTS)...",
    "[*] Inspecting Content-Security-Policy...",
    "[*] Checking clickjacking protections...",
    "[*] Probing for exposed sensitive files...",
    "[*] Evaluating SSL/TLS configuration...",
    "[*] Correlating findings...",
    "[*] Computing severity score...",
)


class ActivityLog:
    """Append-only buffer fed one line at a time from a fixed script."""

    def __init__(
        self,
        script: Sequence[str] = DEFAULT_SCAN_LOG_LINES,
        *,
        on_change: Callable[[tuple[str, ...]], None] | None = None,
    ):
        self._script = tuple(script)
        self._lines: list[str] = []
        self._on_change = on_change

    @property
    def script(self) -> tuple[str, ...]:
        return self._script

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    @property
    def exhausted(self) -> bool:
        return len(self._lines) >= len(self._script)

    def emit_next(self) -> bool:
        """Append the next scripted line. Returns False when nothing is left to emit."""
        if self.exhausted:
            return False
        self._lines.append(self._script[len(self._lines)])
        if self._on_change is not None:
            self._on_change(self.lines)
        return not self.exhausted

    def clear(self) -> None:
        self._lines.clear()
        if self._on_change is not None:
            self._on_change(())
