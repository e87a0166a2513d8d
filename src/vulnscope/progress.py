# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Simulated progress while a scan request is outstanding."""

from __future__ import annotations

import random
from collections.abc import Callable

COMPLETE = 100.0


class ProgressSimulator:
    """
    Estimate progress for a request whose real progress is unknown.

    Each ``advance()`` adds a random step in ``[0, max_step]`` but never moves past
    ``plateau``; only ``complete()`` reaches 100. The value is owned by a single
    episode and is reset at its start and end.
    """

    def __init__(
        self,
        *,
        plateau: float = 95.0,
        max_step: float = 15.0,
        rng: random.Random | None = None,
        on_change: Callable[[float], None] | None = None,
    ):
        if not 0 < plateau < COMPLETE:
            raise ValueError(f"plateau must be between 0 and {COMPLETE:g}, got {plateau!r}")
        self.plateau = plateau
        self.max_step = max(0.0, max_step)
        self._rng = rng or random.Random()
        self._on_change = on_change
        self._value = 0.0
        self._completed = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def plateaued(self) -> bool:
        return self._value >= self.plateau

    def reset(self) -> None:
        self._value = 0.0
        self._completed = False
        self._emit()

    def advance(self) -> bool:
        """Apply one tick. Returns False once the plateau (or completion) is reached."""
        if self._completed or self.plateaued:
            return False
        step = self._rng.uniform(0.0, self.max_step)
        self._value = min(self.plateau, self._value + step)
        self._emit()
        return not self.plateaued

    def complete(self) -> None:
        """Snap to 100. Repeated calls within one episode are ignored."""
        if self._completed:
            return
        self._completed = True
        self._value = COMPLETE
        self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self._value)
