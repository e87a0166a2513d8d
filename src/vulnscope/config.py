# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for vulnscope."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"vulnscope/{__version__}"
DEFAULT_API_BASE = "http://localhost:8080"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _positive(value: float, default: float) -> float:
    return value if value > 0 else default


@dataclass
class ScannerSettings:
    """Scanning service endpoint, transport limits and workflow pacing."""

    base_url: str = DEFAULT_API_BASE
    timeout: float = 60.0
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    max_body_bytes: int = 16 * 1024 * 1024
    progress_interval: float = 0.2
    progress_plateau: float = 95.0
    progress_max_step: float = 15.0
    log_interval: float = 0.4
    completion_grace: float = 0.5

    @property
    def scan_endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/scan"

    @property
    def health_endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/health"

    @classmethod
    def from_env(cls) -> "ScannerSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("VULNSCOPE_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        plateau = _float_env("VULNSCOPE_PROGRESS_PLATEAU", cls.progress_plateau)
        if not 0 < plateau < 100:
            plateau = cls.progress_plateau
        return cls(
            base_url=os.getenv("VULNSCOPE_API_BASE", cls.base_url) or cls.base_url,
            timeout=_positive(_float_env("VULNSCOPE_HTTP_TIMEOUT", cls.timeout), cls.timeout),
            verify_ssl=_bool_env("VULNSCOPE_HTTP_VERIFY_SSL", cls.verify_ssl),
            user_agent=os.getenv("VULNSCOPE_USER_AGENT", cls.user_agent),
            max_body_bytes=max_body_bytes,
            progress_interval=_positive(_float_env("VULNSCOPE_PROGRESS_INTERVAL", cls.progress_interval), cls.progress_interval),
            progress_plateau=plateau,
            progress_max_step=max(0.0, _float_env("VULNSCOPE_PROGRESS_MAX_STEP", cls.progress_max_step)),
            log_interval=_positive(_float_env("VULNSCOPE_LOG_INTERVAL", cls.log_interval), cls.log_interval),
            completion_grace=max(0.0, _float_env("VULNSCOPE_COMPLETION_GRACE", cls.completion_grace)),
        )


def load_settings() -> ScannerSettings:
    """Load settings from environment with sensible defaults."""
    return ScannerSettings.from_env()
