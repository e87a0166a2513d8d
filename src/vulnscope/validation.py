# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Target URL validation run before any scan request is built."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .errors import UrlValidationError, ValidationErrorKind

ALLOWED_PREFIXES = ("http://", "https://")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
# Schemes whose URLs are meaningless without a host component.
_AUTHORITY_SCHEMES = {"http", "https", "ws", "wss", "ftp"}
# Characters the URL parser strips from both ends before parsing.
_URL_STRIP_CHARS = "".join(chr(code) for code in range(0x21))


def _is_parseable(raw: str) -> bool:
    candidate = raw.strip(_URL_STRIP_CHARS)
    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it; a non-numeric or out-of-range port raises.
        parts.port  # noqa: B018
    except ValueError:
        return False

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return False
    if parts.scheme.lower() in _AUTHORITY_SCHEMES:
        if not parts.hostname:
            return False
        if any(ch.isspace() for ch in parts.netloc):
            return False
    return True


def validate(raw: str) -> str:
    """
    Validate a candidate scan target and return it unchanged.

    Checks run in order and the first failure wins:

    - ``EmptyInput`` when the string is blank after trimming
    - ``MalformedUrl`` when it does not parse as an absolute URL
    - ``UnsupportedScheme`` when the original string does not literally start
      with ``http://`` or ``https://`` (so ``HTTP://host`` is rejected even
      though it parses)

    The returned value is the caller's original string; it is not trimmed or
    normalized.
    """
    if raw is None or not str(raw).strip():
        raise UrlValidationError(ValidationErrorKind.EMPTY_INPUT, raw or "")
    if not _is_parseable(raw):
        raise UrlValidationError(ValidationErrorKind.MALFORMED_URL, raw)
    if not raw.startswith(ALLOWED_PREFIXES):
        raise UrlValidationError(ValidationErrorKind.UNSUPPORTED_SCHEME, raw)
    return raw


def is_valid_url(raw: str) -> bool:
    try:
        validate(raw)
    except UrlValidationError:
        return False
    return True


__all__ = ["ALLOWED_PREFIXES", "is_valid_url", "validate"]
