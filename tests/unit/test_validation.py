# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from vulnscope.errors import UrlValidationError, ValidationErrorKind
from vulnscope.validation import is_valid_url, validate


@pytest.mark.parametrize("raw", ["", " ", "   \t\n"])
def test_blank_input_is_empty_input(raw):
    with pytest.raises(UrlValidationError) as excinfo:
        validate(raw)
    assert excinfo.value.kind is ValidationErrorKind.EMPTY_INPUT
    assert excinfo.value.message == "Please enter a URL"


@pytest.mark.parametrize(
    "raw",
    [
        "example.com",
        "not a url",
        "http://",
        "https://",
        "http://exa mple.com",
        "https://[::1",
        "http://example.com:port",
        "//example.com/path",
        "http:/example.com",
    ],
)
def test_unparseable_input_is_malformed(raw):
    with pytest.raises(UrlValidationError) as excinfo:
        validate(raw)
    assert excinfo.value.kind is ValidationErrorKind.MALFORMED_URL


@pytest.mark.parametrize(
    "raw",
    [
        "ftp://x.com",
        "mailto:someone@example.com",
        "file:///etc/passwd",
        "javascript:alert(1)",
        "HTTP://example.com",
        "Https://example.com",
        " https://example.com",
    ],
)
def test_parseable_non_http_is_unsupported_scheme(raw):
    with pytest.raises(UrlValidationError) as excinfo:
        validate(raw)
    assert excinfo.value.kind is ValidationErrorKind.UNSUPPORTED_SCHEME
    assert "http:// or https://" in excinfo.value.message


@pytest.mark.parametrize(
    "raw",
    [
        "http://example.com",
        "https://example.com",
        "https://example.com:8443/login?next=/admin#top",
        "http://127.0.0.1:8080",
        "https://[::1]/",
        "https://example.com ",
    ],
)
def test_valid_urls_are_returned_unchanged(raw):
    assert validate(raw) == raw
    assert is_valid_url(raw) is True


@pytest.mark.parametrize("raw", ["ftp://x.com", "www.example.com", "ws://example.com", "", "  "])
def test_everything_without_http_prefix_is_rejected(raw):
    assert is_valid_url(raw) is False


def test_validate_has_no_shared_state():
    for _ in range(3):
        assert validate("https://example.com") == "https://example.com"
        with pytest.raises(UrlValidationError):
            validate("ftp://x.com")
