"""Unit tests for short-id generation and URL validation helpers."""

import pytest

from shortlink.config import get_settings
from shortlink.exceptions import ValidationError
from shortlink.service import ALPHABET, generate_short_id, validate_long_url

settings = get_settings()


def test_generate_short_id_default_length() -> None:
    short_id = generate_short_id(settings.SHORT_ID_LENGTH)
    assert len(short_id) == settings.SHORT_ID_LENGTH


def test_generate_short_id_custom_length() -> None:
    assert len(generate_short_id(8)) == 8


def test_generate_short_id_only_alphanumeric() -> None:
    for _ in range(100):
        short_id = generate_short_id(settings.SHORT_ID_LENGTH)
        assert all(c in ALPHABET for c in short_id)


def test_generate_short_id_uniqueness() -> None:
    ids = {generate_short_id(8) for _ in range(1000)}
    # With 62^8 possibilities, 1000 ids should all be unique
    assert len(ids) == 1000


def test_generate_short_id_rejects_non_positive_length() -> None:
    with pytest.raises(AssertionError):
        generate_short_id(0)


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/a",
        "http://www.python.org/downloads/?lang=en",
        "https://sub.example.co.uk:8443/path#frag",
    ],
)
def test_validate_long_url_accepts_absolute_urls(url: str) -> None:
    assert validate_long_url(url) == url


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost:3000/page",
        "http://127.0.0.1:8080/status",
        "https://example.com/search?q",
        "https://example.com/?utm_source",
        "https://example.com/path?a=1&b",
        "https://my_host.example.com/a",
        "https://example.com/docs/page.html?lang=en&v=2#section-3",
    ],
)
def test_validate_long_url_accepts_hosts_ports_and_queries(url: str) -> None:
    assert validate_long_url(url) == url


def test_validate_long_url_strips_whitespace() -> None:
    assert validate_long_url("  https://example.com/a\n") == "https://example.com/a"


@pytest.mark.parametrize("url", [None, "", "   "])
def test_validate_long_url_requires_value(url) -> None:
    with pytest.raises(ValidationError, match="URL is required"):
        validate_long_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "not-a-url",
        "example.com/a",
        "ftp://example.com/file",
        "https://",
        "javascript:alert(1)",
        "http://exa mple.com",
    ],
)
def test_validate_long_url_rejects_malformed(url: str) -> None:
    with pytest.raises(ValidationError, match="Invalid URL provided"):
        validate_long_url(url)
