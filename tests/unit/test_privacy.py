"""Tests for domain exclusion rules."""

import pytest

from journey_archive.core.privacy import is_url_excluded, url_hostname
from journey_archive.errors import ParseError


def test_url_hostname_is_lowercased() -> None:
    assert url_hostname("https://Mail.Google.COM/mail") == "mail.google.com"


@pytest.mark.parametrize("url", ["not a url", "", "/relative/path", "http://[::1"])
def test_url_hostname_rejects_unparseable(url: str) -> None:
    with pytest.raises(ParseError) as exc_info:
        url_hostname(url)
    assert exc_info.value.url == url


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.banking.com/login", True),
        ("https://banking.com", True),
        ("https://BANKING.com", True),
        ("https://notabanking.com", True),
        ("https://example.com/banking.com", False),
        ("https://example.org", False),
    ],
)
def test_is_url_excluded_substring_match(url: str, expected: bool) -> None:
    assert is_url_excluded(url, ["banking.com"]) is expected


def test_domain_case_is_ignored() -> None:
    assert is_url_excluded("https://mail.google.com/", ["Mail.Google.com"])


def test_unparseable_url_is_excluded() -> None:
    assert is_url_excluded("garbage", [])


def test_no_domains_keeps_everything() -> None:
    assert not is_url_excluded("https://example.com", [])
