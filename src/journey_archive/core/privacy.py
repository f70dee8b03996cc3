"""Domain exclusion rules shared by tracking and export."""

from collections.abc import Iterable
from urllib.parse import urlsplit

from loguru import logger

from journey_archive.errors import ParseError


def url_hostname(url: str) -> str:
    """Return the lowercased hostname of ``url``.

    Raises:
        ParseError: The URL has no hostname or is malformed.
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError as e:
        raise ParseError(url) from e
    if not hostname:
        raise ParseError(url)
    return hostname


def is_url_excluded(url: str, excluded_domains: Iterable[str]) -> bool:
    """True if the hostname contains any excluded domain as a substring.

    Substring matching also catches subdomains, and over-matches too:
    ``bank.com`` excludes ``notabank.com``. Unparseable URLs count as
    excluded.
    """
    try:
        hostname = url_hostname(url)
    except ParseError as e:
        logger.debug("Treating unparseable URL as excluded: {}", e)
        return True
    return any(domain.lower() in hostname for domain in excluded_domains)
