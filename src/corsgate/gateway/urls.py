"""
Target URL helpers.
"""

from __future__ import annotations

import re

from yarl import URL

from .errors import MalformedURLError

DEFAULT_SCHEME = "http"

SUPPORTED_SCHEMES = frozenset({"http", "https"})

_SCHEME_RE = re.compile(r"^[a-zA-Z]+://")


def normalize_url(raw: str) -> str:
    """Prefix ``http://`` when ``raw`` does not start with ``scheme://``.

    This is a heuristic only; nothing is validated here.
    """
    if _SCHEME_RE.match(raw):
        return raw
    return f"{DEFAULT_SCHEME}://{raw}"


def parse_target(url: str) -> URL:
    """Parse a normalized target URL.

    Raises MalformedURLError unless it is an absolute http(s) URL with a host.
    """
    try:
        parsed = URL(url)
    except (ValueError, TypeError) as e:
        raise MalformedURLError(f"Invalid URL {url!r}: {e}") from e

    if not parsed.is_absolute() or not parsed.host:
        raise MalformedURLError(f"Invalid URL {url!r}: missing host")
    if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
        raise MalformedURLError(f"Unsupported scheme {parsed.scheme!r} in {url!r}")
    return parsed


def target_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for the target, as browsers send in Origin."""
    return str(parse_target(url).origin())
