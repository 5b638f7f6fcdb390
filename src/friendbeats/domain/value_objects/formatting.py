"""Display formatting helpers and Spotify profile URL parsing."""

import re

from friendbeats.domain.exceptions import ValidationError

_UNITS = ("K", "M", "B", "T")

# open.spotify.com/user/<id>, also with locale prefix (/intl-de/user/<id>) and query strings
_USER_URL_PATTERN = re.compile(r"spotify\.com/(?:intl-[a-z-]+/)?user/([^/?#]+)", re.IGNORECASE)
_USER_URI_PATTERN = re.compile(r"^spotify:user:([^:]+)$", re.IGNORECASE)


def format_number(num: int | float | None) -> str:
    """Format a count compactly: 999 → "999", 1000 → "1K", 1500000 → "1.5M"."""
    if num is None or isinstance(num, bool) or not isinstance(num, int | float):
        return "0"

    if abs(num) < 1000:
        return str(num)

    value = float(num)
    unit_index = -1
    while abs(value) >= 1000 and unit_index < len(_UNITS) - 1:
        value /= 1000
        unit_index += 1

    formatted = f"{value:.1f}".removesuffix(".0")
    return f"{formatted}{_UNITS[unit_index]}"


def format_duration(ms: int | None) -> str:
    """Format milliseconds as M:SS, e.g. 225000 → "3:45"."""
    if ms is None or isinstance(ms, bool) or not isinstance(ms, int | float) or ms < 0:
        return "0:00"

    total_seconds = int(ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def parse_spotify_user_id(value: str) -> str:
    """Extract a Spotify user id from a profile URL, a spotify:user: URI, or a bare id.

    Raises:
        ValidationError: If nothing usable was given
    """
    candidate = (value or "").strip()
    if not candidate:
        raise ValidationError("A Spotify profile URL or user ID is required")

    match = _USER_URL_PATTERN.search(candidate) or _USER_URI_PATTERN.match(candidate)
    if match:
        return match.group(1)
    return candidate
