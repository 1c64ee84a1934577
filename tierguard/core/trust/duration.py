"""
tierguard Core Trust — Durations
==================================
Human-friendly durations for bypass activation.

    parse_duration("1h")     → 3600
    parse_duration("30m")    → 1800
    parse_duration("2h30m")  → 9000
    parse_duration("1h 45m") → 6300
    parse_duration("60")     → 3600   (bare integer = minutes)

Import from: tierguard.core.trust.duration
"""

import re

_HOURS_MINUTES = re.compile(r'^(\d+)h\s*(\d+)m$')
_HOURS = re.compile(r'^(\d+)h$')
_MINUTES = re.compile(r'^(\d+)m$')
_BARE = re.compile(r'^(\d+)$')


def parse_duration(text: str) -> int:
    """Parse a duration string to seconds.

    Raises:
        ValueError: empty, negative or unrecognised input.
    """
    if text is None:
        raise ValueError("Duration is empty")
    value = ' '.join(str(text).lower().split())
    if not value:
        raise ValueError("Duration is empty")
    if value.startswith('-'):
        raise ValueError(f"Duration cannot be negative: {text!r}")

    match = _HOURS_MINUTES.match(value)
    if match:
        return int(match.group(1)) * 3600 + int(match.group(2)) * 60
    match = _HOURS.match(value)
    if match:
        return int(match.group(1)) * 3600
    match = _MINUTES.match(value) or _BARE.match(value)
    if match:
        return int(match.group(1)) * 60

    raise ValueError(f"Invalid duration {text!r} (use e.g. 4h, 30m, 2h30m or minutes)")


def format_duration(seconds: int) -> str:
    """Seconds → "2h 30m" / "1h" / "45m" / "0m"."""
    if not seconds or seconds <= 0:
        return "0m"
    hours, rest = divmod(int(seconds), 3600)
    minutes = rest // 60
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


__all__ = ['parse_duration', 'format_duration']
