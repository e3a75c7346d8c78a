"""Human-readable duration formatting."""

import math


def format_duration(seconds: float) -> str:
    """Format a duration with the two most significant units.

    Example:
        >>> format_duration(3 * 3600 + 25 * 60)
        '3h 25m'
        >>> format_duration(4 * 60 + 30)
        '4m 30s'
        >>> format_duration(12.9)
        '12s'
    """
    total = max(0, math.floor(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_hours_minutes(seconds: float) -> str:
    """Format a duration as hours and minutes, e.g. ``'0h 9m'``."""
    total = max(0, math.floor(seconds))
    hours, rem = divmod(total, 3600)
    return f"{hours}h {rem // 60}m"


__all__ = ["format_duration", "format_hours_minutes"]
