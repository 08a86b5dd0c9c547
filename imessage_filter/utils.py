"""
Utility functions and classes for iMessage filtering.
"""

import datetime
from typing import Optional

# chat.db dates before macOS High Sierra are seconds, later ones nanoseconds
_NANOSECOND_THRESHOLD = 100_000_000_000


class Colors:
    """ANSI color codes for terminal output."""

    HEADER = "\033[95m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


def format_timestamp(timestamp: Optional[int], local: bool = True) -> str:
    """
    Convert an iMessage timestamp to a readable date.

    iMessage timestamps count from 2001-01-01 UTC, in nanoseconds on current
    macOS versions and in seconds on older ones.

    Args:
        timestamp: iMessage timestamp.
        local: Render in the local timezone (default) instead of UTC.

    Returns:
        Formatted date string, or "Unknown" for a missing timestamp.
    """
    if timestamp is None:
        return "Unknown"

    seconds = timestamp
    if abs(timestamp) >= _NANOSECOND_THRESHOLD:
        seconds = timestamp / 1_000_000_000

    epoch_2001 = datetime.datetime(2001, 1, 1, tzinfo=datetime.timezone.utc)
    try:
        dt = epoch_2001 + datetime.timedelta(seconds=seconds)
        if local:
            dt = dt.astimezone()
    except (OverflowError, OSError, ValueError):
        return "Unknown"
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def pluralize(count: int, word: str) -> str:
    """
    Format a count with a naively pluralized word.

    Examples:
        >>> pluralize(1, "chat")
        '1 chat'
        >>> pluralize(3, "chat")
        '3 chats'
    """
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
