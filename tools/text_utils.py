"""Text utilities: episode number detection, title matching, durations."""

import re
from datetime import datetime
from typing import Optional

# Checked in order; the first pattern that matches wins.
_EPISODE_NUMBER_PATTERNS = [
    re.compile(r"Episode\s+(\d+)", re.IGNORECASE),
    re.compile(r"Ep\s+(\d+)", re.IGNORECASE),
    re.compile(r"Chapter\s+(\d+)", re.IGNORECASE),
    re.compile(r"\b(\d+)\s*$"),
    re.compile(r"#\s*(\d+)"),
]


def extract_episode_number(title: str) -> Optional[int]:
    """Detect an episode number in a title.

    "Surviving The Game As A Barbarian Episode 669" -> 669
    """
    for pattern in _EPISODE_NUMBER_PATTERNS:
        match = pattern.search(title)
        if match:
            return int(match.group(1))
    return None


def title_contains(title: str, term: str) -> bool:
    """Case-insensitive substring match."""
    return term.casefold() in title.casefold()


def humanize_delta(start: datetime, end: datetime) -> str:
    """Approximate distance between two times, e.g. '3 hours' or '2 days'."""
    seconds = abs((end - start).total_seconds())
    if seconds < 3600:
        value, unit = max(1, round(seconds / 60)), "min"
    elif seconds < 86400:
        value, unit = max(1, round(seconds / 3600)), "hour"
    elif seconds < 7 * 86400:
        value, unit = max(1, round(seconds / 86400)), "day"
    else:
        value, unit = max(1, round(seconds / (7 * 86400))), "week"
    return f"{value} {unit}{'' if value == 1 else 's'}"
