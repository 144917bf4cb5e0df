from __future__ import annotations

import re
from datetime import date
from typing import Any


def shift_year(day: date, years: int = -1) -> date:
    """Same calendar day `years` away; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def check_data_window(
    start_date: str, end_date: str, window_start: date, window_end: date
) -> dict | None:
    """Returns the structured out-of-range error, or None if the range is covered."""
    if date.fromisoformat(start_date) >= window_start and date.fromisoformat(end_date) <= window_end:
        return None
    available = f"{window_start.isoformat()} to {window_end.isoformat()}"
    return {
        "error": "Date range outside available data",
        "details": (
            f"Requested dates {start_date} to {end_date} are outside our data range ({available})."
        ),
        "availableRange": {
            "start": window_start.isoformat(),
            "end": window_end.isoformat(),
        },
    }


def within_window(start: date, end: date, window_start: date, window_end: date) -> bool:
    return start >= window_start and end <= window_end


def sanitize_input(text: str) -> str:
    """Strip potential prompt injection patterns from user input."""
    patterns = [
        r"(?i)ignore\s+(all\s+)?previous\s+instructions",
        r"(?i)you\s+are\s+now\s+a",
        r"(?i)system\s*:\s*",
        r"(?i)assistant\s*:\s*",
        r"(?i)<\|.*?\|>",
    ]
    cleaned = text
    for pattern in patterns:
        cleaned = re.sub(pattern, "", cleaned)
    return cleaned.strip()


def clean_user_message(value: Any) -> str | None:
    """Sanitized message text, or None when the value is not a usable message."""
    if not isinstance(value, str) or not value.strip():
        return None
    cleaned = sanitize_input(value)
    return cleaned or None
