"""Text helpers for ticketing-site payloads."""

import re

_SCREEN_RE = re.compile(r"\bscreen\s*(\d+)\b", re.IGNORECASE)


def parse_screen_number(text: str | None) -> int | None:
    """
    Extract the screen number from a human-readable screen name.

    Examples: "Screen 4" → 4, "SCREEN 12 (Dolby Atmos)" → 12,
    "Everyman Screen 3" → 3. Anything else ("Studio", "Screen", "Screen 0")
    is a parse failure.

    Args:
        text: Free text such as ``cartSummaryModel.screen``

    Returns:
        The screen number (always > 0), or None if none could be parsed
    """
    if not text:
        return None

    match = _SCREEN_RE.search(text)
    if not match:
        return None

    number = int(match.group(1))
    return number if number > 0 else None


def booking_api_url(booking_url: str) -> str:
    """
    Turn a customer-facing booking URL into the StartTicketing API URL.

    "https://tickets.example.com/startticketing/ABC" →
    "https://tickets.example.com/api/StartTicketing/ABC"
    """
    return booking_url.replace("/startticketing", "/api/StartTicketing", 1)
