"""Utility helpers for the Cinemate service."""

from __future__ import annotations

from datetime import date


def parse_release_date(value: str | None) -> date | None:
    """Parse a TMDb ``YYYY-MM-DD`` date, tolerating bare years and blanks."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    if len(text) >= 4 and text[:4].isdigit():
        try:
            return date(int(text[:4]), 1, 1)
        except ValueError:
            # Year 0000 has no calendar date.
            return None
    return None


def format_runtime(minutes: int | None) -> str:
    """Return ``"2h 28m"`` style runtimes, ``"N/A"`` when unknown."""

    if not minutes:
        return "N/A"
    return f"{minutes // 60}h {minutes % 60}m"


def format_rating(value: float | None) -> str:
    if not value:
        return "N/A"
    return f"{value:.1f}"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return ``"1 Favorite"`` / ``"3 Favorites"``."""

    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
