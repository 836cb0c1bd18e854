"""Game date detection in free-form agent text."""

import re
from datetime import date, timedelta
from typing import Optional

from agent_picks.utils.weeks import current_season_year


MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

NIGHT_GAMES = {
    'monday night': 0,
    'thursday night': 3,
    'sunday night': 6,
}

MONTH_DAY_PATTERN = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"
    r"\s+(\d{1,2})(?:st|nd|rd|th)?\b(?:,?\s+(\d{4}))?",
    re.IGNORECASE
)
ISO_PATTERN = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
SLASH_PATTERN = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?![\d/])")
# Dashed month-day is accepted only with a year so scores like 27-24 are not dates
DASH_PATTERN = re.compile(r"(?<![\d-])(\d{1,2})-(\d{1,2})-(\d{4})(?![\d-])")
NIGHT_PATTERN = re.compile(r"\b(monday|thursday|sunday) night\b", re.IGNORECASE)


def has_date_indicators(line: str) -> bool:
    """Quick check for anything that looks like a game date."""
    return bool(
        NIGHT_PATTERN.search(line)
        or MONTH_DAY_PATTERN.search(line)
        or ISO_PATTERN.search(line)
        or SLASH_PATTERN.search(line)
        or DASH_PATTERN.search(line)
    )


def _season_date(month: int, day: int, year: Optional[int], reference: date) -> Optional[date]:
    if year is None:
        season_year = current_season_year(reference)
        # January through July belong to the second calendar year of a season
        year = season_year + 1 if month < 8 else season_year
    elif year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_game_date(line: str, reference: Optional[date] = None) -> Optional[date]:
    """Extract a game date from a line of agent text.

    Args:
        line: Text line
        reference: Date used to resolve relative and year-less dates (default today)

    Returns:
        Parsed date, or None when the line has no usable date
    """
    reference = reference or date.today()

    match = ISO_PATTERN.search(line)
    if match:
        return _season_date(int(match.group(2)), int(match.group(3)), int(match.group(1)), reference)

    match = MONTH_DAY_PATTERN.search(line)
    if match:
        month = MONTHS[match.group(1)[:3].lower()]
        year = int(match.group(3)) if match.group(3) else None
        return _season_date(month, int(match.group(2)), year, reference)

    match = DASH_PATTERN.search(line)
    if match:
        return _season_date(int(match.group(1)), int(match.group(2)), int(match.group(3)), reference)

    match = SLASH_PATTERN.search(line)
    if match:
        year = int(match.group(3)) if match.group(3) else None
        return _season_date(int(match.group(1)), int(match.group(2)), year, reference)

    match = NIGHT_PATTERN.search(line)
    if match:
        weekday = NIGHT_GAMES[f"{match.group(1).lower()} night"]
        return reference + timedelta(days=(weekday - reference.weekday()) % 7)

    return None
