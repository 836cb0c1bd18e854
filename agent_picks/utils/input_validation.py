"""Sanitization and field validation for agent text and pick data."""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import current_season_start, season_window


logger = setup_logger(__name__)


MAX_LENGTHS = {
    'agent_text': 50000,
    'team_name': 50,
    'prediction': 500,
    'reasoning': 2000,
    'general_text': 1000,
}

MIN_AGENT_TEXT_LENGTH = 50
MIN_PREDICTION_LENGTH = 5
MIN_REASONING_LENGTH = 10
MAX_REMOVAL_PERCENTAGE = 30

TEAM_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-'.&()]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DANGEROUS_PATTERNS = [
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe\b[^>]*>", re.IGNORECASE),
    re.compile(r"<object\b[^>]*>", re.IGNORECASE),
    re.compile(r"<embed\b[^>]*>", re.IGNORECASE),
    re.compile(r"<link\b[^>]*>", re.IGNORECASE),
    re.compile(r"<meta\b[^>]*>", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"document\.", re.IGNORECASE),
    re.compile(r"window\.", re.IGNORECASE),
]

# Fragments that show a team name was captured from the wrong line
TEAM_NAME_MARKERS = [
    'Recommended',
    'Model Prediction',
    'Simulation Results',
    'Key factors',
    ':',
]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_UNICODE_SPACES = re.compile("[\u00a0\u2000-\u200b\u2028\u2029]")
_HORIZONTAL_WS = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE = re.compile(r"[ \t]*\n[ \t]*")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_TRANSLATION = str.maketrans({
    '\u201c': '"',
    '\u201d': '"',
    '\u2018': "'",
    '\u2019': "'",
    '\u2013': '-',
    '\u2014': '-',
})


@dataclass
class ValidationResult:
    """Result of validating a single value."""
    is_valid: bool
    sanitized: Any = None
    error: Optional[str] = None
    removal_percentage: float = 0.0


@dataclass
class PickValidationResult:
    """Cumulative result of validating every field of a pick."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    sanitized_data: Dict[str, Any] = field(default_factory=dict)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def sanitize_text(text: Any) -> str:
    """Strip unsafe markup and normalize whitespace and punctuation.

    Idempotent: sanitizing already sanitized text returns it unchanged.

    Args:
        text: Raw text; anything that is not a string sanitizes to ""

    Returns:
        Cleaned text
    """
    if not isinstance(text, str) or not text:
        return ""

    cleaned = text
    # Loop until stable so removals that expose new matches are caught too
    previous = None
    while previous != cleaned:
        previous = cleaned
        for pattern in DANGEROUS_PATTERNS:
            cleaned = pattern.sub('', cleaned)

    cleaned = _CONTROL_CHARS.sub('', cleaned)
    cleaned = cleaned.translate(_TRANSLATION)
    cleaned = _UNICODE_SPACES.sub(' ', cleaned)
    cleaned = _HORIZONTAL_WS.sub(' ', cleaned)
    cleaned = _SPACE_AROUND_NEWLINE.sub('\n', cleaned)
    cleaned = _EXTRA_NEWLINES.sub('\n\n', cleaned)
    return cleaned.strip()


def validate_agent_text(text: Any) -> ValidationResult:
    """Check that raw agent output is safe and substantial enough to parse.

    Fails when the text is empty or too long, when sanitizing removed more
    than 30% of it, or when fewer than 50 characters remain.
    """
    if not isinstance(text, str) or not text.strip():
        return ValidationResult(False, "", "Agent text is required")

    if len(text) > MAX_LENGTHS['agent_text']:
        return ValidationResult(
            False, "", f"Agent text too long (max {MAX_LENGTHS['agent_text']} characters)"
        )

    sanitized = sanitize_text(text)
    removal_percentage = (len(text) - len(sanitized)) / len(text) * 100

    if removal_percentage > MAX_REMOVAL_PERCENTAGE:
        logger.warning(f"Sanitizing removed {removal_percentage:.1f}% of agent text")
        return ValidationResult(
            False,
            sanitized,
            f"Agent text contains too much unsafe or invalid content ({removal_percentage:.0f}% removed)",
            removal_percentage,
        )

    if len(sanitized) < MIN_AGENT_TEXT_LENGTH:
        return ValidationResult(
            False,
            sanitized,
            f"Agent text too short after cleaning (min {MIN_AGENT_TEXT_LENGTH} characters)",
            removal_percentage,
        )

    return ValidationResult(True, sanitized, None, removal_percentage)


def validate_team_name(name: Any) -> ValidationResult:
    """Validate a team name captured from agent text."""
    if not isinstance(name, str) or not name.strip():
        return ValidationResult(False, "", "Team name is required")

    sanitized = sanitize_text(name)

    for marker in TEAM_NAME_MARKERS:
        if marker.lower() in sanitized.lower():
            return ValidationResult(
                False, sanitized, f"Team name contains parsing artifact '{marker}'"
            )

    if len(sanitized) > MAX_LENGTHS['team_name']:
        return ValidationResult(
            False, sanitized, f"Team name too long (max {MAX_LENGTHS['team_name']} characters)"
        )

    if not TEAM_NAME_PATTERN.match(sanitized):
        invalid = sorted({c for c in sanitized if not TEAM_NAME_PATTERN.match(c)})
        return ValidationResult(
            False, sanitized, f"Team name contains invalid characters: {''.join(invalid)}"
        )

    return ValidationResult(True, sanitized)


def _validate_bounded_text(value: Any, label: str, minimum: int, maximum: int) -> ValidationResult:
    if not isinstance(value, str) or not value.strip():
        return ValidationResult(False, "", f"{label} is required")

    sanitized = sanitize_text(value)
    if len(sanitized) < minimum:
        return ValidationResult(False, sanitized, f"{label} too short (min {minimum} characters)")
    if len(sanitized) > maximum:
        return ValidationResult(False, sanitized, f"{label} too long (max {maximum} characters)")
    return ValidationResult(True, sanitized)


def validate_prediction(text: Any) -> ValidationResult:
    return _validate_bounded_text(
        text, "Prediction", MIN_PREDICTION_LENGTH, MAX_LENGTHS['prediction']
    )


def validate_reasoning(text: Any) -> ValidationResult:
    return _validate_bounded_text(
        text, "Reasoning", MIN_REASONING_LENGTH, MAX_LENGTHS['reasoning']
    )


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def validate_confidence(value: Any) -> ValidationResult:
    """Validate a 0-100 confidence and round it to the nearest 10.

    Examples:
        73 -> valid, 70
        -5 -> invalid, 50
    """
    number = _as_number(value)
    if number is None:
        return ValidationResult(False, 50, "Confidence must be a number")
    if number < 0 or number > 100:
        return ValidationResult(False, 50, "Confidence must be between 0 and 100")
    return ValidationResult(True, round_half_up(number / 10) * 10)


def validate_week(value: Any) -> ValidationResult:
    number = _as_number(value)
    if number is None:
        return ValidationResult(False, 1, "Week must be a number")
    if number < 1 or number > 18:
        return ValidationResult(False, 1, "Week must be between 1 and 18")
    return ValidationResult(True, round_half_up(number))


def validate_game_date(value: Any, today: Optional[date] = None) -> ValidationResult:
    """Validate a YYYY-MM-DD game date inside the current season window.

    Invalid dates come back with the season-start date as the sanitized value.
    """
    fallback = current_season_start(today).isoformat()

    if isinstance(value, datetime):
        value = value.date().isoformat()
    elif isinstance(value, date):
        value = value.isoformat()

    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        return ValidationResult(False, fallback, "Date must be in YYYY-MM-DD format")

    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return ValidationResult(False, fallback, "Invalid date")

    window_start, window_end = season_window(today)
    if parsed < window_start or parsed > window_end:
        return ValidationResult(
            False,
            fallback,
            f"Date must be within the current NFL season ({window_start.isoformat()} to {window_end.isoformat()})",
        )

    return ValidationResult(True, parsed.isoformat())


def validate_pick_data(data: Dict[str, Any], today: Optional[date] = None) -> PickValidationResult:
    """Validate every field of a pick and collect all errors.

    Args:
        data: Mapping with home_team, away_team, prediction, reasoning,
            confidence, week and game_date
        today: Reference date for the season window

    Returns:
        Validation result with one prefixed error per failing field and the
        sanitized values of every field
    """
    checks = [
        ('home_team', 'Home team', validate_team_name(data.get('home_team'))),
        ('away_team', 'Away team', validate_team_name(data.get('away_team'))),
        ('prediction', 'Prediction', validate_prediction(data.get('prediction'))),
        ('reasoning', 'Reasoning', validate_reasoning(data.get('reasoning'))),
        ('confidence', 'Confidence', validate_confidence(data.get('confidence'))),
        ('week', 'Week', validate_week(data.get('week'))),
        ('game_date', 'Game date', validate_game_date(data.get('game_date'), today)),
    ]

    errors = []
    sanitized = {}
    for key, label, result in checks:
        sanitized[key] = result.sanitized
        if not result.is_valid:
            errors.append(f"{label}: {result.error}")

    return PickValidationResult(is_valid=not errors, errors=errors, sanitized_data=sanitized)
