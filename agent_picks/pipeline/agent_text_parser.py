"""Parse free-form agent output into prediction drafts."""

import re
from dataclasses import dataclass, replace
from datetime import date
from functools import partial, reduce
from typing import FrozenSet, List, Optional, Tuple

from agent_picks.pipeline.payload_parser import (
    PAYLOAD_SEPARATOR,
    extract_payload,
    payload_to_drafts,
)
from agent_picks.utils.data_types import PredictionDraft
from agent_picks.utils.date_parser import has_date_indicators, parse_game_date
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.input_validation import round_half_up, sanitize_text, validate_agent_text
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import MIN_WEEK, WeekSchedule


logger = setup_logger(__name__)


DEFAULT_CONFIDENCE = 50
BULLETS = ('-', '–', '•', '*')

WEEK_PATTERN = re.compile(r"^\W*(?:week|wk)\s*(\d{1,2})\b", re.IGNORECASE)
WIN_PROBABILITY_SPLIT = re.compile(
    r"win\s+probability:\s*(.+?)\s*(\d+(?:\.\d+)?)%\s*/\s*(.+?)\s*(\d+(?:\.\d+)?)%",
    re.IGNORECASE
)
WIN_PROBABILITY_SINGLE = re.compile(
    r"(?:^|:\s*)([A-Z][\w .'&-]*?)\s+win\s+probability\s*[:\-]?\s*(\d+(?:\.\d+)?)\s*%",
    re.IGNORECASE
)
PREDICTION_LABEL = re.compile(
    r"^\W*(?:model\s+prediction|predicted\s+winner|predicted\s+score|prediction|pick)\s*:\s*(.+)$",
    re.IGNORECASE
)
NUMERIC_CONFIDENCE = re.compile(
    r"confidence(?:\s+level)?\s*[:\-]?\s*(\d+(?:\.\d+)?)\s*%?|(\d+(?:\.\d+)?)\s*%\s+confidence",
    re.IGNORECASE
)
QUALITATIVE_CONFIDENCE = re.compile(
    r"confidence(?:\s+level)?\s*[:\-]\s*([a-z]+)|\(\s*([a-z]+)\s+confidence\s*\)",
    re.IGNORECASE
)
RECOMMENDED_PLAY_CONFIDENCE = re.compile(r"recommended\s+play.*\(\s*([a-z]+)\s*\)", re.IGNORECASE)
KEY_FACTORS_HEADER = re.compile(r"^\W*key\s+factors\s*:?\s*(.*)$", re.IGNORECASE)

GAME_HEADER_EXCLUSIONS = ('•', 'Model Prediction', 'Recommended Play', 'Key Factors')
FACTOR_STOP_PATTERNS = [
    re.compile(r"simulation\s+results", re.IGNORECASE),
    re.compile(r"model\s+prediction", re.IGNORECASE),
    re.compile(r"win\s+probability", re.IGNORECASE),
    re.compile(r"\d+%\s+ci\b", re.IGNORECASE),
]
FACTOR_SKIP_PATTERNS = [
    re.compile(r"predicted\s+score", re.IGNORECASE),
    re.compile(r"recommended\s+(?:side|play)", re.IGNORECASE),
    re.compile(r"^\W*confidence\b", re.IGNORECASE),
    re.compile(r"^\W*(?:prediction|pick)\s*:", re.IGNORECASE),
    re.compile(r"mean\s+predicted", re.IGNORECASE),
    re.compile(r"@"),
]
FACTOR_VERB = re.compile(
    r"\b(is|are|has|have|will|can|shows?|indicates?|suggests?|advantage|edge|favors?)\b",
    re.IGNORECASE
)

_MARKDOWN = re.compile(r"[*_#`]+")
_PARENTHETICAL = re.compile(r"\([^)]*\)")
_NUMBERING = re.compile(r"^\s*(?:\d+\s*[.)]\s*|game\s*\d+\s*[:.\-]\s*)", re.IGNORECASE)
_HOME_TRAILER = re.compile(r"\s+(?:-|\|)\s+.*$|,.*$")
_TIME_SUFFIX = re.compile(r"\s+\d{1,2}(?::\d{2})?\s*(?:am|pm)?\b.*$", re.IGNORECASE)
_WEEKDAY_SUFFIX = re.compile(
    r"\s+(?:on\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b.*$",
    re.IGNORECASE
)

CONFIDENCE_KEYWORDS = [
    (('high', 'strong'), 80),
    (('medium', 'moderate'), 60),
    (('low', 'weak'), 40),
]


@dataclass(frozen=True)
class ParserContext:
    """Inputs that stay fixed for a whole parse."""
    today: Optional[date] = None


@dataclass(frozen=True)
class ParserState:
    """Immutable state threaded through the line fold."""
    current_week: int = MIN_WEEK
    current_game_date: Optional[date] = None
    away_team: Optional[str] = None
    home_team: Optional[str] = None
    prediction: Optional[str] = None
    confidence: int = DEFAULT_CONFIDENCE
    reasoning: str = ""
    collecting_factors: bool = False
    has_win_probability: bool = False
    seen: FrozenSet[str] = frozenset()
    drafts: Tuple[PredictionDraft, ...] = ()


def extract_week(line: str) -> Optional[int]:
    match = WEEK_PATTERN.match(line)
    if match:
        week = int(match.group(1))
        if 1 <= week <= 18:
            return week
    return None


def is_game_header(line: str) -> bool:
    if ' @ ' not in line or line.startswith(BULLETS):
        return False
    return not any(marker in line for marker in GAME_HEADER_EXCLUSIONS)


def _clean_team(side: str, is_home: bool) -> str:
    name = _MARKDOWN.sub('', side)
    name = _PARENTHETICAL.sub('', name)
    if is_home:
        name = _HOME_TRAILER.sub('', name)
        name = _TIME_SUFFIX.sub('', name)
        name = _WEEKDAY_SUFFIX.sub('', name)
    else:
        # "Sunday Night Football: Chiefs" keeps only what follows the last colon
        name = name.rsplit(':', 1)[-1]
        name = _NUMBERING.sub('', name)
    return name.strip(" \t.-|")


def split_matchup(line: str) -> Optional[Tuple[str, str]]:
    """Split a game header into (away, home), or None if it is not a clean matchup."""
    parts = line.split(' @ ')
    if len(parts) != 2:
        return None
    away = _clean_team(parts[0], is_home=False)
    home = _clean_team(parts[1], is_home=True)
    if not away or not home or not re.search(r"[A-Za-z]", away + home):
        return None
    return away, home


def extract_win_probability(line: str) -> Optional[str]:
    """Prediction text from a win-probability line, naming the more likely winner."""
    match = WIN_PROBABILITY_SPLIT.search(line)
    if match:
        first, first_prob = match.group(1).strip(), float(match.group(2))
        second, second_prob = match.group(3).strip(), float(match.group(4))
        if 0 <= first_prob <= 100 and 0 <= second_prob <= 100:
            winner, probability = (first, first_prob) if first_prob > second_prob else (second, second_prob)
            return f"{winner} to win ({probability:g}% win probability)"
        return None

    match = WIN_PROBABILITY_SINGLE.search(line)
    if match:
        probability = float(match.group(2))
        if 0 <= probability <= 100:
            return f"{match.group(1).strip()} to win ({probability:g}% win probability)"
    return None


def extract_prediction(line: str) -> Optional[str]:
    match = PREDICTION_LABEL.match(line)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def _keyword_confidence(word: str) -> int:
    lowered = word.lower()
    for keywords, value in CONFIDENCE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return value
    return 70


def extract_confidence(line: str) -> Optional[int]:
    """Numeric or qualitative confidence, rounded to the nearest 10 and clamped to 0-100."""
    match = NUMERIC_CONFIDENCE.search(line)
    if match:
        value = float(match.group(1) or match.group(2))
        return max(0, min(100, round_half_up(value / 10) * 10))

    match = QUALITATIVE_CONFIDENCE.search(line)
    if match:
        return _keyword_confidence(match.group(1) or match.group(2))

    match = RECOMMENDED_PLAY_CONFIDENCE.search(line)
    if match:
        return _keyword_confidence(match.group(1))
    return None


def stops_factor_collection(line: str) -> bool:
    if ' @ ' in line:
        return True
    return any(pattern.search(line) for pattern in FACTOR_STOP_PATTERNS)


def is_factor_line(line: str) -> bool:
    if any(pattern.search(line) for pattern in FACTOR_SKIP_PATTERNS):
        return False
    if line.startswith(BULLETS):
        return True
    if 10 < len(line) < 300 and re.search(r"[A-Za-z]", line):
        return bool(FACTOR_VERB.search(line)) or '.' in line or ',' in line
    return False


def extract_factor_text(line: str) -> str:
    text = re.sub(r"^[-–•*]\s*", '', line).strip()
    return text.rstrip('.').strip()


def _append_factor(state: ParserState, text: str) -> ParserState:
    if not text:
        return state
    reasoning = f"{state.reasoning}. {text}" if state.reasoning else text
    return replace(state, reasoning=reasoning)


def flush(state: ParserState, context: ParserContext) -> ParserState:
    """Emit the current game as a draft unless it is incomplete or already seen."""
    if not (state.away_team and state.home_team and state.prediction):
        return state

    key = f"{state.away_team} @ {state.home_team}"
    if key in state.seen:
        logger.debug(f"Skipping repeated matchup {key}")
        return state

    game_date = state.current_game_date or context.today or date.today()

    draft = PredictionDraft(
        away_team=state.away_team,
        home_team=state.home_team,
        prediction=state.prediction,
        confidence=state.confidence,
        reasoning=state.reasoning,
        game_date=game_date,
        week=state.current_week,
    )
    return replace(state, seen=state.seen | {key}, drafts=state.drafts + (draft,))


def step(context: ParserContext, state: ParserState, line: str) -> ParserState:
    """Advance the parser state by one sanitized, non-empty line."""
    if state.collecting_factors:
        if stops_factor_collection(line):
            state = replace(state, collecting_factors=False)
        elif is_factor_line(line):
            return _append_factor(state, extract_factor_text(line))

    week = extract_week(line)
    if week is not None:
        state = replace(state, current_week=week)

    line_date = parse_game_date(line, context.today) if has_date_indicators(line) else None

    if is_game_header(line):
        matchup = split_matchup(line)
        if matchup:
            state = flush(state, context)
            return replace(
                state,
                away_team=matchup[0],
                home_team=matchup[1],
                prediction=None,
                confidence=DEFAULT_CONFIDENCE,
                reasoning="",
                collecting_factors=False,
                has_win_probability=False,
                current_game_date=line_date or state.current_game_date,
            )

    if line_date is not None and extract_confidence(line) is None:
        state = replace(state, current_game_date=line_date)

    if week is not None:
        return state

    win_prediction = extract_win_probability(line)
    if win_prediction:
        state = replace(state, prediction=win_prediction, has_win_probability=True)
    elif not state.has_win_probability:
        prediction = extract_prediction(line)
        if prediction:
            state = replace(state, prediction=prediction)

    confidence = extract_confidence(line)
    if confidence is not None:
        state = replace(state, confidence=confidence)

    header = KEY_FACTORS_HEADER.match(line)
    if header:
        state = replace(state, collecting_factors=True, reasoning="")
        return _append_factor(state, extract_factor_text(header.group(1)))

    return state


def parse_heuristic(
    text: str,
    selected_week: Optional[int] = None,
    today: Optional[date] = None
) -> List[PredictionDraft]:
    """Line-by-line parse of sanitized text.

    The week starts at ``selected_week`` (or 1) and a "Week N" header line
    replaces it for every game that follows.
    """
    context = ParserContext(today=today)
    lines = [line.strip() for line in text.split('\n') if line.strip()]
    final_state = reduce(partial(step, context), lines, ParserState(current_week=selected_week or MIN_WEEK))
    return list(flush(final_state, context).drafts)


def _dedupe(drafts: List[PredictionDraft]) -> List[PredictionDraft]:
    seen = set()
    unique = []
    for draft in drafts:
        if draft.matchup not in seen:
            seen.add(draft.matchup)
            unique.append(draft)
    return unique


class AgentTextParser:
    """Turns agent output into drafts, preferring the structured payload."""

    def __init__(self, schedule: Optional[WeekSchedule] = None, today: Optional[date] = None):
        """Initialize the parser.

        Args:
            schedule: Season schedule used to resolve payload weeks
            today: Reference date for relative dates (defaults to the current date)
        """
        self.schedule = schedule
        self.today = today

    def parse_agent_text(self, text: str, selected_week: Optional[int] = None) -> List[PredictionDraft]:
        """Parse agent text without raising.

        Args:
            text: Raw agent output
            selected_week: Caller-selected week, used until a "Week N" header says otherwise

        Returns:
            Drafts in order of appearance, at most one per away @ home matchup
        """
        if not isinstance(text, str) or not text.strip():
            return []

        payload, error = extract_payload(text)
        if payload is not None:
            drafts = _dedupe(payload_to_drafts(payload, selected_week, self.schedule, self.today))
            if drafts:
                logger.info(f"Parsed {len(drafts)} predictions from structured payload")
                return drafts
            logger.info("Structured payload had no usable games, using text parser")
        elif PAYLOAD_SEPARATOR in text:
            logger.warning(f"Ignoring structured payload: {error}")

        narrative = text.split(PAYLOAD_SEPARATOR)[0]
        drafts = parse_heuristic(sanitize_text(narrative), selected_week, self.today)
        logger.info(f"Parsed {len(drafts)} predictions from agent text")
        return drafts

    async def process_text(self, text: str, selected_week: Optional[int] = None) -> List[PredictionDraft]:
        """Validate and parse agent text.

        Raises:
            PipelineError: INVALID_INPUT when the text fails validation,
                NO_PREDICTIONS_FOUND when nothing could be parsed
        """
        validation = validate_agent_text(text)
        if not validation.is_valid:
            raise PipelineError(ErrorCode.INVALID_INPUT, validation.error)

        drafts = self.parse_agent_text(text, selected_week)
        if not drafts:
            raise PipelineError(ErrorCode.NO_PREDICTIONS_FOUND, "No predictions found in agent text")
        return drafts


def parse_agent_text(
    text: str,
    selected_week: Optional[int] = None,
    schedule: Optional[WeekSchedule] = None
) -> List[PredictionDraft]:
    """Convenience wrapper around ``AgentTextParser.parse_agent_text``."""
    return AgentTextParser(schedule).parse_agent_text(text, selected_week)
