"""Structured JSON payload extraction from agent responses."""

import json
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from agent_picks.utils.data_types import (
    GameMarkets,
    ModelProbabilities,
    PredictionDraft,
    confidence_from_label,
    to_american_odds,
    to_float,
)
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import WeekSchedule, clamp_week, estimate_week


logger = setup_logger(__name__)


PAYLOAD_SEPARATOR = "---PARSEABLE_DATA---"

_CODE_FENCE = re.compile(r"```(?:json)?\n?")
_TIMEZONE_SUFFIX = re.compile(
    r"\s+(Eastern|EST|EDT|Pacific|PST|PDT|Central|CST|CDT|Mountain|MST|MDT)$",
    re.IGNORECASE
)


def extract_payload(response: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Pull the JSON payload that follows the separator.

    Args:
        response: Full agent response

    Returns:
        Tuple of (payload, error). Exactly one of the two is None.
    """
    parts = response.split(PAYLOAD_SEPARATOR)
    if len(parts) < 2:
        return None, f"No parseable data found; expected '{PAYLOAD_SEPARATOR}' separator"

    json_text = _CODE_FENCE.sub('', parts[1].strip()).strip()
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        return None, f"Failed to parse JSON: {e}"

    if not isinstance(data, dict) or not isinstance(data.get('games'), list):
        return None, "Invalid JSON structure: missing 'games' array"

    return data, None


def parse_timestamp(timestamp: Any, today: Optional[date] = None) -> date:
    """Date of a prediction timestamp such as '2025-10-01 10:44:03 Eastern'."""
    fallback = today or date.today()
    if not isinstance(timestamp, str) or not timestamp.strip():
        return fallback

    cleaned = _TIMEZONE_SUFFIX.sub('', timestamp.strip()).strip()
    parsed = pd.to_datetime(cleaned, errors='coerce')
    if pd.isna(parsed):
        logger.warning(f"Invalid timestamp format '{timestamp}', using current date")
        return fallback
    return parsed.date()


def _format_line(line: Any, signed: bool) -> str:
    number = to_float(line)
    if number is None:
        return "" if line is None else str(line)
    text = f"{number:g}"
    if signed and number > 0:
        return f"+{text}"
    return text


def _market(predictions: Any, name: str) -> Dict[str, Any]:
    market = predictions.get(name) if isinstance(predictions, dict) else None
    return market if isinstance(market, dict) else {}


def _pick(market: Dict[str, Any]) -> Optional[str]:
    pick = market.get('pick')
    if pick is None or isinstance(pick, (dict, list)):
        return None
    return str(pick).strip() or None


def primary_prediction(predictions: Dict[str, Any]) -> Tuple[str, int]:
    """Choose the market with the highest confidence (ties favor spread, then total).

    Returns:
        Tuple of (prediction text, numeric confidence)
    """
    moneyline = _market(predictions, 'moneyline')
    spread = _market(predictions, 'spread')
    total = _market(predictions, 'total')

    def market_confidence(market: Dict[str, Any]) -> int:
        # Markets without a pick never win the primary slot
        return confidence_from_label(market.get('confidence')) if _pick(market) else -1

    moneyline_conf = market_confidence(moneyline)
    spread_conf = market_confidence(spread)
    total_conf = market_confidence(total)

    if max(moneyline_conf, spread_conf, total_conf) < 0:
        return "", 50

    if spread_conf >= moneyline_conf and spread_conf >= total_conf:
        return f"{_pick(spread) or ''} {_format_line(spread.get('line'), signed=True)}".strip(), spread_conf
    if total_conf >= moneyline_conf and total_conf >= spread_conf:
        return f"{_pick(total) or ''} {_format_line(total.get('line'), signed=False)}".strip(), total_conf
    return f"{_pick(moneyline) or ''} (moneyline)".strip(), moneyline_conf


def _market_details(game: Dict[str, Any]) -> GameMarkets:
    predictions = game.get('predictions')
    moneyline = _market(predictions, 'moneyline')
    spread = _market(predictions, 'spread')
    total = _market(predictions, 'total')
    return GameMarkets(
        moneyline_pick=_pick(moneyline),
        moneyline_odds=to_american_odds(moneyline.get('vegas_odds')),
        moneyline_confidence=confidence_from_label(moneyline.get('confidence')),
        spread_pick=_pick(spread),
        spread_line=to_float(spread.get('line')),
        spread_confidence=confidence_from_label(spread.get('confidence')),
        total_pick=_pick(total),
        total_line=to_float(total.get('line')),
        total_confidence=confidence_from_label(total.get('confidence')),
        predicted_total=to_float(total.get('predicted_total')),
        probabilities=ModelProbabilities.from_dict(game.get('monte_carlo_results')),
    )


def payload_to_drafts(
    payload: Dict[str, Any],
    selected_week: Optional[int] = None,
    schedule: Optional[WeekSchedule] = None,
    today: Optional[date] = None
) -> List[PredictionDraft]:
    """Convert a decoded payload into drafts, one per well-formed game.

    The week is ``selected_week`` when given, otherwise the linear estimate
    from the payload date counted from the schedule's season start.
    """
    game_date = parse_timestamp(payload.get('prediction_timestamp'), today)
    if selected_week:
        week = clamp_week(selected_week)
    else:
        week = estimate_week(game_date, schedule.season_start if schedule else None)

    drafts = []
    for index, game in enumerate(payload.get('games', [])):
        if not isinstance(game, dict) or not game.get('home_team') or not game.get('away_team'):
            logger.warning(f"Skipping malformed game entry {index} in payload")
            continue

        prediction, confidence = primary_prediction(game.get('predictions') or {})
        key_factors = game.get('key_factors') or []
        if not isinstance(key_factors, list):
            key_factors = [key_factors]

        drafts.append(PredictionDraft(
            away_team=str(game['away_team']),
            home_team=str(game['home_team']),
            prediction=prediction,
            confidence=confidence,
            reasoning='; '.join(str(f) for f in key_factors),
            game_date=game_date,
            week=week,
            markets=_market_details(game),
        ))

    return drafts


def extract_betting_details(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-game summary of every market in the payload."""
    details = []
    for game in payload.get('games', []):
        if not isinstance(game, dict):
            continue
        markets = _market_details(game)
        probabilities = markets.probabilities or ModelProbabilities()
        details.append({
            'teams': f"{game.get('away_team')} @ {game.get('home_team')}",
            'spread': {
                'line': markets.spread_line,
                'pick': markets.spread_pick,
                'confidence': markets.spread_confidence,
            },
            'total': {
                'line': markets.total_line,
                'pick': markets.total_pick,
                'predicted': markets.predicted_total,
                'confidence': markets.total_confidence,
            },
            'moneyline': {
                'pick': markets.moneyline_pick,
                'odds': markets.moneyline_odds,
                'confidence': markets.moneyline_confidence,
            },
            'model': {
                'home_win_probability': probabilities.home_win_probability,
                'away_win_probability': probabilities.away_win_probability,
                'predicted_score': f"{probabilities.predicted_home_score} - {probabilities.predicted_away_score}",
                'moneyline_probability': probabilities.moneyline_probability,
                'spread_probability': probabilities.spread_probability,
                'total_probability': probabilities.total_probability,
            },
            'key_factors': game.get('key_factors') or [],
        })
    return details
