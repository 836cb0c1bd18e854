"""Prompts for the prediction-generating agent."""

from typing import Dict, List


PREDICTION_SYSTEM_PROMPT = """You are an NFL handicapping analyst. For every matchup you are given, \
produce a moneyline, spread and total prediction backed by a Monte Carlo style simulation summary.

FORMAT EACH GAME AS:
Away Team @ Home Team
Win Probability: <Team> <x>% / <Team> <y>%
Confidence: <0-100>
Key Factors:
- <factor>
- <factor>

After the narrative, print a line containing only ---PARSEABLE_DATA--- followed by a JSON object:
{
  "prediction_timestamp": "YYYY-MM-DD HH:MM:SS Eastern",
  "games": [
    {
      "away_team": "...",
      "home_team": "...",
      "predictions": {
        "moneyline": {"pick": "...", "vegas_odds": -150, "confidence": "High|Medium|Low"},
        "spread": {"pick": "...", "line": -3.5, "confidence": "High|Medium|Low"},
        "total": {"pick": "Over|Under", "line": 45.5, "predicted_total": 47.2, "confidence": "High|Medium|Low"}
      },
      "monte_carlo_results": {
        "moneyline_probability": 0, "home_win_probability": 0, "away_win_probability": 0,
        "spread_probability": 0, "spread_cover_probability": 0, "total_probability": 0,
        "over_probability": 0, "under_probability": 0,
        "predicted_home_score": 0, "predicted_away_score": 0
      },
      "key_factors": ["..."]
    }
  ]
}

Probabilities are percentages between 0 and 100. The spread line is quoted for the picked team. \
Use full team names exactly as given. Output valid JSON with no comments."""


WEEK_REQUEST_TEMPLATE = """Generate predictions for NFL week {week} ({start} to {end}).

Matchups (away @ home):
{matchups}

{notes}"""


def format_matchups(matchups: List[str]) -> str:
    return "\n".join(f"{i}. {m}" for i, m in enumerate(matchups, 1))


def build_week_request(week: int, start: str, end: str, matchups: List[str], notes: str = "") -> str:
    """User message asking for one week's predictions."""
    return WEEK_REQUEST_TEMPLATE.format(
        week=week,
        start=start,
        end=end,
        matchups=format_matchups(matchups),
        notes=notes,
    ).strip()


PROMPTS: Dict[str, str] = {
    "prediction": PREDICTION_SYSTEM_PROMPT,
}


def get_system_prompt(name: str = "prediction") -> str:
    return PROMPTS.get(name, PREDICTION_SYSTEM_PROMPT)
