"""Tests for agent text parsing."""

import asyncio
import json
from datetime import date
from pathlib import Path

import pytest

from agent_picks.pipeline.agent_text_parser import (
    AgentTextParser,
    extract_confidence,
    extract_win_probability,
    is_factor_line,
    is_game_header,
    split_matchup,
)
from agent_picks.pipeline.payload_parser import PAYLOAD_SEPARATOR
from agent_picks.utils.config_loader import ConfigLoader
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.weeks import load_week_schedule


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"
TODAY = date(2025, 11, 8)

SINGLE_GAME = (
    "Chiefs @ Bills\n"
    "Model Prediction: Bills win probability 62%\n"
    "Confidence: 70\n"
    "Key Factors:\n"
    "- Bills defense trending up\n"
)

WEEK_TEXT = (
    "Week 10 Predictions\n"
    "\n"
    "Chiefs @ Bills - Sunday, Nov 9\n"
    "Prediction: Bills to win\n"
    "Confidence: 72%\n"
    "Key Factors:\n"
    "- Bills defense trending up\n"
    "- Chiefs missing two starters\n"
    "\n"
    "Lions @ Packers\n"
    "Predicted Winner: Lions\n"
    "Confidence: Medium\n"
)


@pytest.fixture
def parser():
    schedule = load_week_schedule(ConfigLoader(str(CONFIG_PATH)))
    return AgentTextParser(schedule, today=TODAY)


class TestHeuristicParsing:
    """Test suite for the line-by-line parser."""

    def test_single_game(self, parser):
        drafts = parser.parse_agent_text(SINGLE_GAME)

        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.away_team == "Chiefs"
        assert draft.home_team == "Bills"
        assert "Bills" in draft.prediction
        assert draft.prediction == "Bills to win (62% win probability)"
        assert draft.confidence == 70
        assert draft.reasoning == "Bills defense trending up"
        assert draft.game_date == TODAY
        assert draft.week == 1

    def test_multiple_games(self, parser):
        drafts = parser.parse_agent_text(WEEK_TEXT)

        assert [d.matchup for d in drafts] == ["Chiefs @ Bills", "Lions @ Packers"]
        first, second = drafts
        assert first.prediction == "Bills to win"
        assert first.confidence == 70
        assert first.reasoning == "Bills defense trending up. Chiefs missing two starters"
        assert first.game_date == date(2025, 11, 9)
        assert first.week == 10
        assert second.prediction == "Lions"
        assert second.confidence == 60
        assert second.reasoning == ""
        assert second.week == 10

    def test_repeated_matchup_emitted_once(self, parser):
        text = (
            "Chiefs @ Bills\n"
            "Prediction: Bills to win\n"
            "\n"
            "Chiefs @ Bills\n"
            "Prediction: Chiefs to win\n"
        )
        drafts = parser.parse_agent_text(text)

        assert len(drafts) == 1
        assert drafts[0].prediction == "Bills to win"

    def test_game_without_prediction_is_dropped(self, parser):
        text = "Chiefs @ Bills\nConfidence: 80\n\nLions @ Packers\nPick: Packers\n"
        drafts = parser.parse_agent_text(text)

        assert [d.matchup for d in drafts] == ["Lions @ Packers"]

    def test_default_confidence(self, parser):
        drafts = parser.parse_agent_text("Lions @ Packers\nPick: Packers\n")
        assert drafts[0].confidence == 50

    def test_week_header_beats_selected_week(self, parser):
        drafts = parser.parse_agent_text(WEEK_TEXT, selected_week=12)
        assert {d.week for d in drafts} == {10}

    def test_selected_week_without_header(self, parser):
        assert parser.parse_agent_text(SINGLE_GAME, selected_week=3)[0].week == 3

    def test_week_defaults_to_one(self):
        late_season = AgentTextParser(today=date(2025, 11, 20))
        drafts = late_season.parse_agent_text(SINGLE_GAME)

        assert drafts[0].week == 1
        assert drafts[0].game_date == date(2025, 11, 20)

    def test_header_applies_to_every_game(self, parser):
        text = "Week 5 Predictions\n" + SINGLE_GAME + "\nLions @ Packers\nPick: Packers\n"
        drafts = parser.parse_agent_text(text, selected_week=3)

        assert [d.week for d in drafts] == [5, 5]

    def test_no_headers(self, parser):
        assert parser.parse_agent_text("Nothing to see here, just commentary.") == []

    def test_empty_input(self, parser):
        assert parser.parse_agent_text("") == []
        assert parser.parse_agent_text(None) == []


class TestStructuredPayload:
    """Test suite for the structured payload path."""

    payload = {
        "prediction_timestamp": "2025-11-08 10:44:03 Eastern",
        "games": [{
            "away_team": "Kansas City Chiefs",
            "home_team": "Buffalo Bills",
            "predictions": {
                "moneyline": {"pick": "Buffalo Bills", "vegas_odds": -130, "confidence": "Medium"},
                "spread": {"pick": "Buffalo Bills", "line": -2.5, "confidence": "High"},
                "total": {"pick": "Over", "line": 47.5, "confidence": "Low"},
            },
            "monte_carlo_results": {
                "home_win_probability": 62.0,
                "moneyline_probability": 62.0,
                "spread_probability": 58.0,
                "total_probability": 51.0,
            },
            "key_factors": ["Bills defense trending up", "Chiefs on short rest"],
        }],
    }

    def _text(self, body: str) -> str:
        return f"Chiefs @ Bills\nPrediction: Chiefs to win\n{PAYLOAD_SEPARATOR}\n{body}"

    def test_payload_preferred(self, parser):
        text = self._text("```json\n" + json.dumps(self.payload) + "\n```")
        drafts = parser.parse_agent_text(text)

        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.matchup == "Kansas City Chiefs @ Buffalo Bills"
        assert draft.prediction == "Buffalo Bills -2.5"
        assert draft.confidence == 80
        assert draft.reasoning == "Bills defense trending up; Chiefs on short rest"
        assert draft.game_date == date(2025, 11, 8)
        assert draft.week == 10
        assert draft.markets.spread_line == -2.5
        assert draft.markets.probabilities.spread_probability == 58.0

    def test_malformed_payload_falls_back(self, parser):
        drafts = parser.parse_agent_text(self._text("{not json"))

        assert len(drafts) == 1
        assert drafts[0].matchup == "Chiefs @ Bills"
        assert drafts[0].prediction == "Chiefs to win"

    def test_empty_games_falls_back(self, parser):
        drafts = parser.parse_agent_text(self._text('{"games": []}'))
        assert [d.matchup for d in drafts] == ["Chiefs @ Bills"]


class TestProcessText:
    """Test suite for validated parsing."""

    def test_returns_drafts(self, parser):
        drafts = asyncio.run(parser.process_text(WEEK_TEXT))
        assert len(drafts) == 2

    def test_no_predictions(self, parser):
        text = "Here are some general thoughts about this week ahead, but no games are listed at all."
        with pytest.raises(PipelineError) as exc_info:
            asyncio.run(parser.process_text(text))
        assert exc_info.value.code is ErrorCode.NO_PREDICTIONS_FOUND

    def test_invalid_input(self, parser):
        with pytest.raises(PipelineError) as exc_info:
            asyncio.run(parser.process_text("   "))
        assert exc_info.value.code is ErrorCode.INVALID_INPUT


class TestLineHelpers:
    """Test suite for single-line extraction helpers."""

    def test_game_header_detection(self):
        assert is_game_header("Chiefs @ Bills")
        assert not is_game_header("• Chiefs @ Bills")
        assert not is_game_header("Model Prediction: Chiefs @ Bills")
        assert not is_game_header("Chiefs vs Bills")

    def test_split_matchup_strips_decoration(self):
        assert split_matchup("1. Kansas City Chiefs @ Buffalo Bills (8:20 PM ET)") == (
            "Kansas City Chiefs", "Buffalo Bills"
        )
        assert split_matchup("**Sunday Night Football: Chiefs @ Bills 8:20pm**") == ("Chiefs", "Bills")
        assert split_matchup("Chiefs @ Bills - Sunday, Nov 9") == ("Chiefs", "Bills")

    def test_split_win_probability_picks_favorite(self):
        line = "Win Probability: Chiefs 38% / Bills 62%"
        assert extract_win_probability(line) == "Bills to win (62% win probability)"

    def test_confidence_forms(self):
        assert extract_confidence("Confidence: 65%") == 70
        assert extract_confidence("Confidence Level: 84") == 80
        assert extract_confidence("(High confidence)") == 80
        assert extract_confidence("Confidence: low") == 40
        assert extract_confidence("Recommended Play: Bills ML (strong)") == 80
        assert extract_confidence("Bills by a field goal") is None

    def test_factor_lines(self):
        assert is_factor_line("- Bills defense trending up")
        assert is_factor_line("The Bills pass rush has an advantage up front")
        assert not is_factor_line("Predicted Score: Bills 27-24")
        assert not is_factor_line("Confidence: 70")
