"""Tests for saving drafts and settling picks."""

import asyncio
import json
from datetime import date
from pathlib import Path

import pytest

from agent_picks.pipeline.ingestion import DUPLICATE_SKIPPED, SAVED, PickIngestor
from agent_picks.pipeline.payload_parser import PAYLOAD_SEPARATOR
from agent_picks.pipeline.settlement import apply_result_override, settle_pick
from agent_picks.storage.pick_store import InMemoryPickStore
from agent_picks.utils.config_loader import ConfigLoader
from agent_picks.utils.data_types import (
    BetResult,
    GameMarkets,
    Market,
    ModelProbabilities,
    PredictionDraft,
)
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.weeks import load_week_schedule


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"
TODAY = date(2025, 11, 8)

AGENT_TEXT = (
    "Week 10 Predictions\n"
    "Chiefs @ Bills\n"
    "Model Prediction: Bills win probability 62%\n"
    "Confidence: 70\n"
    "Key Factors:\n"
    "- Bills defense trending up\n"
)


@pytest.fixture
def store():
    return InMemoryPickStore()


@pytest.fixture
def ingestor(store):
    schedule = load_week_schedule(ConfigLoader(str(CONFIG_PATH)))
    return PickIngestor(store, schedule=schedule, today=TODAY)


def _draft(**overrides):
    fields = dict(
        away_team="Kansas City Chiefs",
        home_team="Buffalo Bills",
        prediction="Buffalo Bills -2.5",
        confidence=80,
        reasoning="Bills defense trending up; Chiefs on short rest",
        game_date=TODAY,
        week=10,
    )
    fields.update(overrides)
    return PredictionDraft(**fields)


class TestIngestText:
    """Test suite for parsing and saving agent text."""

    def test_saves_new_pick(self, ingestor, store):
        summary = asyncio.run(ingestor.ingest_text(AGENT_TEXT))

        assert summary.saved_count == 1
        assert summary.duplicate_count == 0
        assert summary.outcomes == [("Chiefs @ Bills", SAVED)]

        picks = asyncio.run(store.list_picks())
        assert len(picks) == 1
        pick = picks[0]
        assert pick.id
        assert pick.week == 10
        assert pick.confidence == 70
        assert pick.game_info.game_date == "2025-11-08"
        assert pick.result is BetResult.PENDING
        assert pick.moneyline_edge is None

    def test_second_ingest_is_skipped(self, ingestor, store):
        asyncio.run(ingestor.ingest_text(AGENT_TEXT))
        summary = asyncio.run(ingestor.ingest_text(AGENT_TEXT))

        assert summary.saved_count == 0
        assert summary.duplicate_count == 1
        assert summary.outcomes == [("Chiefs @ Bills", DUPLICATE_SKIPPED)]
        assert len(asyncio.run(store.list_picks())) == 1

    def test_duplicate_matches_normalized_names(self, make_pick):
        store = InMemoryPickStore([make_pick(week=10)])
        ingestor = PickIngestor(store, today=TODAY)

        summary = asyncio.run(ingestor.ingest_text(AGENT_TEXT))

        assert summary.duplicate_count == 1
        assert len(asyncio.run(store.list_picks())) == 1

    def test_invalid_draft_blocks_whole_batch(self, ingestor, store):
        text = AGENT_TEXT + "\nLions @ Packers\nPredicted Winner: Lions\nConfidence: Medium\n"

        with pytest.raises(PipelineError) as exc_info:
            asyncio.run(ingestor.ingest_text(text))

        error = exc_info.value
        assert error.code is ErrorCode.VALIDATION_FAILED
        assert error.details == ["Lions @ Packers: Reasoning: Reasoning is required"]
        assert asyncio.run(store.list_picks()) == []

    def test_no_predictions(self, ingestor):
        with pytest.raises(PipelineError) as exc_info:
            asyncio.run(ingestor.ingest_text("Plenty of words about football but nothing resembling a game line."))
        assert exc_info.value.code is ErrorCode.NO_PREDICTIONS_FOUND

    def test_payload_with_string_numbers(self, ingestor, store):
        payload = {
            'prediction_timestamp': '2025-11-08 09:00:00 Eastern',
            'games': [{
                'away_team': 'Kansas City Chiefs',
                'home_team': 'Buffalo Bills',
                'predictions': {
                    'moneyline': {'pick': 'Buffalo Bills', 'vegas_odds': 50, 'confidence': 'Medium'},
                    'spread': {'pick': 'Buffalo Bills', 'line': '-3.5', 'confidence': 'High'},
                },
                'monte_carlo_results': {'moneyline_probability': '62', 'spread_probability': '58'},
                'key_factors': ['Bills defense trending up'],
            }],
        }
        text = f"Week 10 card below.\n{PAYLOAD_SEPARATOR}\n{json.dumps(payload)}"

        summary = asyncio.run(ingestor.ingest_text(text, selected_week=10))

        assert summary.saved_count == 1
        pick = asyncio.run(store.list_picks())[0]
        assert pick.prediction == "Buffalo Bills -3.5"
        assert pick.game_info.spread == -3.5
        assert pick.game_info.home_ml_odds is None
        assert pick.moneyline_edge == pytest.approx(9.62)
        assert pick.spread_edge == pytest.approx(5.62)


class TestSavePredictions:
    """Test suite for saving structured drafts."""

    def test_market_details_and_edges(self, ingestor):
        markets = GameMarkets(
            moneyline_pick="Buffalo Bills",
            moneyline_odds=-130,
            spread_pick="Buffalo Bills",
            spread_line=-2.5,
            total_pick="over",
            total_line=47.5,
            probabilities=ModelProbabilities(
                home_win_probability=62.0,
                moneyline_probability=62.0,
                spread_probability=58.0,
                total_probability=51.0,
            ),
        )
        summary = asyncio.run(ingestor.save_predictions([_draft(markets=markets)]))
        pick = summary.saved_picks[0]

        assert pick.game_info.spread == -2.5
        assert pick.game_info.favorite_is_home is True
        assert pick.game_info.over_under == 47.5
        assert pick.game_info.home_ml_odds == -130
        assert pick.spread_prediction == "Buffalo Bills -2.5"
        assert pick.ou_prediction == "Over"
        assert pick.moneyline_edge == pytest.approx(5.48)
        assert pick.spread_edge == pytest.approx(5.62)
        assert pick.ou_edge == pytest.approx(-1.38)

    def test_away_spread_converted_to_home_line(self, ingestor):
        markets = GameMarkets(spread_pick="Kansas City Chiefs", spread_line=2.5)
        summary = asyncio.run(ingestor.save_predictions([_draft(markets=markets)]))
        pick = summary.saved_picks[0]

        assert pick.game_info.spread == -2.5
        assert pick.spread_prediction == "Kansas City Chiefs +2.5"

    def test_duplicates_within_batch(self, ingestor, store):
        summary = asyncio.run(ingestor.save_predictions([_draft(), _draft(prediction="Buffalo Bills to win")]))

        assert summary.saved_count == 1
        assert summary.duplicate_count == 1
        assert summary.saved_picks[0].prediction == "Buffalo Bills -2.5"

    def test_same_teams_different_week_is_new(self, ingestor):
        summary = asyncio.run(ingestor.save_predictions([_draft(), _draft(week=14, game_date=date(2025, 12, 7))]))
        assert summary.saved_count == 2


class TestSettlement:
    """Test suite for settling stored picks."""

    def test_settle_with_scores(self, make_pick):
        pick = make_pick(spread=-3, over_under=45, spread_prediction="Buffalo Bills -3", ou_prediction="Over")
        store = InMemoryPickStore([pick])

        settled = asyncio.run(settle_pick(store, pick.id, home_score=31, away_score=17))

        assert settled.game_info.home_score == 31
        assert settled.result is BetResult.WIN
        assert settled.ats_result is BetResult.WIN
        assert settled.ou_result is BetResult.WIN
        assert asyncio.run(store.get_pick(pick.id)) == settled

    def test_settled_market_is_not_recomputed(self, make_pick):
        pick = make_pick(result=BetResult.LOSS, over_under=45, ou_prediction="Under")
        store = InMemoryPickStore([pick])

        settled = asyncio.run(settle_pick(store, pick.id, home_score=31, away_score=17))

        assert settled.result is BetResult.LOSS
        assert settled.ou_result is BetResult.LOSS

    def test_result_override(self, make_pick):
        pick = make_pick(over_under=45, ou_prediction="Over")
        store = InMemoryPickStore([pick])

        settled = asyncio.run(settle_pick(store, pick.id, result="push", market=Market.TOTAL))

        assert settled.ou_result is BetResult.PUSH
        assert settled.result is BetResult.PENDING

    def test_override_must_settle(self, make_pick):
        with pytest.raises(ValueError):
            apply_result_override(make_pick(), "pending")

    def test_unknown_pick(self):
        with pytest.raises(PipelineError) as exc_info:
            asyncio.run(settle_pick(InMemoryPickStore(), "missing", home_score=1, away_score=0))
        assert exc_info.value.code is ErrorCode.RECORD_NOT_FOUND

    def test_requires_scores_or_result(self, make_pick):
        pick = make_pick()
        with pytest.raises(ValueError):
            asyncio.run(settle_pick(InMemoryPickStore([pick]), pick.id, home_score=21))
