"""Tests for performance aggregation."""

import pandas as pd
import pytest

from agent_picks.pipeline.stats_aggregator import StatisticsAggregator, StatsScope
from agent_picks.utils.data_types import BetResult, Market


W, L, P = BetResult.WIN, BetResult.LOSS, BetResult.PUSH


@pytest.fixture
def aggregator():
    return StatisticsAggregator()


@pytest.fixture
def season(make_pick):
    """Seven settled moneyline picks in creation order."""
    sequence = [(W, 80), (W, 80), (P, 60), (W, 70), (L, 50), (W, 60), (W, 90)]
    return [make_pick(result=result, confidence=confidence) for result, confidence in sequence]


class TestMarketStats:
    """Test suite for single-market aggregation."""

    def test_record_units_and_roi(self, aggregator, season):
        stats = aggregator.market_stats(season, Market.MONEYLINE)

        assert (stats.wins, stats.losses, stats.pushes, stats.total) == (5, 1, 1, 7)
        assert stats.win_rate == 83
        assert stats.units == pytest.approx(3.9)
        assert stats.roi == pytest.approx(65.0)
        assert stats.record == "5-1-1"

    def test_streaks(self, aggregator, season):
        stats = aggregator.market_stats(season, Market.MONEYLINE)

        assert stats.current_streak == 2
        # Push does not reset the run, the loss does
        assert stats.longest_streak == 3

    def test_streak_uses_creation_order(self, aggregator, season):
        stats = aggregator.market_stats(list(reversed(season)), Market.MONEYLINE)
        assert stats.current_streak == 2

    def test_pending_picks_ignored(self, aggregator, make_pick):
        picks = [make_pick(result=W), make_pick(), make_pick(result=L)]
        stats = aggregator.market_stats(picks, Market.MONEYLINE)

        assert stats.total == 2
        assert stats.current_streak == 0
        assert stats.units == pytest.approx(-0.1)

    def test_bet_size_scales_units(self, make_pick):
        stats = StatisticsAggregator(bet_size=2.0).market_stats(
            [make_pick(result=W), make_pick(result=L)], Market.MONEYLINE
        )
        assert stats.units == pytest.approx(-0.2)
        assert stats.roi == pytest.approx(-5.0)

    def test_scores_settle_unmarked_markets(self, aggregator, make_pick):
        picks = [make_pick(spread=-3, spread_prediction="Buffalo Bills -3", home_score=31, away_score=17)]
        stats = aggregator.market_stats(picks, Market.SPREAD)
        assert stats.wins == 1


class TestAggregate:
    """Test suite for full aggregation."""

    def test_empty(self, aggregator):
        stats = aggregator.aggregate([])

        assert stats.total_picks == 0
        assert stats.moneyline.win_rate == 0
        assert stats.moneyline.units == 0
        assert stats.moneyline.roi == 0
        assert stats.ats.total == 0
        assert stats.scope == 'all'

    def test_confidence_buckets(self, aggregator, season):
        buckets = aggregator.aggregate(season).by_confidence

        assert (buckets['high'].wins, buckets['high'].total, buckets['high'].win_rate) == (3, 3, 100)
        assert (buckets['medium'].wins, buckets['medium'].total, buckets['medium'].win_rate) == (2, 3, 67)
        assert (buckets['low'].wins, buckets['low'].total) == (0, 1)

    def test_scoped_by_week_and_team(self, aggregator, make_pick):
        picks = [
            make_pick(result=W, week=9),
            make_pick(result=L, week=10),
            make_pick(home_team="Green Bay Packers", away_team="Detroit Lions",
                      prediction="Detroit Lions to win", result=W, week=10),
        ]

        week_stats = aggregator.stats_for_week(picks, 10)
        assert week_stats.total_picks == 2
        assert week_stats.scope == "week 10"

        team_stats = aggregator.stats_for_team(picks, "bills")
        assert team_stats.total_picks == 2
        assert team_stats.moneyline.record == "1-1"

        both = aggregator.aggregate(picks, StatsScope(week=10, team="Lions"))
        assert both.total_picks == 1
        assert both.scope == "week 10, team Lions"

    def test_weekly_breakdown_most_recent_first(self, aggregator, make_pick):
        picks = [make_pick(result=W, week=8), make_pick(result=L, week=10), make_pick(result=W, week=9)]
        assert [week for week, _ in aggregator.weekly_breakdown(picks)] == [10, 9, 8]

    def test_team_rankings_need_enough_games(self, aggregator, make_pick):
        picks = [make_pick(result=W) for _ in range(3)]
        picks.append(make_pick(home_team="Green Bay Packers", away_team="Detroit Lions",
                               prediction="Detroit Lions to win", result=W))

        best = aggregator.best_teams(picks)
        assert [team for team, _ in best] == ["Buffalo Bills", "Kansas City Chiefs"]
        assert aggregator.worst_teams(picks, min_decided=1)[0][1].moneyline.win_rate == 100

    def test_recent_form(self, aggregator, season):
        stats = aggregator.recent_form(season, count=2)

        assert stats.total_picks == 2
        assert stats.moneyline.wins == 2
        assert stats.scope == "last 2"


def test_betting_efficiency(aggregator, season):
    efficiency = aggregator.betting_efficiency(season)

    assert efficiency['actual_advantage'] == pytest.approx(83 - 52.38)
    assert 0 <= efficiency['kelly_percent'] <= 25
    assert efficiency['confidence_accuracy'] == pytest.approx(100.0)
    assert efficiency['value_games'] == 3


def test_ats_details(aggregator, make_pick):
    picks = [
        make_pick(spread=-3, home_score=31, away_score=17),
        make_pick(spread=-7, home_score=20, away_score=17),
        make_pick(),
    ]
    details = aggregator.ats_details(picks)

    assert details['average_cover_margin'] == pytest.approx(3.5)
    assert details['average_total'] == pytest.approx(42.5)


def test_export_results(aggregator, season, make_pick, tmp_path):
    picks = season + [make_pick(result=L, week=11)]
    path = aggregator.export_results(picks, str(tmp_path / "reports" / "weeks.csv"))

    frame = pd.read_csv(path)
    assert list(frame['week']) == [11, 10]
    assert list(frame['ml_record']) == ["0-1", "5-1-1"]


def test_export_rejects_unknown_breakdown(aggregator, season, tmp_path):
    with pytest.raises(ValueError):
        aggregator.export_results(season, str(tmp_path / "out.csv"), by='month')
