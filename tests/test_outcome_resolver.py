"""Tests for market settlement from final scores."""

from agent_picks.pipeline.outcome_resolver import (
    cover_margin,
    get_or_calculate_result,
    home_line,
    predicted_total_side,
    resolve_all,
    resolve_moneyline,
    resolve_spread,
    resolve_total,
)
from agent_picks.utils.data_types import BetResult, Market


class TestMoneyline:
    """Test suite for moneyline resolution."""

    def test_win_and_loss(self, make_pick):
        assert resolve_moneyline(make_pick(home_score=27, away_score=24)) is BetResult.WIN
        assert resolve_moneyline(make_pick(home_score=20, away_score=24)) is BetResult.LOSS

    def test_away_pick(self, make_pick):
        pick = make_pick(prediction="Chiefs win outright", home_score=20, away_score=24)
        assert resolve_moneyline(pick) is BetResult.WIN

    def test_tie_is_push(self, make_pick):
        assert resolve_moneyline(make_pick(home_score=24, away_score=24)) is BetResult.PUSH

    def test_pending_without_scores_or_side(self, make_pick):
        assert resolve_moneyline(make_pick()) is BetResult.PENDING
        assert resolve_moneyline(make_pick(prediction="Close game", home_score=27, away_score=24)) is BetResult.PENDING


class TestSpread:
    """Test suite for spread resolution."""

    def test_favorite_covers(self, make_pick):
        pick = make_pick(spread=-3, spread_prediction="Buffalo Bills -3", home_score=28, away_score=24)
        assert resolve_spread(pick) is BetResult.WIN

    def test_exact_margin_is_push(self, make_pick):
        pick = make_pick(spread=-3, spread_prediction="Buffalo Bills -3", home_score=27, away_score=24)
        assert resolve_spread(pick) is BetResult.PUSH

    def test_line_resigned_by_favorite(self, make_pick):
        pick = make_pick(spread=3, favorite_team="Kansas City Chiefs",
                         spread_prediction="Kansas City Chiefs -3", home_score=27, away_score=24)

        assert home_line(pick.game_info) == 3
        assert resolve_spread(pick) is BetResult.LOSS

    def test_underdog_keyword(self, make_pick):
        pick = make_pick(spread=-3, spread_prediction="underdog", home_score=30, away_score=24)
        assert resolve_spread(pick) is BetResult.LOSS

    def test_pending_without_line_or_prediction(self, make_pick):
        assert resolve_spread(make_pick(spread_prediction="Buffalo Bills -3", home_score=27, away_score=24)) \
            is BetResult.PENDING
        assert resolve_spread(make_pick(spread=-3, home_score=27, away_score=24)) is BetResult.PENDING


class TestTotal:
    """Test suite for over/under resolution."""

    def test_over(self, make_pick):
        def over(home, away):
            return resolve_total(make_pick(over_under=45, ou_prediction="Over", home_score=home, away_score=away))

        assert over(24, 21) is BetResult.PUSH
        assert over(24, 22) is BetResult.WIN
        assert over(24, 20) is BetResult.LOSS

    def test_under(self, make_pick):
        pick = make_pick(over_under=45, ou_prediction="Under 45", home_score=24, away_score=20)
        assert resolve_total(pick) is BetResult.WIN

    def test_keywords_in_prediction(self, make_pick):
        assert predicted_total_side(make_pick(prediction="High scoring shootout in Buffalo")) == 'over'
        assert predicted_total_side(make_pick(prediction="A defensive struggle")) == 'under'
        assert predicted_total_side(make_pick(prediction="Bills to win")) is None

    def test_pending_without_side(self, make_pick):
        pick = make_pick(over_under=45, home_score=24, away_score=22)
        assert resolve_total(pick) is BetResult.PENDING


def test_resolve_all(make_pick):
    pick = make_pick(spread=-3, over_under=45, spread_prediction="Buffalo Bills -3",
                     ou_prediction="Over", home_score=31, away_score=17)
    resolved = resolve_all(pick)

    assert resolved.moneyline is BetResult.WIN
    assert resolved.spread is BetResult.WIN
    assert resolved.total is BetResult.WIN


def test_stored_result_takes_precedence(make_pick):
    pick = make_pick(result=BetResult.LOSS, home_score=27, away_score=24)

    assert get_or_calculate_result(pick, Market.MONEYLINE) is BetResult.LOSS
    assert get_or_calculate_result(make_pick(home_score=27, away_score=24), Market.MONEYLINE) is BetResult.WIN


def test_cover_margin(make_pick):
    assert cover_margin(make_pick(spread=-3, home_score=31, away_score=17)) == 11
    assert cover_margin(make_pick(spread=-3)) is None
