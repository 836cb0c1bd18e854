"""Shared fixtures for pipeline tests."""

from datetime import datetime, timedelta

import pytest

from agent_picks.utils.data_types import BetResult, GameInfo, Pick


@pytest.fixture
def make_pick():
    """Factory for picks with sensible defaults."""
    counter = {'n': 0}

    def _make(
        home_team="Buffalo Bills",
        away_team="Kansas City Chiefs",
        prediction="Buffalo Bills to win",
        result=BetResult.PENDING,
        week=10,
        confidence=70,
        home_score=None,
        away_score=None,
        spread=None,
        over_under=None,
        **kwargs
    ):
        counter['n'] += 1
        game_kwargs = {
            k: kwargs.pop(k) for k in list(kwargs)
            if k in ('home_ml_odds', 'away_ml_odds', 'spread_odds', 'over_odds',
                     'under_odds', 'favorite_team', 'favorite_is_home', 'game_date')
        }
        game_kwargs.setdefault('game_date', '2025-11-09')
        return Pick(
            id=f"pick-{counter['n']}",
            created_at=kwargs.pop('created_at', datetime(2025, 11, 1) + timedelta(hours=counter['n'])),
            game_info=GameInfo(
                home_team=home_team,
                away_team=away_team,
                home_score=home_score,
                away_score=away_score,
                spread=spread,
                over_under=over_under,
                **game_kwargs
            ),
            prediction=prediction,
            confidence=confidence,
            reasoning="Bills defense trending up",
            week=week,
            result=result,
            **kwargs
        )

    return _make
