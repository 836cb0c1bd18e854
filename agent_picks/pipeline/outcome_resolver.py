"""Win/loss/push resolution of each market from final scores."""

import re
from dataclasses import dataclass
from typing import Optional

from agent_picks.utils.data_types import BetResult, GameInfo, Market, Pick
from agent_picks.utils.team_names import extract_predicted_side


OVER_KEYWORDS = ('over', 'high scoring', 'shootout', 'points')
UNDER_KEYWORDS = ('under', 'low scoring', 'defensive', 'ugly')


@dataclass
class ResolvedResults:
    """Computed result of each market."""
    moneyline: BetResult = BetResult.PENDING
    spread: BetResult = BetResult.PENDING
    total: BetResult = BetResult.PENDING


def _win_or_loss(won: bool) -> BetResult:
    return BetResult.WIN if won else BetResult.LOSS


def resolve_moneyline(pick: Pick) -> BetResult:
    """Did the side named by the prediction win outright?"""
    game = pick.game_info
    if not game.has_final_score:
        return BetResult.PENDING
    if game.home_score == game.away_score:
        return BetResult.PUSH

    side = extract_predicted_side(pick.prediction, game.home_team, game.away_team)
    if side is None:
        return BetResult.PENDING

    home_won = game.home_score > game.away_score
    return _win_or_loss(home_won if side == 'home' else not home_won)


def home_line(game: GameInfo) -> Optional[float]:
    """Spread from the home side's perspective (negative when home is favored).

    When the favorite is known, the stored magnitude is re-signed relative
    to it; otherwise the stored sign is taken as home perspective.
    """
    if game.spread is None:
        return None
    favorite_is_home = game.favorite_is_home
    if favorite_is_home is None and game.favorite_team:
        favorite_is_home = game.favorite_team.strip().lower() == game.home_team.strip().lower()
    if favorite_is_home is None:
        return game.spread
    return -abs(game.spread) if favorite_is_home else abs(game.spread)


def _spread_side(pick: Pick) -> Optional[str]:
    game = pick.game_info
    text = pick.spread_prediction or ''
    lowered = text.lower()
    line = home_line(game)
    if lowered in ('favorite', 'underdog') and line not in (None, 0):
        home_is_favorite = line < 0
        if lowered == 'favorite':
            return 'home' if home_is_favorite else 'away'
        return 'away' if home_is_favorite else 'home'
    return extract_predicted_side(text, game.home_team, game.away_team)


def resolve_spread(pick: Pick) -> BetResult:
    """Did the side named by the spread prediction cover?"""
    game = pick.game_info
    if not game.has_final_score or not pick.spread_prediction:
        return BetResult.PENDING

    line = home_line(game)
    if line is None:
        return BetResult.PENDING

    side = _spread_side(pick)
    if side is None:
        return BetResult.PENDING

    margin = game.home_score + line - game.away_score
    if margin == 0:
        return BetResult.PUSH
    home_covered = margin > 0
    return _win_or_loss(home_covered if side == 'home' else not home_covered)


def predicted_total_side(pick: Pick) -> Optional[str]:
    """'over' or 'under' from the explicit pick, else from prediction keywords."""
    if pick.ou_prediction:
        lowered = pick.ou_prediction.lower()
        if 'over' in lowered:
            return 'over'
        if 'under' in lowered:
            return 'under'

    lowered = (pick.prediction or '').lower()
    if any(re.search(rf"\b{k}\b", lowered) for k in OVER_KEYWORDS):
        return 'over'
    if any(re.search(rf"\b{k}\b", lowered) for k in UNDER_KEYWORDS):
        return 'under'
    return None


def resolve_total(pick: Pick) -> BetResult:
    """Compare the combined score to the stored total line."""
    game = pick.game_info
    if not game.has_final_score or game.over_under is None:
        return BetResult.PENDING

    side = predicted_total_side(pick)
    if side is None:
        return BetResult.PENDING

    total = game.home_score + game.away_score
    if total == game.over_under:
        return BetResult.PUSH
    went_over = total > game.over_under
    return _win_or_loss(went_over if side == 'over' else not went_over)


RESOLVERS = {
    Market.MONEYLINE: resolve_moneyline,
    Market.SPREAD: resolve_spread,
    Market.TOTAL: resolve_total,
}


def resolve_all(pick: Pick) -> ResolvedResults:
    return ResolvedResults(
        moneyline=resolve_moneyline(pick),
        spread=resolve_spread(pick),
        total=resolve_total(pick),
    )


def get_or_calculate_result(pick: Pick, market: Market) -> BetResult:
    """Stored settled result if there is one, otherwise computed from the scores."""
    stored = pick.result_for(market)
    if stored.is_settled:
        return stored
    return RESOLVERS[market](pick)


def cover_margin(pick: Pick) -> Optional[float]:
    """Points by which the home side beat the spread (None without scores or line)."""
    game = pick.game_info
    line = home_line(game)
    if not game.has_final_score or line is None:
        return None
    return game.home_score + line - game.away_score
