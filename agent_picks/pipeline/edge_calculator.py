"""Odds conversion and model-vs-market edge calculation."""

from dataclasses import replace
from typing import Dict, List, Optional

from agent_picks.utils.data_types import BestBet, GameInfo, Market, ModelProbabilities, Pick
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.team_names import extract_predicted_side


logger = setup_logger(__name__)


DEFAULT_ODDS = -110
DEFAULT_BADGE_THRESHOLD = 5.0
DEFAULT_HEADLINE_THRESHOLD = 7.0
DEFAULT_BEST_BET_FLOOR = 3.0
MODERATE_EDGE = 2.0


def implied_probability(american_odds: float) -> float:
    """Break-even probability (0-1) of American odds.

    Args:
        american_odds: Odds such as -110 or +150

    Returns:
        Implied probability

    Raises:
        ValueError: For values strictly between -100 and +100
    """
    if american_odds <= -100:
        return -american_odds / (-american_odds + 100)
    if american_odds >= 100:
        return 100 / (american_odds + 100)
    raise ValueError(f"Not valid American odds: {american_odds}")


def american_to_decimal(american_odds: float) -> float:
    if american_odds < 0:
        return 100 / abs(american_odds) + 1
    return american_odds / 100 + 1


def compute_edge(model_probability: float, american_odds: float) -> float:
    """Model probability (percent) minus the implied probability (percent)."""
    return model_probability - implied_probability(american_odds) * 100


def _edge_or_none(probability: Optional[float], odds: Optional[float]) -> Optional[float]:
    if probability is None:
        return None
    return round(compute_edge(probability, odds if odds is not None else DEFAULT_ODDS), 2)


def calculate_pick_edges(
    pick: Pick,
    probabilities: Optional[ModelProbabilities] = None,
    default_odds: int = DEFAULT_ODDS
) -> Dict[Market, Optional[float]]:
    """Edge of each market of a pick, None where the model gave no probability.

    Moneyline uses the named side's win probability against that side's
    stored odds, falling back to the moneyline probability at default odds.
    Spread and total edges exist only when the pick has a spread or
    over/under prediction.
    """
    probabilities = probabilities or pick.model_probabilities
    edges = {Market.MONEYLINE: None, Market.SPREAD: None, Market.TOTAL: None}
    if probabilities is None:
        return edges

    game = pick.game_info
    side = extract_predicted_side(pick.prediction, game.home_team, game.away_team)
    if side == 'home' and game.home_ml_odds is not None and probabilities.home_win_probability is not None:
        edges[Market.MONEYLINE] = _edge_or_none(probabilities.home_win_probability, game.home_ml_odds)
    elif side == 'away' and game.away_ml_odds is not None and probabilities.away_win_probability is not None:
        edges[Market.MONEYLINE] = _edge_or_none(probabilities.away_win_probability, game.away_ml_odds)
    else:
        edges[Market.MONEYLINE] = _edge_or_none(probabilities.moneyline_probability, default_odds)

    if pick.spread_prediction:
        edges[Market.SPREAD] = _edge_or_none(
            probabilities.spread_probability,
            game.spread_odds if game.spread_odds is not None else default_odds
        )

    if pick.ou_prediction:
        picked_over = 'over' in pick.ou_prediction.lower()
        odds = game.over_odds if picked_over else game.under_odds
        probability = probabilities.over_probability if picked_over else probabilities.under_probability
        if probability is None:
            probability = probabilities.total_probability
        edges[Market.TOTAL] = _edge_or_none(probability, odds if odds is not None else default_odds)

    return edges


def apply_edges(pick: Pick, default_odds: int = DEFAULT_ODDS) -> Pick:
    """Copy of the pick with its three edges filled in."""
    edges = calculate_pick_edges(pick, default_odds=default_odds)
    return replace(
        pick,
        moneyline_edge=edges[Market.MONEYLINE],
        spread_edge=edges[Market.SPREAD],
        ou_edge=edges[Market.TOTAL],
    )


def calculate_both_sides_edge(
    probabilities: ModelProbabilities,
    game: GameInfo,
    default_odds: int = DEFAULT_ODDS
) -> Dict[str, Dict[str, Optional[float]]]:
    """Edge on both sides of every market, for display."""
    cover = probabilities.spread_cover_probability
    return {
        'moneyline': {
            'home': _edge_or_none(probabilities.home_win_probability, game.home_ml_odds)
            if game.home_ml_odds is not None else None,
            'away': _edge_or_none(probabilities.away_win_probability, game.away_ml_odds)
            if game.away_ml_odds is not None else None,
        },
        'spread': {
            'favorite': _edge_or_none(cover, game.spread_odds or default_odds),
            'underdog': _edge_or_none(100 - cover if cover is not None else None, game.spread_odds or default_odds),
        },
        'total': {
            'over': _edge_or_none(probabilities.over_probability, game.over_odds or default_odds),
            'under': _edge_or_none(probabilities.under_probability, game.under_odds or default_odds),
        },
    }


def edge_badge(edge: float, badge_threshold: float = DEFAULT_BADGE_THRESHOLD) -> str:
    """Display bucket: strong at or above the badge threshold, moderate from 2%, weak below."""
    if edge >= badge_threshold:
        return 'strong'
    if edge >= MODERATE_EDGE:
        return 'moderate'
    return 'weak'


def _market_prediction(pick: Pick, market: Market) -> str:
    if market is Market.SPREAD and pick.spread_prediction:
        return pick.spread_prediction
    if market is Market.TOTAL and pick.ou_prediction:
        return pick.ou_prediction
    return pick.prediction


def get_best_bet(
    pick: Pick,
    min_edge: float = DEFAULT_BEST_BET_FLOOR,
    badge_threshold: float = DEFAULT_BADGE_THRESHOLD
) -> Optional[BestBet]:
    """Highest-edge market of a pick, or None when no market reaches the floor.

    Ties keep the first market in moneyline, spread, total order.
    """
    best_market = None
    best_edge = None
    for market in Market:
        edge = pick.edge_for(market)
        if edge is None:
            continue
        if best_edge is None or edge > best_edge:
            best_market, best_edge = market, edge

    if best_market is None or best_edge < min_edge:
        return None

    return BestBet(
        market=best_market,
        prediction=_market_prediction(pick, best_market),
        edge=best_edge,
        confidence=pick.confidence,
        badge=edge_badge(best_edge, badge_threshold),
    )


def max_edge(pick: Pick) -> Optional[float]:
    edges = [e for e in (pick.moneyline_edge, pick.spread_edge, pick.ou_edge) if e is not None]
    return max(edges) if edges else None


def is_headline_bet(pick: Pick, headline_threshold: float = DEFAULT_HEADLINE_THRESHOLD) -> bool:
    edge = max_edge(pick)
    return edge is not None and edge >= headline_threshold


def has_playable_bet(pick: Pick, min_edge: float = 1.0) -> bool:
    edge = max_edge(pick)
    return edge is not None and edge >= min_edge


def sort_by_edge(picks: List[Pick]) -> List[Pick]:
    """Picks ordered by their best edge, picks without edges last."""
    return sorted(
        picks,
        key=lambda p: max_edge(p) if max_edge(p) is not None else float('-inf'),
        reverse=True,
    )


def headline_bets(picks: List[Pick], headline_threshold: float = DEFAULT_HEADLINE_THRESHOLD) -> List[Pick]:
    return [p for p in sort_by_edge(picks) if is_headline_bet(p, headline_threshold)]


def categorize_edge(edge: float) -> str:
    if edge >= 7:
        return 'elite'
    if edge >= 5:
        return 'strong'
    if edge >= 3:
        return 'good'
    if edge >= 1:
        return 'marginal'
    if edge >= 0:
        return 'weak'
    return 'negative'


def confidence_badge(edge: float, confidence: float) -> Optional[str]:
    """Combined edge and confidence label, None when neither bar is cleared."""
    if edge >= 7 and confidence >= 65:
        return 'HIGH CONFIDENCE'
    if edge >= 5 and confidence >= 60:
        return 'STRONG EDGE'
    if edge >= 3 and confidence >= 55:
        return 'VALUE PLAY'
    return None


def format_edge(edge: Optional[float]) -> str:
    if edge is None:
        return '+0.0%'
    sign = '+' if edge >= 0 else ''
    return f"{sign}{edge:.1f}%"
