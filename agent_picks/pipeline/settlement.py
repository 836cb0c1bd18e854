"""Settle picks from final scores or explicit overrides."""

from dataclasses import replace
from typing import Optional, Union

from agent_picks.pipeline.outcome_resolver import resolve_all
from agent_picks.storage.pick_store import PickStore
from agent_picks.utils.data_types import BetResult, Market, Pick
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.logger import setup_logger


logger = setup_logger(__name__)


_RESULT_FIELDS = {
    Market.MONEYLINE: 'result',
    Market.SPREAD: 'ats_result',
    Market.TOTAL: 'ou_result',
}


def settle_with_scores(pick: Pick, home_score: int, away_score: int) -> Pick:
    """Record final scores and settle every market that is still pending.

    Markets that already hold a win, loss or push keep it.
    """
    game_info = replace(pick.game_info, home_score=home_score, away_score=away_score)
    scored = replace(pick, game_info=game_info)
    resolved = resolve_all(scored)

    computed = {
        Market.MONEYLINE: resolved.moneyline,
        Market.SPREAD: resolved.spread,
        Market.TOTAL: resolved.total,
    }
    updates = {
        _RESULT_FIELDS[market]: result
        for market, result in computed.items()
        if not pick.result_for(market).is_settled
    }
    return replace(scored, **updates)


def apply_result_override(
    pick: Pick,
    result: Union[BetResult, str],
    market: Market = Market.MONEYLINE
) -> Pick:
    """Set a market's result directly, replacing whatever was stored."""
    parsed = BetResult.parse(result)
    if not parsed.is_settled:
        raise ValueError(f"Override must be win, loss or push, got {result!r}")
    return replace(pick, **{_RESULT_FIELDS[market]: parsed})


async def settle_pick(
    store: PickStore,
    pick_id: str,
    home_score: Optional[int] = None,
    away_score: Optional[int] = None,
    result: Optional[Union[BetResult, str]] = None,
    market: Market = Market.MONEYLINE
) -> Pick:
    """Settle a stored pick by scores or by an explicit result override.

    Raises:
        PipelineError: RECORD_NOT_FOUND for an unknown id
        ValueError: When neither both scores nor a result are given
    """
    pick = await store.get_pick(pick_id)
    if pick is None:
        raise PipelineError(ErrorCode.RECORD_NOT_FOUND, f"Pick not found: {pick_id}")

    if result is not None:
        updated = apply_result_override(pick, result, market)
    elif home_score is not None and away_score is not None:
        updated = settle_with_scores(pick, home_score, away_score)
    else:
        raise ValueError("Provide both final scores or a result override")

    saved = await store.update_pick(updated)
    logger.info(
        f"Settled {saved.matchup}: moneyline={saved.result.value}, "
        f"spread={saved.ats_result.value}, total={saved.ou_result.value}"
    )
    return saved
