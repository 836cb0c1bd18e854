"""Persist parsed drafts as picks, skipping games that already exist."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from agent_picks.pipeline.agent_text_parser import AgentTextParser
from agent_picks.pipeline.duplicates import create_game_key
from agent_picks.pipeline.edge_calculator import DEFAULT_ODDS, apply_edges
from agent_picks.storage.pick_store import PickStore
from agent_picks.utils.data_types import GameInfo, GameMarkets, Pick, PredictionDraft, SaveSummary
from agent_picks.utils.errors import ErrorCode, PipelineError
from agent_picks.utils.input_validation import validate_pick_data
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.team_names import extract_predicted_side
from agent_picks.utils.weeks import WeekSchedule


logger = setup_logger(__name__)


SAVED = "saved"
DUPLICATE_SKIPPED = ErrorCode.DUPLICATE_SKIPPED.value


def _market_fields(draft: PredictionDraft) -> Dict[str, Any]:
    """Game-info and pick fields derived from structured market details."""
    markets: Optional[GameMarkets] = draft.markets
    if markets is None:
        return {'game_info': {}, 'pick': {}}

    home, away = draft.home_team, draft.away_team
    game_info: Dict[str, Any] = {}
    pick: Dict[str, Any] = {'model_probabilities': markets.probabilities}

    if markets.spread_pick and markets.spread_line is not None:
        side = extract_predicted_side(markets.spread_pick, home, away)
        if side is not None:
            # Lines are quoted for the picked team; stored lines are home perspective
            game_info['spread'] = markets.spread_line if side == 'home' else -markets.spread_line
            game_info['favorite_is_home'] = game_info['spread'] < 0 if game_info['spread'] else None
            line = f"+{markets.spread_line:g}" if markets.spread_line > 0 else f"{markets.spread_line:g}"
            pick['spread_prediction'] = f"{markets.spread_pick} {line}"

    if markets.total_line is not None:
        game_info['over_under'] = markets.total_line
    if markets.total_pick and markets.total_pick.lower() in ('over', 'under'):
        pick['ou_prediction'] = markets.total_pick.capitalize()

    if markets.moneyline_pick and markets.moneyline_odds is not None:
        side = extract_predicted_side(markets.moneyline_pick, home, away)
        if side == 'home':
            game_info['home_ml_odds'] = markets.moneyline_odds
        elif side == 'away':
            game_info['away_ml_odds'] = markets.moneyline_odds

    return {'game_info': game_info, 'pick': pick}


def build_pick(draft: PredictionDraft, sanitized: Dict[str, Any], default_odds: int = DEFAULT_ODDS) -> Pick:
    """Pending pick from a validated draft and its sanitized field values."""
    extra = _market_fields(draft)
    game_info = GameInfo(
        home_team=sanitized['home_team'],
        away_team=sanitized['away_team'],
        game_date=sanitized['game_date'],
        **extra['game_info']
    )
    pick = Pick(
        id='',
        created_at=datetime.now(),
        game_info=game_info,
        prediction=sanitized['prediction'],
        confidence=sanitized['confidence'],
        reasoning=sanitized['reasoning'],
        week=sanitized['week'],
        **extra['pick']
    )
    if pick.model_probabilities is not None:
        pick = apply_edges(pick, default_odds)
    return pick


class PickIngestor:
    """Validates drafts and writes new picks to a store."""

    def __init__(
        self,
        store: PickStore,
        schedule: Optional[WeekSchedule] = None,
        today: Optional[date] = None,
        default_odds: int = DEFAULT_ODDS
    ):
        """Initialize the ingestor.

        Args:
            store: Pick store to read existing picks from and write to
            schedule: Season schedule for week resolution
            today: Reference date for validation windows
            default_odds: Odds assumed when computing edges without stored odds
        """
        self.store = store
        self.schedule = schedule
        self.today = today
        self.default_odds = default_odds
        self.parser = AgentTextParser(schedule, today)

    def _draft_fields(self, draft: PredictionDraft) -> Dict[str, Any]:
        return {
            'home_team': draft.home_team,
            'away_team': draft.away_team,
            'prediction': draft.prediction,
            'reasoning': draft.reasoning,
            'confidence': draft.confidence,
            'week': draft.week,
            'game_date': draft.game_date,
        }

    async def save_predictions(self, drafts: List[PredictionDraft]) -> SaveSummary:
        """Persist drafts as pending picks.

        Drafts whose game key matches an existing pick, or an earlier draft of
        the same batch, are skipped and counted as duplicates. The remaining
        drafts are all validated before anything is written.

        Args:
            drafts: Parsed drafts

        Returns:
            Save summary with per-draft outcomes

        Raises:
            PipelineError: VALIDATION_FAILED with every field error of every
                invalid draft
        """
        existing = await self.store.list_picks()
        known_keys = {create_game_key(p, self.schedule) for p in existing}

        summary = SaveSummary()
        to_save = []
        errors = []
        for draft in drafts:
            key = create_game_key(draft, self.schedule)
            if key in known_keys:
                logger.info(f"Skipping duplicate prediction {draft.matchup} (week {draft.week})")
                summary.duplicate_count += 1
                summary.outcomes.append((draft.matchup, DUPLICATE_SKIPPED))
                continue
            known_keys.add(key)

            validation = validate_pick_data(self._draft_fields(draft), self.today)
            if not validation.is_valid:
                errors.extend(f"{draft.matchup}: {e}" for e in validation.errors)
                continue
            to_save.append((draft, validation.sanitized_data))

        if errors:
            raise PipelineError(ErrorCode.VALIDATION_FAILED, "Invalid prediction data", errors)

        for draft, sanitized in to_save:
            saved = await self.store.create_pick(build_pick(draft, sanitized, self.default_odds))
            summary.saved_count += 1
            summary.saved_picks.append(saved)
            summary.outcomes.append((draft.matchup, SAVED))

        logger.info(f"Saved {summary.saved_count} predictions, skipped {summary.duplicate_count} duplicates")
        return summary

    async def ingest_text(self, text: str, selected_week: Optional[int] = None) -> SaveSummary:
        """Parse agent text and save the resulting drafts."""
        drafts = await self.parser.process_text(text, selected_week)
        return await self.save_predictions(drafts)
