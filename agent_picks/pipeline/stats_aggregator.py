"""Performance statistics over settled picks."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from agent_picks.pipeline.outcome_resolver import cover_margin, get_or_calculate_result
from agent_picks.utils.data_types import (
    AggregateStats,
    BetResult,
    ConfidenceBucket,
    Market,
    MarketStats,
    Pick,
)
from agent_picks.utils.input_validation import round_half_up
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import WeekSchedule, get_pick_week


logger = setup_logger(__name__)


BREAK_EVEN_RATE = 52.38  # win rate needed to break even at -110
HIGH_CONFIDENCE = 75


@dataclass(frozen=True)
class StatsScope:
    """Optional filter applied before aggregation."""
    week: Optional[int] = None
    team: Optional[str] = None

    @property
    def label(self) -> str:
        parts = []
        if self.week is not None:
            parts.append(f"week {self.week}")
        if self.team:
            parts.append(f"team {self.team}")
        return ', '.join(parts) or 'all'


def _win_rate(wins: int, decided: int) -> int:
    if decided == 0:
        return 0
    return round_half_up(wins / decided * 100)


def _chronological(picks: List[Pick]) -> List[Pick]:
    return sorted(picks, key=lambda p: p.created_at)


class StatisticsAggregator:
    """Folds picks into per-market records, units and streaks."""

    def __init__(
        self,
        bet_size: float = 1.0,
        vig_multiplier: float = 1.1,
        schedule: Optional[WeekSchedule] = None
    ):
        """Initialize the aggregator.

        Args:
            bet_size: Stake per pick in units
            vig_multiplier: Loss multiplier applied to the stake (flat -110 pricing)
            schedule: Season schedule used to assign picks without a stored week
        """
        self.bet_size = bet_size
        self.vig_multiplier = vig_multiplier
        self.schedule = schedule

    def market_stats(self, picks: List[Pick], market: Market) -> MarketStats:
        """Record, units, ROI and streaks for one market.

        Picks whose result for the market is still pending are ignored.
        """
        chronological = _chronological(picks)
        results = [get_or_calculate_result(p, market) for p in chronological]
        settled = [r for r in results if r.is_settled]

        wins = settled.count(BetResult.WIN)
        losses = settled.count(BetResult.LOSS)
        pushes = settled.count(BetResult.PUSH)
        decided = wins + losses

        units = wins * self.bet_size - losses * self.bet_size * self.vig_multiplier
        roi = units / (decided * self.bet_size) * 100 if decided and self.bet_size else 0.0

        current_streak = 0
        for result in reversed(settled):
            if result is not BetResult.WIN:
                break
            current_streak += 1

        longest_streak = 0
        run = 0
        for result in settled:
            if result is BetResult.WIN:
                run += 1
                longest_streak = max(longest_streak, run)
            elif result is BetResult.LOSS:
                run = 0

        return MarketStats(
            wins=wins,
            losses=losses,
            pushes=pushes,
            total=len(settled),
            win_rate=_win_rate(wins, decided),
            units=round(units, 2),
            roi=round(roi, 2),
            current_streak=current_streak,
            longest_streak=longest_streak,
        )

    def confidence_buckets(self, picks: List[Pick]) -> Dict[str, ConfidenceBucket]:
        """Moneyline record by confidence band: high 80+, medium 60-79, low below 60."""
        buckets = {'high': ConfidenceBucket(), 'medium': ConfidenceBucket(), 'low': ConfidenceBucket()}
        for pick in picks:
            result = get_or_calculate_result(pick, Market.MONEYLINE)
            if not result.is_settled:
                continue
            if pick.confidence >= 80:
                bucket = buckets['high']
            elif pick.confidence >= 60:
                bucket = buckets['medium']
            else:
                bucket = buckets['low']
            bucket.total += 1
            if result is BetResult.WIN:
                bucket.wins += 1

        for bucket in buckets.values():
            bucket.win_rate = _win_rate(bucket.wins, bucket.total)
        return buckets

    def filter_picks(self, picks: List[Pick], scope: Optional[StatsScope]) -> List[Pick]:
        if scope is None:
            return list(picks)
        filtered = list(picks)
        if scope.week is not None:
            filtered = [p for p in filtered if get_pick_week(p, self.schedule) == scope.week]
        if scope.team:
            team = scope.team.lower()
            filtered = [
                p for p in filtered
                if team in p.game_info.home_team.lower() or team in p.game_info.away_team.lower()
            ]
        return filtered

    def aggregate(self, picks: List[Pick], scope: Optional[StatsScope] = None) -> AggregateStats:
        """Aggregate statistics over picks, optionally scoped to a week or team.

        Args:
            picks: Pick records already fetched by the caller
            scope: Optional week/team filter

        Returns:
            Aggregate statistics; all zeros for an empty collection
        """
        scoped = self.filter_picks(picks, scope)
        return AggregateStats(
            total_picks=len(scoped),
            moneyline=self.market_stats(scoped, Market.MONEYLINE),
            ats=self.market_stats(scoped, Market.SPREAD),
            over_under=self.market_stats(scoped, Market.TOTAL),
            by_confidence=self.confidence_buckets(scoped),
            scope=scope.label if scope else 'all',
        )

    def stats_for_week(self, picks: List[Pick], week: int) -> AggregateStats:
        return self.aggregate(picks, StatsScope(week=week))

    def stats_for_team(self, picks: List[Pick], team: str) -> AggregateStats:
        return self.aggregate(picks, StatsScope(team=team))

    def unique_weeks(self, picks: List[Pick]) -> List[int]:
        return sorted({get_pick_week(p, self.schedule) for p in picks}, reverse=True)

    def unique_teams(self, picks: List[Pick]) -> List[str]:
        teams = set()
        for pick in picks:
            teams.add(pick.game_info.home_team)
            teams.add(pick.game_info.away_team)
        return sorted(t for t in teams if t)

    def weekly_breakdown(self, picks: List[Pick]) -> List[Tuple[int, AggregateStats]]:
        """Stats per week, most recent week first."""
        return [(week, self.stats_for_week(picks, week)) for week in self.unique_weeks(picks)]

    def team_breakdown(self, picks: List[Pick]) -> List[Tuple[str, AggregateStats]]:
        """Stats per team, best moneyline win rate first."""
        breakdown = [(team, self.stats_for_team(picks, team)) for team in self.unique_teams(picks)]
        breakdown.sort(key=lambda item: item[1].moneyline.win_rate, reverse=True)
        return breakdown

    def best_teams(self, picks: List[Pick], limit: int = 5, min_decided: int = 3) -> List[Tuple[str, AggregateStats]]:
        qualified = [
            item for item in self.team_breakdown(picks)
            if item[1].moneyline.decided >= min_decided
        ]
        return qualified[:limit]

    def worst_teams(self, picks: List[Pick], limit: int = 5, min_decided: int = 3) -> List[Tuple[str, AggregateStats]]:
        qualified = [
            item for item in self.team_breakdown(picks)
            if item[1].moneyline.decided >= min_decided
        ]
        qualified.sort(key=lambda item: item[1].moneyline.win_rate)
        return qualified[:limit]

    def recent_form(self, picks: List[Pick], count: int = 5) -> AggregateStats:
        """Aggregate over the most recently created picks."""
        recent = sorted(picks, key=lambda p: p.created_at, reverse=True)[:count]
        stats = self.aggregate(recent)
        stats.scope = f"last {count}"
        return stats

    def ats_details(self, picks: List[Pick]) -> Dict[str, Optional[float]]:
        """Average cover margin and average combined score of scored games."""
        margins = [m for m in (cover_margin(p) for p in picks) if m is not None]
        totals = [
            p.game_info.home_score + p.game_info.away_score
            for p in picks if p.game_info.has_final_score
        ]
        return {
            'average_cover_margin': round(sum(margins) / len(margins), 2) if margins else None,
            'average_total': round(sum(totals) / len(totals), 2) if totals else None,
        }

    def betting_efficiency(self, picks: List[Pick]) -> Dict[str, float]:
        """Moneyline advantage over the -110 break-even rate and a capped Kelly stake."""
        moneyline = self.market_stats(picks, Market.MONEYLINE)
        advantage = moneyline.win_rate - BREAK_EVEN_RATE

        high_conf_total = 0
        high_conf_wins = 0
        for pick in picks:
            result = get_or_calculate_result(pick, Market.MONEYLINE)
            if pick.confidence >= HIGH_CONFIDENCE and result.is_settled:
                high_conf_total += 1
                if result is BetResult.WIN:
                    high_conf_wins += 1

        return {
            'break_even_rate': BREAK_EVEN_RATE,
            'actual_advantage': round(advantage, 2),
            'kelly_percent': max(0.0, min(25.0, advantage / 100 * 2)),
            'confidence_accuracy': (
                high_conf_wins / high_conf_total * 100 if high_conf_total else 0.0
            ),
            'value_games': high_conf_wins,
        }

    @staticmethod
    def to_frame(breakdown: List[Tuple[Any, AggregateStats]], key: str = 'group') -> pd.DataFrame:
        """Flatten a breakdown into one row per group with per-market columns."""
        rows = []
        for group, stats in breakdown:
            row = {key: group, 'total_picks': stats.total_picks}
            for prefix, market_stats in (
                ('ml', stats.moneyline), ('ats', stats.ats), ('ou', stats.over_under)
            ):
                row[f"{prefix}_record"] = market_stats.record
                row[f"{prefix}_win_rate"] = market_stats.win_rate
                row[f"{prefix}_units"] = market_stats.units
                row[f"{prefix}_roi"] = market_stats.roi
            rows.append(row)
        return pd.DataFrame(rows)

    def export_results(self, picks: List[Pick], output_path: str, by: str = 'week') -> Path:
        """Write a weekly or per-team breakdown to CSV.

        Args:
            picks: Picks to summarize
            output_path: Destination CSV path
            by: 'week' or 'team'

        Returns:
            Path of the written file
        """
        if by == 'team':
            frame = self.to_frame(self.team_breakdown(picks), key='team')
        elif by == 'week':
            frame = self.to_frame(self.weekly_breakdown(picks), key='week')
        else:
            raise ValueError(f"Unsupported breakdown: {by}")

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(path, index=False)
        logger.info(f"Exported {len(frame)} {by} rows to {path} at {datetime.now():%Y-%m-%d %H:%M}")
        return path
