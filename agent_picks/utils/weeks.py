"""NFL week resolution from game dates and a configurable season schedule."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from agent_picks.utils.logger import setup_logger


logger = setup_logger(__name__)


MIN_WEEK = 1
MAX_WEEK = 18

DateLike = Union[date, datetime, str, None]


def current_season_year(today: Optional[date] = None) -> int:
    """Season year: the calendar year from September on, otherwise the previous year."""
    today = today or date.today()
    return today.year if today.month >= 9 else today.year - 1


def current_season_start(today: Optional[date] = None) -> date:
    return date(current_season_year(today), 9, 1)


def season_window(today: Optional[date] = None) -> Tuple[date, date]:
    """Acceptable game dates: Aug 1 of the season year through Mar 31 of the next."""
    year = current_season_year(today)
    return date(year, 8, 1), date(year + 1, 3, 31)


def to_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date (None if malformed)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()[:10]).date()
        except ValueError:
            return None
    return None


def clamp_week(week: int) -> int:
    return max(MIN_WEEK, min(MAX_WEEK, week))


def estimate_week(game_date: DateLike, season_start: Optional[date] = None) -> int:
    """Linear week estimate: whole weeks since season start plus one, clamped to 1-18.

    Args:
        game_date: Date of the game
        season_start: First day of week 1; defaults to Sept 1 of the date's season year

    Returns:
        Estimated week number
    """
    parsed = to_date(game_date)
    if parsed is None:
        return MIN_WEEK
    start = season_start or current_season_start(parsed)
    return clamp_week((parsed - start).days // 7 + 1)


@dataclass(frozen=True)
class WeekRange:
    """Inclusive date range of one NFL week."""
    week: int
    start: date
    end: date
    description: str = ""

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class WeekSchedule:
    """Read-only mapping of week number to its date range."""

    def __init__(self, weeks: List[WeekRange], season_start: Optional[date] = None):
        self._weeks = sorted(weeks, key=lambda w: w.week)
        if season_start is None and self._weeks:
            season_start = self._weeks[0].start
        self.season_start = season_start

    @classmethod
    def from_mapping(
        cls,
        weeks: Dict[Any, Dict[str, Any]],
        season_start: DateLike = None
    ) -> WeekSchedule:
        """Build a schedule from ``{week: {"start": ..., "end": ..., "description": ...}}``.

        Entries with unparseable dates are skipped with a warning.
        """
        ranges = []
        for key, entry in (weeks or {}).items():
            start = to_date(entry.get('start'))
            end = to_date(entry.get('end'))
            if start is None or end is None:
                logger.warning(f"Skipping week {key}: invalid date range {entry}")
                continue
            ranges.append(WeekRange(
                week=int(key),
                start=start,
                end=end,
                description=entry.get('description', f"Week {key}")
            ))
        return cls(ranges, to_date(season_start))

    def all_weeks(self) -> List[WeekRange]:
        return list(self._weeks)

    def week_info(self, week: int) -> Optional[WeekRange]:
        for week_range in self._weeks:
            if week_range.week == week:
                return week_range
        return None

    @property
    def season_end(self) -> Optional[date]:
        return self._weeks[-1].end if self._weeks else None

    def lookup(self, day: date) -> Optional[int]:
        for week_range in self._weeks:
            if week_range.contains(day):
                return week_range.week
        return None

    def __len__(self) -> int:
        return len(self._weeks)


def load_week_schedule(config) -> Optional[WeekSchedule]:
    """Read the season schedule from the ``season`` config section.

    Args:
        config: ConfigLoader instance

    Returns:
        Schedule, or None when the config has no week table
    """
    weeks = config.get('season.weeks')
    if not weeks:
        return None
    schedule = WeekSchedule.from_mapping(weeks, config.get('season.season_start'))
    logger.info(f"Loaded season schedule with {len(schedule)} weeks")
    return schedule


def get_nfl_week_from_date(game_date: DateLike, schedule: Optional[WeekSchedule]) -> Optional[int]:
    """Return the week whose inclusive range contains the date, or None."""
    if schedule is None:
        return None
    parsed = to_date(game_date)
    if parsed is None:
        return None
    return schedule.lookup(parsed)


def _pick_fields(pick: Any) -> Tuple[Any, Any]:
    if isinstance(pick, dict):
        game_info = pick.get('game_info') or {}
        return pick.get('week'), pick.get('game_date', game_info.get('game_date'))
    game_info = getattr(pick, 'game_info', None)
    game_date = getattr(pick, 'game_date', None)
    if game_date is None and game_info is not None:
        game_date = game_info.game_date
    return getattr(pick, 'week', None), game_date


def get_pick_week(pick: Any, schedule: Optional[WeekSchedule] = None) -> int:
    """Week a pick belongs to. Never raises.

    Resolution order: stored week (clamped to 1-18), schedule lookup, then a
    linear estimate from the season start. Malformed dates and dates outside
    the scheduled season resolve to week 1.
    """
    stored_week, game_date = _pick_fields(pick)
    if isinstance(stored_week, int) and not isinstance(stored_week, bool) and stored_week > 0:
        return clamp_week(stored_week)

    parsed = to_date(game_date)
    if parsed is None:
        return MIN_WEEK

    scheduled = get_nfl_week_from_date(parsed, schedule)
    if scheduled is not None:
        return scheduled

    season_start = schedule.season_start if schedule else None
    if schedule is not None and season_start is not None:
        if parsed < season_start or (schedule.season_end and parsed > schedule.season_end):
            return MIN_WEEK

    return estimate_week(parsed, season_start)


def current_week(schedule: Optional[WeekSchedule], today: Optional[date] = None) -> int:
    """Week containing today, falling back to the linear estimate."""
    today = today or date.today()
    return get_nfl_week_from_date(today, schedule) or estimate_week(
        today, schedule.season_start if schedule else None
    )


def week_date_range(week: int, season_start: date) -> Tuple[date, date]:
    """Nominal Thursday-to-Monday range of a week counted from the season start."""
    start = season_start + timedelta(days=7 * (clamp_week(week) - 1))
    return start, start + timedelta(days=4)
