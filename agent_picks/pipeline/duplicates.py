"""Duplicate pick detection and cleanup."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from agent_picks.storage.pick_store import PickStore
from agent_picks.utils.data_types import Pick
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.team_names import normalize_team_name
from agent_picks.utils.weeks import WeekSchedule, get_pick_week


logger = setup_logger(__name__)


@dataclass
class DuplicateGroup:
    """Picks sharing one game key; the oldest is the original."""
    key: str
    original: Pick
    duplicates: List[Pick]


@dataclass
class CleanupReport:
    deleted_count: int = 0
    failed_count: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)


def _teams(item: Any) -> Tuple[str, str]:
    game_info = getattr(item, 'game_info', None)
    if game_info is not None:
        return game_info.home_team, game_info.away_team
    return item.home_team, item.away_team


def create_game_key(item: Any, schedule: Optional[WeekSchedule] = None) -> str:
    """Identity of a game: normalized home, normalized away and week.

    Args:
        item: A Pick or a PredictionDraft
        schedule: Season schedule for picks without a stored week
    """
    home, away = _teams(item)
    week = get_pick_week(item, schedule)
    return f"{normalize_team_name(home.strip())}-{normalize_team_name(away.strip())}-{week}"


def find_duplicates(picks: List[Pick], schedule: Optional[WeekSchedule] = None) -> List[DuplicateGroup]:
    groups: Dict[str, List[Pick]] = {}
    for pick in sorted(picks, key=lambda p: p.created_at):
        groups.setdefault(create_game_key(pick, schedule), []).append(pick)

    return [
        DuplicateGroup(key=key, original=group[0], duplicates=group[1:])
        for key, group in groups.items()
        if len(group) > 1
    ]


def count_duplicates(picks: List[Pick], schedule: Optional[WeekSchedule] = None) -> int:
    return sum(len(group.duplicates) for group in find_duplicates(picks, schedule))


def is_duplicate(pick: Any, existing: List[Pick], schedule: Optional[WeekSchedule] = None) -> bool:
    """True when another existing pick has the same game key."""
    key = create_game_key(pick, schedule)
    pick_id = getattr(pick, 'id', None)
    return any(
        other.id != pick_id and create_game_key(other, schedule) == key
        for other in existing
    )


def find_original_pick(
    pick: Pick,
    all_picks: List[Pick],
    schedule: Optional[WeekSchedule] = None
) -> Optional[Pick]:
    """Oldest pick with the same key, or None if this pick is itself the original."""
    key = create_game_key(pick, schedule)
    matching = sorted(
        (p for p in all_picks if create_game_key(p, schedule) == key),
        key=lambda p: p.created_at
    )
    if not matching or matching[0].id == pick.id:
        return None
    return matching[0]


async def clean_duplicates(
    picks: List[Pick],
    store: PickStore,
    schedule: Optional[WeekSchedule] = None
) -> CleanupReport:
    """Delete every duplicate, keeping the oldest pick of each game."""
    report = CleanupReport()
    for group in find_duplicates(picks, schedule):
        for duplicate in group.duplicates:
            try:
                deleted = await store.delete_pick(duplicate.id)
            except OSError as e:
                logger.error(f"Failed to delete duplicate {duplicate.id}: {e}")
                report.failed_count += 1
                report.errors.append((duplicate.id, str(e)))
                continue

            if deleted:
                report.deleted_count += 1
            else:
                report.failed_count += 1
                report.errors.append((duplicate.id, "Pick not found"))

    logger.info(f"Removed {report.deleted_count} duplicate picks ({report.failed_count} failed)")
    return report
