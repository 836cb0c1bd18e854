"""Pick persistence behind an async store interface."""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from agent_picks.utils.data_types import Pick
from agent_picks.utils.logger import setup_logger


logger = setup_logger(__name__)


class PickStore(ABC):
    """Async CRUD seam for pick records.

    Implementations provide no locking; callers that need isolation must
    provide it themselves.
    """

    @abstractmethod
    async def list_picks(self) -> List[Pick]:
        pass

    @abstractmethod
    async def get_pick(self, pick_id: str) -> Optional[Pick]:
        pass

    @abstractmethod
    async def create_pick(self, pick: Pick) -> Pick:
        """Persist a new pick, assigning an id when it has none."""
        pass

    @abstractmethod
    async def update_pick(self, pick: Pick) -> Pick:
        pass

    @abstractmethod
    async def delete_pick(self, pick_id: str) -> bool:
        pass


def _with_identity(pick: Pick) -> Pick:
    updates: Dict[str, Any] = {}
    if not pick.id:
        updates['id'] = uuid.uuid4().hex
    if pick.created_at is None:
        updates['created_at'] = datetime.now()
    return replace(pick, **updates) if updates else pick


class InMemoryPickStore(PickStore):
    """Dictionary-backed store for tests and one-off runs."""

    def __init__(self, picks: Optional[List[Pick]] = None):
        self._picks: Dict[str, Pick] = {p.id: p for p in (picks or [])}

    async def list_picks(self) -> List[Pick]:
        return list(self._picks.values())

    async def get_pick(self, pick_id: str) -> Optional[Pick]:
        return self._picks.get(pick_id)

    async def create_pick(self, pick: Pick) -> Pick:
        pick = _with_identity(pick)
        self._picks[pick.id] = pick
        return pick

    async def update_pick(self, pick: Pick) -> Pick:
        if pick.id not in self._picks:
            raise KeyError(f"Pick not found: {pick.id}")
        self._picks[pick.id] = pick
        return pick

    async def delete_pick(self, pick_id: str) -> bool:
        return self._picks.pop(pick_id, None) is not None


class JsonPickStore(PickStore):
    """Store that keeps every pick in a single JSON file."""

    def __init__(self, path: str = "data/picks.json"):
        """Initialize the store.

        Args:
            path: JSON file path; its directory is created if missing
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> Dict[str, Pick]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            records = json.load(f)
        return {str(r['id']): Pick.from_dict(r) for r in records}

    def _write(self, picks: Dict[str, Pick]):
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump([p.to_dict() for p in picks.values()], f, indent=2)
        tmp_path.replace(self.path)

    async def list_picks(self) -> List[Pick]:
        picks = await asyncio.to_thread(self._read)
        return list(picks.values())

    async def get_pick(self, pick_id: str) -> Optional[Pick]:
        picks = await asyncio.to_thread(self._read)
        return picks.get(pick_id)

    async def create_pick(self, pick: Pick) -> Pick:
        pick = _with_identity(pick)
        picks = await asyncio.to_thread(self._read)
        picks[pick.id] = pick
        await asyncio.to_thread(self._write, picks)
        logger.debug(f"Saved pick {pick.id} to {self.path}")
        return pick

    async def update_pick(self, pick: Pick) -> Pick:
        picks = await asyncio.to_thread(self._read)
        if pick.id not in picks:
            raise KeyError(f"Pick not found: {pick.id}")
        picks[pick.id] = pick
        await asyncio.to_thread(self._write, picks)
        return pick

    async def delete_pick(self, pick_id: str) -> bool:
        picks = await asyncio.to_thread(self._read)
        if picks.pop(pick_id, None) is None:
            return False
        await asyncio.to_thread(self._write, picks)
        logger.info(f"Deleted pick {pick_id}")
        return True
