"""Common data types and structures."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Market(Enum):
    """Independently settled bet markets on a single game."""
    MONEYLINE = "moneyline"
    SPREAD = "spread"
    TOTAL = "total"


class BetResult(Enum):
    """Settlement state of one market of a pick."""
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: Any) -> BetResult:
        """Coerce a stored value to a result, treating anything unknown as pending."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.PENDING
        return cls.PENDING

    @property
    def is_settled(self) -> bool:
        return self is not BetResult.PENDING


# Qualitative confidence labels used by the structured agent payload
CONFIDENCE_LABELS = {
    'high': 80,
    'medium': 60,
    'low': 40,
}


def confidence_from_label(label: Any) -> int:
    """Map High/Medium/Low to a numeric confidence (50 otherwise)."""
    if isinstance(label, str):
        return CONFIDENCE_LABELS.get(label.strip().lower(), 50)
    return 50


def to_float(value: Any) -> Optional[float]:
    """Float from a number or numeric string such as "-3.5", None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_american_odds(value: Any) -> Optional[int]:
    """American odds as an int, None when missing or between -100 and +100."""
    number = to_float(value)
    if number is None or -100 < number < 100:
        return None
    return int(round(number))


@dataclass
class ModelProbabilities:
    """Model-estimated probabilities, in percent, for each market outcome."""
    moneyline_probability: Optional[float] = None
    home_win_probability: Optional[float] = None
    away_win_probability: Optional[float] = None
    spread_probability: Optional[float] = None
    spread_cover_probability: Optional[float] = None
    total_probability: Optional[float] = None
    over_probability: Optional[float] = None
    under_probability: Optional[float] = None
    predicted_home_score: Optional[float] = None
    predicted_away_score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[ModelProbabilities]:
        if not data or not isinstance(data, dict):
            return None
        known = {f.name for f in fields(cls)}
        return cls(**{k: to_float(v) for k, v in data.items() if k in known})


@dataclass(frozen=True)
class GameMarkets:
    """Structured per-market details carried along with a draft."""
    moneyline_pick: Optional[str] = None
    moneyline_odds: Optional[int] = None
    moneyline_confidence: Optional[int] = None
    spread_pick: Optional[str] = None
    spread_line: Optional[float] = None
    spread_confidence: Optional[int] = None
    total_pick: Optional[str] = None
    total_line: Optional[float] = None
    total_confidence: Optional[int] = None
    predicted_total: Optional[float] = None
    probabilities: Optional[ModelProbabilities] = None


@dataclass(frozen=True)
class PredictionDraft:
    """A parsed, not yet persisted prediction."""
    away_team: str
    home_team: str
    prediction: str
    confidence: int
    reasoning: str
    game_date: date
    week: int
    markets: Optional[GameMarkets] = None

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"


@dataclass
class GameInfo:
    """Information about an NFL game attached to a pick."""
    home_team: str
    away_team: str
    game_date: str  # YYYY-MM-DD as persisted
    league: str = "NFL"
    spread: Optional[float] = None  # home perspective, negative = home favored
    over_under: Optional[float] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_ml_odds: Optional[int] = None
    away_ml_odds: Optional[int] = None
    spread_odds: Optional[int] = None
    over_odds: Optional[int] = None
    under_odds: Optional[int] = None
    favorite_team: Optional[str] = None
    favorite_is_home: Optional[bool] = None

    @property
    def has_final_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GameInfo:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Pick:
    """A persisted prediction with per-market settlement state."""
    id: str
    created_at: datetime
    game_info: GameInfo
    prediction: str
    confidence: int
    reasoning: str
    week: Optional[int] = None
    spread_prediction: Optional[str] = None
    ou_prediction: Optional[str] = None
    result: BetResult = BetResult.PENDING
    ats_result: BetResult = BetResult.PENDING
    ou_result: BetResult = BetResult.PENDING
    model_probabilities: Optional[ModelProbabilities] = None
    moneyline_edge: Optional[float] = None
    spread_edge: Optional[float] = None
    ou_edge: Optional[float] = None

    def __post_init__(self):
        self.result = BetResult.parse(self.result)
        self.ats_result = BetResult.parse(self.ats_result)
        self.ou_result = BetResult.parse(self.ou_result)

    def result_for(self, market: Market) -> BetResult:
        """Stored result for the given market."""
        return {
            Market.MONEYLINE: self.result,
            Market.SPREAD: self.ats_result,
            Market.TOTAL: self.ou_result,
        }[market]

    def edge_for(self, market: Market) -> Optional[float]:
        return {
            Market.MONEYLINE: self.moneyline_edge,
            Market.SPREAD: self.spread_edge,
            Market.TOTAL: self.ou_edge,
        }[market]

    @property
    def matchup(self) -> str:
        return f"{self.game_info.away_team} @ {self.game_info.home_team}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'game_info': asdict(self.game_info),
            'prediction': self.prediction,
            'confidence': self.confidence,
            'reasoning': self.reasoning,
            'week': self.week,
            'spread_prediction': self.spread_prediction,
            'ou_prediction': self.ou_prediction,
            'result': self.result.value,
            'ats_result': self.ats_result.value,
            'ou_result': self.ou_result.value,
            'model_probabilities': (
                asdict(self.model_probabilities) if self.model_probabilities else None
            ),
            'moneyline_edge': self.moneyline_edge,
            'spread_edge': self.spread_edge,
            'ou_edge': self.ou_edge,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Pick:
        """Build a pick from its stored dictionary form."""
        created_at = data.get('created_at')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        elif created_at is None:
            created_at = datetime.now()

        return cls(
            id=str(data['id']),
            created_at=created_at,
            game_info=GameInfo.from_dict(data['game_info']),
            prediction=data.get('prediction', ''),
            confidence=data.get('confidence', 50),
            reasoning=data.get('reasoning', ''),
            week=data.get('week'),
            spread_prediction=data.get('spread_prediction'),
            ou_prediction=data.get('ou_prediction'),
            result=data.get('result'),
            ats_result=data.get('ats_result'),
            ou_result=data.get('ou_result'),
            model_probabilities=ModelProbabilities.from_dict(data.get('model_probabilities')),
            moneyline_edge=data.get('moneyline_edge'),
            spread_edge=data.get('spread_edge'),
            ou_edge=data.get('ou_edge'),
        )


@dataclass
class MarketStats:
    """Win/loss record and betting performance for one market."""
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    total: int = 0
    win_rate: int = 0
    units: float = 0.0
    roi: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0

    @property
    def decided(self) -> int:
        return self.wins + self.losses

    @property
    def record(self) -> str:
        if self.pushes:
            return f"{self.wins}-{self.losses}-{self.pushes}"
        return f"{self.wins}-{self.losses}"


@dataclass
class ConfidenceBucket:
    """Moneyline record for picks in one confidence band."""
    wins: int = 0
    total: int = 0
    win_rate: int = 0


@dataclass
class AggregateStats:
    """Derived performance summary over a collection of picks."""
    total_picks: int = 0
    moneyline: MarketStats = field(default_factory=MarketStats)
    ats: MarketStats = field(default_factory=MarketStats)
    over_under: MarketStats = field(default_factory=MarketStats)
    by_confidence: Dict[str, ConfidenceBucket] = field(default_factory=dict)
    scope: str = "all"

    def market(self, market: Market) -> MarketStats:
        return {
            Market.MONEYLINE: self.moneyline,
            Market.SPREAD: self.ats,
            Market.TOTAL: self.over_under,
        }[market]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BestBet:
    """The single highest-edge market of a pick."""
    market: Market
    prediction: str
    edge: float
    confidence: int
    badge: str


@dataclass
class SaveSummary:
    """Outcome of persisting a batch of drafts."""
    saved_count: int = 0
    duplicate_count: int = 0
    outcomes: List[Tuple[str, str]] = field(default_factory=list)
    saved_picks: List[Pick] = field(default_factory=list)
