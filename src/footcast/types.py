"""Value objects passed between the sub-models, the combiner and the engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone

from footcast.utils import safe_num

log = logging.getLogger(__name__)

MARKETS: tuple[str, ...] = ("home", "draw", "away", "over15", "over25", "over35", "btts")
OUTCOME_MARKETS: tuple[str, ...] = ("home", "draw", "away")
GOAL_MARKETS: tuple[str, ...] = ("over15", "over25", "over35", "btts")

# substituted for a missing / non-finite market value
NEUTRAL: dict[str, float] = {
    "home": 0.33, "draw": 0.33, "away": 0.34,
    "over15": 0.5, "over25": 0.5, "over35": 0.5, "btts": 0.5,
}


def _parse_kickoff(s: str) -> datetime | None:
    try:
        return datetime.fromisoformat(s.strip())
    except ValueError:
        return None


def _signal(v) -> float | None:
    x = safe_num(v)
    if x is None:
        return None
    return max(0.0, min(1.0, x))


@dataclass(frozen=True)
class MatchContext:
    """One prediction request.

    Missing team or league ids resolve to the ``"default"`` reference profile.
    Optional signals are in [0, 1]; anything unparsable is treated as absent.
    ``kickoff`` also accepts an ISO string; naive times are read as UTC.
    """
    home_team: str
    away_team: str
    league: str = "default"
    kickoff: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    market_efficiency: float | None = None
    historical_data_quality: float | None = None
    complexity: float | None = None

    def __post_init__(self):
        for name in ("home_team", "away_team", "league"):
            v = getattr(self, name)
            object.__setattr__(self, name, str(v).strip() if v not in (None, "") and str(v).strip() else "default")
        ko = self.kickoff
        if isinstance(ko, str):
            ko = _parse_kickoff(ko)
        if not isinstance(ko, datetime):
            log.debug("unusable kickoff %r, using now", self.kickoff)
            ko = datetime.now(timezone.utc)
        elif ko.tzinfo is None:
            ko = ko.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "kickoff", ko)
        for name in ("market_efficiency", "historical_data_quality", "complexity"):
            object.__setattr__(self, name, _signal(getattr(self, name)))

    @property
    def key(self) -> str:
        return f"{self.home_team}|{self.away_team}|{self.league}|{self.kickoff.date().isoformat()}"


@dataclass(frozen=True)
class GoalExpectancy:
    home: float
    away: float

    def __post_init__(self):
        for name in ("home", "away"):
            v = safe_num(getattr(self, name))
            object.__setattr__(self, name, max(0.0, v) if v is not None else 0.0)

    @property
    def total(self) -> float:
        return self.home + self.away


@dataclass(frozen=True)
class MarketProbabilityVector:
    home: float
    draw: float
    away: float
    over15: float
    over25: float
    over35: float
    btts: float

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, market: str, default: float | None = None) -> float | None:
        return getattr(self, market, default)


@dataclass(frozen=True)
class SubModelPrediction:
    """Output of one sub-model for one match."""
    model_id: str
    probs: MarketProbabilityVector
    confidence: float
    expectancy: GoalExpectancy
    signals: tuple[str, ...] = ()   # model-specific flags, e.g. market value spots

    def as_dict(self) -> dict:
        return {
            "model_id": self.model_id,
            "probs": self.probs.as_dict(),
            "confidence": self.confidence,
            "home_xg": self.expectancy.home,
            "away_xg": self.expectancy.away,
            "signals": list(self.signals),
        }
