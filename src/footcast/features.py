"""Feature providers: the sub-models' source for inputs with no live feed.

Odds movement, fixture congestion, head-to-head edges and market conditions
come from external analyzers in a full deployment.  Here they are behind the
``FeatureProvider`` interface so tests can inject fixed values.
"""
from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from footcast.types import MatchContext


@dataclass(frozen=True)
class MarketConditions:
    efficiency: float
    complexity: float
    liquidity: float


@dataclass(frozen=True)
class OddsNoise:
    home: float
    draw: float
    away: float
    movement: float


class FeatureProvider(ABC):
    """Supplies context features that are not in the static reference tables."""

    @abstractmethod
    def team_trend(self, team: str, ctx: MatchContext) -> float:
        """Recent momentum for a team without a tracked trend, roughly ±0.15."""

    @abstractmethod
    def rest_days(self, team: str, ctx: MatchContext) -> float:
        ...

    @abstractmethod
    def head_to_head_edge(self, ctx: MatchContext) -> float:
        """Home side's historical edge in this fixture, roughly ±0.1."""

    @abstractmethod
    def odds_noise(self, ctx: MatchContext) -> OddsNoise:
        ...

    @abstractmethod
    def market_conditions(self, ctx: MatchContext) -> MarketConditions:
        ...


class SimulatedFeatureProvider(FeatureProvider):
    """Pseudo-random features, reproducible per match.

    Each draw is seeded from an md5 hash of the provider seed, the match key
    and the feature name, so the same context always yields the same values
    and no generator state is shared between threads.
    """

    def __init__(self, seed: int = 0):
        self.seed = int(seed)

    def _rng(self, ctx: MatchContext, what: str) -> np.random.Generator:
        h = int(hashlib.md5(f"{self.seed}|{ctx.key}|{what}".encode()).hexdigest(), 16)
        return np.random.default_rng(h)

    def team_trend(self, team: str, ctx: MatchContext) -> float:
        return float((self._rng(ctx, f"trend:{team}").random() - 0.5) * 0.3)

    def rest_days(self, team: str, ctx: MatchContext) -> float:
        return float(self._rng(ctx, f"rest:{team}").integers(2, 9))

    def head_to_head_edge(self, ctx: MatchContext) -> float:
        return float((self._rng(ctx, "h2h").random() - 0.5) * 0.2)

    def odds_noise(self, ctx: MatchContext) -> OddsNoise:
        u = self._rng(ctx, "odds").random(4) - 0.5
        return OddsNoise(home=float(u[0] * 0.3), draw=float(u[1] * 0.4),
                         away=float(u[2] * 0.6), movement=float(u[3] * 0.08))

    def market_conditions(self, ctx: MatchContext) -> MarketConditions:
        u = self._rng(ctx, "market").random(3)
        return MarketConditions(
            efficiency=float(0.85 + u[0] * 0.10),
            complexity=float(0.60 + u[1] * 0.30),
            liquidity=float(0.80 + u[2] * 0.15),
        )


class StaticFeatureProvider(FeatureProvider):
    """Fixed features; the deterministic double for tests and offline runs."""

    def __init__(
        self,
        trend: float = 0.0,
        rest: float = 7.0,
        h2h: float = 0.0,
        noise: OddsNoise | None = None,
        conditions: MarketConditions | None = None,
    ):
        self.trend = trend
        self.rest = rest
        self.h2h = h2h
        self.noise = noise or OddsNoise(0.0, 0.0, 0.0, 0.0)
        self.conditions = conditions or MarketConditions(
            efficiency=0.90, complexity=0.75, liquidity=0.875,
        )

    def team_trend(self, team: str, ctx: MatchContext) -> float:
        return self.trend

    def rest_days(self, team: str, ctx: MatchContext) -> float:
        return self.rest

    def head_to_head_edge(self, ctx: MatchContext) -> float:
        return self.h2h

    def odds_noise(self, ctx: MatchContext) -> OddsNoise:
        return self.noise

    def market_conditions(self, ctx: MatchContext) -> MarketConditions:
        return self.conditions
