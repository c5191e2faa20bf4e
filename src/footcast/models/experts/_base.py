"""Base classes and shared helpers for expert modules."""
from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from footcast.config import EnsembleConfig
from footcast.features import FeatureProvider, SimulatedFeatureProvider
from footcast.models.advanced_math import project_to_bounds
from footcast.types import (
    GOAL_MARKETS, NEUTRAL, OUTCOME_MARKETS, GoalExpectancy,
    MarketProbabilityVector, MatchContext, SubModelPrediction,
)
from footcast.utils import safe_num


# ---------------------------------------------------------------------------
# Shared helper functions
# ---------------------------------------------------------------------------

def _f(x) -> float:
    """Safe float cast."""
    try:
        if x is None:
            return 0.0
        v = float(x)
        return v if np.isfinite(v) else 0.0
    except Exception:
        return 0.0


def _v(raw: dict, market: str) -> float:
    """Market value from a raw output dict, neutral when missing or non-finite."""
    v = safe_num(raw.get(market))
    return NEUTRAL[market] if v is None else v


def _norm3(a, b, c) -> tuple[float, float, float]:
    s = a + b + c
    if s <= 0:
        return (1 / 3, 1 / 3, 1 / 3)
    return (a / s, b / s, c / s)


def _clamp_goals(raw: dict[str, float], cfg: EnsembleConfig) -> dict[str, float]:
    glo, ghi = cfg.model_goal_bounds
    goals = {m: float(np.clip(_v(raw, m), glo, ghi)) for m in GOAL_MARKETS}
    goals["over25"] = min(goals["over25"], goals["over15"])
    goals["over35"] = min(goals["over35"], goals["over25"])
    return goals


def clip_outputs(raw: dict[str, float], cfg: EnsembleConfig) -> MarketProbabilityVector:
    """Per-market clip into the sub-model bounds, no renormalization.

    Used on results arriving at the combiner: a 1X2 triple that does not sum
    to one keeps its excess, so the combiner can see it.
    """
    olo, ohi = cfg.model_outcome_bounds
    dlo, dhi = cfg.model_draw_bounds
    return MarketProbabilityVector(
        home=float(np.clip(_v(raw, "home"), olo, ohi)),
        draw=float(np.clip(_v(raw, "draw"), dlo, dhi)),
        away=float(np.clip(_v(raw, "away"), olo, ohi)),
        **_clamp_goals(raw, cfg),
    )


def clamp_outputs(raw: dict[str, float], cfg: EnsembleConfig) -> MarketProbabilityVector:
    """Keep one sub-model away from near-certainty.

    The 1X2 triple is normalized and projected into the per-model bounds so
    it still sums to one; goal markets are clipped and made monotone
    (over 1.5 ≥ over 2.5 ≥ over 3.5).
    """
    h, d, a = _norm3(*(max(_v(raw, m), 0.0) for m in OUTCOME_MARKETS))
    olo, ohi = cfg.model_outcome_bounds
    dlo, dhi = cfg.model_draw_bounds
    h, d, a = project_to_bounds([h, d, a], [olo, dlo, olo], [ohi, dhi, ohi]).tolist()
    return MarketProbabilityVector(home=h, draw=d, away=a, **_clamp_goals(raw, cfg))


# ---------------------------------------------------------------------------
# Abstract expert
# ---------------------------------------------------------------------------
class Expert(ABC):
    """One sub-model.  ``predict`` must not mutate instance state."""
    name: str

    def __init__(self, features: FeatureProvider | None = None,
                 config: EnsembleConfig | None = None):
        self.features = features or SimulatedFeatureProvider()
        self.config = config or EnsembleConfig()

    @abstractmethod
    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        """Market probabilities for one match."""
        ...

    def _result(self, raw: dict[str, float], confidence: float,
                home_xg: float, away_xg: float,
                signals: tuple[str, ...] = ()) -> SubModelPrediction:
        return SubModelPrediction(
            model_id=self.name,
            probs=clamp_outputs(raw, self.config),
            confidence=float(np.clip(_f(confidence), 0.0, 1.0)),
            expectancy=GoalExpectancy(home_xg, away_xg),
            signals=tuple(signals),
        )
