"""Online weight adaptation for the ensemble.

One transition per settled match:

    error_i   = mean |predicted − actual| over the tracked markets
                (a missing or non-finite value on either side counts 0.5)
    Δ_i       = (lr·(1 − error_i) + 0.5·lr·bonus_i) · log(1 + w_i)
    w_i'      = clip(w_i + Δ_i, min_weight, max_weight), divided by the sum,
                projected back into the bounds if the division broke them
    lr'       = lr · decay
    acc_i'    = 0.8·acc_i + 0.2·(1 − error_i)

Everything here is pure: ``adaptation_step`` returns a new
``AdaptationState`` and never touches its input.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator

import numpy as np

from footcast.config import MODEL_IDS, EnsembleConfig
from footcast.exceptions import EnsembleContractError
from footcast.features import MarketConditions
from footcast.models.advanced_math import project_to_bounds
from footcast.types import MatchContext
from footcast.utils import safe_num

log = logging.getLogger(__name__)

LEARNING_ACTIVE_FLOOR = 0.001


class EnsembleWeights(Mapping):
    """Immutable ``model id -> weight`` mapping over exactly ``MODEL_IDS``."""

    __slots__ = ("_w",)

    def __init__(self, values: Mapping[str, float]):
        if set(values) != set(MODEL_IDS):
            raise EnsembleContractError(
                f"weights must cover exactly {MODEL_IDS}, got {sorted(values)}"
            )
        self._w = MappingProxyType({mid: float(values[mid]) for mid in MODEL_IDS})

    @classmethod
    def from_priors(cls, config: EnsembleConfig | None = None) -> "EnsembleWeights":
        return cls((config or EnsembleConfig()).weight_priors)

    def __getitem__(self, model_id: str) -> float:
        return self._w[model_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._w)

    def __len__(self) -> int:
        return len(self._w)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v:.4f}" for k, v in self._w.items())
        return f"EnsembleWeights({inner})"

    @property
    def total(self) -> float:
        return float(sum(self._w.values()))

    def as_dict(self) -> dict[str, float]:
        return dict(self._w)

    def is_valid(self, config: EnsembleConfig, tol: float = 1e-6) -> bool:
        """Sum to one and every weight inside [min_weight, max_weight]."""
        if abs(self.total - 1.0) > tol:
            return False
        return all(config.min_weight - tol <= w <= config.max_weight + tol for w in self._w.values())


@dataclass(frozen=True)
class AdaptationState:
    """Everything the adaptation rule reads and writes, swapped as one object."""
    weights: EnsembleWeights
    accuracies: Mapping[str, float]
    learning_rate: float

    @classmethod
    def initial(cls, config: EnsembleConfig) -> "AdaptationState":
        return cls(
            weights=EnsembleWeights.from_priors(config),
            accuracies=MappingProxyType(dict(config.accuracy_priors)),
            learning_rate=config.learning_rate,
        )

    @property
    def learning_active(self) -> bool:
        return self.learning_rate > LEARNING_ACTIVE_FLOOR


# ---------------------------------------------------------------------------
# Error and bonus
# ---------------------------------------------------------------------------

def model_error(predicted, actual, markets=None, neutral: float = 0.5) -> float:
    """Mean absolute error over ``markets``; unusable values count ``neutral``.

    ``predicted`` and ``actual`` only need a ``get(market)`` method, so plain
    dicts and ``MarketProbabilityVector`` both work.  Anything else is treated
    as entirely missing.
    """
    markets = markets or EnsembleConfig().tracked_markets
    errs = []
    for m in markets:
        p = safe_num(predicted.get(m)) if hasattr(predicted, "get") else None
        a = safe_num(actual.get(m)) if hasattr(actual, "get") else None
        errs.append(neutral if p is None or a is None else abs(p - a))
    return float(np.mean(errs))


def specialization_bonus(model_id: str, ctx: MatchContext | None,
                         conditions: MarketConditions | None) -> float:
    """Extra credit for a sub-model when the match plays to its strength.

    market  ← 0.30 · market efficiency
    trend   ← 0.20 · historical data quality
    pattern ← 0.25 · complexity

    Context signals win over the provider's market conditions.  The
    conditions carry no data-quality figure, so ``trend`` falls back to
    their liquidity.
    """
    def pick(ctx_value, cond_attr):
        if ctx_value is not None:
            return ctx_value
        if conditions is not None:
            return getattr(conditions, cond_attr)
        return 0.0

    if model_id == "market":
        return 0.30 * pick(ctx.market_efficiency if ctx else None, "efficiency")
    if model_id == "trend":
        return 0.20 * pick(ctx.historical_data_quality if ctx else None, "liquidity")
    if model_id == "pattern":
        return 0.25 * pick(ctx.complexity if ctx else None, "complexity")
    return 0.0


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------

def adapt_weights(weights: Mapping[str, float], errors: Mapping[str, float],
                  bonuses: Mapping[str, float], learning_rate: float,
                  config: EnsembleConfig) -> EnsembleWeights:
    lo, hi = config.min_weight, config.max_weight
    raw = []
    for mid in MODEL_IDS:
        w = weights[mid]
        err = errors.get(mid, config.neutral_error)
        delta = learning_rate * (1 - err) + 0.5 * learning_rate * bonuses.get(mid, 0.0)
        delta *= math.log(1 + w)
        raw.append(min(hi, max(lo, w + delta)))

    arr = np.asarray(raw) / sum(raw)
    if np.any(arr < lo) or np.any(arr > hi):
        log.debug("renormalized weights left [%s, %s], projecting", lo, hi)
        n = len(MODEL_IDS)
        arr = project_to_bounds(arr, [lo] * n, [hi] * n)
    return EnsembleWeights(dict(zip(MODEL_IDS, arr.tolist())))


def update_accuracy(accuracy: float, error: float, smoothing: float = 0.2) -> float:
    return (1 - smoothing) * accuracy + smoothing * (1 - error)


def adaptation_step(state: AdaptationState, errors: Mapping[str, float],
                    bonuses: Mapping[str, float], config: EnsembleConfig) -> AdaptationState:
    """Apply one settled result; the learning rate decays whatever the errors."""
    weights = adapt_weights(state.weights, errors, bonuses, state.learning_rate, config)
    accuracies = {
        mid: update_accuracy(state.accuracies[mid], errors.get(mid, config.neutral_error),
                             config.accuracy_smoothing)
        for mid in MODEL_IDS
    }
    return AdaptationState(
        weights=weights,
        accuracies=MappingProxyType(accuracies),
        learning_rate=state.learning_rate * config.decay_rate,
    )
