"""
Ensemble council — combines the five sub-models into one prediction.

Flow:
    MatchContext → parallel fan-out to every expert (keyed by model id)
                 → join → sanitize each result → weighted sum per market
                 → 1X2 normalization (or balanced fallback) → final clamps

Results are matched to weights by model id only; a missing, extra or
mislabelled id is an ``EnsembleContractError``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import numpy as np

from footcast.config import EnsembleConfig
from footcast.exceptions import EnsembleContractError
from footcast.models.advanced_math import project_to_bounds
from footcast.models.experts import Expert, clip_outputs
from footcast.models.poisson import btts_closed_form, score_grid
from footcast.types import (
    GOAL_MARKETS, MARKETS, GoalExpectancy, MarketProbabilityVector,
    MatchContext, SubModelPrediction,
)
from footcast.utils import safe_num

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contribution:
    model_id: str
    weight: float
    prediction: SubModelPrediction


@dataclass(frozen=True)
class EnsemblePrediction:
    probs: MarketProbabilityVector
    confidence: float
    expectancy: GoalExpectancy
    contributions: dict[str, Contribution]
    exact_scores: dict[str, float]
    most_likely: tuple[str, float]
    btts_closed_form: float
    used_fallback: bool
    weights: dict[str, float]
    context: MatchContext | None = field(default=None, compare=False)

    def as_dict(self) -> dict:
        return {
            "probabilities": self.probs.as_dict(),
            "confidence": self.confidence,
            "home_xg": self.expectancy.home,
            "away_xg": self.expectancy.away,
            "btts_closed_form": self.btts_closed_form,
            "most_likely_score": {"score": self.most_likely[0], "probability": self.most_likely[1]},
            "used_fallback": self.used_fallback,
            "weights": dict(self.weights),
            "contributions": {
                mid: {"weight": c.weight, **c.prediction.as_dict()}
                for mid, c in self.contributions.items()
            },
        }


def run_experts(ctx: MatchContext, experts: Mapping[str, Expert],
                max_workers: int | None = None) -> dict[str, SubModelPrediction]:
    """Call every expert on ``ctx`` concurrently and join on all of them.

    An expert that raises propagates its exception after the join.
    """
    workers = max(1, max_workers or len(experts))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="footcast-expert") as pool:
        futures = {mid: pool.submit(expert.predict, ctx) for mid, expert in experts.items()}
        results = {mid: fut.result() for mid, fut in futures.items()}

    for mid, pred in results.items():
        if getattr(pred, "model_id", None) != mid:
            raise EnsembleContractError(
                f"expert registered as {mid!r} returned a result labelled {getattr(pred, 'model_id', None)!r}"
            )
    return results


def sanitize(pred: SubModelPrediction, config: EnsembleConfig) -> SubModelPrediction:
    """Neutral values for unusable markets, then the per-model bounds.

    Markets are clipped one by one and the 1X2 triple is left unnormalized,
    so an oversized triple still shows in the weighted sum.  Only ``pred`` is
    affected; a broken sub-model never leaks into others.
    """
    probs = pred.probs
    raw = {m: safe_num(probs.get(m)) if hasattr(probs, "get") else None for m in MARKETS}
    if any(v is None for v in raw.values()):
        log.debug("%s returned unusable markets %s, using neutral values",
                  pred.model_id, [m for m, v in raw.items() if v is None])
    conf = safe_num(pred.confidence)
    exp = pred.expectancy if isinstance(pred.expectancy, GoalExpectancy) else GoalExpectancy(0.0, 0.0)
    return SubModelPrediction(
        model_id=pred.model_id,
        probs=clip_outputs(raw, config),
        confidence=float(np.clip(conf if conf is not None else 0.5, 0.0, 1.0)),
        expectancy=exp,
        signals=tuple(getattr(pred, "signals", ()) or ()),
    )


def _check_ids(predictions: Mapping[str, SubModelPrediction], weights: Mapping[str, float]) -> None:
    missing = set(weights) - set(predictions)
    extra = set(predictions) - set(weights)
    if missing or extra:
        raise EnsembleContractError(
            f"predictions do not match weights (missing={sorted(missing)}, extra={sorted(extra)})"
        )
    for mid, pred in predictions.items():
        if getattr(pred, "model_id", None) != mid:
            raise EnsembleContractError(f"prediction keyed {mid!r} is labelled {getattr(pred, 'model_id', None)!r}")


def combine(predictions: Mapping[str, SubModelPrediction], weights: Mapping[str, float],
            config: EnsembleConfig | None = None,
            context: MatchContext | None = None) -> EnsemblePrediction:
    """Weighted aggregation of the sub-model results.  Pure."""
    cfg = config or EnsembleConfig()
    _check_ids(predictions, weights)

    clean = {mid: sanitize(predictions[mid], cfg) for mid in weights}
    w = {mid: float(weights[mid]) for mid in weights}
    w_sum = sum(w.values()) or 1.0

    agg = {m: sum(w[mid] * clean[mid].probs.get(m) for mid in w) for m in MARKETS}

    # 1X2 normalization
    s = agg["home"] + agg["draw"] + agg["away"]
    lo, hi = cfg.normalize_band
    used_fallback = not (lo <= s <= hi)
    if used_fallback:
        log.warning("1X2 sum %.4f outside [%s, %s], using balanced fallback", s, lo, hi)
        h, d, a = cfg.fallback_1x2
    else:
        h, d, a = agg["home"] / s, agg["draw"] / s, agg["away"] / s

    olo, ohi = cfg.outcome_bounds
    dlo, dhi = cfg.draw_bounds
    h, d, a = project_to_bounds([h, d, a], [olo, dlo, olo], [ohi, dhi, ohi]).tolist()

    glo, ghi = cfg.goal_bounds
    goals = {m: float(np.clip(agg[m], glo, ghi)) for m in GOAL_MARKETS}

    confidence = sum(w[mid] * clean[mid].confidence for mid in w) / w_sum
    home_xg = sum(w[mid] * clean[mid].expectancy.home for mid in w) / w_sum
    away_xg = sum(w[mid] * clean[mid].expectancy.away for mid in w) / w_sum
    grid = score_grid(home_xg, away_xg)

    return EnsemblePrediction(
        probs=MarketProbabilityVector(home=h, draw=d, away=a, **goals),
        confidence=float(confidence),
        expectancy=GoalExpectancy(home_xg, away_xg),
        contributions={mid: Contribution(mid, w[mid], clean[mid]) for mid in w},
        exact_scores=grid.exact_scores(),
        most_likely=grid.most_likely(1)[0],
        btts_closed_form=btts_closed_form(home_xg, away_xg),
        used_fallback=used_fallback,
        weights=w,
        context=context,
    )
