from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Callable

import numpy as np

from footcast.cache import utc_now
from footcast.config import MODEL_IDS, EnsembleConfig, Settings, settings
from footcast.exceptions import EnsembleContractError, NoPredictionError
from footcast.features import FeatureProvider, SimulatedFeatureProvider
from footcast.models.advanced_math import project_to_bounds
from footcast.models.council import EnsemblePrediction, combine, run_experts
from footcast.models.experts import build_experts
from footcast.models.weights import (
    AdaptationState, EnsembleWeights, adaptation_step, model_error,
    specialization_bonus,
)
from footcast.performance_tracker import PerformanceHistory, PredictionRecord
from footcast.types import MatchContext
from footcast.utils import safe_num

log = logging.getLogger(__name__)

STATE_VERSION = 1


def _as_context(context) -> MatchContext:
    if isinstance(context, MatchContext):
        return context
    if isinstance(context, Mapping):
        known = ("home_team", "away_team", "league", "kickoff",
                 "market_efficiency", "historical_data_quality", "complexity")
        return MatchContext(
            home_team=context.get("home_team", "default"),
            away_team=context.get("away_team", "default"),
            **{k: context[k] for k in known[2:] if context.get(k) is not None},
        )
    log.debug("unusable match context %r, using default teams", context)
    return MatchContext("default", "default")


def _model_floats(raw) -> dict[str, float] | None:
    """``{model id: finite float}`` covering every id, else ``None``."""
    if not isinstance(raw, Mapping):
        return None
    out = {}
    for mid in MODEL_IDS:
        v = safe_num(raw.get(mid))
        if v is None:
            return None
        out[mid] = v
    return out


class PredictionEngine:
    """
    Facade over the ensemble: predicts, learns from settled results and
    reports on its own performance.

    Owns the only mutable state (weights, accuracies, learning rate and the
    history).  Weights, accuracies and learning rate live in one immutable
    ``AdaptationState`` that is replaced under a lock, so a concurrent
    ``predict_probabilities`` always combines with a complete weight vector.

    Example usage:
        engine = PredictionEngine()
        pred = engine.predict_probabilities(MatchContext("Arsenal", "Chelsea", "Premier League"))
        engine.update_weights(actual_outcome(2, 1))
        engine.get_performance_stats()
    """

    def __init__(
        self,
        features: FeatureProvider | None = None,
        config: EnsembleConfig | None = None,
        max_workers: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or EnsembleConfig()
        self.features = features or SimulatedFeatureProvider()
        self.experts = build_experts(self.features, self.config)
        self.max_workers = max_workers or len(MODEL_IDS)
        self.history = PerformanceHistory(self.config, clock=clock)
        self._lock = threading.Lock()
        self._state = AdaptationState.initial(self.config)
        self._last_prediction: EnsemblePrediction | None = None

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> "PredictionEngine":
        s = s or settings()
        return cls(
            features=SimulatedFeatureProvider(seed=s.feature_seed),
            config=s.ensemble,
            max_workers=s.max_workers,
        )

    # ----- read-only views -----

    @property
    def weights(self) -> EnsembleWeights:
        return self._state.weights

    @property
    def accuracies(self) -> dict[str, float]:
        return dict(self._state.accuracies)

    @property
    def learning_rate(self) -> float:
        return self._state.learning_rate

    @property
    def last_prediction(self) -> EnsemblePrediction | None:
        return self._last_prediction

    # ----- operations -----

    def predict_probabilities(self, context) -> EnsemblePrediction:
        """Run every sub-model on the match and combine with the current weights."""
        ctx = _as_context(context)
        weights = self._state.weights
        preds = run_experts(ctx, self.experts, self.max_workers)
        result = combine(preds, weights, self.config, context=ctx)
        with self._lock:
            self._last_prediction = result
        p = result.probs
        log.debug("%s vs %s: H=%.3f D=%.3f A=%.3f conf=%.3f",
                  ctx.home_team, ctx.away_team, p.home, p.draw, p.away, result.confidence)
        return result

    def update_weights(self, actual_outcome, prior_prediction: EnsemblePrediction | None = None) -> EnsembleWeights:
        """Learn from one settled match.

        ``actual_outcome`` maps market names to the settled value (1.0 / 0.0,
        see ``footcast.utils.actual_outcome``).  Missing or malformed markets
        count as neutral errors.  Without ``prior_prediction`` the most recent
        ``predict_probabilities`` result is used.
        """
        pred = prior_prediction if prior_prediction is not None else self._last_prediction
        if pred is None:
            raise NoPredictionError("update_weights called before any prediction was made")
        if not isinstance(pred, EnsemblePrediction):
            raise EnsembleContractError(
                f"prior_prediction must be an EnsemblePrediction, got {type(pred).__name__}"
            )

        cfg = self.config
        ctx = pred.context
        conditions = self.features.market_conditions(ctx) if ctx is not None else None

        errors = {}
        for mid in MODEL_IDS:
            contrib = pred.contributions.get(mid)
            probs = contrib.prediction.probs if contrib is not None else None
            errors[mid] = model_error(probs, actual_outcome, cfg.tracked_markets, cfg.neutral_error)
        bonuses = {mid: specialization_bonus(mid, ctx, conditions) for mid in MODEL_IDS}

        with self._lock:
            new_state = adaptation_step(self._state, errors, bonuses, cfg)
            self._state = new_state
            self.history.append(PredictionRecord(
                timestamp=self.history.clock(),
                errors=errors,
                weights=new_state.weights.as_dict(),
                learning_rate=new_state.learning_rate,
                match=ctx.key if ctx is not None else None,
            ))

        log.info("weights updated (lr=%.5f): %s", new_state.learning_rate,
                 ", ".join(f"{k}={v:.3f}" for k, v in new_state.weights.items()))
        return new_state.weights

    def get_performance_stats(self) -> dict:
        state = self._state
        return {
            "average_error": self.history.average_error(),
            "average_accuracy": float(np.mean(list(state.accuracies.values()))),
            "stability": self.history.stability(),
            "anomalies": self.history.detect_anomalies(),
            "accuracy_per_model": dict(state.accuracies),
            "weight_distribution": state.weights.as_dict(),
            "model_errors": self.history.average_errors(),
            "learning_rate": state.learning_rate,
            "history_size": len(self.history),
            "learning_active": state.learning_active,
        }

    def reset(self) -> None:
        """Back to priors, the initial learning rate and an empty history."""
        with self._lock:
            self._state = AdaptationState.initial(self.config)
            self._last_prediction = None
            self.history.clear()
        log.info("engine reset to priors")

    # ----- persistence -----

    def export_state(self, full_history: bool = False) -> dict:
        """Snapshot for ``import_state``.

        History is cut to the newest ``export_history`` records unless
        ``full_history`` is set, which keeps every retained record.
        """
        state = self._state
        history = self.history.export_all() if full_history else self.history.export()
        return {
            "version": STATE_VERSION,
            "weights": state.weights.as_dict(),
            "accuracies": dict(state.accuracies),
            "learning_rate": state.learning_rate,
            "history": history,
        }

    def import_state(self, snapshot) -> None:
        """Restore an ``export_state`` snapshot.

        Each field is applied independently; an absent or malformed field
        keeps the current value.  Weights that break the sum / bounds
        invariants are projected back into them.  Never raises for bad data.
        """
        if not isinstance(snapshot, Mapping):
            log.warning("ignoring state snapshot of type %s", type(snapshot).__name__)
            return

        with self._lock:
            cur = self._state
            weights = self._import_weights(snapshot.get("weights"), cur.weights)

            accuracies = dict(cur.accuracies)
            raw_acc = snapshot.get("accuracies")
            if isinstance(raw_acc, Mapping):
                for mid in MODEL_IDS:
                    v = safe_num(raw_acc.get(mid))
                    if v is None:
                        log.warning("snapshot accuracy for %s unusable, keeping %.4f", mid, accuracies[mid])
                        continue
                    accuracies[mid] = min(1.0, max(0.0, v))
            elif raw_acc is not None:
                log.warning("snapshot accuracies malformed, keeping current values")

            lr = safe_num(snapshot.get("learning_rate"))
            if lr is None or lr < 0:
                if "learning_rate" in snapshot:
                    log.warning("snapshot learning_rate %r unusable, keeping %.5f",
                                snapshot.get("learning_rate"), cur.learning_rate)
                lr = cur.learning_rate

            self._state = AdaptationState(weights, MappingProxyType(accuracies), lr)

            raw_hist = snapshot.get("history")
            if isinstance(raw_hist, list):
                records = [r for r in (PredictionRecord.from_dict(x) for x in raw_hist) if r is not None]
                if len(records) < len(raw_hist):
                    log.warning("dropped %d malformed history records", len(raw_hist) - len(records))
                self.history.load(records)
            elif raw_hist is not None:
                log.warning("snapshot history malformed, keeping current history")

    def _import_weights(self, raw, current: EnsembleWeights) -> EnsembleWeights:
        cfg = self.config
        parsed = _model_floats(raw)
        if parsed is None:
            if raw is not None:
                log.warning("snapshot weights malformed, keeping current weights")
            return current
        cand = EnsembleWeights(parsed)
        if cand.is_valid(cfg):
            return cand
        arr = np.clip(np.array([parsed[m] for m in MODEL_IDS]), 0.0, None)
        if arr.sum() <= 0:
            log.warning("snapshot weights sum to zero, keeping current weights")
            return current
        n = len(MODEL_IDS)
        fixed = project_to_bounds(arr / arr.sum(), [cfg.min_weight] * n, [cfg.max_weight] * n)
        log.warning("snapshot weights violated bounds, projected to %s",
                    ", ".join(f"{v:.3f}" for v in fixed))
        return EnsembleWeights(dict(zip(MODEL_IDS, fixed.tolist())))
