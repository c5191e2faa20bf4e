from __future__ import annotations
import functools
import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

MODEL_IDS: tuple[str, ...] = ("poisson", "regression", "pattern", "trend", "market")


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v if v not in ("", None) else default


def _num(name: str, default: float) -> float:
    try:
        return float(_get(name, str(default)) or default)
    except ValueError:
        return default


@dataclass(frozen=True)
class EnsembleConfig:
    """Every tunable constant of the ensemble in one place.

    Bounds are (low, high) pairs.  Construction fails with ``ValueError`` when
    the bounds cannot hold a distribution summing to one, since no update rule
    could then satisfy the weight or 1X2 invariants.
    """
    weight_priors: dict[str, float] = field(default_factory=lambda: {
        "poisson": 0.25, "regression": 0.22, "pattern": 0.20,
        "trend": 0.18, "market": 0.15,
    })
    accuracy_priors: dict[str, float] = field(default_factory=lambda: {
        "poisson": 0.72, "regression": 0.75, "pattern": 0.78,
        "trend": 0.70, "market": 0.68,
    })
    min_weight: float = 0.05
    max_weight: float = 0.40
    learning_rate: float = 0.02
    decay_rate: float = 0.995
    accuracy_smoothing: float = 0.2     # weight of the newest observation
    neutral_error: float = 0.5
    tracked_markets: tuple[str, ...] = ("home", "draw", "away", "over25", "btts")

    # sub-model output clamps
    model_outcome_bounds: tuple[float, float] = (0.10, 0.80)
    model_draw_bounds: tuple[float, float] = (0.10, 0.50)
    model_goal_bounds: tuple[float, float] = (0.05, 0.95)

    # ensemble output policy
    normalize_band: tuple[float, float] = (0.8, 1.2)
    fallback_1x2: tuple[float, float, float] = (0.35, 0.30, 0.35)
    outcome_bounds: tuple[float, float] = (0.15, 0.75)
    draw_bounds: tuple[float, float] = (0.15, 0.45)
    goal_bounds: tuple[float, float] = (0.10, 0.90)

    # history store
    history_days: float = 30.0
    history_max_records: int | None = 5000
    stats_window: int = 20
    anomaly_window: int = 10
    anomaly_min_records: int = 3
    anomaly_sigma: float = 2.0
    export_history: int = 10

    def __post_init__(self):
        if set(self.weight_priors) != set(MODEL_IDS):
            raise ValueError(f"weight priors must cover exactly {MODEL_IDS}")
        n = len(MODEL_IDS)
        if not (n * self.min_weight <= 1.0 <= n * self.max_weight):
            raise ValueError("weight bounds cannot sum to one")
        if any(not (self.min_weight <= w <= self.max_weight) for w in self.weight_priors.values()):
            raise ValueError("weight priors outside [min_weight, max_weight]")
        if abs(sum(self.weight_priors.values()) - 1.0) > 1e-6:
            raise ValueError("weight priors must sum to one")
        for lo_hi in (
            (self.model_outcome_bounds, self.model_draw_bounds),
            (self.outcome_bounds, self.draw_bounds),
        ):
            (olo, ohi), (dlo, dhi) = lo_hi
            if not (2 * olo + dlo <= 1.0 <= 2 * ohi + dhi):
                raise ValueError("1X2 bounds cannot sum to one")
        if not (0.0 < self.decay_rate <= 1.0):
            raise ValueError("decay_rate must be in (0, 1]")


@dataclass(frozen=True)
class Settings:
    state_path: str
    feature_seed: int
    max_workers: int
    ensemble: EnsembleConfig


@functools.lru_cache(maxsize=1)
def settings() -> Settings:
    ensemble = EnsembleConfig(
        learning_rate=_num("FOOTCAST_LEARNING_RATE", 0.02),
        decay_rate=_num("FOOTCAST_DECAY_RATE", 0.995),
        history_days=_num("FOOTCAST_HISTORY_DAYS", 30.0),
    )
    return Settings(
        state_path=_get("FOOTCAST_STATE_PATH", "./data/footcast_state.json") or "./data/footcast_state.json",
        feature_seed=int(_num("FOOTCAST_FEATURE_SEED", 0)),
        max_workers=max(1, int(_num("FOOTCAST_MAX_WORKERS", len(MODEL_IDS)))),
        ensemble=ensemble,
    )
