"""
Shared fixtures for the footcast test suite.

Provides:
    - Environment defaults so settings() never touches the real state file
    - A deterministic feature provider
    - A controllable clock for retention tests
    - Helper factories for sub-model predictions and history records
"""
from __future__ import annotations

import datetime as dt
import os

import pytest

os.environ.setdefault("FOOTCAST_FEATURE_SEED", "0")
os.environ.setdefault("FOOTCAST_MAX_WORKERS", "5")


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: dt.datetime | None = None):
        self.now = start or dt.datetime(2025, 3, 1, 12, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + dt.timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def static_features():
    from footcast.features import StaticFeatureProvider
    return StaticFeatureProvider()


@pytest.fixture()
def config():
    from footcast.config import EnsembleConfig
    return EnsembleConfig()


@pytest.fixture()
def engine(static_features, clock):
    from footcast.pipeline import PredictionEngine
    return PredictionEngine(features=static_features, clock=clock)


@pytest.fixture()
def ctx():
    from footcast.types import MatchContext
    return MatchContext(
        "Arsenal", "Chelsea", "Premier League",
        kickoff=dt.datetime(2025, 3, 1, 15, 0, tzinfo=dt.timezone.utc),
    )


@pytest.fixture()
def state_path(tmp_path, monkeypatch):
    """Point FOOTCAST_STATE_PATH at a temp file for the duration of a test."""
    from footcast.config import settings

    path = tmp_path / "state.json"
    monkeypatch.setenv("FOOTCAST_STATE_PATH", str(path))
    settings.cache_clear()
    yield path
    settings.cache_clear()


def make_pred(model_id: str, **probs):
    """SubModelPrediction with sensible defaults for any market not given."""
    from footcast.types import GoalExpectancy, MarketProbabilityVector, SubModelPrediction

    base = {"home": 0.5, "draw": 0.3, "away": 0.2,
            "over15": 0.7, "over25": 0.5, "over35": 0.3, "btts": 0.5}
    base.update(probs)
    return SubModelPrediction(
        model_id=model_id,
        probs=MarketProbabilityVector(**base),
        confidence=0.7,
        expectancy=GoalExpectancy(1.5, 1.1),
    )


def make_record(ts: dt.datetime, error: float, lr: float = 0.02):
    from footcast.config import MODEL_IDS
    from footcast.performance_tracker import PredictionRecord

    return PredictionRecord(
        timestamp=ts,
        errors={m: error for m in MODEL_IDS},
        weights={m: 0.2 for m in MODEL_IDS},
        learning_rate=lr,
    )
