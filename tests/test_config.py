"""Unit tests — Config & Settings."""
import pytest


class TestEnsembleConfig:
    """Defaults and feasibility checks."""

    def test_priors_sum_to_one(self):
        from footcast.config import EnsembleConfig

        cfg = EnsembleConfig()
        assert sum(cfg.weight_priors.values()) == pytest.approx(1.0)
        assert all(cfg.min_weight <= w <= cfg.max_weight for w in cfg.weight_priors.values())

    def test_priors_cover_model_ids(self):
        from footcast.config import MODEL_IDS, EnsembleConfig

        cfg = EnsembleConfig()
        assert set(cfg.weight_priors) == set(MODEL_IDS)
        assert set(cfg.accuracy_priors) == set(MODEL_IDS)

    def test_infeasible_weight_bounds_rejected(self):
        from footcast.config import EnsembleConfig

        with pytest.raises(ValueError):
            EnsembleConfig(min_weight=0.3)

    def test_infeasible_outcome_bounds_rejected(self):
        from footcast.config import EnsembleConfig

        with pytest.raises(ValueError):
            EnsembleConfig(outcome_bounds=(0.5, 0.75))

    def test_priors_must_sum_to_one(self):
        from footcast.config import EnsembleConfig

        with pytest.raises(ValueError):
            EnsembleConfig(weight_priors={
                "poisson": 0.3, "regression": 0.3, "pattern": 0.3,
                "trend": 0.3, "market": 0.3,
            })

    def test_bad_decay_rejected(self):
        from footcast.config import EnsembleConfig

        with pytest.raises(ValueError):
            EnsembleConfig(decay_rate=1.5)


class TestSettings:
    """Environment-driven settings."""

    def test_settings_loads(self):
        from footcast.config import settings

        s = settings()
        assert s.state_path
        assert s.max_workers >= 1
        assert s.ensemble.learning_rate > 0

    def test_env_overrides(self, monkeypatch):
        from footcast.config import settings

        monkeypatch.setenv("FOOTCAST_LEARNING_RATE", "0.05")
        monkeypatch.setenv("FOOTCAST_HISTORY_DAYS", "7")
        monkeypatch.setenv("FOOTCAST_FEATURE_SEED", "42")
        settings.cache_clear()
        try:
            s = settings()
            assert s.ensemble.learning_rate == 0.05
            assert s.ensemble.history_days == 7.0
            assert s.feature_seed == 42
        finally:
            settings.cache_clear()

    def test_unparsable_env_falls_back(self, monkeypatch):
        from footcast.config import settings

        monkeypatch.setenv("FOOTCAST_DECAY_RATE", "not-a-number")
        settings.cache_clear()
        try:
            assert settings().ensemble.decay_rate == 0.995
        finally:
            settings.cache_clear()
