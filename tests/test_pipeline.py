"""Integration tests — PredictionEngine end to end."""
import datetime as dt
import json
from concurrent.futures import ThreadPoolExecutor

import pytest


def _valid(engine):
    w = engine.weights
    cfg = engine.config
    return abs(w.total - 1.0) <= 1e-6 and all(cfg.min_weight - 1e-9 <= v <= cfg.max_weight + 1e-9 for v in w.values())


class TestPredict:

    def test_probabilities_within_policy(self, engine, ctx):
        p = engine.predict_probabilities(ctx).probs
        assert p.home + p.draw + p.away == pytest.approx(1.0, abs=1e-3)
        assert 0.15 - 1e-9 <= p.home <= 0.75 + 1e-9
        assert 0.15 - 1e-9 <= p.away <= 0.75 + 1e-9
        assert 0.15 - 1e-9 <= p.draw <= 0.45 + 1e-9
        for v in (p.over15, p.over25, p.over35, p.btts):
            assert 0.10 <= v <= 0.90

    def test_contributions_cover_every_model(self, engine, ctx):
        from footcast.config import MODEL_IDS

        pred = engine.predict_probabilities(ctx)
        assert tuple(pred.contributions) == MODEL_IDS
        assert pred.weights == engine.weights.as_dict()
        assert pred.context is ctx

    def test_same_context_same_answer(self, ctx):
        from footcast.pipeline import PredictionEngine

        engine = PredictionEngine()
        assert engine.predict_probabilities(ctx).probs == engine.predict_probabilities(ctx).probs

    def test_dict_context_accepted(self, engine):
        pred = engine.predict_probabilities({"home_team": "Liverpool", "away_team": "Arsenal",
                                             "league": "Premier League"})
        assert pred.context.home_team == "Liverpool"

    def test_dict_context_iso_kickoff(self, engine):
        from footcast.types import MatchContext

        pred = engine.predict_probabilities({"home_team": "Liverpool", "away_team": "Arsenal",
                                             "league": "Premier League",
                                             "kickoff": "2025-03-01T15:00"})
        expected = dt.datetime(2025, 3, 1, 15, 0, tzinfo=dt.timezone.utc)
        assert pred.context.kickoff == expected
        assert pred.context.key == MatchContext("Liverpool", "Arsenal", "Premier League", kickoff=expected).key

    def test_unknown_teams_use_defaults(self, engine):
        from footcast.types import MatchContext

        pred = engine.predict_probabilities(MatchContext("", None))
        assert pred.context.home_team == "default"
        assert pred.probs.home + pred.probs.draw + pred.probs.away == pytest.approx(1.0, abs=1e-3)


class TestUpdateWeights:

    def test_requires_prediction(self, engine):
        from footcast.exceptions import NoPredictionError
        from footcast.utils import actual_outcome

        with pytest.raises(NoPredictionError):
            engine.update_weights(actual_outcome(1, 0))
        with pytest.raises(RuntimeError):
            engine.update_weights(actual_outcome(1, 0))

    def test_rejects_foreign_prior_prediction(self, engine, ctx):
        from footcast.exceptions import EnsembleContractError
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        with pytest.raises(EnsembleContractError):
            engine.update_weights(actual_outcome(1, 0), prior_prediction={"poisson": pred.contributions["poisson"]})
        assert len(engine.history) == 0
        assert engine.learning_rate == 0.02

    def test_single_update(self, engine, ctx):
        from footcast.utils import actual_outcome

        engine.predict_probabilities(ctx)
        w = engine.update_weights(actual_outcome(2, 1))
        assert w is engine.weights
        assert _valid(engine)
        assert engine.learning_rate == pytest.approx(0.02 * 0.995)
        assert len(engine.history) == 1
        assert engine.history.recent()[0].match == ctx.key

    def test_learning_rate_after_k_updates(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        for k in range(25):
            engine.update_weights(actual_outcome(k % 3, 1), prior_prediction=pred)
            assert _valid(engine)
        assert engine.learning_rate == pytest.approx(0.02 * 0.995 ** 25, rel=1e-12)

    def test_malformed_outcome_is_neutral(self, engine, ctx):
        engine.predict_probabilities(ctx)
        engine.update_weights(None)
        rec = engine.history.recent()[0]
        assert all(e == 0.5 for e in rec.errors.values())
        assert _valid(engine)

    def test_accuracy_moves_toward_observed(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        before = engine.accuracies
        engine.update_weights(actual_outcome(1, 0), prior_prediction=pred)
        err = engine.history.recent()[0].errors["poisson"]
        assert engine.accuracies["poisson"] == pytest.approx(0.8 * before["poisson"] + 0.2 * (1 - err))

    def test_concurrent_predict_and_update(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)

        def work(i):
            if i % 2:
                engine.update_weights(actual_outcome(i % 4, 1), prior_prediction=pred)
            p = engine.predict_probabilities(ctx).probs
            return p.home + p.draw + p.away

        with ThreadPoolExecutor(max_workers=4) as pool:
            sums = list(pool.map(work, range(16)))
        assert all(s == pytest.approx(1.0, abs=1e-3) for s in sums)
        assert len(engine.history) == 8
        assert _valid(engine)


class TestPerformanceStats:

    def test_keys_before_history(self, engine):
        s = engine.get_performance_stats()
        assert set(s) == {
            "average_error", "average_accuracy", "stability", "anomalies",
            "accuracy_per_model", "weight_distribution", "model_errors",
            "learning_rate", "history_size", "learning_active",
        }
        assert s["average_error"] is None
        assert s["stability"] == 1.0
        assert s["anomalies"] == []
        assert s["history_size"] == 0
        assert s["learning_active"] is True
        assert s["average_accuracy"] == pytest.approx((0.72 + 0.75 + 0.78 + 0.70 + 0.68) / 5)

    def test_after_updates(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        for hg, ag in [(1, 0), (0, 0), (2, 2)]:
            engine.update_weights(actual_outcome(hg, ag), prior_prediction=pred)
        s = engine.get_performance_stats()
        assert s["history_size"] == 3
        assert 0.0 <= s["average_error"] <= 1.0
        assert set(s["model_errors"]) == set(s["weight_distribution"])

    def test_history_expires(self, engine, ctx, clock):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        engine.update_weights(actual_outcome(1, 1), prior_prediction=pred)
        clock.advance(days=31)
        engine.update_weights(actual_outcome(1, 1), prior_prediction=pred)
        assert engine.get_performance_stats()["history_size"] == 1


class TestStatePersistence:

    def _trained(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        for hg, ag in [(3, 0), (0, 1), (1, 1), (2, 1)]:
            engine.update_weights(actual_outcome(hg, ag), prior_prediction=pred)
        return engine

    def test_round_trip_is_bit_identical(self, engine, ctx, static_features, clock):
        from footcast.pipeline import PredictionEngine

        snap = json.loads(json.dumps(self._trained(engine, ctx).export_state()))
        other = PredictionEngine(features=static_features, clock=clock)
        other.import_state(snap)
        again = other.export_state()
        assert again["weights"] == snap["weights"]
        assert again["accuracies"] == snap["accuracies"]
        assert again["learning_rate"] == snap["learning_rate"]
        assert again["history"] == snap["history"]

    def test_export_history_slice(self, engine, ctx):
        from footcast.utils import actual_outcome

        pred = engine.predict_probabilities(ctx)
        for i in range(14):
            engine.update_weights(actual_outcome(i % 3, 1), prior_prediction=pred)
        assert len(engine.export_state()["history"]) == 10
        full = engine.export_state(full_history=True)["history"]
        assert len(full) == 14
        assert full[-10:] == engine.export_state()["history"]

    def test_malformed_fields_keep_prior_values(self, engine, ctx):
        self._trained(engine, ctx)
        before = engine.export_state()
        engine.import_state({
            "weights": "heavy",
            "accuracies": {"poisson": "high", "market": None},
            "learning_rate": -1,
            "history": {"not": "a list"},
        })
        assert engine.export_state() == before

    def test_partial_accuracies_applied(self, engine):
        engine.import_state({"accuracies": {"poisson": 0.5, "market": "?"}})
        assert engine.accuracies["poisson"] == 0.5
        assert engine.accuracies["market"] == 0.68

    def test_out_of_bounds_weights_projected(self, engine):
        engine.import_state({"weights": {"poisson": 0.9, "regression": 0.05, "pattern": 0.05,
                                         "trend": 0.05, "market": 0.05}})
        assert _valid(engine)
        assert engine.weights["poisson"] == pytest.approx(0.40)

    def test_non_mapping_snapshot_ignored(self, engine):
        before = engine.export_state()
        engine.import_state(["weights"])
        engine.import_state(None)
        assert engine.export_state() == before

    def test_bad_history_records_skipped(self, engine, ctx):
        snap = self._trained(engine, ctx).export_state()
        snap["history"].append({"timestamp": "garbage"})
        engine.reset()
        engine.import_state(snap)
        assert len(engine.history) == 4

    def test_reset(self, engine, ctx):
        from footcast.exceptions import NoPredictionError
        from footcast.utils import actual_outcome

        self._trained(engine, ctx)
        engine.reset()
        assert engine.weights == engine.config.weight_priors
        assert engine.learning_rate == 0.02
        assert len(engine.history) == 0
        with pytest.raises(NoPredictionError):
            engine.update_weights(actual_outcome(0, 0))
