"""Tests for the advanced_math module — activations, odds, bounded projection."""
import math

import numpy as np
import pytest


class TestActivations:

    def test_inv_logit_midpoint(self):
        from footcast.models.advanced_math import inv_logit
        assert inv_logit(0.0) == 0.5

    def test_inv_logit_extreme_inputs(self):
        from footcast.models.advanced_math import inv_logit
        assert inv_logit(1e6) == pytest.approx(1.0)
        assert inv_logit(-1e6) == pytest.approx(0.0)

    def test_relu(self):
        from footcast.models.advanced_math import relu
        np.testing.assert_array_equal(relu(np.array([-1.0, 0.0, 2.0])), [0.0, 0.0, 2.0])


class TestOdds:

    def test_fair_odds_have_no_overround(self):
        from footcast.models.advanced_math import overround
        assert overround([2.0, 4.0, 4.0]) == pytest.approx(0.0)

    def test_remove_overround_sums_to_one(self):
        from footcast.models.advanced_math import remove_overround
        probs = remove_overround([1.9, 3.4, 4.2])
        assert sum(probs) == pytest.approx(1.0)
        assert probs[0] > probs[1] > probs[2]


class TestProjectToBounds:
    """Euclidean projection onto {lo ≤ x ≤ hi, Σx = 1}."""

    def test_clamps_and_keeps_sum(self):
        from footcast.models.advanced_math import project_to_bounds
        x = project_to_bounds([0.9, 0.05, 0.05], [0.15, 0.15, 0.15], [0.75, 0.45, 0.75])
        assert x.sum() == pytest.approx(1.0, abs=1e-9)
        assert x[0] == pytest.approx(0.70, abs=1e-9)
        assert x[1] == pytest.approx(0.15, abs=1e-9)
        assert x[2] == pytest.approx(0.15, abs=1e-9)

    def test_valid_input_unchanged(self):
        from footcast.models.advanced_math import project_to_bounds
        v = [0.5, 0.3, 0.2]
        x = project_to_bounds(v, [0.1] * 3, [0.8] * 3)
        np.testing.assert_array_equal(x, v)

    def test_infeasible_bounds_raise(self):
        from footcast.models.advanced_math import project_to_bounds
        with pytest.raises(ValueError):
            project_to_bounds([0.2, 0.2], [0.6, 0.6], [0.9, 0.9])

    def test_rescales_unnormalized_input(self):
        from footcast.models.advanced_math import project_to_bounds
        x = project_to_bounds([0.2, 0.2, 0.2, 0.2, 0.4], [0.05] * 5, [0.40] * 5)
        assert x.sum() == pytest.approx(1.0, abs=1e-9)
        assert np.all(x >= 0.05 - 1e-12) and np.all(x <= 0.40 + 1e-12)
        assert not any(math.isnan(v) for v in x)
