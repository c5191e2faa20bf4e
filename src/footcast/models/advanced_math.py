"""Mathematical helpers shared by the sub-models and the ensemble.

- Logistic / rectified-linear activations
- Overround removal for decimal odds
- Euclidean projection onto a box-constrained simplex
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np


# ═══════════════════════════════════════════════════════════════════
# 1. ACTIVATIONS
# ═══════════════════════════════════════════════════════════════════
def inv_logit(x: float) -> float:
    """Inverse logit (sigmoid): 1 / (1 + exp(-x))."""
    return 1.0 / (1.0 + math.exp(-max(-500, min(500, x))))


def relu(x):
    """Rectified linear unit; works on scalars and arrays."""
    return np.maximum(0.0, x)


# ═══════════════════════════════════════════════════════════════════
# 2. ODDS
# ═══════════════════════════════════════════════════════════════════
def implied_probs(odds: Sequence[float]) -> tuple[float, ...]:
    """Raw implied probabilities 1/odds (overround still included)."""
    return tuple(1.0 / max(o, 1.01) for o in odds)


def overround(odds: Sequence[float]) -> float:
    """Σ(1/odds) − 1: the bookmaker margin of a complete market."""
    return sum(implied_probs(odds)) - 1.0


def remove_overround(odds: Sequence[float]) -> tuple[float, ...]:
    """Fair probabilities for a complete market: implied shares rescaled to one.

    Odds below 1.01 are read as 1.01, so the result is always defined.
    """
    implied = implied_probs(odds)
    total = sum(implied)
    return tuple(p / total for p in implied)


# ═══════════════════════════════════════════════════════════════════
# 3. BOUNDED SIMPLEX PROJECTION
# ═══════════════════════════════════════════════════════════════════
def project_to_bounds(
    values: Sequence[float],
    lower: Sequence[float],
    upper: Sequence[float],
    total: float = 1.0,
    tol: float = 1e-12,
    max_iter: int = 200,
) -> np.ndarray:
    """Closest vector (Euclidean) to ``values`` with lower ≤ x ≤ upper and Σx = total.

    The solution has the form clip(values + τ, lower, upper); τ is found by
    bisection since the clipped sum is monotone in τ.  Input already inside
    the box and summing to ``total`` is returned unchanged.

    Requires Σlower ≤ total ≤ Σupper.
    """
    x = np.asarray(values, dtype=float)
    lo = np.asarray(lower, dtype=float)
    hi = np.asarray(upper, dtype=float)
    if lo.sum() > total + tol or hi.sum() < total - tol:
        raise ValueError("bounds cannot hold the requested total")
    if np.all(x >= lo) and np.all(x <= hi) and abs(x.sum() - total) <= tol:
        return x.copy()

    a = float(np.min(lo - x))
    b = float(np.max(hi - x))
    tau = 0.5 * (a + b)
    for _ in range(max_iter):
        tau = 0.5 * (a + b)
        s = float(np.clip(x + tau, lo, hi).sum())
        if abs(s - total) <= tol:
            break
        if s < total:
            a = tau
        else:
            b = tau
    return np.clip(x + tau, lo, hi)
