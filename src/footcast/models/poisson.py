"""Score-grid calculator: independent-Poisson scoreline tables and the
market probabilities derived from them."""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.stats import poisson as poisson_dist

MAX_GOALS = 10
OVER_LINES = (0.5, 1.5, 2.5, 3.5, 4.5)
RENORMALIZE_FLOOR = 0.99


def goal_pmf(lam: float, max_goals: int = MAX_GOALS) -> np.ndarray:
    """P(k goals) for k = 0..max_goals.

    λ ≤ 0 (or non-finite) is the degenerate distribution with all mass at 0.
    """
    out = np.zeros(max_goals + 1)
    if lam is None or not math.isfinite(lam) or lam <= 0:
        out[0] = 1.0
        return out
    return poisson_dist.pmf(np.arange(max_goals + 1), lam)


def scoreline_probs(lam_h: float, lam_a: float, max_goals: int = MAX_GOALS) -> np.ndarray:
    """Joint matrix [home goals, away goals].

    When the truncated mass is at least 0.99 the matrix is rescaled to total
    exactly 1; heavier truncation is left visible.
    """
    M = np.outer(goal_pmf(lam_h, max_goals), goal_pmf(lam_a, max_goals))
    s = float(M.sum())
    if RENORMALIZE_FLOOR <= s and s != 1.0:
        M = M / s
    return M


def btts_closed_form(lam_h: float, lam_a: float) -> float:
    """(1 − p(0; λh)) · (1 − p(0; λa)) without building a grid."""
    p0h = goal_pmf(lam_h, 0)[0]
    p0a = goal_pmf(lam_a, 0)[0]
    return float((1.0 - p0h) * (1.0 - p0a))


@dataclass(frozen=True)
class ScoreGrid:
    home_xg: float
    away_xg: float
    matrix: np.ndarray
    p_home: float
    p_draw: float
    p_away: float
    overs: dict[float, float]
    btts: float
    grid_btts: float

    @property
    def over15(self) -> float:
        return self.overs[1.5]

    @property
    def over25(self) -> float:
        return self.overs[2.5]

    @property
    def over35(self) -> float:
        return self.overs[3.5]

    @property
    def mass(self) -> float:
        return float(self.matrix.sum())

    def exact_scores(self, max_goals: int | None = None) -> dict[str, float]:
        """``"h-a" -> probability`` for every cell up to ``max_goals`` per side."""
        n = self.matrix.shape[0] if max_goals is None else min(max_goals + 1, self.matrix.shape[0])
        return {f"{h}-{a}": float(self.matrix[h, a]) for h in range(n) for a in range(n)}

    def most_likely(self, top: int = 1) -> list[tuple[str, float]]:
        flat = self.matrix.ravel()
        n = self.matrix.shape[0]
        order = np.argsort(flat)[::-1][:top]
        return [(f"{i // n}-{i % n}", float(flat[i])) for i in order]


def score_grid(home_xg: float, away_xg: float, max_goals: int = MAX_GOALS) -> ScoreGrid:
    """Build the full grid and every market derived from it."""
    M = scoreline_probs(home_xg, away_xg, max_goals)
    goals = np.arange(M.shape[0])
    total_goals = np.add.outer(goals, goals)
    overs = {line: float(M[total_goals > line].sum()) for line in OVER_LINES}
    return ScoreGrid(
        home_xg=float(home_xg) if home_xg and math.isfinite(home_xg) and home_xg > 0 else 0.0,
        away_xg=float(away_xg) if away_xg and math.isfinite(away_xg) and away_xg > 0 else 0.0,
        matrix=M,
        p_home=float(np.tril(M, -1).sum()),
        p_draw=float(np.trace(M)),
        p_away=float(np.triu(M, 1).sum()),
        overs=overs,
        btts=btts_closed_form(home_xg, away_xg),
        grid_btts=float(M[1:, 1:].sum()),
    )


def outcome_probs(lam_h: float, lam_a: float) -> tuple[float, float, float]:
    M = scoreline_probs(lam_h, lam_a)
    p_home = float(np.tril(M, -1).sum())
    p_draw = float(np.trace(M))
    p_away = float(np.triu(M, 1).sum())
    s = p_home + p_draw + p_away
    return (p_home / s, p_draw / s, p_away / s)
