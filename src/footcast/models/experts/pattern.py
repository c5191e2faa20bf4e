"""PatternExpert — small fixed-weight feed-forward network over team embeddings."""
from __future__ import annotations

import numpy as np

from footcast.models.advanced_math import relu
from footcast.models.experts._base import Expert
from footcast.reference import league_profile, team_profile
from footcast.types import MatchContext, SubModelPrediction

# input order
INPUTS = ("home_rank", "away_rank", "similarity", "rank_gap",
          "intensity", "predictability", "goal_tendency")

W_HIDDEN = np.array([
    [0.6, 0.4, 0.0, 0.0, 0.3, 0.0, 0.2],    # match quality
    [0.0, 0.0, 0.8, 0.5, 0.0, 0.4, 0.0],    # balance / home edge
])
B_HIDDEN = np.array([-0.5, -0.3])

# output heads read [hidden..., similarity, rank_gap, home_rank]
W_OUT = np.array([
    [0.7, 0.3, 0.0, 1.5, 0.0],      # home
    [-0.4, 0.0, 0.9, 0.0, 0.0],     # draw
    [0.0, 0.6, 0.0, -1.5, -0.3],    # away
])
B_OUT = np.array([-0.2, -0.4, 0.1])


def _sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


class PatternExpert(Expert):
    """
    Two-layer network: rankings and league character → ReLU hidden units →
    logistic output heads.  Weights are fixed; the model captures
    "similar sides in an intense league" style patterns rather than
    learning from data.
    """
    name = "pattern"

    def inputs(self, ctx: MatchContext) -> np.ndarray:
        h = team_profile(ctx.home_team).ranking
        a = team_profile(ctx.away_team).ranking
        lg = league_profile(ctx.league)
        return np.array([h, a, 1 - abs(h - a), h - a,
                         lg.intensity, lg.predictability, lg.goal_tendency])

    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        x = self.inputs(ctx)
        hidden = relu(W_HIDDEN @ x + B_HIDDEN)
        similarity, intensity, goal_tendency = x[2], x[4], x[6]

        out = _sigmoid(W_OUT @ np.concatenate([hidden, x[2:4], x[:1]]) + B_OUT)
        p_home, p_draw, p_away = (float(v) for v in out)

        spread = 1 - similarity
        goals = _sigmoid(np.array([
            intensity * 0.6 + spread * 0.3 + goal_tendency * 0.2 - 0.3,
            intensity * 0.8 + spread * 0.4 + goal_tendency * 0.3 - 0.5,
            intensity * 0.9 + spread * 0.5 + goal_tendency * 0.4 - 1.2,
        ]))
        btts = float(_sigmoid(spread * 0.7 + intensity * 0.3 - 0.6))

        return self._result(
            {
                "home": p_home, "draw": p_draw, "away": p_away,
                "over15": float(goals[0]), "over25": float(goals[1]), "over35": float(goals[2]),
                "btts": btts,
            },
            confidence=0.72 + 0.1 * x[5],
            home_xg=1.2 + hidden[0] * 0.8,
            away_xg=max(0.3, 1.0 + hidden[1] * 0.6 - x[3]),
        )
