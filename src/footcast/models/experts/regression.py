"""RegressionExpert — engineered differential features through fixed logistic heads."""
from __future__ import annotations

import numpy as np

from footcast.models.advanced_math import inv_logit
from footcast.models.experts._base import Expert
from footcast.reference import league_profile, team_profile
from footcast.types import MatchContext, SubModelPrediction

FEATURES = ("attack_gap", "defense_gap", "form_momentum", "rest_gap", "home_edge", "h2h_edge")

# one linear head per outcome, squashed by the logistic function
HOME_W = np.array([0.30, 0.20, 0.15, 0.05, 1.00, 0.50])
AWAY_W = np.array([-0.30, -0.20, -0.15, -0.05, -0.80, -0.50])
HOME_B = -0.10
AWAY_B = -0.25
DRAW_B = -0.55
DRAW_GAP_W = np.array([0.40, 0.10, 0.20, 0.0, 0.0, 0.0])   # applied to |features|


class RegressionExpert(Expert):
    """
    Hand-weighted logistic model over home-minus-away feature gaps:
    attack, defence, form momentum, rest days, league home edge and
    head-to-head edge.  Goal expectancy comes from the same ratings and
    feeds logistic curves for the totals and BTTS markets.
    """
    name = "regression"

    def feature_vector(self, ctx: MatchContext) -> np.ndarray:
        """Values in ``FEATURES`` order, home minus away where paired."""
        h = team_profile(ctx.home_team)
        a = team_profile(ctx.away_team)
        rest_h = self.features.rest_days(ctx.home_team, ctx)
        rest_a = self.features.rest_days(ctx.away_team, ctx)
        return np.array([
            h.attack - a.attack,
            h.defense - a.defense,
            h.form_momentum - a.form_momentum,
            float(np.clip((rest_h - rest_a) / 7.0, -1.0, 1.0)),
            league_profile(ctx.league).home_edge,
            self.features.head_to_head_edge(ctx),
        ])

    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        x = self.feature_vector(ctx)
        p_home = inv_logit(float(HOME_W @ x) + HOME_B)
        p_away = inv_logit(float(AWAY_W @ x) + AWAY_B)
        p_draw = inv_logit(DRAW_B - float(DRAW_GAP_W @ np.abs(x)))

        h = team_profile(ctx.home_team)
        a = team_profile(ctx.away_team)
        attack_gap, home_edge = x[0], x[4]
        home_xg = max(0.2, 1.2 + 0.3 * attack_gap + 0.25 * (h.goals_for - 1.3)
                      + 0.2 * (a.goals_against - 1.3) + home_edge)
        away_xg = max(0.2, 1.0 - 0.2 * attack_gap + 0.25 * (a.goals_for - 1.3)
                      + 0.2 * (h.goals_against - 1.3))
        total = home_xg + away_xg

        btts = inv_logit(1.6 * (min(home_xg, away_xg) - 0.95)
                         + 0.3 * (h.goals_against + a.goals_against - 2.2))

        conf = 0.7 + 0.25 * (h.consistency + a.consistency) / 2

        return self._result(
            {
                "home": p_home, "draw": p_draw, "away": p_away,
                "over15": inv_logit((total - 1.5) * 1.5),
                "over25": inv_logit((total - 2.5) * 2.0),
                "over35": inv_logit((total - 3.5) * 1.8),
                "btts": btts,
            },
            confidence=conf, home_xg=home_xg, away_xg=away_xg,
        )
