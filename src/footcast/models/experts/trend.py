"""TrendExpert — team momentum adjusted for the league's seasonal pattern."""
from __future__ import annotations

from footcast.models.experts._base import Expert
from footcast.reference import seasonal_factors, team_profile
from footcast.types import MatchContext, SubModelPrediction


class TrendExpert(Expert):
    """
    Baseline 1X2 shares shifted by each side's recent trend, then scaled by
    the league's goal factor (home / away) and draw factor for the kickoff
    month.  Teams without a tracked trend get one from the feature provider.
    """
    name = "trend"

    BASE = (0.40, 0.25, 0.35)   # home, draw, away

    def team_trend(self, team: str, ctx: MatchContext) -> float:
        t = team_profile(team).trend
        return t if t is not None else self.features.team_trend(team, ctx)

    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        ht = self.team_trend(ctx.home_team, ctx)
        at = self.team_trend(ctx.away_team, ctx)
        momentum = (ht + at) / 2
        goal_f, draw_f = seasonal_factors(ctx.league, ctx.kickoff.month)

        home = (self.BASE[0] + ht) * goal_f
        away = (self.BASE[2] + at) * goal_f
        draw = (self.BASE[1] - (ht + at) * 0.5) * draw_f
        s = home + draw + away

        return self._result(
            {
                "home": home / s, "draw": draw / s, "away": away / s,
                "over15": 0.7 + momentum * 0.1 + (goal_f - 1) * 0.5,
                "over25": 0.5 + momentum * 0.2 + (goal_f - 1),
                "over35": 0.3 + momentum * 0.15 + (goal_f - 1) * 0.3,
                "btts": 0.45 + abs(momentum) * 0.1 + (1 - goal_f) * 0.05,
            },
            confidence=0.75,
            home_xg=(1.3 + ht * 0.5) * goal_f,
            away_xg=(1.1 + at * 0.5) * goal_f,
        )
