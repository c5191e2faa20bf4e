"""PoissonExpert — rating-based goal expectancy run through the score grid."""
from __future__ import annotations

from footcast.models.experts._base import Expert
from footcast.models.poisson import score_grid
from footcast.reference import (
    LeagueProfile, TeamProfile, league_profile, style_multiplier, team_profile,
)
from footcast.types import MatchContext, SubModelPrediction


class PoissonExpert(Expert):
    """
    Attack / defence ratings → goal expectancy per side → independent Poisson
    score grid → every market from the same table.

    xG = attack · (2 − opponent defence) · home advantage (home side only)
         · style-matchup multiplier · form multiplier · league goal factor
    """
    name = "poisson"

    FORM_GAIN = 0.2      # own recent form
    FORM_DRAG = 0.1      # opponent recent form

    def expected_goals(self, attacking: TeamProfile, defending: TeamProfile,
                       league: LeagueProfile, is_home: bool) -> float:
        base = attacking.attack * (2 - defending.defense)
        home_adv = league.home_advantage if is_home else 1.0
        style = style_multiplier(attacking.style, defending.style)
        form = 1 + (attacking.recent_form * self.FORM_GAIN - defending.recent_form * self.FORM_DRAG)
        return base * home_adv * style * form * league.goal_factor

    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        home = team_profile(ctx.home_team)
        away = team_profile(ctx.away_team)
        league = league_profile(ctx.league)

        l_h = self.expected_goals(home, away, league, is_home=True)
        l_a = self.expected_goals(away, home, league, is_home=False)
        grid = score_grid(l_h, l_a)

        # confidence grows with a clear favourite and with more goals expected
        conf = min(0.95, 0.6 + abs(l_h - l_a) * 0.1 + min(l_h + l_a, 4.0) * 0.05)

        return self._result(
            {
                "home": grid.p_home, "draw": grid.p_draw, "away": grid.p_away,
                "over15": grid.over15, "over25": grid.over25, "over35": grid.over35,
                "btts": grid.btts,
            },
            confidence=conf, home_xg=l_h, away_xg=l_a,
        )
