"""MarketExpert — fair probabilities from synthetic 1X2 odds, corrected for margin and home bias."""
from __future__ import annotations

from footcast.models.advanced_math import overround, remove_overround
from footcast.models.experts._base import Expert
from footcast.reference import team_profile
from footcast.types import MatchContext, SubModelPrediction


def value_opportunities(odds: tuple[float, float, float], volume: float,
                        movement: float) -> tuple[str, ...]:
    """Flags for prices the market may be slow to correct."""
    home_odds, _, away_odds = odds
    out = []
    if movement > 0.05:
        out.append("home_momentum")
    if movement < -0.03:
        out.append("away_momentum")
    if volume > 0.7:
        out.append("high_volume")
    if home_odds > 2.5 and movement > 0:
        out.append("home_undervalued")
    if away_odds < 3.0 and movement < 0:
        out.append("away_overvalued")
    return tuple(out)


class MarketExpert(Expert):
    """
    Odds are priced from the gap in market strength plus provider noise.
    The margin is stripped first, then:

    efficiency  = 1 − overround / 3
    adjustment  = (1 − efficiency) · 0.15
    home bias   = (fair home − 0.40) · 0.2, moved from home to away
    """
    name = "market"

    EXPECTED_HOME = 0.40

    def odds(self, ctx: MatchContext) -> tuple[tuple[float, float, float], float, float]:
        """(home, draw, away) decimal odds, market volume and price movement."""
        diff = team_profile(ctx.home_team).market_strength - team_profile(ctx.away_team).market_strength
        noise = self.features.odds_noise(ctx)
        odds = (
            1.8 - diff * 0.4 + noise.home,
            3.2 + abs(diff) * 0.2 + noise.draw,
            4.0 + diff * 0.6 + noise.away,
        )
        return odds, 0.5 + abs(diff) * 0.3, noise.movement

    def predict(self, ctx: MatchContext) -> SubModelPrediction:
        odds, volume, movement = self.odds(ctx)
        fair_h, fair_d, fair_a = remove_overround(odds)
        efficiency = 1 - overround(odds) / 3
        adjustment = (1 - efficiency) * 0.15
        bias = (fair_h - self.EXPECTED_HOME) * 0.2

        return self._result(
            {
                "home": fair_h * (1 + adjustment - bias),
                "draw": fair_d * (1 - adjustment * 0.5),
                "away": fair_a * (1 + adjustment + bias),
                "over15": 0.78 + (efficiency - 0.9) * 0.05,
                "over25": 0.52 + (efficiency - 0.9) * 0.1,
                "over35": 0.35 + (efficiency - 0.9) * 0.08,
                "btts": 0.48 + volume * 0.1,
            },
            confidence=0.70,
            home_xg=1.4 + adjustment * 0.3,
            away_xg=1.2 - adjustment * 0.2,
            signals=value_opportunities(odds, volume, movement),
        )
