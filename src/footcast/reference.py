"""Static team and league reference data read by the sub-models.

Lookups never fail: unknown ids resolve to the ``"default"`` profile.  The
tables stand in for an externally refreshed ratings feed and are read-only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamProfile:
    name: str
    attack: float
    defense: float          # defensive strength, higher is better
    style: str
    recent_form: float      # 0..1
    consistency: float      # 0..1
    goals_for: float        # recent average
    goals_against: float
    form_momentum: float    # 0..1
    ranking: float          # 0..1, used as the team embedding
    market_strength: float  # 0..1, how the betting market rates the team
    trend: float | None     # recent momentum; None = not tracked


@dataclass(frozen=True)
class LeagueProfile:
    name: str
    home_advantage: float   # xG multiplier for the home side
    goal_factor: float      # xG multiplier for both sides
    home_edge: float        # additive home-advantage feature
    intensity: float
    predictability: float
    goal_tendency: float
    winter_factor: float
    spring_factor: float


# name, attack, defense, style, form, consistency, gf, ga, momentum, ranking, market, trend
_TEAMS = [
    ("Manchester City", 2.45, 1.25, "possession", 0.85, 0.92, 2.3, 0.8, 0.85, 0.95, 0.95, 0.15),
    ("Liverpool", 2.35, 1.18, "pressing", 0.82, 0.88, 2.2, 0.9, 0.82, 0.90, 0.90, 0.12),
    ("Bayern Munich", 2.50, 1.30, "dominant", 0.88, 0.95, 2.6, 0.7, 0.88, 0.92, 0.92, 0.18),
    ("Real Madrid", 2.40, 1.22, "counter", 0.84, 0.90, 2.2, 0.8, 0.84, 0.91, 0.91, 0.10),
    ("Arsenal", 2.25, 1.20, "possession", 0.80, 0.86, 2.1, 0.9, 0.80, 0.85, 0.85, 0.08),
    ("Barcelona", 2.30, 1.20, "possession", 0.78, 0.84, 2.2, 1.0, 0.78, 0.88, 0.88, -0.05),
    ("PSG", 2.35, 1.18, "dominant", 0.80, 0.85, 2.3, 0.9, 0.80, 0.87, 0.87, None),
    ("Borussia Dortmund", 2.20, 1.15, "pressing", 0.77, 0.80, 2.0, 1.2, 0.77, 0.82, 0.80, None),
    ("Atletico Madrid", 2.10, 1.25, "counter", 0.82, 0.86, 1.7, 0.8, 0.82, 0.81, 0.80, None),
    ("Inter Milan", 2.25, 1.25, "tactical", 0.83, 0.87, 2.0, 0.8, 0.83, 0.83, 0.83, None),
    ("Juventus", 2.15, 1.22, "defensive", 0.79, 0.84, 1.6, 0.8, 0.79, 0.80, 0.79, None),
    ("Chelsea", 2.15, 1.15, "possession", 0.75, 0.76, 1.9, 1.2, 0.75, 0.79, 0.78, -0.12),
    ("Tottenham", 2.20, 1.12, "attacking", 0.76, 0.74, 2.0, 1.4, 0.76, 0.78, 0.77, None),
    ("Newcastle", 2.10, 1.10, "pressing", 0.72, 0.76, 1.8, 1.2, 0.72, 0.77, 0.76, None),
    ("Aston Villa", 2.15, 1.13, "attacking", 0.78, 0.77, 1.9, 1.3, 0.78, 0.78, 0.77, None),
    ("Bayer Leverkusen", 2.30, 1.25, "possession", 0.86, 0.88, 2.2, 0.8, 0.86, 0.84, 0.84, None),
    ("RB Leipzig", 2.25, 1.18, "pressing", 0.80, 0.81, 2.0, 1.1, 0.80, 0.80, 0.80, None),
    ("AC Milan", 2.15, 1.18, "counter", 0.78, 0.80, 1.8, 1.0, 0.78, 0.80, 0.80, None),
    ("Napoli", 2.25, 1.15, "attacking", 0.75, 0.79, 2.0, 1.1, 0.75, 0.80, 0.80, None),
    ("default", 1.70, 1.05, "balanced", 0.50, 0.70, 1.3, 1.4, 0.50, 0.70, 0.70, None),
]

# name, home adv, goal factor, home edge, intensity, predictability, goal tendency, winter, spring
_LEAGUES = [
    ("Premier League", 1.12, 1.05, 0.12, 0.90, 0.85, 1.05, 0.95, 1.05),
    ("Bundesliga", 1.15, 1.18, 0.15, 0.95, 0.80, 1.18, 0.90, 1.08),
    ("La Liga", 1.08, 0.95, 0.10, 0.85, 0.90, 0.95, 0.98, 1.03),
    ("Serie A", 1.10, 0.88, 0.11, 0.82, 0.92, 0.88, 1.00, 1.00),
    ("Ligue 1", 1.12, 1.02, 0.13, 0.84, 0.86, 1.02, 1.00, 1.00),
    ("Champions League", 1.05, 1.12, 0.08, 0.92, 0.82, 1.12, 1.00, 1.00),
    ("Europa League", 1.03, 1.08, 0.08, 0.86, 0.78, 1.08, 1.00, 1.00),
    ("Championship", 1.13, 1.02, 0.09, 0.88, 0.72, 1.02, 1.00, 1.00),
    ("MLS", 1.14, 1.10, 0.10, 0.80, 0.70, 1.10, 1.00, 1.00),
    ("Eredivisie", 1.11, 1.12, 0.09, 0.83, 0.76, 1.12, 1.00, 1.00),
    ("Primeira Liga", 1.09, 0.96, 0.09, 0.81, 0.80, 0.96, 1.00, 1.00),
    ("default", 1.08, 1.00, 0.08, 0.80, 0.75, 1.00, 1.00, 1.00),
]

_ALIASES = {
    "man city": "Manchester City",
    "bayern münchen": "Bayern Munich",
    "fc bayern": "Bayern Munich",
    "paris saint-germain": "PSG",
    "inter": "Inter Milan",
    "internazionale": "Inter Milan",
    "milan": "AC Milan",
    "spurs": "Tottenham",
    "tottenham hotspur": "Tottenham",
    "leverkusen": "Bayer Leverkusen",
    "dortmund": "Borussia Dortmund",
    "epl": "Premier League",
    "pl": "Premier League",
    "bl1": "Bundesliga",
    "pd": "La Liga",
    "sa": "Serie A",
    "fl1": "Ligue 1",
    "ucl": "Champions League",
    "cl": "Champions League",
}

TEAMS: dict[str, TeamProfile] = {row[0]: TeamProfile(*row) for row in _TEAMS}
LEAGUES: dict[str, LeagueProfile] = {row[0]: LeagueProfile(*row) for row in _LEAGUES}

_TEAM_INDEX = {k.casefold(): v for k, v in TEAMS.items()}
_LEAGUE_INDEX = {k.casefold(): v for k, v in LEAGUES.items()}

STYLE_MULTIPLIERS: dict[tuple[str, str], float] = {
    ("possession", "pressing"): 1.10,
    ("counter", "possession"): 1.15,
    ("pressing", "counter"): 0.90,
    ("dominant", "balanced"): 1.05,
    ("tactical", "attacking"): 0.95,
    ("defensive", "counter"): 1.08,
    ("attacking", "defensive"): 0.92,
}


def _resolve(key: str, index: dict):
    k = (key or "").strip().casefold()
    if k in index:
        return index[k]
    alias = _ALIASES.get(k)
    if alias is not None and alias.casefold() in index:
        return index[alias.casefold()]
    return None


def team_profile(team: str) -> TeamProfile:
    prof = _resolve(team, _TEAM_INDEX)
    if prof is None:
        log.debug("no profile for team %r, using default", team)
        return TEAMS["default"]
    return prof


def league_profile(league: str) -> LeagueProfile:
    prof = _resolve(league, _LEAGUE_INDEX)
    if prof is None:
        log.debug("no profile for league %r, using default", league)
        return LEAGUES["default"]
    return prof


def is_known_team(team: str) -> bool:
    prof = _resolve(team, _TEAM_INDEX)
    return prof is not None and prof.name != "default"


def style_multiplier(attacking_style: str, defending_style: str) -> float:
    return STYLE_MULTIPLIERS.get((attacking_style, defending_style), 1.0)


def seasonal_factors(league: str, month: int) -> tuple[float, float]:
    """(goal factor, draw factor) for a calendar month (1 = January).

    Winter is December–February, spring March–May; other months are neutral.
    """
    prof = league_profile(league)
    if month in (12, 1, 2):
        return prof.winter_factor, 1.05
    if month in (3, 4, 5):
        return prof.spring_factor, 1.0
    return 1.0, 1.0
