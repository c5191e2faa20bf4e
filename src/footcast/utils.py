"""Shared utility functions used across footcast modules."""
from __future__ import annotations

import math


def safe_num(v) -> float | None:
    """Convert a value to float, returning None for NaN/Inf/empty/invalid."""
    try:
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        result = float(v)
        if math.isnan(result) or math.isinf(result):
            return None
        return result
    except Exception:
        return None


def outcome_label(home_goals: int, away_goals: int) -> int:
    """Return match outcome: 0 = Home win, 1 = Draw, 2 = Away win."""
    if home_goals > away_goals:
        return 0
    if home_goals == away_goals:
        return 1
    return 2


def actual_outcome(home_goals: int, away_goals: int) -> dict[str, float]:
    """Settled ground truth for every tracked market from a final score.

    Returns 1.0 / 0.0 per market, in the shape ``update_weights`` expects.
    """
    label = outcome_label(home_goals, away_goals)
    total = home_goals + away_goals
    return {
        "home": 1.0 if label == 0 else 0.0,
        "draw": 1.0 if label == 1 else 0.0,
        "away": 1.0 if label == 2 else 0.0,
        "over15": 1.0 if total > 1.5 else 0.0,
        "over25": 1.0 if total > 2.5 else 0.0,
        "over35": 1.0 if total > 3.5 else 0.0,
        "btts": 1.0 if home_goals > 0 and away_goals > 0 else 0.0,
    }
