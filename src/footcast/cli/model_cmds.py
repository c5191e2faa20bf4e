"""Root-level commands: predict, settle, grid."""
from __future__ import annotations

import json

import typer
from rich.table import Table

from footcast.cli._shared import _context, _setup_logging, console, load_engine, save_engine

app = typer.Typer(add_completion=False)

_LABELS = {
    "home": "Home", "draw": "Draw", "away": "Away",
    "over15": "Over 1.5", "over25": "Over 2.5", "over35": "Over 3.5", "btts": "BTTS",
}


def _print_prediction(pred) -> None:
    ctx = pred.context
    table = Table(title=f"{ctx.home_team} vs {ctx.away_team} ({ctx.league})")
    table.add_column("Market", style="cyan")
    table.add_column("Ensemble", style="magenta", justify="right")
    for mid in pred.contributions:
        table.add_column(mid, style="white", justify="right")
    for market, p in pred.probs.as_dict().items():
        row = [_LABELS[market], f"{p:.3f}"]
        row += [f"{c.prediction.probs.get(market):.3f}" for c in pred.contributions.values()]
        table.add_row(*row)
    table.add_row("weight", "", *[f"{c.weight:.3f}" for c in pred.contributions.values()])
    console.print(table)

    score, p = pred.most_likely
    console.print(
        f"xG {pred.expectancy.home:.2f} - {pred.expectancy.away:.2f} | "
        f"most likely {score} ({p:.1%}) | confidence {pred.confidence:.3f}"
    )
    for mid, c in pred.contributions.items():
        if c.prediction.signals:
            console.print(f"{mid} signals: {', '.join(c.prediction.signals)}")
    if pred.used_fallback:
        console.print("[yellow]1X2 fell back to the balanced default[/yellow]")


@app.command()
def predict(home: str, away: str, league: str = "default",
            kickoff: str = typer.Option(None, help="ISO date/time, defaults to now (UTC)"),
            as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
            verbose: bool = False):
    """Ensemble probabilities for one match."""
    from footcast.reference import is_known_team

    _setup_logging(verbose)
    engine = load_engine()
    pred = engine.predict_probabilities(_context(home, away, league, kickoff))
    if as_json:
        console.print_json(json.dumps(pred.as_dict()))
        return
    _print_prediction(pred)
    for team in (home, away):
        if not is_known_team(team):
            console.print(f"[yellow]{team}: no reference profile, default ratings used[/yellow]")


@app.command()
def settle(home: str, away: str, home_goals: int, away_goals: int,
           league: str = "default",
           kickoff: str = typer.Option(None, help="Kickoff the prediction was made for"),
           verbose: bool = False):
    """Feed a final score back into the weights.

    The fixture is predicted again with the current weights, then the result
    is learned from and the state saved.
    """
    from footcast.utils import actual_outcome

    _setup_logging(verbose)
    if home_goals < 0 or away_goals < 0:
        raise typer.BadParameter("goals cannot be negative")
    engine = load_engine()
    pred = engine.predict_probabilities(_context(home, away, league, kickoff))
    weights = engine.update_weights(actual_outcome(home_goals, away_goals), prior_prediction=pred)
    path = save_engine(engine)

    table = Table(title=f"Weights after {home} {home_goals}-{away_goals} {away}")
    table.add_column("Model", style="cyan")
    table.add_column("Weight", style="magenta", justify="right")
    for mid, w in weights.items():
        table.add_row(mid, f"{w:.4f}")
    console.print(table)
    console.print(f"[green]State saved[/green] {path} (lr={engine.learning_rate:.5f})")


@app.command()
def grid(home_xg: float, away_xg: float, top: int = 5):
    """Score-grid markets for a pair of goal expectancies."""
    from footcast.models.poisson import score_grid

    g = score_grid(home_xg, away_xg)
    console.print(
        f"1X2 {g.p_home:.3f} / {g.p_draw:.3f} / {g.p_away:.3f} | "
        f"O1.5 {g.over15:.3f} O2.5 {g.over25:.3f} O3.5 {g.over35:.3f} | BTTS {g.btts:.3f}"
    )
    table = Table(title="Most likely scores")
    table.add_column("Score", style="cyan")
    table.add_column("Probability", style="magenta", justify="right")
    for score, p in g.most_likely(top):
        table.add_row(score, f"{p:.4f}")
    console.print(table)
