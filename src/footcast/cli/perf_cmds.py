"""Performance sub-commands: stats, anomalies, history."""
from __future__ import annotations

import typer
from rich.table import Table

from footcast.cli._shared import console, load_engine

app = typer.Typer(help="Ensemble performance diagnostics.")


@app.command()
def stats():
    """Weights, accuracies and rolling error per model."""
    s = load_engine().get_performance_stats()

    table = Table(title="Ensemble performance")
    table.add_column("Model", style="cyan")
    table.add_column("Weight", style="magenta", justify="right")
    table.add_column("Accuracy", style="yellow", justify="right")
    table.add_column("Avg error", style="green", justify="right")
    for mid, w in s["weight_distribution"].items():
        err = s["model_errors"].get(mid)
        table.add_row(mid, f"{w:.4f}", f"{s['accuracy_per_model'][mid]:.4f}",
                      "-" if err is None else f"{err:.4f}")
    console.print(table)

    avg = s["average_error"]
    console.print(
        f"records={s['history_size']} | average error="
        f"{'-' if avg is None else f'{avg:.4f}'} | stability={s['stability']:.3f} | "
        f"lr={s['learning_rate']:.5f} ({'active' if s['learning_active'] else 'frozen'})"
    )


@app.command()
def anomalies():
    """Recent records whose error is an outlier."""
    found = load_engine().get_performance_stats()["anomalies"]
    if not found:
        console.print("[green]No anomalies[/green]")
        return
    table = Table(title="Anomalies")
    table.add_column("When", style="cyan")
    table.add_column("Match", style="white")
    table.add_column("Mean error", style="magenta", justify="right")
    table.add_column("σ", style="yellow", justify="right")
    for a in found:
        table.add_row(a["timestamp"], a["match"] or "-", f"{a['mean_error']:.4f}", f"{a['deviation']:+.2f}")
    console.print(table)


@app.command()
def history(limit: int = 20):
    """The most recent adaptation records."""
    df = load_engine().history.to_frame()
    if df.empty:
        console.print("[yellow]No history yet[/yellow]")
        return
    df = df.tail(limit)
    table = Table(title=f"Last {len(df)} records")
    table.add_column("When", style="cyan")
    table.add_column("Match", style="white")
    table.add_column("Mean error", style="magenta", justify="right")
    table.add_column("lr", style="yellow", justify="right")
    for row in df.itertuples(index=False):
        table.add_row(row.timestamp.isoformat(), row.match if isinstance(row.match, str) else "-",
                      f"{row.mean_error:.4f}", f"{row.learning_rate:.5f}")
    console.print(table)
