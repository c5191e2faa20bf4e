"""State sub-commands: show, export, import, reset."""
from __future__ import annotations

import json
from pathlib import Path

import typer

from footcast.cli._shared import _state_path, console, load_engine, read_snapshot, save_engine, write_snapshot

app = typer.Typer(help="Learned ensemble state.")


@app.command()
def show():
    """Print the saved state as JSON."""
    console.print(f"[cyan]{_state_path()}[/cyan]")
    console.print_json(json.dumps(load_engine().export_state()))


@app.command("export")
def export_(path: Path):
    """Write the current state to PATH."""
    write_snapshot(path, load_engine().export_state(full_history=True))
    console.print(f"[green]Exported[/green] {path}")


@app.command("import")
def import_(path: Path):
    """Load a snapshot from PATH and make it the saved state."""
    snap = read_snapshot(path)
    if snap is None:
        console.print(f"[red]Nothing readable at[/red] {path}")
        raise typer.Exit(code=1)
    engine = load_engine()
    engine.import_state(snap)
    console.print(f"[green]Imported[/green] {path} → {save_engine(engine)}")


@app.command()
def reset():
    """Back to the prior weights with an empty history."""
    engine = load_engine()
    engine.reset()
    console.print(f"[green]Reset[/green] {save_engine(engine)}")
