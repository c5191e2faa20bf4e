"""footcast CLI — organised into sub-command groups.

Usage examples:
    footcast predict Arsenal Chelsea --league "Premier League"
    footcast settle Arsenal Chelsea 2 1 --league "Premier League"
    footcast grid 1.6 1.1 --top 5
    footcast perf stats          # weights, accuracies, rolling errors
    footcast state export snap.json
"""
from __future__ import annotations

import typer

from footcast.cli.model_cmds import app as _model_app
from footcast.cli.perf_cmds import app as _perf_app
from footcast.cli.state_cmds import app as _state_app

# Root app: inherits the root-level commands (predict, settle, grid)
app = typer.Typer(add_completion=False)

for cmd in _model_app.registered_commands:
    app.registered_commands.append(cmd)

app.add_typer(_perf_app, name="perf")
app.add_typer(_state_app, name="state")


if __name__ == "__main__":
    app()
