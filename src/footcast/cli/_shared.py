"""Shared CLI utilities: console, logging setup, engine persistence."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

console = Console()
log = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Engine state: learned weights are kept between runs as JSON
# ---------------------------------------------------------------------------

def _state_path() -> Path:
    from footcast.config import settings
    return Path(settings().state_path)


def read_snapshot(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.warning("could not read state %s: %s", path, e)
        return None


def write_snapshot(path: Path, snapshot: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")


def load_engine():
    """Engine built from settings, restored from the saved state if there is one."""
    from footcast.pipeline import PredictionEngine
    engine = PredictionEngine.from_settings()
    snap = read_snapshot(_state_path())
    if snap is not None:
        engine.import_state(snap)
    return engine


def save_engine(engine) -> Path:
    """Persist the engine, keeping the whole retention window of history."""
    path = _state_path()
    write_snapshot(path, engine.export_state(full_history=True))
    return path


def _context(home: str, away: str, league: str, kickoff: str | None):
    from datetime import datetime
    from footcast.types import MatchContext
    ko = None
    if kickoff:
        try:
            ko = datetime.fromisoformat(kickoff)
        except ValueError:
            raise typer.BadParameter(f"{kickoff!r} is not an ISO date/time", param_hint="--kickoff")
    if ko is None:
        return MatchContext(home, away, league)
    return MatchContext(home, away, league, kickoff=ko)
