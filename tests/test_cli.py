"""Integration tests — CLI command smoke tests.

Tests that CLI commands can be invoked without crashing.
Uses Typer's CliRunner for in-process testing (no subprocess needed).
"""
import json

import pytest
from typer.testing import CliRunner

from footcast.cli import app

runner = CliRunner()


class TestCliHelp:
    """Every command must respond to --help without error."""

    _ROOT_COMMANDS = ["predict", "settle", "grid"]
    _GROUP_COMMANDS = [
        ("perf", "stats"), ("perf", "anomalies"), ("perf", "history"),
        ("state", "show"), ("state", "export"), ("state", "import"), ("state", "reset"),
    ]

    @pytest.mark.parametrize("cmd", _ROOT_COMMANDS)
    def test_root_help(self, cmd):
        result = runner.invoke(app, [cmd, "--help"])
        assert result.exit_code == 0, f"'{cmd} --help' failed: {result.output}"

    @pytest.mark.parametrize("group,cmd", _GROUP_COMMANDS)
    def test_group_help(self, group, cmd):
        result = runner.invoke(app, [group, cmd, "--help"])
        assert result.exit_code == 0, f"'{group} {cmd} --help' failed: {result.output}"


class TestCliCommands:

    def test_grid(self):
        result = runner.invoke(app, ["grid", "1.5", "1.2", "--top", "3"])
        assert result.exit_code == 0, result.output
        assert "Most likely" in result.output

    def test_predict_table(self, state_path):
        result = runner.invoke(app, ["predict", "Arsenal", "Chelsea", "--league", "Premier League"])
        assert result.exit_code == 0, result.output
        assert "Arsenal" in result.output
        assert not state_path.exists()  # predicting does not save

    def test_predict_flags_unknown_team(self, state_path):
        result = runner.invoke(app, ["predict", "Nowhere FC", "Chelsea"])
        assert result.exit_code == 0, result.output
        assert "Nowhere FC: no reference profile" in result.output
        assert "Chelsea: no reference profile" not in result.output

    def test_predict_json(self, state_path):
        result = runner.invoke(app, ["predict", "Arsenal", "Chelsea", "--json", "--kickoff", "2025-03-01"])
        assert result.exit_code == 0, result.output
        assert "probabilities" in result.output

    def test_bad_kickoff(self, state_path):
        result = runner.invoke(app, ["predict", "Arsenal", "Chelsea", "--kickoff", "someday"])
        assert result.exit_code != 0

    def test_settle_saves_state(self, state_path):
        result = runner.invoke(app, ["settle", "Arsenal", "Chelsea", "2", "1", "--league", "Premier League"])
        assert result.exit_code == 0, result.output
        snap = json.loads(state_path.read_text())
        assert len(snap["history"]) == 1
        assert snap["learning_rate"] == pytest.approx(0.02 * 0.995)

    def test_perf_and_state_commands(self, state_path, tmp_path):
        runner.invoke(app, ["settle", "Liverpool", "Arsenal", "1", "1"])
        for args in (["perf", "stats"], ["perf", "anomalies"], ["perf", "history"], ["state", "show"]):
            result = runner.invoke(app, args)
            assert result.exit_code == 0, f"{args}: {result.output}"

        out = tmp_path / "snap.json"
        assert runner.invoke(app, ["state", "export", str(out)]).exit_code == 0
        assert out.exists()
        assert runner.invoke(app, ["state", "reset"]).exit_code == 0
        assert json.loads(state_path.read_text())["history"] == []
        assert runner.invoke(app, ["state", "import", str(out)]).exit_code == 0
        assert len(json.loads(state_path.read_text())["history"]) == 1

    def test_import_missing_file(self, state_path, tmp_path):
        result = runner.invoke(app, ["state", "import", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_saved_state_keeps_full_history(self, state_path):
        for i in range(12):
            result = runner.invoke(app, ["settle", "Arsenal", "Chelsea", str(i % 3), "1"])
            assert result.exit_code == 0, result.output
        assert len(json.loads(state_path.read_text())["history"]) == 12

        result = runner.invoke(app, ["perf", "history", "--limit", "20"])
        assert result.exit_code == 0, result.output
        assert "Last 12 records" in result.output
