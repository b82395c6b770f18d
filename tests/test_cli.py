"""Tests for the tri-planner command line."""

from datetime import date

import pytest
from click.testing import CliRunner

from tri_planner import cli as cli_module
from tri_planner.cli import cli
from tri_planner.db import Database, TrainingRepository


@pytest.fixture
def repo(monkeypatch):
    db = Database("sqlite:///:memory:", create=True)
    repository = TrainingRepository(db)
    monkeypatch.setattr(cli_module, "get_repository", lambda: repository)
    yield repository
    db.close()


class TestCli:

    def setup_method(self):
        self.runner = CliRunner()

    def test_budget(self):
        result = self.runner.invoke(cli, ["budget", "--tss", "500", "--strength", "2"])

        assert result.exit_code == 0
        assert "Discipline Budget" in result.output
        assert "500" in result.output

    def test_budget_unknown_balance(self):
        result = self.runner.invoke(cli, ["budget", "--tss", "500", "--balance", "sprint"])

        assert "Unknown training balance" in result.output

    def test_profile_set_and_show(self, repo):
        result = self.runner.invoke(cli, [
            "profile", "set", "--goal", "2025-10-12", "--balance", "run_focus",
            "--anchor", "sun=long_run", "--available", "tue=run,swim",
        ])
        assert result.exit_code == 0

        profile = repo.get_current_profile()
        assert profile.goal_date == date(2025, 10, 12)
        assert profile.weekly_availability == {1: [cli_module.WorkoutType.RUN, cli_module.WorkoutType.SWIM]}

        result = self.runner.invoke(cli, ["profile", "show"])
        assert "2025-10-12" in result.output

    def test_log_add_computes_tss(self, repo):
        result = self.runner.invoke(cli, ["log", "add", "--date", "2025-03-01", "--type", "run", "--duration", "90"])

        assert result.exit_code == 0
        assert repo.get_all_logs()[0].computed_tss == 75

    def test_bad_date(self, repo):
        result = self.runner.invoke(cli, ["log", "add", "--date", "03/01/2025", "--type", "run", "--duration", "30"])

        assert result.exit_code != 0

    def test_phase(self):
        result = self.runner.invoke(cli, ["phase", "--date", "2025-01-01", "--goal", "2025-01-15"])

        assert result.exit_code == 0
        assert "Taper" in result.output

    def test_generate_without_profile(self, repo):
        result = self.runner.invoke(cli, ["generate", "--start", "2030-01-07", "--ctl", "40"])

        assert result.exit_code == 0
        assert "profile is missing" in result.output

    def test_validate_consecutive_run(self, repo):
        self.runner.invoke(cli, ["log", "add", "--date", "2025-03-01", "--type", "run", "--duration", "45"])
        result = self.runner.invoke(cli, ["validate", "--date", "2025-03-02", "--type", "run"])

        assert "Consecutive Runs Blocked" in result.output
