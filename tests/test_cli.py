"""
Tests for the dockdeploy command line.
"""

import json
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from dockdeploy.cli import main

FAST = ["--settle-seconds", "0", "--probe-delay", "0"]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "prod.env").write_text(
        "DEPLOY_BRANCH=release-2\n"
        "HEALTH_CHECK_URL=https://example.com/health\n"
        'CONTAINER_NAMES="api nginx-proxy"\n'
        "CHECK_PORTS=8081\n"
        "API_TOKEN=abcdef\n"
    )
    (tmp_path / "docker-compose.prod.yml").write_text("services: {}\n")
    return tmp_path


@pytest.fixture
def patched_runner(fake_runner):
    with patch("dockdeploy.sequencer.CommandRunner", return_value=fake_runner):
        yield fake_runner


class TestInputValidation:
    """Configuration errors exit 1 before any external command."""

    def test_missing_selector(self, workdir, patched_runner):
        result = CliRunner().invoke(main, [])

        assert result.exit_code == 1
        assert "Environment is required" in result.output
        assert patched_runner.calls == []

    def test_rebuild_and_restart_conflict(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "prod", "-b", "-r"])

        assert result.exit_code == 1
        assert "Cannot use -b and -r together" in result.output
        assert patched_runner.calls == []

    def test_both_selectors(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "prod", "--env-file", "prod.env"])

        assert result.exit_code == 1
        assert patched_runner.calls == []

    def test_missing_env_file(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "staging"])

        assert result.exit_code == 1
        assert "Environment file 'staging.env' not found!" in result.output
        assert "Create this file" in result.output
        assert patched_runner.calls == []

    def test_missing_compose_file(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["--env-file", "prod.env"])

        assert result.exit_code == 1
        assert "Docker Compose file 'docker-compose.yml' not found!" in result.output
        assert patched_runner.calls == []

    def test_events_file_in_missing_directory(self, workdir, patched_runner):
        events_path = workdir / "nope" / "run.ndjson"

        result = CliRunner().invoke(main, ["-e", "prod", "-r", "--events-file", str(events_path)] + FAST)

        assert result.exit_code == 1
        assert "does not exist" in result.output
        assert not isinstance(result.exception, FileNotFoundError)
        assert patched_runner.calls == []

    def test_unknown_option_is_usage_error(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "prod", "-z"])

        assert result.exit_code == 2
        assert patched_runner.calls == []

    def test_help(self):
        result = CliRunner().invoke(main, ["-h"])

        assert result.exit_code == 0
        assert "--restart-only" in result.output
        assert "DEPLOY_BRANCH" in result.output


class TestDryRun:
    """--dry-run resolves configuration only."""

    def test_prints_resolved_config(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "prod", "-c", "--dry-run"])

        assert result.exit_code == 0
        assert patched_runner.calls == []
        assert '"branch": "release-2"' in result.output
        assert '"mode": "clear_cache"' in result.output
        assert '"environment_name": "Production"' in result.output
        assert '"API_TOKEN": "[REDACTED]"' in result.output
        assert "abcdef" not in result.output


class TestDeploy:
    """Full runs through the CLI with faked commands."""

    @patch("dockdeploy.diag.health.requests.get")
    def test_restart_only_success(self, mock_get, workdir, patched_runner):
        mock_get.return_value = Mock(status_code=200)
        patched_runner.container("api").container("nginx-proxy")

        result = CliRunner().invoke(main, ["-e", "prod", "-r", "--probe-timeout", "4"] + FAST)

        assert result.exit_code == 0
        assert not patched_runner.called("git", "pull")
        assert "Health endpoint is responding" in result.output
        mock_get.assert_called_once_with("https://example.com/health", timeout=4.0, allow_redirects=False)

    def test_pull_failure_exit_code(self, workdir, patched_runner):
        patched_runner.respond(("git", "pull"), returncode=128)

        result = CliRunner().invoke(main, ["-e", "prod"] + FAST)

        assert result.exit_code == 128
        assert ["git", "pull", "origin", "release-2"] in patched_runner.calls

    def test_compose_config_failure(self, workdir, patched_runner):
        patched_runner.respond(("config",), returncode=3)

        result = CliRunner().invoke(main, ["-e", "prod", "-b"] + FAST)

        assert result.exit_code == 1
        assert not patched_runner.called("build", "--no-cache")
        assert not patched_runner.called("up", "-d")

    def test_compose_cmd_from_environment(self, workdir, patched_runner):
        result = CliRunner().invoke(
            main, ["-e", "prod", "-r"] + FAST,
            env={"DOCKDEPLOY_COMPOSE_CMD": "docker compose"},
        )

        assert result.exit_code == 0
        up = [c for c in patched_runner.calls if c[-2:] == ["up", "-d"]][0]
        assert up[:2] == ["docker", "compose"]

    def test_events_file(self, workdir, patched_runner):
        events_path = workdir / "run.ndjson"

        result = CliRunner().invoke(main, ["-e", "prod", "-r", "--events-file", str(events_path)] + FAST)

        assert result.exit_code == 0
        lines = events_path.read_text().splitlines()
        assert json.loads(lines[0])["type"] == "INIT"
        assert json.loads(lines[-1])["type"] == "DONE"

    def test_json_output(self, workdir, patched_runner):
        result = CliRunner().invoke(main, ["-e", "prod", "-r", "--json"] + FAST)

        assert result.exit_code == 0
        assert '"status": "success"' in result.output
        assert '"mode": "restart_only"' in result.output
