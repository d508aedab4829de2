"""
Tests for the subprocess runner and docker/git command construction.
"""

import sys

from dockdeploy.compose import Docker, DockerCompose
from dockdeploy.git import Git
from dockdeploy.runner import NOT_FOUND_EXIT, CommandRunner


class TestCommandRunner:
    """Test real subprocess handling."""

    def test_collects_output_and_returncode(self):
        seen = []
        result = CommandRunner().run(
            [sys.executable, "-c", "import sys; print('one'); print('two', file=sys.stderr); sys.exit(3)"],
            on_line=seen.append,
        )

        assert result.returncode == 3
        assert not result.ok
        assert sorted(result.lines) == ["one", "two"]
        assert sorted(seen) == ["one", "two"]

    def test_missing_executable(self):
        result = CommandRunner().run(["dockdeploy-definitely-not-installed", "--version"])

        assert result.returncode == NOT_FOUND_EXIT
        assert "command not found" in result.output


class TestCommandConstruction:
    """Test the argument lists handed to the runner."""

    def test_compose_commands(self, fake_runner):
        compose = DockerCompose(fake_runner, ["docker-compose"], "docker-compose.prod.yml", "prod.env")

        compose.down()
        compose.config()
        compose.build()
        compose.build(no_cache=True)
        compose.up()

        base = ["docker-compose", "-f", "docker-compose.prod.yml", "--env-file", "prod.env"]
        assert fake_runner.calls == [
            base + ["down", "--remove-orphans"],
            base + ["config"],
            base + ["build"],
            base + ["build", "--no-cache"],
            base + ["up", "-d"],
        ]

    def test_git_pull(self, fake_runner):
        Git(fake_runner).pull("origin", "develop")

        assert fake_runner.calls == [["git", "pull", "origin", "develop"]]

    def test_docker_status_and_logs(self, fake_runner):
        fake_runner.container("nginx-proxy", status="restarting")
        fake_runner.respond(("docker", "logs", "nginx-proxy"), output="\n".join(str(i) for i in range(30)))
        docker = Docker(fake_runner)

        assert docker.status("nginx-proxy") == "restarting"
        assert docker.logs("nginx-proxy", 10) == [str(i) for i in range(20, 30)]
        assert docker.ps().ok

    def test_status_of_missing_container(self, fake_runner):
        fake_runner.missing_container("ghost")

        assert Docker(fake_runner).status("ghost") is None
        assert Docker(fake_runner).inspect("ghost") is None
