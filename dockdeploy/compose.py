"""
Docker and docker-compose wrapper functions for the deploy sequencer.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .runner import CommandRunner, CommandResult, LineHandler

logger = logging.getLogger(__name__)

NO_HEALTHCHECK = "no-healthcheck"

STATUS_FORMAT = "{{.State.Status}}"
HEALTH_FORMAT = "{{if .State.Health}}{{.State.Health.Status}}{{end}}"
RESTART_FORMAT = "{{.RestartCount}}"


@dataclass
class ContainerState:
    """Subset of `docker inspect` output used for diagnosis."""
    name: str
    status: str
    health: str
    restart_count: int


class DockerCompose:
    """Commands scoped to one compose file and env file."""

    def __init__(self, runner: CommandRunner, compose_command: Sequence[str], compose_file: str, env_file: str):
        self.runner = runner
        self.base = list(compose_command) + ["-f", compose_file, "--env-file", env_file]

    def _run(self, *args: str, on_line: Optional[LineHandler] = None) -> CommandResult:
        return self.runner.run(self.base + list(args), on_line=on_line)

    def down(self, on_line: Optional[LineHandler] = None) -> CommandResult:
        return self._run("down", "--remove-orphans", on_line=on_line)

    def config(self) -> CommandResult:
        """Render the compose configuration; output is only kept for error reporting."""
        return self._run("config")

    def build(self, no_cache: bool = False, on_line: Optional[LineHandler] = None) -> CommandResult:
        args = ["build", "--no-cache"] if no_cache else ["build"]
        return self._run(*args, on_line=on_line)

    def up(self, on_line: Optional[LineHandler] = None) -> CommandResult:
        return self._run("up", "-d", on_line=on_line)


class Docker:
    """Plain docker CLI calls."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def system_prune(self, all_images: bool = False, on_line: Optional[LineHandler] = None) -> CommandResult:
        args = ["docker", "system", "prune"]
        if all_images:
            args += ["-a", "-f", "--volumes"]
        else:
            args += ["-f"]
        return self.runner.run(args, on_line=on_line)

    def image_prune(self, on_line: Optional[LineHandler] = None) -> CommandResult:
        return self.runner.run(["docker", "image", "prune", "-a", "-f"], on_line=on_line)

    def ps(self) -> CommandResult:
        return self.runner.run(["docker", "ps"])

    def _inspect_field(self, container: str, fmt: str) -> CommandResult:
        return self.runner.run(["docker", "inspect", f"--format={fmt}", container])

    def inspect(self, container: str) -> Optional[ContainerState]:
        """
        Inspect a container.

        Args:
            container: Container name

        Returns:
            ContainerState, or None if the container does not exist
        """
        status = self._inspect_field(container, STATUS_FORMAT)
        if not status.ok:
            logger.debug(f"docker inspect {container} failed: {status.output}")
            return None

        health = self._inspect_field(container, HEALTH_FORMAT)
        health_status = health.output.strip() if health.ok else ""

        restarts = self._inspect_field(container, RESTART_FORMAT)
        try:
            restart_count = int(restarts.output.strip())
        except ValueError:
            restart_count = 0

        return ContainerState(
            name=container,
            status=status.output.strip(),
            health=health_status or NO_HEALTHCHECK,
            restart_count=restart_count,
        )

    def status(self, container: str) -> Optional[str]:
        """Return the container status string, or None if it does not exist."""
        result = self._inspect_field(container, STATUS_FORMAT)
        return result.output.strip() if result.ok else None

    def logs(self, container: str, tail: int) -> List[str]:
        result = self.runner.run(["docker", "logs", f"--tail={tail}", container])
        return result.lines[-tail:] if tail > 0 else []
