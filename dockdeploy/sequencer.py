"""
Deploy sequencer: runs the pull / rebuild / diagnose pipeline for one environment.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import click

from .compose import Docker, DockerCompose
from .config import DeployConfig, RebuildMode, validate_paths
from .diag import (
    DiagnosticReport, ProbeResult, check_ports, diagnose_container, format_report,
    disk_usage, memory_usage, probe_health,
)
from .errors import DeployError, StepFailed
from .events import EventTypes, RunEvents
from .git import Git
from .runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]
Probe = Callable[[str, float], ProbeResult]


@dataclass
class DeployResult:
    """Outcome of a run; diagnostics never affect ``exit_code``."""
    run_id: str
    exit_code: int
    environment_name: str
    mode: RebuildMode
    failed_step: Optional[str] = None
    error: Optional[str] = None
    diagnostics: Optional[DiagnosticReport] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "exit_code": self.exit_code,
            "status": "success" if self.success else "failed",
            "environment_name": self.environment_name,
            "mode": self.mode.value,
            "failed_step": self.failed_step,
            "error": self.error,
            "diagnostics": self.diagnostics.to_dict() if self.diagnostics else None,
            "events": self.events,
        }


def _indented(lines: List[str], prefix: str = "    ") -> List[str]:
    return [prefix + line for line in lines]


class DeploySequencer:
    """
    Executes the fixed deployment pipeline for a resolved configuration.

    Source pull, cache pruning, compose validation, build and up are fatal
    on failure. Teardown is best-effort. Everything after containers are up
    is informational and only reported.
    """

    def __init__(
        self,
        config: DeployConfig,
        runner: Optional[CommandRunner] = None,
        probe: Probe = probe_health,
        sleep: Callable[[float], None] = time.sleep,
        events: Optional[RunEvents] = None,
        echo: Echo = click.echo,
    ):
        self.config = config
        self.runner = runner or CommandRunner()
        self.compose = DockerCompose(self.runner, config.compose_command, config.compose_file, config.env_file)
        self.docker = Docker(self.runner)
        self.git = Git(self.runner)
        self.probe = probe
        self.sleep = sleep
        self.events = events or RunEvents()
        self.echo = echo

    def run(self) -> DeployResult:
        """
        Run the whole pipeline.

        Returns:
            DeployResult with exit code 0 after completed diagnostics,
            1 for configuration and compose validation errors, or the
            exit code of the first failing command
        """
        config = self.config
        self.events.emit(EventTypes.INIT, {
            "environment": config.environment,
            "environment_name": config.environment_name,
            "mode": config.mode.value,
        })

        try:
            validate_paths(config)
            self.events.emit(EventTypes.CONFIG_RESOLVED, {
                "branch": config.branch,
                "health_url": config.health_url,
                "env_file": config.env_file,
                "compose_file": config.compose_file,
            })
            self._deploy()
        except DeployError as e:
            step = getattr(e, "step", "validate")
            self.echo(f"❌ Error: {e}")
            self.events.emit(EventTypes.ERROR, {"step": step, "reason": str(e), "exit_code": e.exit_code})
            return self._result(e.exit_code, failed_step=step, error=str(e))

        self.echo(f"✅ {config.environment_name} deployment completed!")
        diagnostics = self._diagnose()
        self.events.emit(EventTypes.DONE, {"failures": diagnostics.failures()})
        return self._result(0, diagnostics=diagnostics)

    def _result(self, exit_code: int, **kwargs) -> DeployResult:
        return DeployResult(
            run_id=self.events.run_id,
            exit_code=exit_code,
            environment_name=self.config.environment_name,
            mode=self.config.mode,
            events=list(self.events.events),
            **kwargs,
        )

    # Pipeline steps

    def _deploy(self) -> None:
        config = self.config

        for warning in config.warnings:
            self.echo(f"⚠️  Warning: {warning}")

        self.echo(f"🚀 Starting deployment to {config.environment_name} environment...")
        self.echo(f"📄 Environment file: {config.env_file}")
        self.echo(f"🐳 Docker Compose file: {config.compose_file}")
        self.echo(f"🌿 Git branch: {config.branch}")
        self.echo(f"🏥 Health URL: {config.health_url}")
        self.echo("")

        self._pull_source()
        self._preflight()
        self._teardown()
        self._maintain_cache()

        self.echo(f"🔧 Deploying to {config.environment_name} environment...")
        if config.database_preview:
            self.echo(f"🗄️ Database: {config.database_preview}")

        self._validate_compose()
        self._start_containers()

        self.echo("⏳ Waiting for containers to start...")
        self.sleep(config.settle_seconds)

    def _fatal(self, step: str, result: CommandResult, message: str, exit_code: Optional[int] = None) -> None:
        if result.ok:
            self.events.emit(EventTypes.STEP_OK, {"step": step})
            return
        self.events.emit(EventTypes.STEP_FAILED, {
            "step": step,
            "returncode": result.returncode,
            "last_lines": result.lines[-20:],
        })
        raise StepFailed(step, message, exit_code if exit_code is not None else result.returncode)

    def _pull_source(self) -> None:
        config = self.config
        if not config.mode.pulls_source:
            self.events.emit(EventTypes.STEP_SKIPPED, {"step": "pull", "reason": "restart only"})
            return

        self.echo(f"🔄 Pulling latest code from Git branch: {config.branch}...")
        self.events.emit(EventTypes.STEP_START, {"step": "pull", "branch": config.branch})
        result = self.git.pull(config.remote, config.branch, on_line=self.echo)
        self._fatal("pull", result, f"git pull {config.remote} {config.branch} failed")
        self.echo("")

    def _preflight(self) -> None:
        self.echo("🧩 Checking server health...")
        for check in (disk_usage, memory_usage):
            result = check(self.runner)
            if result.ok:
                for line in result.lines:
                    self.echo(line)
            else:
                logger.warning(f"{' '.join(result.args)} failed with exit code {result.returncode}")
        self.echo("")

    def _teardown(self) -> None:
        self.echo("🛑 Stopping existing containers...")
        result = self.compose.down(on_line=self.echo)
        if result.ok:
            self.events.emit(EventTypes.STEP_OK, {"step": "down"})
        else:
            logger.warning(f"compose down exited with {result.returncode}; continuing")
            self.events.emit(EventTypes.STEP_TOLERATED, {"step": "down", "returncode": result.returncode})
        self.echo("")

    def _maintain_cache(self) -> None:
        prune = self.config.mode.prune
        if prune == "all":
            self.echo("🧹 Clearing Docker cache completely...")
            self._fatal("prune", self.docker.system_prune(all_images=True, on_line=self.echo), "docker system prune failed")
            self.echo("🗑️ Removing unused images...")
            self._fatal("image_prune", self.docker.image_prune(on_line=self.echo), "docker image prune failed")
            self.echo("")
        elif prune == "dangling":
            self.echo("🧹 Cleaning old Docker resources...")
            self._fatal("prune", self.docker.system_prune(on_line=self.echo), "docker system prune failed")
            self.echo("")
        else:
            self.events.emit(EventTypes.STEP_SKIPPED, {"step": "prune"})

    def _validate_compose(self) -> None:
        self.echo("🔍 Checking Docker Compose configuration...")
        result = self.compose.config()
        if not result.ok:
            for line in result.lines[-20:]:
                self.echo(line)
        self._fatal("config", result, "Docker Compose configuration error!", exit_code=1)
        self.echo("")

    def _start_containers(self) -> None:
        mode = self.config.mode
        if mode.builds:
            if mode.no_cache:
                self.echo("🔨 Force rebuilding containers...")
            else:
                self.echo("🔨 Building containers...")
            self.events.emit(EventTypes.STEP_START, {"step": "build", "no_cache": mode.no_cache})
            self._fatal("build", self.compose.build(no_cache=mode.no_cache, on_line=self.echo), "docker-compose build failed")
            self.echo("🚀 Starting containers...")
        else:
            self.echo("🔄 Restarting containers only (no rebuild)...")

        self.events.emit(EventTypes.STEP_START, {"step": "up"})
        self._fatal("up", self.compose.up(on_line=self.echo), "docker-compose up failed")
        self.echo("")

    # Diagnostics

    def _diagnose(self) -> DiagnosticReport:
        config = self.config
        report = DiagnosticReport(environment_name=config.environment_name, health_url=config.health_url)

        self.echo("📊 Container status:")
        for line in self.docker.ps().lines:
            self.echo(line)
        self.echo("")

        self.echo("🔍 Detailed diagnosis...")
        self.echo("")
        self.echo("=== Container Status Details ===")
        for name in config.containers:
            self.echo(f"Checking {name}...")
            container = diagnose_container(self.docker, name, tail=config.log_tail_lines)
            report.containers.append(container)

            if not container.exists:
                self.echo("  ❌ Container does not exist")
                self.events.emit(EventTypes.DIAG_FAIL, {"check": "container", "name": name, "reason": "missing"})
            else:
                self.echo(f"  Status: {container.status}")
                self.echo(f"  Health: {container.health}")
                self.echo(f"  Restart Count: {container.restart_count}")
                if container.running:
                    self.events.emit(EventTypes.DIAG_OK, {"check": "container", "name": name})
                else:
                    self.echo(f"  📝 Container logs (last {config.log_tail_lines} lines):")
                    for line in _indented(container.log_tail):
                        self.echo(line)
                    self.events.emit(EventTypes.DIAG_FAIL, {
                        "check": "container", "name": name, "reason": container.status,
                    })
            self.echo("")

        self.echo("=== Port Check ===")
        report.ports = check_ports(self.runner, config.ports)
        for port, bound in report.ports.items():
            self.echo(f"Checking port {port}...")
            if bound:
                self.echo(f"  ✅ Port {port} is bound on host")
                self.events.emit(EventTypes.DIAG_OK, {"check": "port", "port": port})
            else:
                self.echo(f"  ❌ Port {port} is not bound on host")
                self.events.emit(EventTypes.DIAG_FAIL, {"check": "port", "port": port})
        self.echo("")

        report.proxy_running = self.docker.status(config.proxy_container) == "running"
        if report.proxy_running:
            report.probe = self._probe_health()
        else:
            logger.info(f"Proxy container {config.proxy_container} not running; skipping health probe")

        self.echo(format_report(report))
        self.echo("🏁 Diagnosis completed!")
        self.echo(f"🌐 Try accessing: {config.health_url}")
        return report

    def _probe_health(self) -> ProbeResult:
        config = self.config
        self.echo("=== Health Check Test ===")
        self.echo(f"Waiting additional {config.probe_delay_seconds:g} seconds for services to initialize...")
        self.sleep(config.probe_delay_seconds)

        self.echo(f"Testing health endpoint: {config.health_url}")
        probe = self.probe(config.health_url, config.probe_timeout_seconds)
        if probe.success:
            self.echo("  ✅ Health endpoint is responding")
            self.events.emit(EventTypes.DIAG_OK, {"check": "health", "url": config.health_url, "status": probe.status})
        else:
            self.echo("  ❌ Health endpoint is not responding")
            self.echo(f"  📝 Proxy container ({config.proxy_container}) error logs:")
            for line in _indented(self.docker.logs(config.proxy_container, config.proxy_log_lines)):
                self.echo(line)
            self.events.emit(EventTypes.DIAG_FAIL, {
                "check": "health", "url": config.health_url, "error": probe.error,
            })
        self.echo("")
        return probe


def run(config: DeployConfig, **kwargs) -> int:
    """Run the pipeline for ``config`` and return the process exit status."""
    return DeploySequencer(config, **kwargs).run().exit_code
