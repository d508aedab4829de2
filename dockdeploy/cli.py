"""
Click CLI for the dockdeploy deploy sequencer.
"""

import json
import logging
import shlex
import sys
from functools import partial
from typing import Optional

import click

from .config import (
    DEFAULT_PROBE_DELAY_SECONDS, DEFAULT_PROBE_TIMEOUT_SECONDS, DEFAULT_SETTLE_SECONDS,
    DeployOptions, env_file_paths, mode_from_flags, resolve_config, validate_paths,
)
from .envfile import load_env_file
from .errors import ConfigError, MissingFileError
from .events import RunEvents, check_events_path
from .redact import redact_env
from .sequencer import DeploySequencer

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EPILOG = """\b
Examples:
  dockdeploy -e prod                        # Deploy production
  dockdeploy -e release -b                  # Deploy release with rebuild
  dockdeploy -e dev -r                      # Restart development only
  dockdeploy -e perf -c                     # Performance with cache clear
  dockdeploy --env-file .env.qa -f docker-compose.qa.yml
  dockdeploy --env-file .env.stage -g staging -u https://stage.example.com/health

\b
Environment file keys:
  DEPLOY_BRANCH=main              # Git branch to deploy
  ENVIRONMENT_NAME=Production     # Display name
  HEALTH_CHECK_URL=https://...    # Health endpoint URL
  BASE_URL=https://...            # Base URL (fallback for health)
  CONTAINER_NAMES="cont1 cont2"   # Containers to check
  CHECK_PORTS="8081 8082"         # Ports to verify
  PROXY_CONTAINER=nginx-proxy     # Proxy container name
"""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command(context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.option("-e", "--env", "environment", help="Environment name; uses {NAME}.env and docker-compose.{NAME}.yml")
@click.option("--env-file", help="Environment file path (e.g. .env.prod)")
@click.option("-f", "--compose-file", help="Docker Compose file path")
@click.option("-g", "--branch", help="Git branch to pull (default: auto-detect from env)")
@click.option("-u", "--health-url", help="Health check URL (default: auto-detect from env)")
@click.option("-n", "--name", "environment_name", help="Environment name for display (default: auto-detect)")
@click.option("-b", "--rebuild", is_flag=True, help="Rebuild containers from scratch")
@click.option("-r", "--restart-only", is_flag=True, help="Restart only without rebuild")
@click.option("-c", "--clear-cache", is_flag=True, help="Clear Docker cache and rebuild completely")
@click.option("--compose-cmd", default="docker-compose", envvar="DOCKDEPLOY_COMPOSE_CMD", show_default=True,
              help="Compose executable, e.g. 'docker compose'")
@click.option("--settle-seconds", type=float, default=DEFAULT_SETTLE_SECONDS, envvar="DOCKDEPLOY_SETTLE_SECONDS",
              show_default=True, help="Wait after starting containers")
@click.option("--probe-delay", type=float, default=DEFAULT_PROBE_DELAY_SECONDS, envvar="DOCKDEPLOY_PROBE_DELAY",
              show_default=True, help="Wait before the health probe")
@click.option("--probe-timeout", type=float, default=DEFAULT_PROBE_TIMEOUT_SECONDS, envvar="DOCKDEPLOY_PROBE_TIMEOUT",
              show_default=True, help="Health probe timeout")
@click.option("--events-file", type=click.Path(dir_okay=False), help="Append run events as NDJSON")
@click.option("--json", "output_json", is_flag=True, help="Print the run result as JSON (progress goes to stderr)")
@click.option("--dry-run", is_flag=True, help="Resolve and print the configuration without running anything")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx, environment: Optional[str], env_file: Optional[str], compose_file: Optional[str],
         branch: Optional[str], health_url: Optional[str], environment_name: Optional[str],
         rebuild: bool, restart_only: bool, clear_cache: bool, compose_cmd: str,
         settle_seconds: float, probe_delay: float, probe_timeout: float,
         events_file: Optional[str], output_json: bool, dry_run: bool, verbose: bool):
    """
    Pull, rebuild and restart a docker-compose stack, then diagnose it.
    """
    _configure_logging(verbose)
    echo = partial(click.echo, err=True) if output_json else click.echo

    if not environment and not env_file:
        click.echo("❌ Error: Environment is required. Use -e NAME or --env-file FILE.", err=True)
        click.echo("", err=True)
        click.echo(ctx.get_help(), err=True)
        sys.exit(1)

    options = DeployOptions(
        environment=environment,
        env_file=env_file,
        compose_file=compose_file,
        branch=branch,
        health_url=health_url,
        environment_name=environment_name,
        rebuild=rebuild,
        restart_only=restart_only,
        clear_cache=clear_cache,
        compose_command=tuple(shlex.split(compose_cmd)),
        settle_seconds=settle_seconds,
        probe_delay_seconds=probe_delay,
        probe_timeout_seconds=probe_timeout,
    )

    try:
        mode_from_flags(rebuild, restart_only, clear_cache)
        env_path, _ = env_file_paths(options)
        env_values = load_env_file(env_path)
        config = resolve_config(options, env_values)
        validate_paths(config)
        if events_file:
            check_events_path(events_file)
    except ConfigError as e:
        click.echo(f"❌ Error: {e}", err=True)
        if isinstance(e, MissingFileError) and environment:
            click.echo("💡 Create this file with your environment configuration.", err=True)
        sys.exit(e.exit_code)

    if dry_run:
        for warning in config.warnings:
            click.echo(f"⚠️  Warning: {warning}", err=True)
        click.echo(json.dumps({"config": config.to_dict(), "env": redact_env(env_values)}, indent=2))
        sys.exit(0)

    events = RunEvents(path=events_file)
    sequencer = DeploySequencer(config, events=events, echo=echo)

    try:
        result = sequencer.run()
    except KeyboardInterrupt:
        click.echo("\nDeployment cancelled by user", err=True)
        sys.exit(130)

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2))

    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
