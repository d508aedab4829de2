"""
Deployment configuration: rebuild modes and pure resolution of settings.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any

from .errors import ConfigError, MissingFileError
from .redact import preview

DEFAULT_COMPOSE_FILE = "docker-compose.yml"
DEFAULT_COMPOSE_COMMAND = ("docker-compose",)
DEFAULT_BRANCH = "main"
DEFAULT_REMOTE = "origin"
DEFAULT_HEALTH_URL = "http://localhost/health"
DEFAULT_ENVIRONMENT_NAME = "Unknown"
DEFAULT_PROXY_CONTAINER = "nginx-proxy"
DEFAULT_PORTS = (8081, 8082, 8083)

DEFAULT_SETTLE_SECONDS = 30
DEFAULT_PROBE_DELAY_SECONDS = 30
DEFAULT_PROBE_TIMEOUT_SECONDS = 10
DEFAULT_LOG_TAIL_LINES = 20
DEFAULT_PROXY_LOG_LINES = 10

# (substring, display name, branch); first match wins
NAME_HEURISTICS: Tuple[Tuple[str, str, Optional[str]], ...] = (
    ("prod", "Production", "main"),
    ("perf", "Performance", "performance"),
    ("dev", "Development", "develop"),
    ("qa", "QA", None),
    ("stage", "Staging", None),
)


class RebuildMode(Enum):
    """How containers are (re)built during a run."""
    NORMAL = "normal"
    REBUILD = "rebuild"
    RESTART_ONLY = "restart_only"
    CLEAR_CACHE = "clear_cache"

    @property
    def pulls_source(self) -> bool:
        return self is not RebuildMode.RESTART_ONLY

    @property
    def builds(self) -> bool:
        return self is not RebuildMode.RESTART_ONLY

    @property
    def no_cache(self) -> bool:
        return self in (RebuildMode.REBUILD, RebuildMode.CLEAR_CACHE)

    @property
    def prune(self) -> str:
        if self is RebuildMode.CLEAR_CACHE:
            return "all"
        if self is RebuildMode.REBUILD:
            return "dangling"
        return "none"


def mode_from_flags(rebuild: bool = False, restart_only: bool = False, clear_cache: bool = False) -> RebuildMode:
    """
    Map the mutually exclusive CLI switches onto a single mode.

    Clear-cache implies rebuild. Restart-only cannot be combined with either.

    Raises:
        ConfigError: If conflicting switches are given
    """
    if restart_only and (rebuild or clear_cache):
        flag = "-c" if clear_cache else "-b"
        raise ConfigError(f"Cannot use {flag} and -r together")

    if clear_cache:
        return RebuildMode.CLEAR_CACHE
    if rebuild:
        return RebuildMode.REBUILD
    if restart_only:
        return RebuildMode.RESTART_ONLY
    return RebuildMode.NORMAL


@dataclass(frozen=True)
class DeployOptions:
    """Raw values taken from the command line before resolution."""
    environment: Optional[str] = None
    env_file: Optional[str] = None
    compose_file: Optional[str] = None
    branch: Optional[str] = None
    health_url: Optional[str] = None
    environment_name: Optional[str] = None
    rebuild: bool = False
    restart_only: bool = False
    clear_cache: bool = False
    compose_command: Tuple[str, ...] = DEFAULT_COMPOSE_COMMAND
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    probe_delay_seconds: float = DEFAULT_PROBE_DELAY_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DeployConfig:
    """Fully resolved, immutable configuration for one run."""
    environment: str
    environment_name: str
    env_file: str
    compose_file: str
    branch: str
    health_url: str
    mode: RebuildMode
    containers: Tuple[str, ...]
    ports: Tuple[int, ...]
    proxy_container: str
    remote: str = DEFAULT_REMOTE
    database_preview: str = ""
    warnings: Tuple[str, ...] = ()
    compose_command: Tuple[str, ...] = DEFAULT_COMPOSE_COMMAND
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    probe_delay_seconds: float = DEFAULT_PROBE_DELAY_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    log_tail_lines: int = DEFAULT_LOG_TAIL_LINES
    proxy_log_lines: int = DEFAULT_PROXY_LOG_LINES

    def __post_init__(self):
        if not self.health_url:
            raise ConfigError("Health URL must not be empty")
        if not self.environment_name:
            raise ConfigError("Environment name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        data["containers"] = list(self.containers)
        data["ports"] = list(self.ports)
        data["warnings"] = list(self.warnings)
        data["compose_command"] = list(self.compose_command)
        return data


def env_file_paths(options: DeployOptions) -> Tuple[str, str]:
    """
    Work out the environment and compose file paths from the selector.

    Name mode (``-e prod``) uses ``prod.env`` and ``docker-compose.prod.yml``;
    path mode (``--env-file``) falls back to ``docker-compose.yml``.
    An explicit compose file always wins.

    Raises:
        ConfigError: If neither or both selectors are given
    """
    if options.environment and options.env_file:
        raise ConfigError("Cannot use -e and --env-file together")

    if options.environment:
        env_file = f"{options.environment}.env"
        compose_file = options.compose_file or f"docker-compose.{options.environment}.yml"
    elif options.env_file:
        env_file = options.env_file
        compose_file = options.compose_file or DEFAULT_COMPOSE_FILE
    else:
        raise ConfigError("Environment is required. Use -e NAME or --env-file FILE.")

    return env_file, compose_file


def match_heuristic(key: str) -> Optional[Tuple[str, Optional[str]]]:
    """Return (display name, branch) for the first substring rule matching key."""
    lowered = key.lower()
    for needle, display_name, branch in NAME_HEURISTICS:
        if needle in lowered:
            return display_name, branch
    return None


def parse_ports(raw: str) -> Tuple[int, ...]:
    ports: List[int] = []
    for token in raw.split():
        if not token.isdigit() or not 0 < int(token) < 65536:
            raise ConfigError(f"Invalid port in CHECK_PORTS: {token!r}")
        ports.append(int(token))
    return tuple(ports)


def resolve_config(options: DeployOptions, env_values: Dict[str, str]) -> DeployConfig:
    """
    Merge CLI options, env-file values, name heuristics and defaults.

    Precedence is always: explicit option, then env file, then heuristics
    on the environment name, then hard-coded defaults. Reads nothing from
    the process environment.

    Args:
        options: Values from the command line
        env_values: Parsed environment file

    Returns:
        Resolved DeployConfig

    Raises:
        ConfigError: On conflicting switches, missing selector or bad values
    """
    mode = mode_from_flags(options.rebuild, options.restart_only, options.clear_cache)
    env_file, compose_file = env_file_paths(options)
    environment = options.environment or ""

    heuristic_key = environment or env_file
    heuristic = match_heuristic(heuristic_key)
    warnings: List[str] = []

    environment_name = (
        options.environment_name
        or env_values.get("ENVIRONMENT_NAME")
        or (heuristic[0] if heuristic else None)
        or environment
        or DEFAULT_ENVIRONMENT_NAME
    )

    branch = (
        options.branch
        or env_values.get("DEPLOY_BRANCH")
        or (heuristic[1] if heuristic else None)
        or DEFAULT_BRANCH
    )

    health_url = options.health_url or env_values.get("HEALTH_CHECK_URL")
    if not health_url and env_values.get("BASE_URL"):
        health_url = env_values["BASE_URL"].rstrip("/") + "/health"
    if not health_url:
        health_url = DEFAULT_HEALTH_URL
        warnings.append(f"No HEALTH_CHECK_URL or BASE_URL defined, using default: {health_url}")

    proxy_container = env_values.get("PROXY_CONTAINER") or DEFAULT_PROXY_CONTAINER

    containers = tuple(env_values.get("CONTAINER_NAMES", "").split()) or (proxy_container,)

    raw_ports = env_values.get("CHECK_PORTS", "")
    ports = parse_ports(raw_ports) if raw_ports.strip() else DEFAULT_PORTS

    return DeployConfig(
        environment=environment,
        environment_name=environment_name,
        env_file=env_file,
        compose_file=compose_file,
        branch=branch,
        remote=env_values.get("DEPLOY_REMOTE") or DEFAULT_REMOTE,
        health_url=health_url,
        mode=mode,
        containers=containers,
        ports=ports,
        proxy_container=proxy_container,
        database_preview=preview(env_values.get("DATABASE_CONNECTION_STRING")),
        warnings=tuple(warnings),
        compose_command=tuple(options.compose_command) or DEFAULT_COMPOSE_COMMAND,
        settle_seconds=options.settle_seconds,
        probe_delay_seconds=options.probe_delay_seconds,
        probe_timeout_seconds=options.probe_timeout_seconds,
    )


def validate_paths(config: DeployConfig) -> None:
    """
    Check that the env and compose files exist.

    Raises:
        MissingFileError: If either file is missing
    """
    if not Path(config.env_file).is_file():
        raise MissingFileError(f"Environment file '{config.env_file}' not found!")
    if not Path(config.compose_file).is_file():
        raise MissingFileError(f"Docker Compose file '{config.compose_file}' not found!")
