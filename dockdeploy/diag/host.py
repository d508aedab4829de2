"""
Host-level checks: disk, memory and listening ports.
"""

import logging
from typing import Dict, Iterable

from ..runner import CommandRunner, CommandResult

logger = logging.getLogger(__name__)

SOCKET_LISTING_COMMANDS = (
    ["ss", "-tlnp"],
    ["netstat", "-tlnp"],
)


def disk_usage(runner: CommandRunner) -> CommandResult:
    return runner.run(["df", "-h"])


def memory_usage(runner: CommandRunner) -> CommandResult:
    return runner.run(["free", "-h"])


def is_port_listed(listing: str, port: int) -> bool:
    """True if ``:<port> `` appears in a socket listing."""
    needle = f":{port} "
    return any(needle in line for line in listing.splitlines())


def check_ports(runner: CommandRunner, ports: Iterable[int]) -> Dict[int, bool]:
    """
    Report which ports have a listening socket on the host.

    Ports missing from the ``ss`` listing are looked up again with
    ``netstat``. A host without either tool reports every port as unbound.
    """
    bound = {port: False for port in ports}
    for command in SOCKET_LISTING_COMMANDS:
        missing = [port for port, ok in bound.items() if not ok]
        if not missing:
            break
        result = runner.run(command)
        if not result.ok:
            logger.debug(f"{command[0]} unavailable (exit {result.returncode})")
            continue
        for port in missing:
            bound[port] = is_port_listed(result.output, port)
    return bound
