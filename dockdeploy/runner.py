"""
Subprocess wrapper shared by the git, docker and host collaborators.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
NOT_FOUND_EXIT = 127

LineHandler = Callable[[str], None]


@dataclass
class CommandResult:
    """Outcome of one external command."""
    args: List[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> List[str]:
        return self.output.splitlines()


class CommandRunner:
    """Runs external commands, merging stderr into stdout."""

    def run(self, args: Sequence[str], on_line: Optional[LineHandler] = None) -> CommandResult:
        """
        Run a command and collect its combined output.

        Args:
            args: Command and arguments
            on_line: Called with each output line as it arrives

        Returns:
            CommandResult; a missing executable maps to exit code 127
        """
        args = list(args)
        logger.debug(f"$ {' '.join(args)}")

        try:
            process = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError:
            logger.debug(f"Executable not found: {args[0]}")
            return CommandResult(args, NOT_FOUND_EXIT, f"{args[0]}: command not found")

        output_lines = []
        for line in process.stdout:
            line = line.rstrip("\n")
            output_lines.append(line)
            logger.debug(f"  {line}")
            if on_line is not None:
                on_line(line)

        process.wait()
        return CommandResult(args, process.returncode, "\n".join(output_lines))
