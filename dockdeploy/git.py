"""
Git wrapper for the source update step.
"""

from typing import Optional

from .runner import CommandRunner, CommandResult, LineHandler


class Git:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def pull(self, remote: str, branch: str, on_line: Optional[LineHandler] = None) -> CommandResult:
        return self.runner.run(["git", "pull", remote, branch], on_line=on_line)
