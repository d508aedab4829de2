"""
Exception types raised by the deploy sequencer.
"""

from typing import Optional


class DeployError(Exception):
    """Base error carrying the process exit code."""

    exit_code = 1

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(DeployError):
    """Invalid or missing input, raised before any external command runs."""


class StepFailed(DeployError):
    """A fatal pipeline step returned a non-zero status."""

    def __init__(self, step: str, message: str, exit_code: int = 1):
        # Killed by signal N: Popen reports -N, shells report 128 + N
        if exit_code < 0:
            exit_code = 128 - exit_code
        super().__init__(message, exit_code=exit_code or 1)
        self.step = step


class MissingFileError(ConfigError):
    """The environment or compose file does not exist."""
