"""
Shared fakes for the deploy sequencer tests.
"""

import pytest

from dockdeploy.compose import HEALTH_FORMAT, RESTART_FORMAT, STATUS_FORMAT
from dockdeploy.runner import CommandResult


class FakeRunner:
    """
    Stands in for CommandRunner.

    Responses are keyed by a tuple of arguments; the most recently added key
    whose arguments all appear in a command decides its (returncode, output).
    Unmatched commands succeed with no output.
    """

    def __init__(self):
        self.calls = []
        self.responses = []

    def respond(self, tokens, returncode=0, output=""):
        self.responses.insert(0, (tuple(tokens), returncode, output))
        return self

    def container(self, name, status="running", health="healthy", restarts=0):
        self.respond(("docker", "inspect", f"--format={STATUS_FORMAT}", name), output=status + "\n")
        self.respond(("docker", "inspect", f"--format={HEALTH_FORMAT}", name), output=health + "\n")
        self.respond(("docker", "inspect", f"--format={RESTART_FORMAT}", name), output=f"{restarts}\n")
        return self

    def missing_container(self, name):
        self.respond(("docker", "inspect", name), returncode=1, output=f"Error: No such object: {name}")
        return self

    def run(self, args, on_line=None):
        args = list(args)
        self.calls.append(args)
        for tokens, returncode, output in self.responses:
            if all(token in args for token in tokens):
                if on_line is not None:
                    for line in output.splitlines():
                        on_line(line)
                return CommandResult(args, returncode, output.rstrip("\n"))
        return CommandResult(args, 0, "")

    def called(self, *tokens) -> bool:
        return any(all(token in args for token in tokens) for args in self.calls)

    def commands(self):
        return [" ".join(args) for args in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()
