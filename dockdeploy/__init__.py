"""
dockdeploy - single-host deployment sequencer for docker-compose stacks.

This package provides a CLI that pulls code with git, rebuilds or restarts
a docker-compose stack and runs post-deploy diagnostics.
"""

__version__ = "0.1.0"
