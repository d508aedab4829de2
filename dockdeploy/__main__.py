"""Command-line entry point for ``python -m dockdeploy``."""

from dockdeploy.cli import main

if __name__ == "__main__":
    main(prog_name="dockdeploy")
