"""
Event recording for a single deploy run, with optional NDJSON output.
"""

import json
import logging
import secrets
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

RUN_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


def new_run_id() -> str:
    """Return an id like ``r-20250101-120000-k3x9`` (local time plus a random suffix)."""
    suffix = "".join(secrets.choice(RUN_ID_ALPHABET) for _ in range(4))
    return f"r-{datetime.now():%Y%m%d-%H%M%S}-{suffix}"


def check_events_path(path: str) -> None:
    """
    Fail early if events cannot be appended to ``path``.

    Raises:
        ConfigError: If the parent directory is missing or the path is a directory
    """
    events_path = Path(path)
    if events_path.is_dir():
        raise ConfigError(f"Events file '{path}' is a directory")
    if not events_path.parent.is_dir():
        raise ConfigError(f"Directory for events file '{path}' does not exist")


class EventTypes:
    INIT = "INIT"
    CONFIG_RESOLVED = "CONFIG_RESOLVED"
    STEP_START = "STEP_START"
    STEP_OK = "STEP_OK"
    STEP_SKIPPED = "STEP_SKIPPED"
    STEP_TOLERATED = "STEP_TOLERATED"
    STEP_FAILED = "STEP_FAILED"
    DIAG_OK = "DIAG_OK"
    DIAG_FAIL = "DIAG_FAIL"
    DONE = "DONE"
    ERROR = "ERROR"


class RunEvents:
    """
    Collects the events of one run.

    Events are kept in memory for the final report; when ``path`` is given
    each event is also appended to that file as one JSON line.
    """

    def __init__(self, run_id: Optional[str] = None, path: Optional[str] = None):
        self.run_id = run_id or new_run_id()
        self.path = Path(path) if path else None
        self.events: List[Dict[str, Any]] = []

    def emit(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Record an event.

        Args:
            event_type: One of EventTypes
            data: Event data

        Returns:
            The recorded event
        """
        event = {
            "ts": datetime.now().isoformat(),
            "run_id": self.run_id,
            "type": event_type,
            "data": data or {},
        }
        self.events.append(event)

        if self.path is not None:
            self._append(event)

        return event

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]

    def _append(self, event: Dict[str, Any]) -> None:
        # On a write error the file sink is dropped and the run continues
        try:
            with open(self.path, "a") as f:
                f.write(json.dumps(event) + "\n")
        except OSError as e:
            logger.warning(f"Cannot write events to {self.path}: {e}; keeping events in memory only")
            self.path = None


def read_events(path: str) -> List[Dict[str, Any]]:
    """
    Read events back from an NDJSON file.

    Args:
        path: File written by RunEvents

    Returns:
        List of events; malformed lines are skipped
    """
    events_file = Path(path)
    if not events_file.exists():
        return []

    events = []
    with open(events_file, "r") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return events
