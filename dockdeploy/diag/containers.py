"""
Per-container diagnosis.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..compose import Docker, ContainerState


@dataclass
class ContainerReport:
    name: str
    exists: bool
    status: Optional[str] = None
    health: Optional[str] = None
    restart_count: Optional[int] = None
    log_tail: List[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.status == "running"

    @classmethod
    def from_state(cls, state: ContainerState) -> "ContainerReport":
        return cls(
            name=state.name,
            exists=True,
            status=state.status,
            health=state.health,
            restart_count=state.restart_count,
        )


def diagnose_container(docker: Docker, name: str, tail: int = 20) -> ContainerReport:
    """
    Inspect a container; attach the tail of its logs if it is not running.

    A missing container is reported, never raised.
    """
    state = docker.inspect(name)
    if state is None:
        return ContainerReport(name=name, exists=False)

    report = ContainerReport.from_state(state)
    if not report.running:
        report.log_tail = docker.logs(name, tail)
    return report
