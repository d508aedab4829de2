"""
Diagnostic report assembled after containers are up.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .containers import ContainerReport
from .health import ProbeResult


@dataclass
class DiagnosticReport:
    """Container, port and health probe findings for one run."""
    environment_name: str
    health_url: str
    containers: List[ContainerReport] = field(default_factory=list)
    ports: Dict[int, bool] = field(default_factory=dict)
    proxy_running: bool = False
    probe: Optional[ProbeResult] = None

    def failures(self) -> List[str]:
        """List every diagnostic failure as a short message."""
        failures = []
        for container in self.containers:
            if not container.exists:
                failures.append(f"Container {container.name} does not exist")
            elif not container.running:
                failures.append(f"Container {container.name} is {container.status}")
            elif container.health not in ("healthy", "no-healthcheck", "starting"):
                failures.append(f"Container {container.name} health is {container.health}")

        for port, bound in self.ports.items():
            if not bound:
                failures.append(f"Port {port} is not bound on host")

        if self.probe is not None and not self.probe.success:
            failures.append(f"Health endpoint {self.probe.url} is not responding ({self.probe.error})")

        return failures

    @property
    def healthy(self) -> bool:
        return not self.failures()

    def summary(self) -> str:
        failures = self.failures()
        if not failures:
            return f"{self.environment_name}: all checks passed"
        return f"{self.environment_name}: {len(failures)} diagnostic check(s) failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environment_name": self.environment_name,
            "health_url": self.health_url,
            "containers": [asdict(c) for c in self.containers],
            "ports": {str(port): bound for port, bound in self.ports.items()},
            "proxy_running": self.proxy_running,
            "probe": asdict(self.probe) if self.probe else None,
            "failures": self.failures(),
        }


def format_report(report: DiagnosticReport) -> str:
    """Format the report as human-readable text."""
    lines = [f"🔍 {report.summary()}"]

    failures = report.failures()
    if failures:
        lines.append("❌ Failures:")
        for i, failure in enumerate(failures, 1):
            lines.append(f"  {i}. {failure}")

    if report.probe is None:
        lines.append("ℹ️  Health probe skipped (proxy not running)")

    return "\n".join(lines)
