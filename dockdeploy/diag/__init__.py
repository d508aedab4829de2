"""
Post-deploy diagnostics: host checks, container inspection and health probe.
"""

from .host import disk_usage, memory_usage, is_port_listed, check_ports
from .containers import ContainerReport, diagnose_container
from .health import ProbeResult, probe_health
from .report import DiagnosticReport, format_report

__all__ = [
    "disk_usage",
    "memory_usage",
    "is_port_listed",
    "check_ports",
    "ContainerReport",
    "diagnose_container",
    "ProbeResult",
    "probe_health",
    "DiagnosticReport",
    "format_report",
]
