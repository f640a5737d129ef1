"""Read-only health, readiness and status views of the fleet."""

from __future__ import annotations

from atc_fleet.monitor.health import HealthChecker, classify_status
from atc_fleet.monitor.models import HealthState, HealthStatus, ReadinessResult, ServiceStatus, SystemStatus
from atc_fleet.monitor.readiness import ReadinessGate
from atc_fleet.monitor.status import StatusAggregator

__all__ = [
    "HealthChecker",
    "HealthState",
    "HealthStatus",
    "ReadinessGate",
    "ReadinessResult",
    "ServiceStatus",
    "StatusAggregator",
    "SystemStatus",
    "classify_status",
]
