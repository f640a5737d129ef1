"""Data models for service health, readiness and fleet status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class HealthState(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthStatus:
    """Outcome of one health probe."""

    service: str
    status: HealthState
    latency_ms: int = 0
    details: Optional[str] = None

    @property
    def healthy(self) -> bool:
        return self.status is HealthState.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "details": self.details,
        }


@dataclass
class ServiceStatus:
    """One catalog service as seen in a status snapshot."""

    name: str
    running: bool = False
    healthy: bool = False
    endpoint: Optional[str] = None
    version: Optional[str] = None
    details: dict[str, str] = field(default_factory=dict)
    health: Optional[HealthStatus] = None

    @property
    def status_label(self) -> str:
        if not self.running:
            return "stopped"
        if self.health is None:
            return "running"
        return self.health.status.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "running": self.running,
            "healthy": self.healthy,
            "endpoint": self.endpoint,
            "version": self.version,
            "details": dict(self.details),
            "health": self.health.to_dict() if self.health else None,
        }


@dataclass
class SystemStatus:
    """Point-in-time view of every catalog service."""

    services: dict[str, ServiceStatus]
    timestamp: datetime

    @property
    def running_count(self) -> int:
        return sum(1 for s in self.services.values() if s.running)

    def to_dict(self) -> dict[str, Any]:
        return {
            "services": {name: s.to_dict() for name, s in self.services.items()},
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ReadinessResult:
    """Per-stage outcome of the readiness gate. ``None`` means the stage was skipped."""

    dns: Optional[bool] = None
    https: Optional[bool] = None
    websocket: Optional[bool] = None

    @property
    def passed(self) -> bool:
        return all(stage is not False for stage in (self.dns, self.https, self.websocket))

    def to_dict(self) -> dict[str, Any]:
        return {
            "dns": self.dns,
            "https": self.https,
            "websocket": self.websocket,
            "passed": self.passed,
        }
