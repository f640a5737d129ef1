"""Merge live process state with the service catalog into one snapshot."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Optional

from atc_fleet.catalog import CATALOG
from atc_fleet.fleet.topology import TopologySource
from atc_fleet.monitor.health import HealthChecker
from atc_fleet.monitor.models import HealthStatus, ServiceStatus, SystemStatus

logger = logging.getLogger(__name__)


class StatusAggregator:
    """Builds :class:`SystemStatus` snapshots covering every catalog service.

    A service missing from the live topology reads as stopped, never as
    absent. When a :class:`HealthChecker` is supplied, ``snapshot(probe=True)``
    also fills ``healthy``, ``health`` and ``endpoint`` from a fresh probe.
    """

    def __init__(self, topology: TopologySource, health: Optional[HealthChecker] = None) -> None:
        self._topology = topology
        self._health = health

    async def snapshot(self, verbose: bool = False, probe: bool = False) -> SystemStatus:
        logger.debug("Gathering system status")
        live = await self._topology.query_topology()

        health_map: dict[str, HealthStatus] = {}
        if probe:
            if self._health is None:
                logger.warning("Health probing requested but no health checker is configured")
            else:
                health_map = await self._health.check_all(CATALOG)

        services: dict[str, ServiceStatus] = {}
        for service in CATALOG:
            name = service.value
            process = live.get(name)
            status = ServiceStatus(name=name, running=process.running if process else False)

            if verbose and process is not None:
                status.details["state"] = process.state
                for i, port in enumerate(process.ports):
                    status.details[f"port_{i}"] = port

            health = health_map.get(name)
            if health is not None and self._health is not None:
                status.health = health
                status.healthy = health.healthy
                status.endpoint = self._health.url_for(name)

            services[name] = status

        return SystemStatus(services=services, timestamp=datetime.now(UTC))
