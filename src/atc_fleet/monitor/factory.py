"""Build monitor components from configuration."""

from __future__ import annotations

from atc_fleet.config.models import AtcConfig
from atc_fleet.fleet.controller import ComposeController
from atc_fleet.monitor.health import HealthChecker
from atc_fleet.monitor.readiness import ReadinessGate
from atc_fleet.monitor.status import StatusAggregator


def health_checker(config: AtcConfig) -> HealthChecker:
    return HealthChecker(
        config.network.domain,
        scheme=config.network.http_scheme,
        timeout=config.probes.health_timeout,
        verify=config.probes.verify_tls,
    )


def readiness_gate(config: AtcConfig) -> ReadinessGate:
    return ReadinessGate(
        config.network.domain,
        dns_timeout=config.probes.dns_timeout,
        timeout=config.probes.readiness_timeout,
        verify=config.probes.verify_tls,
        http_scheme=config.network.http_scheme,
        ws_scheme=config.network.ws_scheme,
    )


def status_aggregator(config: AtcConfig) -> StatusAggregator:
    return StatusAggregator(ComposeController.from_config(config), health=health_checker(config))
