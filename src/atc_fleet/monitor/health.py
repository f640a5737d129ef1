"""Async health probes for the service catalog."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Dict, Optional

import httpx

from atc_fleet.catalog import CATALOG, PROBES, LogicalService, ProbeSpec
from atc_fleet.monitor.models import HealthState, HealthStatus

logger = logging.getLogger(__name__)


def classify_status(spec: ProbeSpec, status_code: int) -> HealthState:
    """Map an HTTP status to a health state: success range, 5xx, anything else."""
    if spec.is_success(status_code):
        return HealthState.HEALTHY
    if 500 <= status_code <= 599:
        return HealthState.DEGRADED
    return HealthState.UNHEALTHY


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class HealthChecker:
    """Probes each catalog service once per call; no retries and no caching.

    TLS verification is off by default because operator deployments commonly
    run behind self-signed certificates.
    """

    def __init__(
        self,
        domain: str,
        scheme: str = "https",
        timeout: float = 5.0,
        verify: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.domain = domain
        self.scheme = scheme
        self.timeout = timeout
        self.verify = verify
        self._transport = transport

    def url_for(self, name: str) -> Optional[str]:
        service = LogicalService.lookup(name)
        if service is None:
            return None
        return PROBES[service].url(self.domain, self.scheme)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify,
            follow_redirects=True,
            transport=self._transport,
        )

    async def check_service(self, name: str) -> HealthStatus:
        """Probe *name* and classify the outcome. Never raises."""
        start = time.monotonic()
        service = LogicalService.lookup(name)
        if service is None:
            logger.warning("Unknown service: %s", name)
            return HealthStatus(
                service=name,
                status=HealthState.UNHEALTHY,
                latency_ms=_elapsed_ms(start),
                details=f"Unknown service: {name}",
            )

        spec = PROBES[service]
        url = spec.url(self.domain, self.scheme)
        logger.debug("Checking health for %s at %s", name, url)
        try:
            async with self._client() as client:
                resp = await client.get(url)
            state = classify_status(spec, resp.status_code)
            details = None if state is HealthState.HEALTHY else f"HTTP {resp.status_code}"
        except httpx.ConnectError as exc:
            state, details = HealthState.UNHEALTHY, f"Connection refused: {exc}"
        except httpx.TimeoutException:
            state, details = HealthState.UNHEALTHY, "Timeout"
        except Exception as exc:
            state, details = HealthState.UNHEALTHY, str(exc) or type(exc).__name__
        latency = _elapsed_ms(start)

        if state is not HealthState.HEALTHY:
            logger.warning("%s is %s (%s)", name, state.value, details)
        return HealthStatus(service=name, status=state, latency_ms=latency, details=details)

    async def check_all(self, names: Optional[Iterable[str]] = None) -> Dict[str, HealthStatus]:
        """Probe *names* (default: the whole catalog) concurrently."""
        keys = [str(getattr(n, "value", n)) for n in (names if names is not None else CATALOG)]
        results = await asyncio.gather(*(self.check_service(k) for k in keys))
        return dict(zip(keys, results))
