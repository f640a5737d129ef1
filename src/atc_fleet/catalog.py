"""Fixed catalog of logical services and their health probe endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LogicalService(str, Enum):
    """A managed component of the stack. The value is the compose service name."""

    PDS = "pds"
    PLC = "plc"
    APPVIEW = "appview"
    BGS = "bgs"
    SOCIAL_APP = "social-app"
    OZONE = "ozone"
    FEED_GENERATOR = "feed-generator"
    JETSTREAM = "jetstream"

    @classmethod
    def lookup(cls, name: str) -> LogicalService | None:
        """Return the catalog member named *name*, or None if it is not in the catalog."""
        try:
            return cls(name)
        except ValueError:
            return None


CATALOG: tuple[LogicalService, ...] = tuple(LogicalService)


@dataclass(frozen=True)
class ProbeSpec:
    """Where a service answers health checks.

    The probe URL is ``{scheme}://{subdomain}.{domain}{path}``.
    """

    subdomain: str
    path: str = "/health"
    success_min: int = 200
    success_max: int = 299

    def url(self, domain: str, scheme: str = "https") -> str:
        return f"{scheme}://{self.subdomain}.{domain}{self.path}"

    def is_success(self, status_code: int) -> bool:
        return self.success_min <= status_code <= self.success_max


PROBES: dict[LogicalService, ProbeSpec] = {
    LogicalService.PDS: ProbeSpec("pds", "/xrpc/_health"),
    LogicalService.PLC: ProbeSpec("plc"),
    LogicalService.APPVIEW: ProbeSpec("appview", "/xrpc/_health"),
    LogicalService.BGS: ProbeSpec("bgs"),
    LogicalService.SOCIAL_APP: ProbeSpec("social-app", "/"),
    LogicalService.OZONE: ProbeSpec("ozone"),
    LogicalService.FEED_GENERATOR: ProbeSpec("feed-generator"),
    LogicalService.JETSTREAM: ProbeSpec("jetstream"),
}
