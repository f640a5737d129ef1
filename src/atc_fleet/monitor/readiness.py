"""Staged DNS -> HTTPS -> WebSocket reachability checks for the public domain."""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl
from collections.abc import Awaitable, Callable
from typing import Optional

import httpx
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from atc_fleet.monitor.models import ReadinessResult

logger = logging.getLogger(__name__)

TEST_SUBDOMAIN = "test-wss"

Resolver = Callable[[str], Awaitable[list[str]]]


def is_ipv4_address(record: str) -> bool:
    """True if *record* is four dot-separated decimal octets in 0-255."""
    octets = record.strip().split(".")
    if len(octets) != 4:
        return False
    for octet in octets:
        if not (octet.isascii() and octet.isdigit()) or int(octet) > 255:
            return False
    return True


async def resolve_a_records(domain: str) -> list[str]:
    """Return the IPv4 addresses the system resolver reports for *domain*."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(domain, None, family=socket.AF_INET, type=socket.SOCK_STREAM)
    return [str(sockaddr[0]) for _family, _type, _proto, _canon, sockaddr in infos]


def _insecure_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class ReadinessGate:
    """Diagnostic checks that the deployment is reachable from outside.

    Each stage returns a bool and can be called on its own; none of them
    raise on network failure and none mutate anything.
    """

    def __init__(
        self,
        domain: str,
        dns_timeout: float = 2.0,
        timeout: float = 5.0,
        verify: bool = False,
        http_scheme: str = "https",
        ws_scheme: str = "wss",
        resolver: Optional[Resolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.domain = domain
        self.dns_timeout = dns_timeout
        self.timeout = timeout
        self.verify = verify
        self.http_scheme = http_scheme
        self.ws_scheme = ws_scheme
        self._resolver = resolver or resolve_a_records
        self._transport = transport

    @property
    def https_url(self) -> str:
        return f"{self.http_scheme}://{TEST_SUBDOMAIN}.{self.domain}/"

    @property
    def websocket_url(self) -> str:
        return f"{self.ws_scheme}://{TEST_SUBDOMAIN}.{self.domain}/ws"

    async def check_dns(self) -> bool:
        """Single lookup attempt, bounded by ``dns_timeout``."""
        logger.debug("Checking DNS for %s", self.domain)
        try:
            records = await asyncio.wait_for(self._resolver(self.domain), timeout=self.dns_timeout)
        except TimeoutError:
            logger.warning("DNS lookup for %s timed out after %.1fs", self.domain, self.dns_timeout)
            return False
        except (OSError, ValueError) as exc:
            # UnicodeError from idna on empty or over-long labels, ValueError on NUL
            logger.warning("DNS lookup for %s failed: %s", self.domain, exc)
            return False
        ok = any(is_ipv4_address(r) for r in records)
        logger.debug("DNS for %s resolved to %s", self.domain, records)
        return ok

    async def check_https(self) -> bool:
        """GET the test endpoint, following redirects; any non-error status passes."""
        url = self.https_url
        logger.debug("Testing HTTPS endpoint %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("HTTPS endpoint %s unreachable: %s", url, exc)
            return False
        if resp.is_error:
            logger.warning("HTTPS endpoint %s returned %d", url, resp.status_code)
            return False
        return True

    async def check_websocket(self) -> bool:
        """Complete a WebSocket handshake against the test endpoint."""
        url = self.websocket_url
        logger.debug("Testing WebSocket endpoint %s", url)
        ssl_ctx: Optional[ssl.SSLContext] = None
        if url.startswith("wss://"):
            ssl_ctx = ssl.create_default_context() if self.verify else _insecure_ssl_context()
        try:
            async with ws_connect(url, ssl=ssl_ctx, open_timeout=self.timeout):
                return True
        except (OSError, TimeoutError, ValueError, WebSocketException) as exc:
            logger.warning("WebSocket endpoint %s unreachable: %s", url, exc)
            return False

    async def run(
        self,
        skip_dns: bool = False,
        skip_https: bool = False,
        skip_websocket: bool = False,
    ) -> ReadinessResult:
        """Evaluate every stage not skipped, in order, regardless of earlier failures."""
        result = ReadinessResult()
        if not skip_dns:
            result.dns = await self.check_dns()
        if not skip_https:
            result.https = await self.check_https()
        if not skip_websocket:
            result.websocket = await self.check_websocket()
        return result
