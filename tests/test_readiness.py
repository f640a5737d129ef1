"""Tests for the DNS / HTTPS / WebSocket readiness gate."""

from __future__ import annotations

import asyncio
import socket
import ssl
from unittest.mock import patch

import httpx
import pytest
from websockets.exceptions import InvalidHandshake

from atc_fleet.monitor.models import ReadinessResult
from atc_fleet.monitor.readiness import ReadinessGate, is_ipv4_address

WS_CONNECT = "atc_fleet.monitor.readiness.ws_connect"


def _resolver(records: list[str]):
    async def resolve(domain: str) -> list[str]:
        return records

    return resolve


def _raising_resolver(exc: Exception):
    async def resolve(domain: str) -> list[str]:
        raise exc

    return resolve


async def _hanging_resolver(domain: str) -> list[str]:
    await asyncio.sleep(10)
    return []


class FakeConnect:
    """Stands in for websockets' connect(); records calls and optionally fails the handshake."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        return self

    async def __aenter__(self):
        if self.exc is not None:
            raise self.exc
        return object()

    async def __aexit__(self, exc_type, exc, tb):
        return False


# ─── IPv4 record parsing ───


class TestIsIpv4Address:
    @pytest.mark.parametrize("record", ["93.184.216.34", "0.0.0.0", "255.255.255.255", " 10.0.0.1 "])
    def test_valid(self, record: str):
        assert is_ipv4_address(record)

    @pytest.mark.parametrize(
        "record",
        ["256.1.1.1", "1.2.3", "1.2.3.4.5", "a.b.c.d", "", "example.com.", "::1", "1.2.-3.4"],
    )
    def test_invalid(self, record: str):
        assert not is_ipv4_address(record)


# ─── DNS stage ───


class TestDnsStage:
    @pytest.mark.asyncio
    async def test_resolves(self):
        gate = ReadinessGate("bsky.test", resolver=_resolver(["93.184.216.34"]))
        assert await gate.check_dns()

    @pytest.mark.asyncio
    async def test_no_records(self):
        gate = ReadinessGate("bsky.test", resolver=_resolver([]))
        assert not await gate.check_dns()

    @pytest.mark.asyncio
    async def test_only_malformed_records(self):
        gate = ReadinessGate("bsky.test", resolver=_resolver(["cname.example.", "999.1.1.1"]))
        assert not await gate.check_dns()

    @pytest.mark.asyncio
    async def test_lookup_error(self):
        gate = ReadinessGate("bsky.test", resolver=_raising_resolver(socket.gaierror(-2, "Name or service not known")))
        assert not await gate.check_dns()

    @pytest.mark.asyncio
    async def test_timeout(self):
        gate = ReadinessGate("bsky.test", dns_timeout=0.05, resolver=_hanging_resolver)
        assert not await gate.check_dns()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain", ["a" * 64 + ".example", "a..b"])
    async def test_malformed_domain(self, domain: str):
        assert not await ReadinessGate(domain).check_dns()

    @pytest.mark.asyncio
    async def test_resolver_value_error(self):
        gate = ReadinessGate("bsky.test", resolver=_raising_resolver(ValueError("embedded null byte")))
        assert not await gate.check_dns()


# ─── HTTPS stage ───


class TestHttpsStage:
    @pytest.mark.asyncio
    async def test_success(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        gate = ReadinessGate("bsky.test", transport=httpx.MockTransport(handler))
        assert await gate.check_https()
        assert str(seen[0].url) == "https://test-wss.bsky.test/"

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/":
                return httpx.Response(301, headers={"Location": "https://test-wss.bsky.test/index"})
            return httpx.Response(200)

        gate = ReadinessGate("bsky.test", transport=httpx.MockTransport(handler))
        assert await gate.check_https()

    @pytest.mark.asyncio
    async def test_error_status(self):
        gate = ReadinessGate("bsky.test", transport=httpx.MockTransport(lambda r: httpx.Response(502)))
        assert not await gate.check_https()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        gate = ReadinessGate("bsky.test", transport=httpx.MockTransport(handler))
        assert not await gate.check_https()

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        gate = ReadinessGate("bad\x00domain", transport=httpx.MockTransport(handler))
        assert not await gate.check_https()
        assert seen == []


# ─── WebSocket stage ───


class TestWebSocketStage:
    @pytest.mark.asyncio
    async def test_handshake_completes(self):
        fake = FakeConnect()
        with patch(WS_CONNECT, fake):
            assert await ReadinessGate("bsky.test", timeout=3.0).check_websocket()
        url, kwargs = fake.calls[0]
        assert url == "wss://test-wss.bsky.test/ws"
        assert kwargs["open_timeout"] == 3.0
        assert kwargs["ssl"].verify_mode == ssl.CERT_NONE

    @pytest.mark.asyncio
    async def test_handshake_rejected(self):
        with patch(WS_CONNECT, FakeConnect(InvalidHandshake("bad upgrade"))):
            assert not await ReadinessGate("bsky.test").check_websocket()

    @pytest.mark.asyncio
    async def test_connect_refused(self):
        with patch(WS_CONNECT, FakeConnect(ConnectionRefusedError())):
            assert not await ReadinessGate("bsky.test").check_websocket()

    @pytest.mark.asyncio
    async def test_open_timeout(self):
        with patch(WS_CONNECT, FakeConnect(TimeoutError())):
            assert not await ReadinessGate("bsky.test").check_websocket()

    @pytest.mark.asyncio
    async def test_idna_failure(self):
        with patch(WS_CONNECT, FakeConnect(UnicodeError("label empty or too long"))):
            assert not await ReadinessGate("a" * 64 + ".example").check_websocket()

    @pytest.mark.asyncio
    async def test_plain_ws_has_no_ssl(self):
        fake = FakeConnect()
        with patch(WS_CONNECT, fake):
            assert await ReadinessGate("localhost", ws_scheme="ws").check_websocket()
        url, kwargs = fake.calls[0]
        assert url == "ws://test-wss.localhost/ws"
        assert kwargs["ssl"] is None


# ─── run ───


class TestRun:
    @pytest.mark.asyncio
    async def test_dns_failure_does_not_block_other_stages(self):
        fake = FakeConnect()
        gate = ReadinessGate(
            "bsky.test",
            resolver=_resolver([]),
            transport=httpx.MockTransport(lambda r: httpx.Response(200)),
        )
        with patch(WS_CONNECT, fake):
            result = await gate.run()
        assert result == ReadinessResult(dns=False, https=True, websocket=True)
        assert not result.passed
        assert len(fake.calls) == 1

    @pytest.mark.asyncio
    async def test_skipped_stages(self):
        gate = ReadinessGate("bsky.test", resolver=_resolver(["10.0.0.1"]))
        result = await gate.run(skip_https=True, skip_websocket=True)
        assert result.dns is True
        assert result.https is None
        assert result.websocket is None
        assert result.passed

    @pytest.mark.asyncio
    async def test_malformed_domain_fails_every_stage(self):
        with patch(WS_CONNECT, FakeConnect(UnicodeError("label empty or too long"))):
            gate = ReadinessGate("a..b", transport=httpx.MockTransport(lambda r: httpx.Response(502)))
            result = await gate.run()
        assert result.dns is False
        assert result.https is False
        assert result.websocket is False
        assert not result.passed

    def test_to_dict(self):
        result = ReadinessResult(dns=True, https=False, websocket=None)
        assert result.to_dict() == {"dns": True, "https": False, "websocket": None, "passed": False}
