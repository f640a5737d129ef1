"""Shared fixtures for atc tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from atc_fleet.config.models import AtcConfig
from atc_fleet.fleet.topology import ProcessState


SAMPLE_CONFIG: Dict[str, Any] = {
    "network": {
        "domain": "bsky.test",
        "bind_address": "0.0.0.0",
        "use_tls": True,
    },
    "compose": {
        "file": "docker-compose.yml",
        "command": ["docker", "compose"],
        "secrets_file": "config/secrets.yaml",
        "timeout": None,
        "environment": {"LOG_LEVEL": "info"},
    },
    "probes": {
        "health_timeout": 5.0,
        "dns_timeout": 2.0,
        "readiness_timeout": 5.0,
        "verify_tls": False,
    },
}

SAMPLE_SECRETS: Dict[str, str] = {
    "pds_jwt_secret": "a" * 32,
    "pds_admin_password": "b" * 16,
    "pds_plc_rotation_key": "C" * 52,
}


class FakeTopology:
    """In-memory TopologySource for aggregator tests."""

    def __init__(self, services: Dict[str, ProcessState] | None = None) -> None:
        self.services: Dict[str, ProcessState] = dict(services or {})
        self.calls = 0

    def set_service_status(self, name: str, status: ProcessState) -> None:
        self.services[name] = status

    async def query_topology(self) -> Dict[str, ProcessState]:
        self.calls += 1
        return dict(self.services)


@pytest.fixture()
def sample_config() -> AtcConfig:
    """Return a parsed AtcConfig from sample data."""
    return AtcConfig(**SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp .atc.yaml and return the path."""
    path = tmp_path / ".atc.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def secrets_file(tmp_path: Path) -> Path:
    path = tmp_path / "config" / "secrets.yaml"
    path.parent.mkdir(parents=True)
    with path.open("w") as fh:
        yaml.dump(SAMPLE_SECRETS, fh)
    return path


@pytest.fixture()
def fake_topology() -> FakeTopology:
    topology = FakeTopology()
    topology.set_service_status("pds", ProcessState(running=True, state="running", ports=["3000:3000"]))
    topology.set_service_status("plc", ProcessState(running=True, state="running", ports=["2582:2582"]))
    topology.set_service_status("bgs", ProcessState(running=False, state="exited", ports=[]))
    return topology


@pytest.fixture()
def make_topology():
    """Factory for FakeTopology instances with arbitrary contents."""
    return FakeTopology
