"""Pydantic models for atc configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NetworkConfig(BaseModel):
    """Public domain and bind settings for the stack."""

    domain: str = "localhost"
    bind_address: str = "0.0.0.0"
    use_tls: bool = True

    @property
    def http_scheme(self) -> str:
        return "https" if self.use_tls else "http"

    @property
    def ws_scheme(self) -> str:
        return "wss" if self.use_tls else "ws"


class ComposeConfig(BaseModel):
    """How the process group is driven through the compose tool."""

    file: str = "docker-compose.yml"
    command: list[str] = Field(default_factory=lambda: ["docker", "compose"])
    runtime: str = "docker"
    secrets_file: str = "config/secrets.yaml"
    timeout: float | None = None  # None = wait for the tool indefinitely
    environment: dict[str, str] = Field(default_factory=dict)


class ProbeConfig(BaseModel):
    """Timeouts and TLS policy for health and readiness probes."""

    health_timeout: float = 5.0
    dns_timeout: float = 2.0
    readiness_timeout: float = 5.0
    verify_tls: bool = False  # self-signed deployments are the common case


class AtcConfig(BaseModel):
    """Root configuration model for .atc.yaml."""

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)
    probes: ProbeConfig = Field(default_factory=ProbeConfig)

    def runtime_env(self) -> dict[str, str]:
        """Environment variables injected into the compose tool on start."""
        env = {
            "DOMAIN": self.network.domain,
            "BIND_ADDRESS": self.network.bind_address,
            "USE_TLS": "true" if self.network.use_tls else "false",
        }
        env.update(self.compose.environment)
        return env
