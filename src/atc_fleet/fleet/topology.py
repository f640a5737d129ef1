"""Live process state as reported by ``compose ps --format json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


@dataclass
class ProcessState:
    """State of one compose service at query time."""

    running: bool
    state: str
    ports: list[str] = field(default_factory=list)


class TopologySource(Protocol):
    """Anything that can report live process state keyed by service name."""

    async def query_topology(self) -> dict[str, ProcessState]: ...


class ComposeRecord(BaseModel):
    """One entry of the compose listing.

    Compose v2 emits ``Service``/``State``/``Publishers``; older tools emit
    lower-case ``name``/``state``/``ports``. Both shapes are accepted.
    """

    name: str = Field(validation_alias=AliasChoices("Service", "service", "Name", "name"))
    state: str = Field(validation_alias=AliasChoices("State", "state"))
    ports: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_ports(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        publishers = data.pop("Publishers", None)
        raw_ports = data.pop("Ports", None)
        if "ports" in data:
            return data
        if publishers:
            data["ports"] = [
                f"{p['PublishedPort']}:{p.get('TargetPort', '')}"
                for p in publishers
                if isinstance(p, dict) and p.get("PublishedPort")
            ]
        elif isinstance(raw_ports, str) and raw_ports:
            data["ports"] = [p.strip() for p in raw_ports.split(",") if p.strip()]
        return data

    def to_process_state(self) -> ProcessState:
        return ProcessState(running=self.state == "running", state=self.state, ports=list(self.ports))


@dataclass
class ParsedListing:
    services: dict[str, ProcessState]
    dropped: int = 0


def _records_from_line(line: str) -> list[Any]:
    decoded = json.loads(line)
    # Some compose releases print the whole listing as one JSON array.
    if isinstance(decoded, list):
        return decoded
    return [decoded]


def parse_ps_output(output: str) -> ParsedListing:
    """Parse compose listing output one line at a time.

    A line that is not valid JSON, or a record missing its name or state, is
    dropped and counted; it never fails the whole listing.
    """
    listing = ParsedListing(services={})
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            raw_records = _records_from_line(line)
        except json.JSONDecodeError:
            logger.debug("Dropping unparseable listing line: %r", line)
            listing.dropped += 1
            continue
        for raw in raw_records:
            try:
                record = ComposeRecord.model_validate(raw)
            except ValidationError:
                logger.debug("Dropping malformed listing record: %r", raw)
                listing.dropped += 1
                continue
            listing.services[record.name] = record.to_process_state()
    return listing
