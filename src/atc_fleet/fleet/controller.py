"""Lifecycle control of the compose-managed process group."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from atc_fleet.config.secrets import load_secret_env
from atc_fleet.errors import OrchestrationError
from atc_fleet.fleet.topology import ProcessState, parse_ps_output

if TYPE_CHECKING:
    from atc_fleet.config.models import AtcConfig

logger = logging.getLogger(__name__)


async def _reap(proc: asyncio.subprocess.Process) -> None:
    """Kill *proc* if it is still running and wait for it to exit."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


class ComposeController:
    """Starts, stops and lists the services declared in one compose file.

    Every method shells out to the compose tool; none of them retry. A
    non-zero exit, a missing binary or an expired ``timeout`` raises
    :class:`OrchestrationError` with the tool's diagnostic text.
    """

    def __init__(
        self,
        compose_file: str | Path = "docker-compose.yml",
        env_vars: Mapping[str, str] | None = None,
        *,
        command: Iterable[str] = ("docker", "compose"),
        runtime: str = "docker",
        secrets_file: str | Path = "config/secrets.yaml",
        timeout: float | None = None,
    ) -> None:
        self.compose_file = Path(compose_file)
        self.env_vars: dict[str, str] = dict(env_vars or {})
        self.command = list(command)
        self.runtime = runtime
        self.secrets_file = Path(secrets_file)
        self.timeout = timeout
        self.dropped_records = 0

    @classmethod
    def from_config(cls, config: AtcConfig) -> ComposeController:
        return cls(
            config.compose.file,
            config.runtime_env(),
            command=config.compose.command,
            runtime=config.compose.runtime,
            secrets_file=config.compose.secrets_file,
            timeout=config.compose.timeout,
        )

    def _base_args(self) -> list[str]:
        return [*self.command, "-f", str(self.compose_file)]

    def _require_compose_file(self) -> None:
        if not self.compose_file.exists():
            raise OrchestrationError(
                f"Compose file not found: {self.compose_file}"
            )

    def _start_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self.env_vars)
        try:
            env.update(load_secret_env(self.secrets_file))
        except (OSError, ValueError) as exc:
            raise OrchestrationError(f"Could not load secrets: {exc}") from exc
        return env

    async def _run(
        self,
        args: list[str],
        env: Mapping[str, str] | None = None,
        capture_stdout: bool = True,
    ) -> CommandResult:
        """Run *args* to completion, killing the child if ``timeout`` expires."""
        logger.debug("Running command: %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE if capture_stdout else None,
                stderr=asyncio.subprocess.PIPE,
                env=dict(env) if env is not None else None,
            )
        except FileNotFoundError as exc:
            raise OrchestrationError(f"{args[0]} is not installed or not on PATH") from exc
        except OSError as exc:
            raise OrchestrationError(f"Failed to run {args[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError:
            await _reap(proc)
            raise OrchestrationError(
                f"{' '.join(args)} did not finish within {self.timeout}s and was killed"
            )
        except asyncio.CancelledError:
            logger.warning("Interrupted, killing %s", args[0])
            await _reap(proc)
            raise
        return CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )

    def _raise_for_status(self, result: CommandResult, action: str) -> None:
        if result.returncode != 0:
            diagnostic = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            raise OrchestrationError(
                f"Failed to {action}: {diagnostic}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

    async def check_dependencies(self) -> None:
        """Verify the container runtime and the compose tool both answer a version query."""
        checks = [
            ([self.runtime, "--version"], f"{self.runtime} is not installed"),
            ([*self.command, "version"], f"{' '.join(self.command)} is not installed"),
        ]
        for args, missing in checks:
            try:
                result = await self._run(args)
            except OrchestrationError as exc:
                raise OrchestrationError(f"{missing}: {exc.message}") from exc
            if result.returncode != 0:
                raise OrchestrationError(
                    f"{missing}: {result.stderr.strip() or f'exit code {result.returncode}'}",
                    returncode=result.returncode,
                    stderr=result.stderr,
                )
            logger.debug("%s: %s", " ".join(args), result.stdout.strip())

    async def start(self, services: Iterable[str] | None = None) -> None:
        """Bring up the whole group, or only *services* when given."""
        self._require_compose_file()
        env = self._start_env()
        names = [str(getattr(s, "value", s)) for s in services] if services is not None else []
        logger.info("Starting services: %s", ", ".join(names) or "all")
        args = [*self._base_args(), "up", "-d", *names]
        result = await self._run(args, env=env, capture_stdout=False)
        self._raise_for_status(result, "start services")

    async def stop(self, purge: bool = False) -> None:
        """Stop the group. ``purge`` also deletes named volumes and cannot be undone."""
        self._require_compose_file()
        args = [*self._base_args(), "down"]
        if purge:
            logger.warning("Stopping services and removing volumes in %s", self.compose_file)
            args.append("-v")
        else:
            logger.info("Stopping services in %s", self.compose_file)
        result = await self._run(args, capture_stdout=False)
        self._raise_for_status(result, "stop services")

    async def query_topology(self) -> dict[str, ProcessState]:
        """Return live state for every listed service, skipping malformed records."""
        result = await self._run([*self._base_args(), "ps", "--all", "--format", "json"])
        self._raise_for_status(result, "get service status")
        listing = parse_ps_output(result.stdout)
        if listing.dropped:
            self.dropped_records += listing.dropped
            logger.warning(
                "Dropped %d malformed record(s) from the compose listing", listing.dropped
            )
        return listing.services
