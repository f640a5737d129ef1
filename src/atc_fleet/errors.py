"""Exception types raised by fleet operations."""

from __future__ import annotations


class AtcError(Exception):
    """Base class for errors surfaced to the operator."""


class OrchestrationError(AtcError):
    """The container tool is missing, could not run, or exited non-zero.

    ``message`` keeps the tool's own diagnostic text so callers can show it
    verbatim.
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
