"""Read-only access to the generated secrets file."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class Secrets(BaseModel):
    """Generated stack secrets; only the keys the stack consumes."""

    model_config = ConfigDict(extra="ignore")

    pds_jwt_secret: str
    pds_admin_password: str
    pds_plc_rotation_key: str

    def as_env_vars(self) -> dict[str, str]:
        return {
            "PDS_JWT_SECRET": self.pds_jwt_secret,
            "PDS_ADMIN_PASSWORD": self.pds_admin_password,
            "PDS_PLC_ROTATION_KEY_K256": self.pds_plc_rotation_key,
        }


def load_secrets(path: Path) -> Secrets:
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    try:
        return Secrets(**raw)
    except (ValidationError, TypeError) as exc:
        raise ValueError(f"Invalid secrets file {path}: {exc}") from exc


def load_secret_env(path: Path) -> dict[str, str]:
    """Return secrets as environment variables, or an empty mapping if *path* is absent.

    A present but malformed file raises ValueError.
    """
    if not path.exists():
        logger.debug("No secrets file at %s, continuing without secrets", path)
        return {}
    try:
        secrets = load_secrets(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Could not parse secrets file {path}: {exc}") from exc
    return secrets.as_env_vars()
