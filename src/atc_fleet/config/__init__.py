"""atc configuration system."""

from atc_fleet.config.loader import find_config_file, load_config
from atc_fleet.config.models import AtcConfig, ComposeConfig, NetworkConfig, ProbeConfig
from atc_fleet.config.secrets import Secrets, load_secret_env

__all__ = [
    "AtcConfig",
    "ComposeConfig",
    "NetworkConfig",
    "ProbeConfig",
    "Secrets",
    "load_config",
    "load_secret_env",
    "find_config_file",
]
