"""Process group lifecycle and live topology."""

from __future__ import annotations

from atc_fleet.fleet.controller import ComposeController
from atc_fleet.fleet.topology import ProcessState, TopologySource, parse_ps_output

__all__ = ["ComposeController", "ProcessState", "TopologySource", "parse_ps_output"]
