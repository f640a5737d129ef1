"""Operator tooling for a self-hosted Bluesky service fleet."""

__version__ = "0.1.0"
