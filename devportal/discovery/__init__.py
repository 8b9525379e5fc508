"""Initializes the devportal.discovery package and exposes its key components.

This package finds running dev servers on the local network, through mDNS
advertisements and, failing that, by actively probing likely hosts.
"""

from devportal.discovery.device_candidate import (
    DEV_SERVER_PORT,
    HEALTH_PATH,
    DeviceCandidate,
)
from devportal.discovery.discovery_config import DiscoveryConfig
from devportal.discovery.discovery_engine import (
    DEFAULT_PRIORITY_HOSTS,
    SWEEP_CHUNK_SIZE,
    DiscoveryEngine,
)
from devportal.discovery.host_probe import HostProbe

__all__ = [
    "DEFAULT_PRIORITY_HOSTS",
    "DEV_SERVER_PORT",
    "HEALTH_PATH",
    "SWEEP_CHUNK_SIZE",
    "DeviceCandidate",
    "DiscoveryConfig",
    "DiscoveryEngine",
    "HostProbe",
]
