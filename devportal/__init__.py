"""Devportal package for locating and driving plugin-host dev servers.

The `discovery` subpackage finds dev servers on the local network; the `rpc`
subpackage talks to one of them. `create_client` combines the two.
"""

from devportal.client_factory import create_client
from devportal.config.client_config import ClientConfig
from devportal.discovery import (
    DEV_SERVER_PORT,
    DeviceCandidate,
    DiscoveryConfig,
    DiscoveryEngine,
    HostProbe,
)
from devportal.rpc import (
    DeviceNotFoundError,
    DevPortalError,
    HttpStatusError,
    RemoteCallError,
    RequestTimeoutError,
    RpcClient,
    RpcOutcome,
    TransportError,
)

__all__ = [
    "DEV_SERVER_PORT",
    "ClientConfig",
    "DevPortalError",
    "DeviceCandidate",
    "DeviceNotFoundError",
    "DiscoveryConfig",
    "DiscoveryEngine",
    "HostProbe",
    "HttpStatusError",
    "RemoteCallError",
    "RequestTimeoutError",
    "RpcClient",
    "RpcOutcome",
    "TransportError",
    "create_client",
]
