"""Initializes the devportal.rpc package and exposes its key components."""

from devportal.rpc.errors import (
    DeviceNotFoundError,
    DevPortalError,
    HttpStatusError,
    RemoteCallError,
    RequestTimeoutError,
    TransportError,
    is_connection_hangup_error,
)
from devportal.rpc.http_transport import HttpTransport
from devportal.rpc.plugin_proxy import PluginProxy
from devportal.rpc.rpc_client import RpcClient
from devportal.rpc.rpc_outcome import RpcOutcome
from devportal.rpc.rpc_target import RpcTarget

__all__ = [
    "DevPortalError",
    "DeviceNotFoundError",
    "HttpStatusError",
    "HttpTransport",
    "PluginProxy",
    "RemoteCallError",
    "RequestTimeoutError",
    "RpcClient",
    "RpcOutcome",
    "RpcTarget",
    "TransportError",
    "is_connection_hangup_error",
]
