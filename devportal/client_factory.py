"""Builds an RpcClient bound to a dev server found on the network."""

import logging
from typing import Optional

from devportal.config.client_config import ClientConfig
from devportal.discovery.discovery_config import DiscoveryConfig
from devportal.discovery.discovery_engine import DiscoveryEngine
from devportal.rpc.errors import DeviceNotFoundError
from devportal.rpc.rpc_client import RpcClient


async def create_client(
    timeout_ms: Optional[int] = None,
    skip_advertisement: bool = False,
    *,
    client_config: Optional[ClientConfig] = None,
    engine: Optional[DiscoveryEngine] = None,
) -> RpcClient:
    """Discovers a dev server and returns a client bound to it.

    Args:
        timeout_ms: Discovery timeout, see `DiscoveryConfig.timeout_ms`.
        skip_advertisement: Whether to skip the mDNS phase.
        client_config: Timeouts for the returned client.
        engine: Discovery engine to use. Defaults to a new `DiscoveryEngine`.

    Returns:
        An `RpcClient` bound to the first discovered candidate.

    Raises:
        DeviceNotFoundError: If discovery found no running dev server.
    """
    if engine is None:
        engine = DiscoveryEngine()

    candidates = await engine.discover(
        DiscoveryConfig(
            timeout_ms=timeout_ms, skip_advertisement=skip_advertisement
        )
    )
    if not candidates:
        raise DeviceNotFoundError("No dev servers found on the network.")

    chosen = candidates[0]
    logging.info(
        "Using dev server at %s (%d candidate(s) found).",
        chosen.address,
        len(candidates),
    )
    return RpcClient(
        chosen.host, chosen.service_port, config=client_config
    )
