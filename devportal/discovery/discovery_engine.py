"""Finds running dev servers via mDNS, priority hosts, then a subnet sweep."""

import asyncio
import dataclasses
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from devportal.discovery.device_candidate import (
    DEV_SERVER_PORT,
    DeviceCandidate,
)
from devportal.discovery.discovery_config import DiscoveryConfig
from devportal.discovery.host_probe import HostProbe
from devportal.discovery.mdns.advertisement_lookup import AdvertisementLookup
from devportal.util.ip import get_local_ipv4_addresses, subnet_hosts

# Loopback names plus the address commonly used by dev servers on the lab LAN.
DEFAULT_PRIORITY_HOSTS = ("localhost", "127.0.0.1", "100.100.1.57")

# Upper bound on probes in flight during a subnet sweep.
SWEEP_CHUNK_SIZE = 25

LocalAddressProvider = Callable[[], List[str]]


class DiscoveryEngine:
    """Locates dev servers on the local network.

    Each `discover()` call walks up to three phases and stops at the first
    one that confirms a running server:

    1. mDNS advertisement, with every advertised host re-verified by probe.
    2. Priority hosts (loopback, the well-known default, own interfaces),
       all probed concurrently.
    3. A sweep of the /24 around the first local interface address, in
       batches of `SWEEP_CHUNK_SIZE`.

Without a local non-loopback IPv4 address the machine is not on a network
the dev server could be reached through, so phases 2 and 3 are skipped.

    No state survives between calls, and `discover()` never raises: not
    finding a device is reported as an empty list.
    """

    def __init__(
        self,
        *,
        probe: Optional[HostProbe] = None,
        advertisement_lookup: Optional[AdvertisementLookup] = None,
        local_addresses: LocalAddressProvider = get_local_ipv4_addresses,
        priority_hosts: Sequence[str] = DEFAULT_PRIORITY_HOSTS,
        port: int = DEV_SERVER_PORT,
        chunk_size: int = SWEEP_CHUNK_SIZE,
    ) -> None:
        """Initializes the DiscoveryEngine.

        Args:
            probe: Probe used for verification, priority and sweep phases.
            advertisement_lookup: mDNS lookup for the advertisement phase.
            local_addresses: Returns this machine's non-loopback IPv4
                addresses. Replaceable so discovery can run without real
                network interfaces.
            priority_hosts: Fixed hosts probed before the local interfaces.
            port: Dev server port probed on every host.
            chunk_size: Sweep batch size.

        Raises:
            ValueError: If `chunk_size` is not positive.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}.")

        self.__probe = probe if probe is not None else HostProbe()
        self.__advertisement_lookup = (
            advertisement_lookup
            if advertisement_lookup is not None
            else AdvertisementLookup(service_port=port)
        )
        self.__local_addresses = local_addresses
        self.__priority_hosts = tuple(priority_hosts)
        self.__port = port
        self.__chunk_size = chunk_size

    async def discover(
        self, config: Optional[DiscoveryConfig] = None
    ) -> List[DeviceCandidate]:
        """Runs discovery.

        Args:
            config: Discovery parameters; defaults to `DiscoveryConfig()`.

        Returns:
            Available candidates, in the order their phase produced them.
        """
        if config is None:
            config = DiscoveryConfig()

        if config.use_advertisement:
            verified = await self.__advertisement_phase(config)
            if verified:
                return verified

        local_ips = self.__safe_local_addresses()
        if not local_ips:
            logging.info("No local IPv4 address; skipping active probing.")
            return []

        found = await self.__priority_phase(local_ips, config.probe_timeout_ms)
        if found:
            return found

        return await self.__sweep_phase(local_ips[0], config.probe_timeout_ms)

    async def __advertisement_phase(
        self, config: DiscoveryConfig
    ) -> List[DeviceCandidate]:
        advertised = await self.__advertisement_lookup.lookup(
            config.advertisement_window_ms
        )
        logging.info("mDNS advertised %d candidate(s).", len(advertised))
        if not advertised:
            return []

        results = await asyncio.gather(
            *(
                self.__probe.probe(
                    candidate.host,
                    candidate.service_port,
                    config.verify_timeout_ms,
                )
                for candidate in advertised
            )
        )

        verified: List[DeviceCandidate] = []
        for candidate, result in zip(advertised, results):
            if not result.available:
                logging.info(
                    "Advertised host %s did not answer the probe.",
                    candidate.address,
                )
                continue
            verified.append(
                dataclasses.replace(
                    result, name=candidate.name, sync_port=candidate.sync_port
                )
            )
        return verified

    async def __priority_phase(
        self, local_ips: List[str], timeout_ms: int
    ) -> List[DeviceCandidate]:
        hosts = _unique([*self.__priority_hosts, *local_ips])
        logging.info("Probing %d priority host(s).", len(hosts))
        found = await self.__probe_all(hosts, timeout_ms)
        logging.info("Priority phase found %d host(s).", len(found))
        return found

    async def __sweep_phase(
        self, local_ip: str, timeout_ms: int
    ) -> List[DeviceCandidate]:
        try:
            hosts = subnet_hosts(local_ip)
        except ValueError as e:
            logging.warning("Cannot derive subnet from %s: %s", local_ip, e)
            return []

        logging.info(
            "Sweeping %d hosts around %s in chunks of %d.",
            len(hosts),
            local_ip,
            self.__chunk_size,
        )
        found: List[DeviceCandidate] = []
        for start in range(0, len(hosts), self.__chunk_size):
            chunk = hosts[start : start + self.__chunk_size]
            found.extend(await self.__probe_all(chunk, timeout_ms))
        logging.info("Subnet sweep found %d host(s).", len(found))
        return found

    async def __probe_all(
        self, hosts: Sequence[str], timeout_ms: int
    ) -> List[DeviceCandidate]:
        results = await asyncio.gather(
            *(self.__probe.probe(host, self.__port, timeout_ms) for host in hosts)
        )
        return [result for result in results if result.available]

    def __safe_local_addresses(self) -> List[str]:
        try:
            return list(self.__local_addresses())
        except (OSError, RuntimeError) as e:
            logging.warning("Failed to enumerate local interfaces: %s", e)
            return []


def _unique(hosts: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for host in hosts:
        if host not in seen:
            seen.add(host)
            out.append(host)
    return out
