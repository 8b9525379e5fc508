"""Turns mDNS advertisements into unverified DeviceCandidates."""

import ipaddress
import logging
from typing import List, Optional, Sequence

from devportal.discovery.device_candidate import (
    DEV_SERVER_PORT,
    DeviceCandidate,
)
from devportal.discovery.mdns.advertisement_browser import (
    SYNC_SERVICE_TYPE,
    AdvertisedService,
    AdvertisementBrowser,
)
from devportal.discovery.mdns.record_listener import AsyncZeroconfBrowser
from devportal.discovery.mdns.threaded_browser import ThreadedZeroconfBrowser


def preferred_address(service: AdvertisedService) -> Optional[str]:
    """Picks the address to contact for an advertised service.

    The first IPv4 address of the advertisement wins. Without one, the
    advertisement's default address (its server host name) is used.

    Returns:
        The address string, or `None` if the advertisement has no usable one.
    """
    for address in service.addresses:
        if not address:
            continue
        try:
            ipaddress.IPv4Address(address)
        except ValueError:
            continue
        return address

    if service.server:
        fallback = service.server.rstrip(".")
        if fallback:
            return fallback
    return None


class AdvertisementLookup:
    """Queries mDNS backends in order until one of them can operate.

    A backend that raises is considered unavailable and the next one is
    tried. The first backend that completes a browse supplies the result,
    even when it found nothing. When every backend is unavailable the lookup
    yields no candidates.
    """

    def __init__(
        self,
        *,
        service_type: str = SYNC_SERVICE_TYPE,
        browsers: Optional[Sequence[AdvertisementBrowser]] = None,
        service_port: int = DEV_SERVER_PORT,
    ) -> None:
        """Initializes the AdvertisementLookup.

        Args:
            service_type: mDNS service type to browse.
            browsers: Backends to try, in order. Defaults to the asyncio
                zeroconf backend followed by the threaded one.
            service_port: Dev server port assigned to every candidate; the
                advertised port belongs to the sync service.
        """
        self.__service_type = service_type
        self.__service_port = service_port
        self.__browsers: List[AdvertisementBrowser]
        if browsers is None:
            self.__browsers = [
                AsyncZeroconfBrowser(),
                ThreadedZeroconfBrowser(),
            ]
        else:
            self.__browsers = list(browsers)

    async def lookup(self, window_ms: int) -> List[DeviceCandidate]:
        """Browses for `window_ms` and returns unverified candidates."""
        for browser in self.__browsers:
            try:
                services = await browser.browse(
                    self.__service_type, window_ms / 1000.0
                )
            except Exception as e:
                logging.warning(
                    "mDNS backend %s unavailable: %s",
                    type(browser).__name__,
                    e,
                    exc_info=True,
                )
                continue
            return self.__to_candidates(services)

        logging.info("No mDNS backend available; skipping advertisement.")
        return []

    def __to_candidates(
        self, services: Sequence[AdvertisedService]
    ) -> List[DeviceCandidate]:
        candidates: List[DeviceCandidate] = []
        for service in services:
            host = preferred_address(service)
            if host is None:
                logging.debug(
                    "Dropping advertisement '%s' without usable address.",
                    service.name,
                )
                continue
            candidates.append(
                DeviceCandidate(
                    host=host,
                    service_port=self.__service_port,
                    available=False,
                    name=service.name,
                    sync_port=service.port,
                )
            )
        return candidates
