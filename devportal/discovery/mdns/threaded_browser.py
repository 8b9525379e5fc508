"""Secondary mDNS backend using the classic threaded `zeroconf` API."""

import asyncio
import logging
import threading
import time
from typing import Callable, Dict, List

from zeroconf import ServiceBrowser, ServiceListener, Zeroconf

from devportal.discovery.mdns.advertisement_browser import (
    AdvertisedService,
    AdvertisementBrowser,
    to_advertised_service,
)


class _CollectingListener(ServiceListener):
    """Resolves services synchronously on the browser thread."""

    def __init__(self, service_type: str, resolve_timeout_ms: int) -> None:
        self.__service_type = service_type
        self.__resolve_timeout_ms = resolve_timeout_ms
        self.__lock = threading.Lock()
        self.__services: Dict[str, AdvertisedService] = {}

    def snapshot(self) -> List[AdvertisedService]:
        with self.__lock:
            return list(self.__services.values())

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        if type_ != self.__service_type:
            return
        info = zc.get_service_info(
            type_, name, timeout=self.__resolve_timeout_ms
        )
        if info is None:
            logging.error(
                "Failed to get info for added service '%s' type '%s'.",
                name,
                type_,
            )
            return
        service = to_advertised_service(info, self.__service_type)
        if service is None:
            return
        with self.__lock:
            self.__services[name] = service

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.add_service(zc, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        with self.__lock:
            self.__services.pop(name, None)


class ThreadedZeroconfBrowser(AdvertisementBrowser):
    """Browses mDNS with a blocking `zeroconf.ServiceBrowser`.

    The blocking browse runs on a worker thread so the event loop is never
    stalled for the length of the window.
    """

    def __init__(
        self, zeroconf_factory: Callable[[], Zeroconf] = Zeroconf
    ) -> None:
        self.__zeroconf_factory = zeroconf_factory

    async def browse(
        self, service_type: str, window_s: float
    ) -> List[AdvertisedService]:
        return await asyncio.to_thread(
            self.__browse_blocking, service_type, window_s
        )

    def __browse_blocking(
        self, service_type: str, window_s: float
    ) -> List[AdvertisedService]:
        zc = self.__zeroconf_factory()
        listener = _CollectingListener(
            service_type, max(int(window_s * 1000), 1)
        )
        try:
            browser = ServiceBrowser(zc, service_type, listener=listener)
            try:
                time.sleep(window_s)
            finally:
                browser.cancel()
        finally:
            zc.close()

        services = listener.snapshot()
        logging.info(
            "Threaded zeroconf browse of %s found %d service(s).",
            service_type,
            len(services),
        )
        return services
