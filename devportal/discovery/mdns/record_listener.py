"""Primary mDNS backend built on the asyncio API of `zeroconf`."""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from zeroconf import ServiceListener, Zeroconf
from zeroconf.asyncio import (
    AsyncServiceBrowser,
    AsyncZeroconf,
)

from devportal.discovery.mdns.advertisement_browser import (
    AdvertisedService,
    AdvertisementBrowser,
    to_advertised_service,
)


class RecordListener(ServiceListener):
    """Collects resolved records of one service type during a browse window.

    Implements `zeroconf.ServiceListener`. `zeroconf` invokes the listener
    methods on the event loop thread; each addition or update schedules an
    async resolution of the full service info.
    """

    def __init__(self, mdns: AsyncZeroconf, service_type: str) -> None:
        """Initializes the RecordListener.

        Args:
            mdns: Zeroconf instance used to resolve service info.
            service_type: Fully qualified type to accept, e.g.
                "_gsync._tcp.local.". Records of other types are ignored.
        """
        self.__mdns = mdns
        self.__expected_type = service_type
        self.__resolve_timeout_ms = 3000
        self.__services: Dict[str, AdvertisedService] = {}
        self.__pending: Set[asyncio.Task[None]] = set()

    @property
    def services(self) -> List[AdvertisedService]:
        return list(self.__services.values())

    def set_resolve_timeout(self, timeout_ms: int) -> None:
        self.__resolve_timeout_ms = timeout_ms

    # --- ServiceListener interface methods ---

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a new service is discovered."""
        logging.debug("add_service called: type='%s', name='%s'.", type_, name)
        self.__schedule_resolve(type_, name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a service's info (e.g., TXT) is updated."""
        logging.debug(
            "update_service called: type='%s', name='%s'.", type_, name
        )
        self.__schedule_resolve(type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a service is removed from the network."""
        logging.debug(
            "remove_service called: type='%s', name='%s'.", type_, name
        )
        self.__services.pop(name, None)

    def __schedule_resolve(self, type_: str, name: str) -> None:
        task = asyncio.create_task(self._handle_add_service(type_, name))
        self.__pending.add(task)
        task.add_done_callback(self.__pending.discard)

    async def _handle_add_service(self, type_: str, name: str) -> None:
        """Async handler for service additions and updates."""
        if type_ != self.__expected_type:
            logging.debug(
                "Ignoring added service '%s', type '%s'. Expected '%s'.",
                name,
                type_,
                self.__expected_type,
            )
            return

        info = await self.__mdns.async_get_service_info(
            type_, name, timeout=self.__resolve_timeout_ms
        )
        if info is None:
            logging.error(
                "Failed to get info for added service '%s' type '%s'.",
                name,
                type_,
            )
            return

        service = to_advertised_service(info, self.__expected_type)
        if service is None:
            return
        if not service.addresses:
            logging.warning(
                "No addresses for added service '%s' type '%s'.", name, type_
            )
        self.__services[name] = service

    async def close(self) -> None:
        # Resolutions still in flight when the window ends are abandoned.
        for task in list(self.__pending):
            task.cancel()
        if self.__pending:
            await asyncio.gather(*self.__pending, return_exceptions=True)
        self.__pending.clear()


class AsyncZeroconfBrowser(AdvertisementBrowser):
    """Browses mDNS with `AsyncZeroconf` and `AsyncServiceBrowser`."""

    def __init__(self, zc_instance: Optional[AsyncZeroconf] = None) -> None:
        """Initializes the AsyncZeroconfBrowser.

        Args:
            zc_instance: Optional shared `AsyncZeroconf`. When omitted, one is
                created for each browse and closed afterwards.
        """
        self.__shared_mdns = zc_instance

    async def browse(
        self, service_type: str, window_s: float
    ) -> List[AdvertisedService]:
        mdns = self.__shared_mdns
        if mdns is None:
            mdns = AsyncZeroconf()
            logging.info(
                "Created new AsyncZeroconf for browsing type: %s",
                service_type,
            )

        listener = RecordListener(mdns, service_type)
        listener.set_resolve_timeout(max(int(window_s * 1000), 1))
        browser: Optional[AsyncServiceBrowser] = None
        try:
            browser = AsyncServiceBrowser(
                mdns.zeroconf, [service_type], listener=listener
            )
            await asyncio.sleep(window_s)
        finally:
            if browser is not None:
                await browser.async_cancel()
            await listener.close()
            if self.__shared_mdns is None:
                try:
                    await mdns.async_close()
                except Exception as e:
                    logging.error(
                        "Error during owned AsyncZeroconf.async_close() for %s: %s",
                        service_type,
                        e,
                        exc_info=True,
                    )

        services = listener.services
        logging.info(
            "AsyncZeroconf browse of %s found %d service(s).",
            service_type,
            len(services),
        )
        return services
