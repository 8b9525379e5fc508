"""AdvertisementBrowser ABC and the AdvertisedService record it produces."""

import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from zeroconf import ServiceInfo

# mDNS service type advertised by the plugin-host app's sync service.
SYNC_SERVICE_TYPE = "_gsync._tcp.local."


@dataclasses.dataclass
class AdvertisedService:
    """One mDNS answer for the sync service, before any verification.

    Attributes:
        name: Human-readable instance name.
        port: Advertised (sync service) port.
        addresses: Advertised addresses as strings, IPv4 and IPv6 mixed.
        server: Default address of the advertisement (its host name).
    """

    name: str
    port: int
    addresses: List[str]
    server: Optional[str] = None


class AdvertisementBrowser(ABC):
    """ABC for mDNS backends able to collect service advertisements.

    A backend that cannot operate on this machine (no multicast-capable
    interface, socket errors, ...) raises from `browse`; callers treat that
    as "backend unavailable" and may try another one.
    """

    @abstractmethod
    async def browse(
        self, service_type: str, window_s: float
    ) -> List[AdvertisedService]:
        """Collects advertisements of `service_type` for `window_s` seconds.

        Args:
            service_type: Fully qualified type, e.g. "_gsync._tcp.local.".
            window_s: How long to listen before returning.

        Returns:
            Every service resolved during the window, in resolution order.
        """
        raise NotImplementedError(
            "AdvertisementBrowser.browse must be implemented by subclasses."
        )


def to_advertised_service(
    info: ServiceInfo, service_type: str
) -> Optional[AdvertisedService]:
    """Converts resolved zeroconf `ServiceInfo` into an `AdvertisedService`.

    The readable name is taken from the TXT 'name' key when present, else
    from the mDNS instance name with the service type suffix removed.

    Returns:
        The converted record, or `None` if the info carries no port.
    """
    if info.port is None:
        logging.warning("No port for advertised service '%s'.", info.name)
        return None

    readable_name = info.name
    suffix = f".{service_type}"
    if readable_name.endswith(suffix):
        readable_name = readable_name[: -len(suffix)]

    txt_value = (info.properties or {}).get(b"name")
    if txt_value is not None:
        try:
            readable_name = txt_value.decode("utf-8")
        except UnicodeDecodeError:
            logging.warning(
                "Failed to decode TXT 'name' for '%s'. Using record name.",
                info.name,
            )

    return AdvertisedService(
        name=readable_name,
        port=info.port,
        addresses=list(info.parsed_addresses()),
        server=info.server,
    )
