from typing import List

import pytest

from devportal.discovery.mdns.advertisement_browser import (
    SYNC_SERVICE_TYPE,
    AdvertisedService,
    AdvertisementBrowser,
)
from devportal.discovery.mdns.advertisement_lookup import (
    AdvertisementLookup,
    preferred_address,
)


class FakeBrowser(AdvertisementBrowser):
    __test__ = False

    def __init__(self, services=None, error=None):
        self.services = services or []
        self.error = error
        self.calls = []

    async def browse(
        self, service_type: str, window_s: float
    ) -> List[AdvertisedService]:
        self.calls.append((service_type, window_s))
        if self.error is not None:
            raise self.error
        return list(self.services)


# --- preferred_address ---


def test_preferred_address_picks_first_ipv4():
    service = AdvertisedService(
        "dev", 1, ["fe80::1", "192.168.1.4", "10.0.0.1"], "dev.local."
    )
    assert preferred_address(service) == "192.168.1.4"


def test_preferred_address_falls_back_to_server():
    service = AdvertisedService("dev", 1, ["fe80::1"], "dev.local.")
    assert preferred_address(service) == "dev.local"


def test_preferred_address_none_when_unusable():
    assert preferred_address(AdvertisedService("dev", 1, [], None)) is None
    assert preferred_address(AdvertisedService("dev", 1, [""], ".")) is None


# --- AdvertisementLookup ---


@pytest.mark.asyncio
async def test_lookup_uses_primary_when_available():
    primary = FakeBrowser(
        [AdvertisedService("Phone", 12315, ["192.168.1.20"], "phone.local.")]
    )
    secondary = FakeBrowser()
    lookup = AdvertisementLookup(browsers=[primary, secondary])

    candidates = await lookup.lookup(1500)

    assert primary.calls == [(SYNC_SERVICE_TYPE, 1.5)]
    assert secondary.calls == []
    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.host == "192.168.1.20"
    assert candidate.service_port == 11337
    assert candidate.sync_port == 12315
    assert candidate.name == "Phone"
    assert candidate.available is False


@pytest.mark.asyncio
async def test_lookup_falls_back_to_secondary():
    primary = FakeBrowser(error=OSError("no multicast"))
    secondary = FakeBrowser(
        [AdvertisedService("Tablet", 12315, [], "tablet.local.")]
    )
    lookup = AdvertisementLookup(browsers=[primary, secondary])

    candidates = await lookup.lookup(100)

    assert len(secondary.calls) == 1
    assert [c.host for c in candidates] == ["tablet.local"]


@pytest.mark.asyncio
async def test_lookup_empty_primary_result_does_not_fall_back():
    primary = FakeBrowser([])
    secondary = FakeBrowser(
        [AdvertisedService("Tablet", 12315, ["10.0.0.2"], None)]
    )
    lookup = AdvertisementLookup(browsers=[primary, secondary])

    assert await lookup.lookup(100) == []
    assert secondary.calls == []


@pytest.mark.asyncio
async def test_lookup_all_backends_unavailable_yields_empty():
    lookup = AdvertisementLookup(
        browsers=[
            FakeBrowser(error=OSError("no socket")),
            FakeBrowser(error=RuntimeError("not running")),
        ]
    )

    assert await lookup.lookup(100) == []


@pytest.mark.asyncio
async def test_lookup_drops_entries_without_address():
    lookup = AdvertisementLookup(
        browsers=[
            FakeBrowser(
                [
                    AdvertisedService("NoAddr", 1, ["fe80::9"], None),
                    AdvertisedService("Good", 2, ["10.9.8.7"], None),
                ]
            )
        ]
    )

    candidates = await lookup.lookup(100)

    assert [c.name for c in candidates] == ["Good"]


@pytest.mark.asyncio
async def test_lookup_unexpected_backend_error_yields_empty():
    failing = FakeBrowser(error=ValueError("malformed record"))
    lookup = AdvertisementLookup(browsers=[failing])

    assert await lookup.lookup(100) == []
    assert len(failing.calls) == 1


@pytest.mark.asyncio
async def test_lookup_unexpected_error_falls_back_to_next_backend():
    secondary = FakeBrowser(
        [AdvertisedService("Tablet", 12315, ["10.0.0.2"], None)]
    )
    lookup = AdvertisementLookup(
        browsers=[FakeBrowser(error=KeyError("txt")), secondary]
    )

    candidates = await lookup.lookup(100)

    assert [c.host for c in candidates] == ["10.0.0.2"]
