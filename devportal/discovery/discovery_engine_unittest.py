import asyncio
from typing import List
from unittest.mock import AsyncMock

import httpx
import pytest

from devportal.discovery.device_candidate import DeviceCandidate
from devportal.discovery.discovery_config import DiscoveryConfig
from devportal.discovery.discovery_engine import (
    DEFAULT_PRIORITY_HOSTS,
    SWEEP_CHUNK_SIZE,
    DiscoveryEngine,
)
from devportal.discovery.host_probe import HostProbe
from devportal.discovery.mdns.advertisement_browser import (
    AdvertisementBrowser,
)
from devportal.discovery.mdns.advertisement_lookup import AdvertisementLookup


class FakeProbe(HostProbe):
    """Answers for a fixed set of hosts and tracks probe concurrency."""

    __test__ = False

    def __init__(self, alive_hosts=(), delay_s: float = 0.001):
        super().__init__()
        self.alive_hosts = set(alive_hosts)
        self.delay_s = delay_s
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, host, port=11337, timeout_ms=1000):
        self.calls.append((host, port, timeout_ms))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s)
        finally:
            self.in_flight -= 1
        return DeviceCandidate(
            host=host,
            service_port=port,
            available=host in self.alive_hosts,
            response_time_ms=1,
        )

    @property
    def probed_hosts(self) -> List[str]:
        return [call[0] for call in self.calls]


def make_lookup(candidates=None) -> AsyncMock:
    lookup = AsyncMock(spec=AdvertisementLookup)
    lookup.lookup.return_value = list(candidates or [])
    return lookup


def make_engine(probe, lookup=None, local_ips=("192.168.1.50",)):
    return DiscoveryEngine(
        probe=probe,
        advertisement_lookup=lookup if lookup is not None else make_lookup(),
        local_addresses=lambda: list(local_ips),
    )


# --- Advertisement phase ---


@pytest.mark.asyncio
async def test_advertised_and_verified_hosts_returned_without_probing_more():
    lookup = make_lookup(
        [
            DeviceCandidate("192.168.1.20", name="Phone", sync_port=12315),
            DeviceCandidate("192.168.1.21", name="Tablet", sync_port=12315),
        ]
    )
    probe = FakeProbe(alive_hosts={"192.168.1.20"})
    engine = make_engine(probe, lookup)

    result = await engine.discover(DiscoveryConfig(timeout_ms=1200))

    lookup.lookup.assert_awaited_once_with(1200)
    assert probe.calls == [
        ("192.168.1.20", 11337, 2000),
        ("192.168.1.21", 11337, 2000),
    ]
    assert len(result) == 1
    assert result[0].host == "192.168.1.20"
    assert result[0].available is True
    assert result[0].name == "Phone"
    assert result[0].sync_port == 12315


@pytest.mark.asyncio
async def test_unverified_advertisements_fall_through_to_priority_hosts():
    lookup = make_lookup([DeviceCandidate("192.168.1.20", name="Stale")])
    probe = FakeProbe(alive_hosts={"127.0.0.1"})
    engine = make_engine(probe, lookup)

    result = await engine.discover()

    assert [c.host for c in result] == ["127.0.0.1"]
    assert result[0].name is None


@pytest.mark.asyncio
async def test_default_advertisement_window_used():
    lookup = make_lookup()
    engine = make_engine(FakeProbe(alive_hosts={"localhost"}), lookup)

    await engine.discover()

    lookup.lookup.assert_awaited_once_with(3000)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "config",
    [
        DiscoveryConfig(skip_advertisement=True),
        DiscoveryConfig(force_sweep=True),
    ],
)
async def test_advertisement_skipped(config):
    lookup = make_lookup([DeviceCandidate("192.168.1.20")])
    engine = make_engine(FakeProbe(alive_hosts={"localhost"}), lookup)

    await engine.discover(config)

    lookup.lookup.assert_not_called()


# --- Priority phase ---


@pytest.mark.asyncio
async def test_priority_hit_prevents_sweep():
    probe = FakeProbe(alive_hosts={"192.168.1.50"})
    engine = make_engine(probe, local_ips=["192.168.1.50", "10.0.0.3"])

    result = await engine.discover(
        DiscoveryConfig(skip_advertisement=True, force_sweep=True)
    )

    expected_hosts = [*DEFAULT_PRIORITY_HOSTS, "192.168.1.50", "10.0.0.3"]
    assert probe.probed_hosts == expected_hosts
    assert len(probe.calls) == len(expected_hosts)
    assert [c.host for c in result] == ["192.168.1.50"]


@pytest.mark.asyncio
async def test_priority_hosts_deduplicated_and_use_probe_timeout():
    probe = FakeProbe(alive_hosts={"localhost"})
    engine = make_engine(probe, local_ips=["127.0.0.1"])

    await engine.discover(DiscoveryConfig(skip_advertisement=True))

    assert probe.probed_hosts == list(DEFAULT_PRIORITY_HOSTS)
    assert {call[2] for call in probe.calls} == {500}


@pytest.mark.asyncio
async def test_priority_probes_run_concurrently_and_all_awaited():
    probe = FakeProbe(alive_hosts={"localhost"}, delay_s=0.01)
    engine = make_engine(probe, local_ips=["192.168.1.50"])

    result = await engine.discover(DiscoveryConfig(skip_advertisement=True))

    assert probe.max_in_flight == len(DEFAULT_PRIORITY_HOSTS) + 1
    assert [c.host for c in result] == ["localhost"]


# --- Sweep phase ---


@pytest.mark.asyncio
async def test_sweep_finds_single_host_on_subnet():
    probe = FakeProbe(alive_hosts={"192.168.1.1"})
    engine = make_engine(probe, local_ips=["192.168.1.50"])

    result = await engine.discover(
        DiscoveryConfig(skip_advertisement=True, timeout_ms=100)
    )

    assert result == [
        DeviceCandidate(
            host="192.168.1.1",
            service_port=11337,
            available=True,
            response_time_ms=1,
        )
    ]
    swept = probe.probed_hosts[len(DEFAULT_PRIORITY_HOSTS) + 1 :]
    assert len(swept) == 254
    assert swept[0] == "192.168.1.1"
    assert swept[-1] == "192.168.1.254"
    assert {call[2] for call in probe.calls} == {100}


@pytest.mark.asyncio
async def test_sweep_concurrency_never_exceeds_chunk_size():
    probe = FakeProbe(delay_s=0.002)
    engine = make_engine(probe, local_ips=["10.1.2.3"])

    result = await engine.discover(DiscoveryConfig(force_sweep=True))

    assert result == []
    assert probe.max_in_flight <= SWEEP_CHUNK_SIZE
    assert probe.max_in_flight == SWEEP_CHUNK_SIZE


@pytest.mark.asyncio
async def test_sweep_results_keep_probe_order_across_chunks():
    probe = FakeProbe(alive_hosts={"10.1.2.200", "10.1.2.7", "10.1.2.30"})
    engine = make_engine(probe, local_ips=["10.1.2.3"])

    result = await engine.discover(DiscoveryConfig(force_sweep=True))

    assert [c.host for c in result] == ["10.1.2.7", "10.1.2.30", "10.1.2.200"]


@pytest.mark.asyncio
async def test_no_local_address_returns_empty_without_probing():
    probe = FakeProbe(alive_hosts=set(DEFAULT_PRIORITY_HOSTS))
    engine = make_engine(probe, local_ips=[])

    result = await engine.discover(DiscoveryConfig(skip_advertisement=True))

    assert result == []
    assert probe.calls == []


@pytest.mark.asyncio
async def test_no_local_address_still_returns_verified_advertisement():
    lookup = make_lookup([DeviceCandidate("192.168.1.20", name="Phone")])
    probe = FakeProbe(alive_hosts={"192.168.1.20"})
    engine = make_engine(probe, lookup, local_ips=[])

    result = await engine.discover()

    assert [c.host for c in result] == ["192.168.1.20"]


@pytest.mark.asyncio
async def test_interface_lookup_failure_is_not_raised():
    def broken_interfaces():
        raise OSError("interfaces unavailable")

    probe = FakeProbe(alive_hosts={"localhost"})
    engine = DiscoveryEngine(
        probe=probe,
        advertisement_lookup=make_lookup(),
        local_addresses=broken_interfaces,
    )

    assert await engine.discover() == []
    assert probe.calls == []


def test_invalid_chunk_size_rejected():
    with pytest.raises(ValueError):
        DiscoveryEngine(chunk_size=0, advertisement_lookup=make_lookup())


# --- End-to-end through the real HostProbe ---


@pytest.mark.asyncio
async def test_discover_through_http_probe_with_mock_subnet():
    """Only 192.168.1.1:11337 answers; mDNS finds nothing."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "192.168.1.1" and request.url.port == 11337:
            return httpx.Response(200)
        raise httpx.ConnectError("Connection refused", request=request)

    engine = DiscoveryEngine(
        probe=HostProbe(transport=httpx.MockTransport(handler)),
        advertisement_lookup=AdvertisementLookup(browsers=[]),
        local_addresses=lambda: ["192.168.1.77"],
    )

    result = await engine.discover()

    assert len(result) == 1
    assert result[0].host == "192.168.1.1"
    assert result[0].service_port == 11337
    assert result[0].available is True


class BrokenBrowser(AdvertisementBrowser):
    async def browse(self, service_type, window_s):
        raise ValueError("malformed advertisement")


@pytest.mark.asyncio
async def test_failing_advertisement_backend_does_not_raise():
    probe = FakeProbe()
    engine = DiscoveryEngine(
        probe=probe,
        advertisement_lookup=AdvertisementLookup(browsers=[BrokenBrowser()]),
        local_addresses=lambda: [],
    )

    assert await engine.discover(DiscoveryConfig(timeout_ms=10)) == []
