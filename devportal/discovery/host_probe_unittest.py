import asyncio
import time

import httpx
import pytest

from devportal.discovery.device_candidate import DEV_SERVER_PORT
from devportal.discovery.host_probe import HostProbe


def make_probe(handler) -> HostProbe:
    return HostProbe(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 302])
async def test_probe_alive_statuses(status):
    requests_seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(status, headers={"Location": "/elsewhere"})

    candidate = await make_probe(handler).probe("10.0.0.7", 11337, 500)

    assert candidate.available is True
    assert candidate.host == "10.0.0.7"
    assert candidate.service_port == 11337
    assert candidate.response_time_ms is not None
    assert len(requests_seen) == 1
    assert requests_seen[0].method == "GET"
    assert str(requests_seen[0].url) == "http://10.0.0.7:11337/dev"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [204, 301, 404, 500])
async def test_probe_other_statuses_unavailable(status):
    candidate = await make_probe(lambda request: httpx.Response(status)).probe(
        "10.0.0.7"
    )

    assert candidate.available is False
    assert candidate.service_port == DEV_SERVER_PORT


@pytest.mark.asyncio
async def test_probe_transport_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    candidate = await make_probe(handler).probe("10.0.0.8")

    assert candidate.available is False
    assert candidate.response_time_ms is not None


@pytest.mark.asyncio
async def test_probe_timeout_resolves_within_bound():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    started = time.monotonic()
    candidate = await make_probe(handler).probe("10.0.0.9", timeout_ms=50)
    elapsed = time.monotonic() - started

    assert candidate.available is False
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_probe_does_not_follow_redirects():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(302, headers={"Location": "/portal"})

    candidate = await make_probe(handler).probe("10.0.0.10")

    assert candidate.available is True
    assert calls == ["/dev"]


@pytest.mark.asyncio
async def test_probe_custom_path():
    probe = HostProbe(
        path="/health",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(
                200 if request.url.path == "/health" else 404
            )
        ),
    )

    candidate = await probe.probe("localhost")

    assert candidate.available is True
