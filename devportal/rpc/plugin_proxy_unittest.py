import json

import httpx
import pytest

from devportal.rpc.errors import RemoteCallError
from devportal.rpc.rpc_client import RpcClient


def make_client(handler) -> RpcClient:
    return RpcClient("10.0.0.2", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_attribute_call_returns_unwrapped_result():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"result": {"videos": []}})

    result = await make_client(handler).plugin.getHome("page", 1)

    assert result == {"videos": []}
    assert seen[0].url.path == "/plugin/remoteTest"
    assert seen[0].url.params["method"] == "getHome"
    assert json.loads(seen[0].content) == ["page", 1]


@pytest.mark.asyncio
async def test_attribute_call_failure_raises():
    client = make_client(
        lambda request: httpx.Response(200, json={"error": "boom"})
    )

    with pytest.raises(RemoteCallError) as exc_info:
        await client.plugin.getChannel("url")

    assert exc_info.value.method == "getChannel"
    assert exc_info.value.error == "boom"


def test_private_attributes_are_not_proxied():
    proxy = make_client(lambda request: httpx.Response(200)).plugin

    with pytest.raises(AttributeError):
        getattr(proxy, "_hidden")
