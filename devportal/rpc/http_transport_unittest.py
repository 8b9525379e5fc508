import json

import httpx
import pytest

from devportal.rpc.errors import (
    HttpStatusError,
    RequestTimeoutError,
    TransportError,
)
from devportal.rpc.http_transport import HttpTransport, decode_body
from devportal.rpc.rpc_target import RpcTarget

TARGET = RpcTarget("192.168.1.9", 11337)


def make_transport(handler) -> HttpTransport:
    return HttpTransport(TARGET, transport=httpx.MockTransport(handler))


def test_decode_body():
    assert decode_body('{"a": 1}') == {"a": 1}
    assert decode_body("[1, 2]") == [1, 2]
    assert decode_body("true") is True
    assert decode_body("plain text") == "plain text"
    assert decode_body("") == ""


# --- get ---


@pytest.mark.asyncio
async def test_get_decodes_json_and_sends_params():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"isLoggedIn": True})

    body = await make_transport(handler).get(
        "/plugin/getDevLogs", 1.0, params={"index": -1}
    )

    assert body == {"isLoggedIn": True}
    assert str(seen[0].url) == (
        "http://192.168.1.9:11337/plugin/getDevLogs?index=-1"
    )


@pytest.mark.asyncio
async def test_get_returns_raw_text_when_not_json():
    transport = make_transport(
        lambda request: httpx.Response(200, text="function source() {}")
    )

    assert await transport.get("/plugin/packageGet", 1.0) == (
        "function source() {}"
    )


@pytest.mark.asyncio
async def test_get_non_success_raises_status_error():
    transport = make_transport(
        lambda request: httpx.Response(500, text="internal")
    )

    with pytest.raises(HttpStatusError) as exc_info:
        await transport.get("/dev", 1.0)

    assert exc_info.value.status == 500
    assert exc_info.value.body == "internal"
    assert str(exc_info.value) == "HTTP 500: internal"


@pytest.mark.asyncio
async def test_get_timeout_raises_request_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RequestTimeoutError) as exc_info:
        await make_transport(handler).get("/dev", 1.0)

    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_get_connection_refused_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await make_transport(handler).get("/dev", 1.0)

    assert not isinstance(exc_info.value, RequestTimeoutError)


@pytest.mark.asyncio
async def test_get_does_not_map_hangup():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError(
            "Server disconnected without sending a response.",
            request=request,
        )

    with pytest.raises(TransportError):
        await make_transport(handler).get("/plugin/isLoggedIn", 1.0)


# --- post ---


@pytest.mark.asyncio
async def test_post_serializes_non_string_payload_as_json():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"result": 3})

    body = await make_transport(handler).post(
        "/plugin/remoteTest", [1, "two"], 1.0, params={"method": "add"}
    )

    assert body == {"result": 3}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["method"] == "add"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == [1, "two"]


@pytest.mark.asyncio
async def test_post_sends_string_payload_verbatim():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    body = await make_transport(handler).post("/get", '"https://x"', 1.0)

    assert body == "ok"
    assert seen[0].content == b'"https://x"'


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 204])
async def test_post_empty_body_resolves_to_none(status):
    transport = make_transport(lambda request: httpx.Response(status))

    assert await transport.post("/plugin/getWarnings", "", 1.0) is None


@pytest.mark.asyncio
async def test_post_non_success_raises_status_error():
    transport = make_transport(
        lambda request: httpx.Response(400, text="bad args")
    )

    with pytest.raises(HttpStatusError, match="HTTP 400: bad args"):
        await transport.post("/plugin/remoteTest", [], 1.0)


@pytest.mark.asyncio
async def test_post_server_disconnect_resolves_to_none():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError(
            "Server disconnected without sending a response.",
            request=request,
        )

    transport = make_transport(handler)

    assert await transport.post("/plugin/updateTestPlugin", {}, 1.0) is None


@pytest.mark.asyncio
async def test_post_connection_reset_resolves_to_none():
    def handler(request: httpx.Request) -> httpx.Response:
        try:
            raise ConnectionResetError(104, "Connection reset by peer")
        except ConnectionResetError as e:
            raise httpx.ReadError("reset", request=request) from e

    transport = make_transport(handler)

    assert await transport.post("/plugin/updateTestPlugin", {}, 1.0) is None


@pytest.mark.asyncio
async def test_post_other_transport_errors_propagate():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(TransportError):
        await make_transport(handler).post("/plugin/getWarnings", "", 1.0)


@pytest.mark.asyncio
async def test_post_timeout_raises_request_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.WriteTimeout("timed out", request=request)

    with pytest.raises(RequestTimeoutError):
        await make_transport(handler).post("/plugin/remoteTest", [], 1.0)


# --- is_alive ---


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, expected", [(200, True), (302, True), (404, False)]
)
async def test_is_alive_statuses(status, expected):
    transport = make_transport(lambda request: httpx.Response(status))

    assert await transport.is_alive("/dev", 1.0) is expected


@pytest.mark.asyncio
async def test_is_alive_swallows_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    assert await make_transport(handler).is_alive("/dev", 1.0) is False
