import json
from typing import Callable, List

import httpx
import pytest

from devportal.config.client_config import ClientConfig
from devportal.rpc.errors import HttpStatusError, TransportError
from devportal.rpc.rpc_client import RpcClient
from devportal.rpc.rpc_outcome import RpcOutcome

HOST = "192.168.1.9"


class RecordingServer:
    """Serves canned responses per path and records every request."""

    __test__ = False

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.__handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.__handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(handler, **kwargs):
    server = RecordingServer(handler)
    client = RpcClient(
        HOST, 11337, transport=httpx.MockTransport(server), **kwargs
    )
    return client, server


def respond_json(body, status=200):
    return lambda request: httpx.Response(status, json=body)


def raise_connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def raise_hangup(request: httpx.Request) -> httpx.Response:
    raise httpx.RemoteProtocolError(
        "Server disconnected without sending a response.", request=request
    )


def test_client_binds_target_and_default_config():
    client = RpcClient("devbox")

    assert client.target.host == "devbox"
    assert client.target.port == 11337
    assert client.target.base_url == "http://devbox:11337"
    assert client.config == ClientConfig()


# --- ping / load_portal ---


@pytest.mark.asyncio
@pytest.mark.parametrize("status, expected", [(200, True), (503, False)])
async def test_ping(status, expected):
    client, server = make_client(lambda request: httpx.Response(status))

    assert await client.ping() is expected
    assert server.last.url.path == "/dev"


@pytest.mark.asyncio
async def test_ping_never_raises():
    client, _ = make_client(raise_connect_error)

    assert await client.ping() is False


@pytest.mark.asyncio
async def test_load_portal_waits_when_alive(mocker):
    sleep = mocker.patch(
        "devportal.rpc.rpc_client.asyncio.sleep", new=mocker.AsyncMock()
    )
    client, _ = make_client(lambda request: httpx.Response(200))

    assert await client.load_portal(2.5) is True
    sleep.assert_awaited_once_with(2.5)


@pytest.mark.asyncio
async def test_load_portal_does_not_wait_when_down(mocker):
    sleep = mocker.patch(
        "devportal.rpc.rpc_client.asyncio.sleep", new=mocker.AsyncMock()
    )
    client, _ = make_client(raise_connect_error)

    assert await client.load_portal(2.5) is False
    sleep.assert_not_awaited()


# --- update_test_plugin ---


@pytest.mark.asyncio
async def test_update_test_plugin_posts_url_and_config():
    client, server = make_client(lambda request: httpx.Response(204))
    config = {"id": "abc", "name": "Test"}

    result = await client.update_test_plugin("http://host/script.js", config)

    assert result is None
    assert server.last.method == "POST"
    assert server.last.url.path == "/plugin/updateTestPlugin"
    assert json.loads(server.last.content) == {
        "url": "http://host/script.js",
        "config": config,
    }


@pytest.mark.asyncio
async def test_update_test_plugin_hangup_is_success():
    client, _ = make_client(raise_hangup)

    assert await client.update_test_plugin("http://h/s.js", {}) is None


@pytest.mark.asyncio
async def test_update_test_plugin_other_errors_propagate():
    client, _ = make_client(raise_connect_error)

    with pytest.raises(TransportError):
        await client.update_test_plugin("http://h/s.js", {})


# --- call / call_by_id ---


@pytest.mark.asyncio
async def test_call_posts_args_to_remote_test():
    client, server = make_client(respond_json({"result": [1, 2]}))

    outcome = await client.call("search", "cats", 2)

    assert outcome == RpcOutcome.ok([1, 2])
    assert server.last.url.path == "/plugin/remoteTest"
    assert dict(server.last.url.params) == {"method": "search"}
    assert json.loads(server.last.content) == ["cats", 2]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body", [{"success": True, "result": "X"}, "X"], ids=["envelope", "bare"]
)
async def test_call_unwraps_envelope_or_bare_value(body):
    client, _ = make_client(respond_json(body))

    outcome = await client.call("getName")

    assert outcome.success is True
    assert outcome.result == "X"


@pytest.mark.asyncio
async def test_call_server_error_field_is_failure():
    client, _ = make_client(
        respond_json({"error": "boom", "result": "ignored"})
    )

    assert await client.call("getHome") == RpcOutcome.failure("boom")


@pytest.mark.asyncio
async def test_call_null_error_field_is_failure():
    client, _ = make_client(respond_json({"error": None, "result": 1}))

    outcome = await client.call("getHome")

    assert outcome.success is False


@pytest.mark.asyncio
async def test_call_status_error_becomes_failure():
    client, _ = make_client(
        lambda request: httpx.Response(500, text="exploded")
    )

    outcome = await client.call("getHome")

    assert outcome.success is False
    assert outcome.error == "HTTP 500: exploded"


@pytest.mark.asyncio
async def test_call_transport_error_becomes_failure():
    client, _ = make_client(raise_connect_error)

    outcome = await client.call("getHome")

    assert outcome.success is False
    assert "Connection refused" in outcome.error


@pytest.mark.asyncio
async def test_call_unserializable_args_become_failure():
    client, server = make_client(respond_json({"result": 1}))

    outcome = await client.call("getHome", object())

    assert outcome.success is False
    assert server.requests == []


@pytest.mark.asyncio
async def test_call_hangup_is_success_with_no_result():
    client, _ = make_client(raise_hangup)

    assert await client.call("reload") == RpcOutcome.ok(None)


@pytest.mark.asyncio
async def test_call_by_id_targets_plugin():
    client, server = make_client(respond_json({"result": True}))

    outcome = await client.call_by_id("plugin-1", "isChannelUrl", "u")

    assert outcome == RpcOutcome.ok(True)
    assert server.last.url.path == "/plugin/remoteCall"
    assert dict(server.last.url.params) == {
        "id": "plugin-1",
        "method": "isChannelUrl",
    }
    assert json.loads(server.last.content) == ["u"]


@pytest.mark.asyncio
async def test_call_by_id_error_field_is_failure():
    client, _ = make_client(respond_json({"error": "no such plugin"}))

    outcome = await client.call_by_id("missing", "getHome")

    assert outcome == RpcOutcome.failure("no such plugin")


# --- is_logged_in ---


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, expected",
    [
        ({"isLoggedIn": True}, True),
        (True, True),
        ({"isLoggedIn": False}, False),
        ({"isLoggedIn": "true"}, False),
        ({}, False),
        ("garbled", False),
    ],
)
async def test_is_logged_in(body, expected):
    client, server = make_client(respond_json(body))

    assert await client.is_logged_in() is expected
    assert server.last.url.path == "/plugin/isLoggedIn"


@pytest.mark.asyncio
async def test_is_logged_in_failure_is_false():
    client, _ = make_client(lambda request: httpx.Response(500))

    assert await client.is_logged_in() is False


# --- get_dev_logs ---


@pytest.mark.asyncio
async def test_get_dev_logs_returns_list_and_sends_index():
    logs = [{"id": 1, "msg": "hi"}]
    client, server = make_client(respond_json(logs))

    assert await client.get_dev_logs(5) == logs
    assert server.last.url.path == "/plugin/getDevLogs"
    assert server.last.url.params["index"] == "5"


@pytest.mark.asyncio
async def test_get_dev_logs_default_index():
    client, server = make_client(respond_json([]))

    await client.get_dev_logs()

    assert server.last.url.params["index"] == "-1"


@pytest.mark.asyncio
async def test_get_dev_logs_object_response_is_empty_list():
    client, _ = make_client(respond_json({"logs": [1, 2]}))

    assert await client.get_dev_logs() == []


@pytest.mark.asyncio
async def test_get_dev_logs_failure_is_empty_list():
    client, _ = make_client(raise_connect_error)

    assert await client.get_dev_logs() == []


# --- pass-through retrievals ---


@pytest.mark.asyncio
async def test_get_warnings_posts_empty_body():
    client, server = make_client(respond_json([{"title": "w"}]))

    assert await client.get_warnings() == [{"title": "w"}]
    assert server.last.method == "POST"
    assert server.last.url.path == "/plugin/getWarnings"
    assert server.last.content == b""


@pytest.mark.asyncio
async def test_get_package_returns_source_text():
    client, server = make_client(
        lambda request: httpx.Response(200, text="class Http {}")
    )

    assert await client.get_package("Http") == "class Http {}"
    assert server.last.url.path == "/plugin/packageGet"
    assert server.last.url.params["variable"] == "Http"


@pytest.mark.asyncio
async def test_get_package_propagates_errors():
    client, _ = make_client(lambda request: httpx.Response(404, text="none"))

    with pytest.raises(HttpStatusError) as exc_info:
        await client.get_package("Missing")

    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_get_plugin_property():
    client, server = make_client(respond_json("1.2.3"))

    assert await client.get_plugin_property("p1", "version") == "1.2.3"
    assert server.last.url.path == "/plugin/remoteProp"
    assert dict(server.last.url.params) == {"id": "p1", "prop": "version"}


@pytest.mark.asyncio
async def test_fetch_content_posts_quoted_url():
    client, server = make_client(respond_json({"code": 200}))

    result = await client.fetch_content("https://example.com/a?b=1")

    assert result == {"code": 200}
    assert server.last.url.path == "/get"
    assert server.last.url.params["CT"] == "text/json"
    assert server.last.content == b'"https://example.com/a?b=1"'


# --- auth test hooks ---


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method_name, path",
    [
        ("test_login", "/plugin/loginTestPlugin"),
        ("test_logout", "/plugin/logoutTestPlugin"),
        ("test_captcha", "/plugin/captchaTestPlugin"),
    ],
)
async def test_auth_hooks_post_to_their_paths(method_name, path):
    client, server = make_client(lambda request: httpx.Response(204))

    outcome = await getattr(client, method_name)()

    assert outcome == RpcOutcome.ok(None)
    assert server.last.method == "POST"
    assert server.last.url.path == path


@pytest.mark.asyncio
async def test_auth_hook_hangup_is_success():
    client, _ = make_client(raise_hangup)

    assert await client.test_login() == RpcOutcome.ok(None)


@pytest.mark.asyncio
async def test_auth_hook_reports_server_error():
    client, _ = make_client(respond_json({"error": "not supported"}))

    assert await client.test_captcha() == RpcOutcome.failure("not supported")


@pytest.mark.asyncio
async def test_auth_hook_propagates_other_errors():
    client, _ = make_client(raise_connect_error)

    with pytest.raises(TransportError):
        await client.test_logout()
