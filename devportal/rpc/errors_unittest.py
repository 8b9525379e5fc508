import httpx
import pytest

from devportal.rpc.errors import (
    DevPortalError,
    DeviceNotFoundError,
    HttpStatusError,
    RemoteCallError,
    RequestTimeoutError,
    TransportError,
    is_connection_hangup_error,
)


def _chained(outer: Exception, inner: BaseException) -> Exception:
    try:
        try:
            raise inner
        except BaseException as e:
            raise outer from e
    except Exception as caught:
        return caught


def test_http_status_error_message_and_fields():
    error = HttpStatusError(404, "not here")

    assert str(error) == "HTTP 404: not here"
    assert error.status == 404
    assert error.body == "not here"
    assert isinstance(error, DevPortalError)


def test_error_hierarchy():
    assert issubclass(RequestTimeoutError, TransportError)
    assert issubclass(TransportError, DevPortalError)
    assert issubclass(DeviceNotFoundError, DevPortalError)
    assert issubclass(DevPortalError, RuntimeError)


def test_remote_call_error_carries_method_and_error():
    error = RemoteCallError("getHome", "boom")

    assert error.method == "getHome"
    assert error.error == "boom"
    assert "boom" in str(error)


def test_server_disconnected_is_hangup():
    error = httpx.RemoteProtocolError(
        "Server disconnected without sending a response."
    )
    assert is_connection_hangup_error(error)


def test_other_protocol_error_is_not_hangup():
    error = httpx.RemoteProtocolError("illegal status line: b'garbage'")
    assert not is_connection_hangup_error(error)


def test_connection_reset_is_hangup():
    assert is_connection_hangup_error(ConnectionResetError(104, "reset"))


def test_connection_reset_in_cause_chain_is_hangup():
    error = _chained(
        httpx.ReadError("read failed"), ConnectionResetError(104, "reset")
    )
    assert is_connection_hangup_error(error)


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("timed out"),
        ConnectionRefusedError(111, "refused"),
        ValueError("nope"),
    ],
)
def test_unrelated_errors_are_not_hangup(error):
    assert not is_connection_hangup_error(error)


def test_cyclic_context_chain_terminates():
    first = ValueError("a")
    second = ValueError("b")
    first.__context__ = second
    second.__context__ = first

    assert not is_connection_hangup_error(first)
