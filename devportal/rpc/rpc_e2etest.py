"""Exercises RpcClient against a real local HTTP server."""

import asyncio
import json
from typing import Awaitable, Callable, List, Tuple

import pytest

from devportal.rpc.errors import TransportError
from devportal.rpc.rpc_client import RpcClient

ConnectionHandler = Callable[
    [asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]
]


async def read_request(reader: asyncio.StreamReader) -> Tuple[str, bytes]:
    """Reads one HTTP/1.1 request; returns its request line and body."""
    head = await reader.readuntil(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    length = 0
    for line in lines[1:]:
        name, _, value = line.partition(":")
        if name.strip().lower() == "content-length":
            length = int(value.strip())
    body = await reader.readexactly(length) if length else b""
    return lines[0], body


def http_response(status: int, reason: str, body: bytes = b"") -> bytes:
    return (
        f"HTTP/1.1 {status} {reason}\r\n"
        f"Content-Length: {len(body)}\r\n"
        "Content-Type: application/json\r\n"
        "Connection: close\r\n\r\n"
    ).encode("latin-1") + body


async def start_server(handler: ConnectionHandler):
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port


@pytest.mark.asyncio
async def test_plugin_injection_survives_server_hanging_up():
    """The server reads the request, writes nothing, then closes."""
    received: List[bytes] = []

    async def hang_up(reader, writer):
        _, body = await read_request(reader)
        received.append(body)
        writer.close()

    server, port = await start_server(hang_up)
    async with server:
        client = RpcClient("127.0.0.1", port)
        result = await client.update_test_plugin(
            "http://127.0.0.1:8000/script.js", {"id": "test"}
        )

    assert result is None
    assert json.loads(received[0]) == {
        "url": "http://127.0.0.1:8000/script.js",
        "config": {"id": "test"},
    }


@pytest.mark.asyncio
async def test_ping_and_call_round_trip():
    request_lines: List[str] = []

    async def dev_server(reader, writer):
        request_line, body = await read_request(reader)
        request_lines.append(request_line)
        if request_line.startswith("GET /dev "):
            writer.write(http_response(200, "OK", b"<html></html>"))
        else:
            args = json.loads(body)
            payload = json.dumps({"result": sum(args)}).encode("utf-8")
            writer.write(http_response(200, "OK", payload))
        await writer.drain()
        writer.close()

    server, port = await start_server(dev_server)
    async with server:
        client = RpcClient("127.0.0.1", port)
        alive = await client.ping()
        outcome = await client.call("add", 2, 3)

    assert alive is True
    assert outcome.success is True
    assert outcome.result == 5
    assert request_lines[1].startswith("POST /plugin/remoteTest?method=add ")


@pytest.mark.asyncio
async def test_refused_connection():
    server, port = await start_server(lambda reader, writer: None)
    server.close()
    await server.wait_closed()

    client = RpcClient("127.0.0.1", port)

    assert await client.ping() is False
    assert (await client.call("getHome")).success is False
    with pytest.raises(TransportError):
        await client.update_test_plugin("http://h/s.js", {})
