"""Single-request liveness probe for a dev server candidate."""

import asyncio
import logging
import time
from typing import Optional

import httpx

from devportal.discovery.device_candidate import (
    DEV_SERVER_PORT,
    HEALTH_PATH,
    DeviceCandidate,
)

# A redirect still means the service is there, just on another route.
_ALIVE_STATUS_CODES = (200, 302)

DEFAULT_PROBE_TIMEOUT_MS = 1000


class HostProbe:
    """Checks whether a host:port answers on the dev server health path.

    A probe issues exactly one bounded GET and never raises: every failure
    mode (non-matching status, refused connection, DNS failure, timeout) is
    reported as an unavailable `DeviceCandidate`. The connection is closed as
    soon as the status line has been read so that sweeps with hundreds of
    probes do not leave half-open sockets behind.
    """

    def __init__(
        self,
        *,
        path: str = HEALTH_PATH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initializes the HostProbe.

        Args:
            path: HTTP path requested on each probed host.
            transport: Optional httpx transport, used in place of the network
                (e.g. an `httpx.MockTransport` in tests).
        """
        self.__path = path
        self.__transport = transport

    async def probe(
        self,
        host: str,
        port: int = DEV_SERVER_PORT,
        timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> DeviceCandidate:
        """Probes `host:port` once.

        Args:
            host: Hostname or IP address to probe.
            port: Port of the dev server.
            timeout_ms: Upper bound for the whole attempt, in milliseconds.

        Returns:
            A `DeviceCandidate` with `available` set from the probe outcome
            and `response_time_ms` set to the elapsed time.
        """
        timeout_s = max(timeout_ms, 0) / 1000.0
        started = time.monotonic()
        available = False
        try:
            status = await asyncio.wait_for(
                self.__fetch_status(host, port, timeout_s), timeout=timeout_s
            )
            available = status in _ALIVE_STATUS_CODES
            logging.debug("Probe %s:%s answered %s.", host, port, status)
        except asyncio.TimeoutError:
            logging.debug("Probe %s:%s timed out.", host, port)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logging.debug("Probe %s:%s failed: %s", host, port, e)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        return DeviceCandidate(
            host=host,
            service_port=port,
            available=available,
            response_time_ms=elapsed_ms,
        )

    async def __fetch_status(
        self, host: str, port: int, timeout_s: float
    ) -> int:
        url = f"http://{host}:{port}{self.__path}"
        async with httpx.AsyncClient(
            transport=self.__transport,
            timeout=timeout_s,
            follow_redirects=False,
            headers={"Connection": "close"},
        ) as client:
            # Streaming so the body is never read; leaving both contexts
            # closes the connection.
            async with client.stream("GET", url) as response:
                return response.status_code
