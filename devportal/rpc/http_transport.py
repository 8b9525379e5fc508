"""GET/POST primitives against a single dev server."""

import json
import logging
from typing import Any, Mapping, NoReturn, Optional

import httpx

from devportal.rpc.errors import (
    HttpStatusError,
    RequestTimeoutError,
    TransportError,
    is_connection_hangup_error,
)
from devportal.rpc.rpc_target import RpcTarget

QueryParams = Optional[Mapping[str, Any]]

_ALIVE_STATUS_CODES = (200, 302)


def decode_body(text: str) -> Any:
    """Returns `text` decoded as JSON, or unchanged if it is not JSON."""
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpTransport:
    """Issues requests to the dev server bound by an `RpcTarget`.

    Every request runs on its own short-lived `httpx.AsyncClient`, so
    concurrent requests share no state.
    """

    def __init__(
        self,
        target: RpcTarget,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initializes the HttpTransport.

        Args:
            target: Dev server all requests are sent to.
            transport: Optional httpx transport used in place of the network.
        """
        self.__target = target
        self.__transport = transport

    @property
    def target(self) -> RpcTarget:
        return self.__target

    async def get(
        self, path: str, timeout_s: float, *, params: QueryParams = None
    ) -> Any:
        """Sends a GET request.

        Args:
            path: Request path, starting with '/'.
            timeout_s: Timeout for the request, in seconds.
            params: Optional query parameters.

        Returns:
            The JSON-decoded body, or the raw body text if it is not JSON.

        Raises:
            HttpStatusError: If the response status is not 2xx.
            RequestTimeoutError: If the request timed out.
            TransportError: On any other transport failure.
        """
        async with self.__client(timeout_s) as client:
            try:
                response = await client.get(path, params=params)
            except httpx.HTTPError as e:
                self.__raise_transport_error("GET", path, e)

        self.__check_status(response)
        return decode_body(response.text)

    async def post(
        self,
        path: str,
        payload: Any,
        timeout_s: float,
        *,
        params: QueryParams = None,
    ) -> Any:
        """Sends a POST request.

        String payloads are sent verbatim, anything else is serialized as
        JSON. If the server closes the connection without answering, the
        request is considered delivered and `None` is returned; the dev
        server does this after accepting some state-changing requests.

        Args:
            path: Request path, starting with '/'.
            payload: Request body.
            timeout_s: Timeout for the request, in seconds.
            params: Optional query parameters.

        Returns:
            The decoded body, or `None` for an empty body or a hang-up.

        Raises:
            HttpStatusError: If the response status is not 2xx.
            RequestTimeoutError: If the request timed out.
            TransportError: On any other transport failure.
        """
        content = payload if isinstance(payload, str) else json.dumps(payload)
        async with self.__client(timeout_s) as client:
            try:
                response = await client.post(
                    path,
                    content=content.encode("utf-8"),
                    params=params,
                    headers={"Content-Type": "application/json"},
                )
            except httpx.HTTPError as e:
                if is_connection_hangup_error(e):
                    logging.info(
                        "%s closed the connection after POST %s; "
                        "treating as delivered.",
                        self.__target.base_url,
                        path,
                    )
                    return None
                self.__raise_transport_error("POST", path, e)

        self.__check_status(response)
        if not response.content:
            return None
        return decode_body(response.text)

    async def is_alive(self, path: str, timeout_s: float) -> bool:
        """Returns whether `path` answers 200 or 302. Never raises."""
        try:
            async with self.__client(timeout_s) as client:
                response = await client.get(path)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logging.debug(
                "Liveness check of %s failed: %s", self.__target.base_url, e
            )
            return False
        return response.status_code in _ALIVE_STATUS_CODES

    def __client(self, timeout_s: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.__target.base_url,
            transport=self.__transport,
            timeout=timeout_s,
            follow_redirects=False,
        )

    def __check_status(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text)

    def __raise_transport_error(
        self, method: str, path: str, error: httpx.HTTPError
    ) -> NoReturn:
        url = f"{self.__target.base_url}{path}"
        if isinstance(error, httpx.TimeoutException):
            raise RequestTimeoutError(
                f"{method} {url} timed out."
            ) from error
        raise TransportError(f"{method} {url} failed: {error}") from error
