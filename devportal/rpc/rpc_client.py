"""Client for the dev server's plugin testing API."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from devportal.config.client_config import ClientConfig
from devportal.discovery.device_candidate import DEV_SERVER_PORT, HEALTH_PATH
from devportal.rpc.errors import DevPortalError
from devportal.rpc.http_transport import HttpTransport
from devportal.rpc.plugin_proxy import PluginProxy
from devportal.rpc.rpc_outcome import RpcOutcome
from devportal.rpc.rpc_target import RpcTarget

UPDATE_TEST_PLUGIN_PATH = "/plugin/updateTestPlugin"
REMOTE_TEST_PATH = "/plugin/remoteTest"
REMOTE_CALL_PATH = "/plugin/remoteCall"
REMOTE_PROP_PATH = "/plugin/remoteProp"
IS_LOGGED_IN_PATH = "/plugin/isLoggedIn"
DEV_LOGS_PATH = "/plugin/getDevLogs"
WARNINGS_PATH = "/plugin/getWarnings"
PACKAGE_GET_PATH = "/plugin/packageGet"
LOGIN_TEST_PATH = "/plugin/loginTestPlugin"
LOGOUT_TEST_PATH = "/plugin/logoutTestPlugin"
CAPTCHA_TEST_PATH = "/plugin/captchaTestPlugin"
PROXY_FETCH_PATH = "/get"


class RpcClient:
    """Talks to one dev server over its HTTP API.

    The server's API is inconsistent: some endpoints wrap values in a
    `{"result": ...}` envelope and others do not, errors may arrive as a 200
    with an `error` field, and the server sometimes closes the connection
    instead of answering. This class hides those differences.

    Call-shaped operations (`call`, `call_by_id`) never raise and return an
    `RpcOutcome`. Liveness checks return a bool. Retrieval operations either
    degrade to an empty value or propagate `DevPortalError`, as documented
    on each method.

    No state is mutated by a request, so calls may be issued concurrently.
    """

    def __init__(
        self,
        host: str,
        port: int = DEV_SERVER_PORT,
        *,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initializes the RpcClient.

        Args:
            host: Hostname or IP address of the dev server.
            port: Port of the dev server.
            config: Per-call timeouts. Defaults to `ClientConfig()`.
            transport: Optional httpx transport used in place of the network.
        """
        self.__target = RpcTarget(host, port)
        self.__config = config if config is not None else ClientConfig()
        self.__http = HttpTransport(self.__target, transport=transport)
        self.__plugin = PluginProxy(self)

    @property
    def target(self) -> RpcTarget:
        return self.__target

    @property
    def config(self) -> ClientConfig:
        return self.__config

    @property
    def plugin(self) -> PluginProxy:
        """Attribute-style access to the active test plugin's methods."""
        return self.__plugin

    async def ping(self) -> bool:
        """Returns whether the dev server answers on its health path."""
        return await self.__http.is_alive(
            HEALTH_PATH, self.__config.ping_timeout_seconds
        )

    async def load_portal(self, wait_seconds: float = 10.0) -> bool:
        """Checks liveness, then gives a live server time to initialize.

        The dev server reports itself up before its portal has finished
        loading, so on success this additionally sleeps `wait_seconds`.

        Returns:
            The liveness result.
        """
        alive = await self.ping()
        if alive and wait_seconds > 0:
            logging.info(
                "Dev server %s is up; waiting %.1fs for the portal to load.",
                self.__target.base_url,
                wait_seconds,
            )
            await asyncio.sleep(wait_seconds)
        return alive

    async def update_test_plugin(
        self, script_url: str, config: Dict[str, Any]
    ) -> Any:
        """Injects a plugin into the dev server as the active test plugin.

        The server often drops the connection once it has accepted the
        plugin; that is reported as a `None` result, like an empty response.

        Args:
            script_url: URL the server loads the plugin script from.
            config: Plugin configuration, passed through unchanged.

        Returns:
            The decoded response body, or `None`.

        Raises:
            DevPortalError: On a non-2xx status or a transport failure other
                than the server hanging up.
        """
        logging.info(
            "Updating test plugin on %s from %s.",
            self.__target.base_url,
            script_url,
        )
        return await self.__http.post(
            UPDATE_TEST_PLUGIN_PATH,
            {"url": script_url, "config": config},
            self.__config.post_timeout_seconds,
        )

    async def call(self, method: str, *args: Any) -> RpcOutcome[Any]:
        """Calls `method` on the active test plugin. Never raises."""
        return await self.__invoke(method, args)

    async def call_by_id(
        self, plugin_id: str, method: str, *args: Any
    ) -> RpcOutcome[Any]:
        """Calls `method` on the plugin with id `plugin_id`. Never raises."""
        return await self.__invoke(method, args, plugin_id=plugin_id)

    async def is_logged_in(self) -> bool:
        """Returns the login state reported by the active test plugin.

        Anything other than an explicit true, including a failed request, is
        reported as not logged in.
        """
        try:
            body = await self.__http.get(
                IS_LOGGED_IN_PATH, self.__config.request_timeout_seconds
            )
        except DevPortalError as e:
            logging.debug("Login state unavailable: %s", e)
            return False

        if isinstance(body, dict):
            body = body.get("isLoggedIn")
        return body is True

    async def get_dev_logs(self, start_index: int = -1) -> List[Any]:
        """Returns dev log entries from `start_index` on.

        Returns:
            The log entries, or an empty list if the request fails or the
            server does not answer with a list.
        """
        try:
            body = await self.__http.get(
                DEV_LOGS_PATH,
                self.__config.request_timeout_seconds,
                params={"index": start_index},
            )
        except DevPortalError as e:
            logging.debug("Dev logs unavailable: %s", e)
            return []

        return body if isinstance(body, list) else []

    async def get_warnings(self) -> Any:
        """Returns the warnings raised while loading the test plugin."""
        return await self.__http.post(
            WARNINGS_PATH, "", self.__config.post_timeout_seconds
        )

    async def get_package(self, name: str) -> Any:
        """Returns the source of the package exposed as `name`.

        Raises:
            DevPortalError: If the request fails.
        """
        return await self.__http.get(
            PACKAGE_GET_PATH,
            self.__config.request_timeout_seconds,
            params={"variable": name},
        )

    async def get_plugin_property(self, plugin_id: str, prop: str) -> Any:
        """Returns property `prop` of the plugin with id `plugin_id`.

        Raises:
            DevPortalError: If the request fails.
        """
        return await self.__http.get(
            REMOTE_PROP_PATH,
            self.__config.request_timeout_seconds,
            params={"id": plugin_id, "prop": prop},
        )

    async def fetch_content(
        self, url: str, content_type: str = "text/json"
    ) -> Any:
        """Fetches `url` through the dev server's proxy.

        Raises:
            DevPortalError: If the request fails.
        """
        return await self.__http.post(
            PROXY_FETCH_PATH,
            json.dumps(url),
            self.__config.post_timeout_seconds,
            params={"CT": content_type},
        )

    async def test_login(self) -> RpcOutcome[Any]:
        """Starts the login flow of the active test plugin."""
        return await self.__trigger(LOGIN_TEST_PATH)

    async def test_logout(self) -> RpcOutcome[Any]:
        """Logs the active test plugin out."""
        return await self.__trigger(LOGOUT_TEST_PATH)

    async def test_captcha(self) -> RpcOutcome[Any]:
        """Starts the captcha flow of the active test plugin."""
        return await self.__trigger(CAPTCHA_TEST_PATH)

    async def __invoke(
        self,
        method: str,
        args: tuple,
        plugin_id: Optional[str] = None,
    ) -> RpcOutcome[Any]:
        if plugin_id is None:
            path = REMOTE_TEST_PATH
            params: Dict[str, str] = {"method": method}
        else:
            path = REMOTE_CALL_PATH
            params = {"id": plugin_id, "method": method}

        try:
            body = await self.__http.post(
                path,
                list(args),
                self.__config.post_timeout_seconds,
                params=params,
            )
        except (DevPortalError, TypeError, ValueError) as e:
            logging.debug("Remote call %s failed: %s", method, e)
            return RpcOutcome.failure(str(e))

        return RpcOutcome.from_response(body)

    async def __trigger(self, path: str) -> RpcOutcome[Any]:
        # Errors other than the server hanging up propagate.
        body = await self.__http.post(
            path, "", self.__config.post_timeout_seconds
        )
        return RpcOutcome.from_response(body)
