"""Attribute-style access to methods of the plugin under test."""

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from devportal.rpc.errors import RemoteCallError

if TYPE_CHECKING:
    from devportal.rpc.rpc_client import RpcClient


class PluginProxy:
    """Exposes the active test plugin's methods as awaitable attributes.

    `await client.plugin.getHome()` is `await client.call("getHome")`, except
    that the unwrapped result is returned and a failed call raises
    `RemoteCallError`.
    """

    def __init__(self, client: "RpcClient") -> None:
        self.__client = client

    def __getattr__(self, method: str) -> Callable[..., Awaitable[Any]]:
        if method.startswith("_"):
            raise AttributeError(method)

        async def invoke(*args: Any) -> Any:
            outcome = await self.__client.call(method, *args)
            if not outcome.success:
                raise RemoteCallError(method, outcome.error)
            return outcome.result

        invoke.__name__ = method
        return invoke
