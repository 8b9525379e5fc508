"""Uniform result type for call-shaped RPC operations."""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

ResultT = TypeVar("ResultT")

_UNSPECIFIED_ERROR = "Remote call reported an unspecified error."


@dataclass(frozen=True)
class RpcOutcome(Generic[ResultT]):
    """Result of a remote call.

    Exactly one of `result` and `error` is meaningful: `result` when
    `success` is True, `error` otherwise. A successful call may still carry a
    `None` result.
    """

    success: bool
    result: Optional[ResultT] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, result: Optional[ResultT] = None) -> "RpcOutcome[ResultT]":
        return cls(success=True, result=result)

    @classmethod
    def failure(cls, error: str) -> "RpcOutcome[ResultT]":
        return cls(success=False, error=error)

    @classmethod
    def from_response(cls, body: Any) -> "RpcOutcome[Any]":
        """Interprets a decoded response body from the dev server.

        The server answers either with an envelope or with the bare value:

        - an object carrying an `error` key is a failure, whatever else it
          holds, even when the error value itself is null;
        - otherwise an object with a `result` key is unwrapped;
        - anything else is itself the result.

        Args:
            body: JSON-decoded response body, raw text, or `None`.

        Returns:
            The corresponding `RpcOutcome`.
        """
        if isinstance(body, dict):
            if "error" in body:
                error = body["error"]
                if error is None:
                    return cls.failure(_UNSPECIFIED_ERROR)
                return cls.failure(
                    error if isinstance(error, str) else str(error)
                )
            if "result" in body:
                return cls.ok(body["result"])
        return cls.ok(body)
