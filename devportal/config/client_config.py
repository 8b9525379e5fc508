# devportal/config/client_config.py
from dataclasses import dataclass, fields


@dataclass(frozen=True)
class ClientConfig:
    """Per-call timeouts used by RpcClient, in seconds."""

    # Liveness checks against the health path.
    ping_timeout_seconds: float = 5.0

    # GET requests for logs, packages, properties and login state.
    request_timeout_seconds: float = 10.0

    # POST requests; plugin injection and remote calls can take a while.
    post_timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if value <= 0:
                raise ValueError(
                    f"{field.name} must be positive, got {value}."
                )
