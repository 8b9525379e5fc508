"""Address of the dev server an RpcClient talks to."""

from dataclasses import dataclass

from devportal.discovery.device_candidate import DEV_SERVER_PORT


@dataclass(frozen=True)
class RpcTarget:
    """Host and port an `RpcClient` is bound to for its whole lifetime."""

    host: str
    port: int = DEV_SERVER_PORT

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("RpcTarget host must not be empty.")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port}.")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"
