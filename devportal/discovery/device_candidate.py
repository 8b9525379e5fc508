"""Defines the DeviceCandidate record produced by discovery."""

import dataclasses
from typing import Optional

# Port the dev server listens on.
DEV_SERVER_PORT = 11337

# Path answered by a running dev server; 200 or 302 means it is up.
HEALTH_PATH = "/dev"


@dataclasses.dataclass(frozen=True)
class DeviceCandidate:
    """A host that may be running the dev server.

    `available` is only ever True when an HTTP probe against the host
    actually answered. Candidates built from mDNS advertisements start out
    unavailable until they have been re-verified.

    Attributes:
        host: Hostname or IPv4 address of the candidate.
        service_port: Port of the dev server on `host`.
        available: Whether a probe confirmed the dev server is running.
        name: Advertised instance name, if discovered through mDNS.
        sync_port: Advertised sync service port, if discovered through mDNS.
        response_time_ms: Elapsed probe time, for ordering and diagnostics.
    """

    host: str
    service_port: int = DEV_SERVER_PORT
    available: bool = False
    name: Optional[str] = None
    sync_port: Optional[int] = None
    response_time_ms: Optional[int] = None

    @property
    def address(self) -> str:
        """The `host:port` identity of this candidate."""
        return f"{self.host}:{self.service_port}"
