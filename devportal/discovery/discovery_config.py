# devportal/discovery/discovery_config.py
from dataclasses import dataclass
from typing import Optional

# Used for the mDNS browse window when no timeout is supplied.
DEFAULT_ADVERTISEMENT_WINDOW_MS = 3000

# Used for priority-host and subnet-sweep probes when no timeout is supplied.
DEFAULT_PROBE_TIMEOUT_MS = 500

# Re-verification of advertised hosts uses its own, longer timeout.
DEFAULT_VERIFY_TIMEOUT_MS = 2000


@dataclass(frozen=True)
class DiscoveryConfig:
    """Input parameters for a single `DiscoveryEngine.discover()` call.

    `timeout_ms` serves two purposes, each with its own default when it is
    not given: the mDNS browse window and the per-probe timeout of the
    priority and sweep phases. Verification of advertised hosts is driven by
    `verify_timeout_ms` instead.
    """

    timeout_ms: Optional[int] = None
    skip_advertisement: bool = False
    # Go straight to active probing, ignoring mDNS entirely.
    force_sweep: bool = False
    verify_timeout_ms: int = DEFAULT_VERIFY_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise ValueError(
                f"timeout_ms must be non-negative, got {self.timeout_ms}."
            )
        if self.verify_timeout_ms < 0:
            raise ValueError(
                "verify_timeout_ms must be non-negative, got "
                f"{self.verify_timeout_ms}."
            )

    @property
    def use_advertisement(self) -> bool:
        return not (self.skip_advertisement or self.force_sweep)

    @property
    def advertisement_window_ms(self) -> int:
        if self.timeout_ms:
            return self.timeout_ms
        return DEFAULT_ADVERTISEMENT_WINDOW_MS

    @property
    def probe_timeout_ms(self) -> int:
        if self.timeout_ms is not None:
            return self.timeout_ms
        return DEFAULT_PROBE_TIMEOUT_MS
