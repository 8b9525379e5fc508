"""Initializes the devportal.discovery.mdns package.

This package collects mDNS advertisements of the plugin host's sync service
through one of two `zeroconf` backends and converts them into unverified
device candidates.
"""

from devportal.discovery.mdns.advertisement_browser import (
    SYNC_SERVICE_TYPE,
    AdvertisedService,
    AdvertisementBrowser,
)
from devportal.discovery.mdns.advertisement_lookup import (
    AdvertisementLookup,
    preferred_address,
)
from devportal.discovery.mdns.record_listener import AsyncZeroconfBrowser
from devportal.discovery.mdns.threaded_browser import ThreadedZeroconfBrowser

__all__ = [
    "SYNC_SERVICE_TYPE",
    "AdvertisedService",
    "AdvertisementBrowser",
    "AdvertisementLookup",
    "AsyncZeroconfBrowser",
    "ThreadedZeroconfBrowser",
    "preferred_address",
]
