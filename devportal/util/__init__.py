"""Utility functions for devportal."""

from devportal.util.ip import (
    get_all_address_strings,
    get_local_ipv4_addresses,
    subnet_hosts,
)

__all__ = [
    "get_all_address_strings",
    "get_local_ipv4_addresses",
    "subnet_hosts",
]
