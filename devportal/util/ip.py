"""Utilities for local network IPv4 addresses and /24 subnet enumeration."""

import ipaddress
import socket

import psutil  # type: ignore[import-untyped]


def get_all_address_strings() -> list[str]:
    """Retrieves all IPv4 address strings for all network interfaces.

    This function iterates through all network interfaces on the system,
    collects all assigned IPv4 addresses, and returns them as a list of strings.

    Returns:
        A list of IPv4 address strings. Empty if no IPv4 addresses found.
    """
    addresses: list[str] = []
    for _, interface_addresses in psutil.net_if_addrs().items():
        for address in interface_addresses:
            if address.family == socket.AF_INET:
                addresses.append(address.address)
    return addresses


def get_local_ipv4_addresses() -> list[str]:
    """Retrieves the non-loopback IPv4 addresses of this machine.

    Order follows interface enumeration order, so the first entry is the one
    used to derive the subnet to sweep.

    Returns:
        A list of IPv4 address strings, loopback addresses excluded.
    """
    return [
        address
        for address in get_all_address_strings()
        if not ipaddress.ip_address(address).is_loopback
    ]


def subnet_hosts(address: str) -> list[str]:
    """Enumerates the 254 host addresses of the /24 containing `address`.

    Args:
        address: Any IPv4 address string within the subnet.

    Returns:
        Host addresses `a.b.c.1` through `a.b.c.254`, in ascending order.

    Raises:
        ValueError: If `address` is not a valid IPv4 address.
    """
    network = ipaddress.IPv4Network(f"{address}/24", strict=False)
    return [str(host) for host in network.hosts()]
