import socket

import pytest

from devportal.util import ip as ip_util


def make_snic(mocker, family, address):
    snic = mocker.MagicMock(name="snicaddr")
    snic.family = family
    snic.address = address
    return snic


class TestIpUtils:

    # --- get_all_address_strings ---

    @pytest.mark.parametrize(
        "interfaces, expected",
        [
            ({}, []),
            ({"wlan0": [(socket.AF_INET6, "fe80::a")]}, []),
            (
                {
                    "wlan0": [
                        (socket.AF_INET, "192.168.1.50"),
                        (socket.AF_INET6, "fe80::a"),
                    ],
                    "tailscale0": [(socket.AF_INET, "100.100.1.2")],
                },
                ["192.168.1.50", "100.100.1.2"],
            ),
        ],
        ids=["no-interfaces", "ipv6-only", "two-interfaces"],
    )
    def test_get_all_address_strings(self, mocker, interfaces, expected):
        mocker.patch(
            "psutil.net_if_addrs",
            return_value={
                name: [make_snic(mocker, *entry) for entry in entries]
                for name, entries in interfaces.items()
            },
        )

        assert ip_util.get_all_address_strings() == expected

    # --- get_local_ipv4_addresses ---

    def test_get_local_ipv4_addresses_drops_loopback(self, mocker):
        mock_net_if_addrs = mocker.patch("psutil.net_if_addrs")
        mock_net_if_addrs.return_value = {
            "lo": [
                make_snic(mocker, socket.AF_INET, "127.0.0.1"),
                make_snic(mocker, socket.AF_INET6, "::1"),
            ],
            "eth0": [
                make_snic(mocker, socket.AF_INET, "172.16.0.10"),
                make_snic(mocker, socket.AF_INET6, "2001:db8::123"),
            ],
        }

        result = ip_util.get_local_ipv4_addresses()

        assert result == ["172.16.0.10"]

    def test_get_local_ipv4_addresses_only_loopback(self, mocker):
        mock_get_strings = mocker.patch(
            "devportal.util.ip.get_all_address_strings"
        )
        mock_get_strings.return_value = ["127.0.0.1", "127.0.1.1"]

        assert ip_util.get_local_ipv4_addresses() == []
        mock_get_strings.assert_called_once()

    def test_get_local_ipv4_addresses_preserves_order(self, mocker):
        mock_get_strings = mocker.patch(
            "devportal.util.ip.get_all_address_strings"
        )
        mock_get_strings.return_value = ["10.0.0.2", "127.0.0.1", "192.168.5.9"]

        assert ip_util.get_local_ipv4_addresses() == [
            "10.0.0.2",
            "192.168.5.9",
        ]

    # --- subnet_hosts ---

    def test_subnet_hosts_enumerates_254_suffixes(self):
        hosts = ip_util.subnet_hosts("192.168.1.50")

        assert len(hosts) == 254
        assert hosts[0] == "192.168.1.1"
        assert hosts[-1] == "192.168.1.254"
        assert "192.168.1.0" not in hosts
        assert "192.168.1.255" not in hosts

    def test_subnet_hosts_rejects_invalid_address(self):
        with pytest.raises(ValueError):
            ip_util.subnet_hosts("not-an-ip")
