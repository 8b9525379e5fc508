from unittest.mock import MagicMock

import pytest
from zeroconf import Zeroconf

from devportal.discovery.mdns.threaded_browser import ThreadedZeroconfBrowser

SERVICE_TYPE = "_gsync._tcp.local."


def make_service_info(name, address):
    info = MagicMock(name="ServiceInfo")
    info.name = name
    info.port = 12315
    info.server = "device.local."
    info.properties = {}
    info.parsed_addresses.return_value = [address]
    return info


@pytest.mark.asyncio
async def test_browse_collects_services_and_closes(mocker):
    mock_zc = MagicMock(spec=Zeroconf)
    mock_zc.get_service_info.side_effect = lambda type_, name, timeout: (
        make_service_info(name, "192.168.1.30")
    )

    def fake_service_browser(zc, service_type, listener):
        # Simulate zeroconf announcing two services and one foreign type.
        listener.add_service(zc, service_type, "A._gsync._tcp.local.")
        listener.add_service(zc, service_type, "B._gsync._tcp.local.")
        listener.add_service(zc, "_x._tcp.local.", "C._x._tcp.local.")
        return mock_browser

    mock_browser = MagicMock(name="ServiceBrowser")
    mock_browser_cls = mocker.patch(
        "devportal.discovery.mdns.threaded_browser.ServiceBrowser",
        side_effect=fake_service_browser,
    )

    services = await ThreadedZeroconfBrowser(lambda: mock_zc).browse(
        SERVICE_TYPE, 0.0
    )

    assert [s.name for s in services] == ["A", "B"]
    assert all(s.addresses == ["192.168.1.30"] for s in services)
    mock_browser_cls.assert_called_once()
    mock_browser.cancel.assert_called_once()
    mock_zc.close.assert_called_once()


@pytest.mark.asyncio
async def test_browse_removed_service_not_returned(mocker):
    mock_zc = MagicMock(spec=Zeroconf)
    mock_zc.get_service_info.return_value = make_service_info(
        "A._gsync._tcp.local.", "10.1.1.1"
    )

    def fake_service_browser(zc, service_type, listener):
        listener.add_service(zc, service_type, "A._gsync._tcp.local.")
        listener.remove_service(zc, service_type, "A._gsync._tcp.local.")
        return MagicMock()

    mocker.patch(
        "devportal.discovery.mdns.threaded_browser.ServiceBrowser",
        side_effect=fake_service_browser,
    )

    services = await ThreadedZeroconfBrowser(lambda: mock_zc).browse(
        SERVICE_TYPE, 0.0
    )

    assert services == []


@pytest.mark.asyncio
async def test_browse_closes_zeroconf_when_browser_fails(mocker):
    mock_zc = MagicMock(spec=Zeroconf)
    mocker.patch(
        "devportal.discovery.mdns.threaded_browser.ServiceBrowser",
        side_effect=OSError("socket unavailable"),
    )

    with pytest.raises(OSError):
        await ThreadedZeroconfBrowser(lambda: mock_zc).browse(
            SERVICE_TYPE, 0.0
        )

    mock_zc.close.assert_called_once()
