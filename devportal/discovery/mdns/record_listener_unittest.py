import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from zeroconf.asyncio import AsyncServiceBrowser, AsyncZeroconf

from devportal.discovery.mdns.record_listener import (
    AsyncZeroconfBrowser,
    RecordListener,
)

SERVICE_TYPE = "_gsync._tcp.local."


def make_service_info(
    name="Phone._gsync._tcp.local.",
    port=12315,
    addresses=("fe80::1", "192.168.1.20"),
    server="phone.local.",
    properties=None,
):
    info = MagicMock(name="ServiceInfo")
    info.name = name
    info.port = port
    info.server = server
    info.properties = properties or {}
    info.parsed_addresses.return_value = list(addresses)
    return info


@pytest.mark.asyncio
async def test_handle_add_service_records_resolved_service():
    mock_mdns = AsyncMock(spec=AsyncZeroconf)
    mock_mdns.async_get_service_info.return_value = make_service_info()
    listener = RecordListener(mock_mdns, SERVICE_TYPE)

    await listener._handle_add_service(
        SERVICE_TYPE, "Phone._gsync._tcp.local."
    )

    services = listener.services
    assert len(services) == 1
    assert services[0].name == "Phone"
    assert services[0].port == 12315
    assert services[0].addresses == ["fe80::1", "192.168.1.20"]
    assert services[0].server == "phone.local."


@pytest.mark.asyncio
async def test_handle_add_service_prefers_txt_name():
    mock_mdns = AsyncMock(spec=AsyncZeroconf)
    mock_mdns.async_get_service_info.return_value = make_service_info(
        properties={b"name": b"Living Room Tablet"}
    )
    listener = RecordListener(mock_mdns, SERVICE_TYPE)

    await listener._handle_add_service(
        SERVICE_TYPE, "Phone._gsync._tcp.local."
    )

    assert listener.services[0].name == "Living Room Tablet"


@pytest.mark.asyncio
async def test_handle_add_service_ignores_other_types():
    mock_mdns = AsyncMock(spec=AsyncZeroconf)
    listener = RecordListener(mock_mdns, SERVICE_TYPE)

    await listener._handle_add_service("_other._tcp.local.", "X._other")

    mock_mdns.async_get_service_info.assert_not_called()
    assert listener.services == []


@pytest.mark.asyncio
async def test_handle_add_service_unresolved_or_portless_dropped():
    mock_mdns = AsyncMock(spec=AsyncZeroconf)
    mock_mdns.async_get_service_info.side_effect = [
        None,
        make_service_info(port=None),
    ]
    listener = RecordListener(mock_mdns, SERVICE_TYPE)

    await listener._handle_add_service(SERVICE_TYPE, "A._gsync._tcp.local.")
    await listener._handle_add_service(SERVICE_TYPE, "B._gsync._tcp.local.")

    assert listener.services == []


@pytest.mark.asyncio
async def test_add_then_remove_service():
    mock_mdns = AsyncMock(spec=AsyncZeroconf)
    mock_mdns.async_get_service_info.return_value = make_service_info()
    listener = RecordListener(mock_mdns, SERVICE_TYPE)

    listener.add_service(MagicMock(), SERVICE_TYPE, "Phone._gsync._tcp.local.")
    await asyncio.sleep(0.01)
    assert len(listener.services) == 1

    listener.remove_service(
        MagicMock(), SERVICE_TYPE, "Phone._gsync._tcp.local."
    )
    assert listener.services == []
    await listener.close()


@pytest.mark.asyncio
async def test_browse_with_owned_zc_closes_zc():
    """The browser closes an AsyncZeroconf it created itself."""
    mock_owned_zc_instance = AsyncMock(spec=AsyncZeroconf)
    # .zeroconf is accessed when constructing the AsyncServiceBrowser
    mock_owned_zc_instance.zeroconf = MagicMock()
    mock_service_browser_instance = AsyncMock(spec=AsyncServiceBrowser)

    with patch(
        "devportal.discovery.mdns.record_listener.AsyncZeroconf",
        return_value=mock_owned_zc_instance,
    ) as mock_zc_constructor, patch(
        "devportal.discovery.mdns.record_listener.AsyncServiceBrowser",
        return_value=mock_service_browser_instance,
    ) as mock_browser_constructor:
        services = await AsyncZeroconfBrowser().browse(SERVICE_TYPE, 0.0)

    assert services == []
    mock_zc_constructor.assert_called_once()
    args, kwargs = mock_browser_constructor.call_args
    assert args[0] is mock_owned_zc_instance.zeroconf
    assert args[1] == [SERVICE_TYPE]
    assert isinstance(kwargs["listener"], RecordListener)
    mock_service_browser_instance.async_cancel.assert_awaited_once()
    mock_owned_zc_instance.async_close.assert_awaited_once()


@pytest.mark.asyncio
async def test_browse_with_shared_zc_does_not_close_shared_zc():
    mock_shared_zc_instance = AsyncMock(spec=AsyncZeroconf)
    mock_shared_zc_instance.zeroconf = MagicMock()
    mock_service_browser_instance = AsyncMock(spec=AsyncServiceBrowser)

    with patch(
        "devportal.discovery.mdns.record_listener.AsyncServiceBrowser",
        return_value=mock_service_browser_instance,
    ):
        await AsyncZeroconfBrowser(mock_shared_zc_instance).browse(
            SERVICE_TYPE, 0.0
        )

    mock_service_browser_instance.async_cancel.assert_awaited_once()
    mock_shared_zc_instance.async_close.assert_not_called()


@pytest.mark.asyncio
async def test_browse_propagates_backend_failure():
    with patch(
        "devportal.discovery.mdns.record_listener.AsyncZeroconf",
        side_effect=OSError("No multicast interface"),
    ):
        with pytest.raises(OSError):
            await AsyncZeroconfBrowser().browse(SERVICE_TYPE, 0.0)
