import pytest

from devportal.client_factory import create_client
from devportal.config.client_config import ClientConfig
from devportal.discovery.device_candidate import DeviceCandidate
from devportal.discovery.discovery_config import DiscoveryConfig
from devportal.discovery.discovery_engine import DiscoveryEngine
from devportal.rpc.errors import DeviceNotFoundError


def make_engine(mocker, candidates):
    engine = mocker.MagicMock(spec=DiscoveryEngine)
    engine.discover = mocker.AsyncMock(return_value=candidates)
    return engine


@pytest.mark.asyncio
async def test_create_client_binds_first_candidate(mocker):
    engine = make_engine(
        mocker,
        [
            DeviceCandidate("192.168.1.4", 11337, available=True),
            DeviceCandidate("192.168.1.5", 11337, available=True),
        ],
    )
    config = ClientConfig(ping_timeout_seconds=1.0)

    client = await create_client(
        2000, True, client_config=config, engine=engine
    )

    engine.discover.assert_awaited_once_with(
        DiscoveryConfig(timeout_ms=2000, skip_advertisement=True)
    )
    assert client.target.host == "192.168.1.4"
    assert client.target.port == 11337
    assert client.config is config


@pytest.mark.asyncio
async def test_create_client_raises_when_nothing_found(mocker):
    engine = make_engine(mocker, [])

    with pytest.raises(DeviceNotFoundError):
        await create_client(engine=engine)
