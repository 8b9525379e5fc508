import pytest

from devportal.discovery.device_candidate import DeviceCandidate
from devportal.discovery.discovery_config import DiscoveryConfig


def test_defaults():
    config = DiscoveryConfig()

    assert config.use_advertisement is True
    assert config.advertisement_window_ms == 3000
    assert config.probe_timeout_ms == 500
    assert config.verify_timeout_ms == 2000


def test_timeout_drives_window_and_probe_but_not_verification():
    config = DiscoveryConfig(timeout_ms=1500)

    assert config.advertisement_window_ms == 1500
    assert config.probe_timeout_ms == 1500
    assert config.verify_timeout_ms == 2000


def test_zero_timeout_keeps_default_window():
    config = DiscoveryConfig(timeout_ms=0)

    assert config.advertisement_window_ms == 3000
    assert config.probe_timeout_ms == 0


@pytest.mark.parametrize(
    "kwargs", [{"skip_advertisement": True}, {"force_sweep": True}]
)
def test_advertisement_disabled(kwargs):
    assert DiscoveryConfig(**kwargs).use_advertisement is False


@pytest.mark.parametrize(
    "kwargs", [{"timeout_ms": -1}, {"verify_timeout_ms": -5}]
)
def test_negative_timeouts_rejected(kwargs):
    with pytest.raises(ValueError):
        DiscoveryConfig(**kwargs)


def test_device_candidate_address_and_defaults():
    candidate = DeviceCandidate("10.0.0.4")

    assert candidate.address == "10.0.0.4:11337"
    assert candidate.available is False
    assert candidate.name is None
    assert candidate.sync_port is None
