import pytest

from devportal.config.client_config import ClientConfig


def test_defaults():
    config = ClientConfig()

    assert config.ping_timeout_seconds == 5.0
    assert config.request_timeout_seconds == 10.0
    assert config.post_timeout_seconds == 30.0


@pytest.mark.parametrize(
    "field_name",
    [
        "ping_timeout_seconds",
        "request_timeout_seconds",
        "post_timeout_seconds",
    ],
)
@pytest.mark.parametrize("value", [0, -1.0])
def test_non_positive_timeouts_rejected(field_name, value):
    with pytest.raises(ValueError, match=field_name):
        ClientConfig(**{field_name: value})
