from devportal.config.client_config import ClientConfig

__all__ = ["ClientConfig"]
