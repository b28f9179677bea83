"""Client configuration."""

from chroma_rest.config.loader import build_config, load_config, save_config
from chroma_rest.config.schema import BasicAuth, ClientConfig, NoAuth, TokenAuth

__all__ = [
    "BasicAuth",
    "ClientConfig",
    "NoAuth",
    "TokenAuth",
    "build_config",
    "load_config",
    "save_config",
]
