"""Configuration loading and validation."""

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from chroma_rest.config.schema import ClientConfig
from chroma_rest.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".chroma_rest" / "config.yaml"


def build_config(**values: Any) -> ClientConfig:
    """Validate keyword values into a ClientConfig.

    Raises:
        ConfigurationError: If the values do not form a valid configuration
    """
    try:
        return ClientConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def load_config(path: Optional[Path] = None) -> ClientConfig:
    """Load and validate client configuration from a YAML file.

    Args:
        path: Path to config file. If None, tries default location.
              If file doesn't exist, returns default config.

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If config file exists but is invalid
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if not path.exists():
        return build_config()

    try:
        with open(path, "r") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load config from {path}: {e}") from e

    if config_data is None:
        return build_config()
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")

    return build_config(**config_data)


def save_config(config: ClientConfig, path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration object to save
        path: Destination path (string or Path object). If None, uses default location.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    elif isinstance(path, str):
        path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()

    with open(path, "w") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
