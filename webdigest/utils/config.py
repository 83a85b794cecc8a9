"""
Configuration management utilities for WebDigest.

Resolution order (later wins):

1. Schema defaults (:class:`~webdigest.utils.schema.WebDigestConfig`)
2. ``config.yaml`` from the config directory (``WEBDIGEST_CONFIG_DIR`` or
   ``./config``), when present
3. ``WEBDIGEST_<SECTION>__<KEY>`` environment variables
4. Explicit overrides passed by the caller (CLI flags)
"""
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union, cast

from omegaconf import DictConfig, OmegaConf

from ..types.types import ConfigurationError
from .schema import WebDigestConfig
from .validation import merge_with_env_vars, validate_config

CONFIG_DIR_ENV = "WEBDIGEST_CONFIG_DIR"
CONFIG_FILENAME = "config.yaml"


def load_config(
    config_dir: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DictConfig:
    """
    Build a validated, read-only configuration.

    Args:
        config_dir: Directory holding ``config.yaml``
        overrides: Dot-notation keys to set last, e.g. ``{"chunk.model": "gpt-4o"}``;
            ``None`` values are ignored
        environ: Environment mapping (defaults to ``os.environ``)

    Raises:
        ConfigurationError: If a file, override or value is invalid
    """
    environ = os.environ if environ is None else environ

    try:
        config = cast(DictConfig, OmegaConf.structured(WebDigestConfig))

        if config_dir is None:
            config_dir = environ.get(CONFIG_DIR_ENV) or Path.cwd() / "config"
        config_file = Path(config_dir) / CONFIG_FILENAME
        if config_file.exists():
            config = cast(DictConfig, OmegaConf.merge(config, OmegaConf.load(config_file)))
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e!s}", cause=e)

    config = merge_with_env_vars(config, environ=environ)

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        try:
            OmegaConf.update(config, key, value, merge=True)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid override {key}={value!r}: {e!s}", context={"key": key}, cause=e
            )

    validate_config(config)
    OmegaConf.set_readonly(config, True)
    return config


class ConfigManager:
    """Central configuration manager for WebDigest with lazy loading."""

    _instance: Optional["ConfigManager"] = None
    _config: Optional[DictConfig] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config(self) -> DictConfig:
        """Get the full configuration (lazy loaded)."""
        if self._config is None:
            type(self)._config = load_config()
        return cast(DictConfig, self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation path to config value
            default: Default value if key doesn't exist
        """
        return OmegaConf.select(self.config, key, default=default)

    def reload(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> DictConfig:
        """Reload configuration, replacing the cached copy."""
        config = load_config(config_dir=config_dir, overrides=overrides)
        type(self)._config = config
        return config

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton and its cached configuration."""
        cls._instance = None
        cls._config = None

    @staticmethod
    def get_instance() -> "ConfigManager":
        """Get the singleton instance of ConfigManager."""
        return ConfigManager()
