from pathlib import Path
from typing import Any, Dict, Optional

import tomli

from tokenwatch.logger import logger


class Config:
    """
    Configuration manager for tokenwatch

    Loads a TOML file and exposes dot-separated lookups plus the
    enabled collector / strategy / executor lists.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager

        Args:
            config_path: Path to the TOML configuration file.
                        If not provided, defaults to "config.toml"
        """
        self.config_path = config_path or "config.toml"
        self.config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from TOML file

        Returns:
            Dict[str, Any]: Configuration dictionary, empty if file not found
        """
        config_path = Path(self.config_path)
        if not config_path.exists():
            logger.warning(
                f"Config file not found: {self.config_path}, using empty configuration"
            )
            return {}

        try:
            with open(config_path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            logger.error(f"Error parsing config file {self.config_path}: {e}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key

        Args:
            key: Dot-separated configuration key (e.g., "collectors.web3_chain.rpc_url")
            default: Default value if key not found

        Returns:
            Any: Configuration value or default if not found
        """
        value = self.config
        for k in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(k, default)
        return value if value is not None else default

    @property
    def collectors(self) -> list:
        """Get list of enabled collectors"""
        return self.config.get("collectors", {}).get("enabled", [])

    @property
    def strategies(self) -> list:
        """Get list of enabled strategies"""
        return self.config.get("strategies", {}).get("enabled", [])

    @property
    def executors(self) -> list:
        """Get list of enabled executors"""
        return self.config.get("executors", {}).get("enabled", [])

    def get_component_config(self, prefix: str, name: str) -> dict:
        """
        Get configuration for a specific component

        The ``enabled`` list lives next to the per-component tables, so it is
        never returned as component configuration.

        Args:
            prefix: Component kind ("collectors", "strategies" or "executors")
            name: Name of the component

        Returns:
            dict: Component configuration or empty dict if not found
        """
        section = self.config.get(prefix, {}).get(name, {})
        return section if isinstance(section, dict) else {}
