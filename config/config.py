"""
Configuration management for NetMonitor.

This module provides classes and methods for loading, validating,
and managing application configuration with CLI integration support.
"""

import yaml
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict, field
from .settings import Settings


_SETTINGS = Settings()


@dataclass
class SourceConfig:
    """Configuration for the upstream log source."""
    command: List[str] = field(default_factory=lambda: list(_SETTINGS.DEFAULT_SOURCE_COMMAND))
    channel_tag: str = _SETTINGS.DEFAULT_CHANNEL_TAG
    chunk_size: int = _SETTINGS.DEFAULT_CHUNK_SIZE


@dataclass
class ServerConfig:
    """Configuration for the event server."""
    host: str = _SETTINGS.DEFAULT_HOST
    port: int = _SETTINGS.DEFAULT_PORT
    send_timeout: float = _SETTINGS.DEFAULT_SEND_TIMEOUT  # seconds


@dataclass
class ClientConfig:
    """Configuration for dashboard and monitor connections."""
    url: str = _SETTINGS.default_url
    reconnect_delay: float = _SETTINGS.DEFAULT_RECONNECT_DELAY  # seconds


@dataclass
class StoreConfig:
    """Configuration for the request store."""
    max_records: Optional[int] = None  # None keeps every record


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = _SETTINGS.DEFAULT_LOG_LEVEL
    file: Optional[str] = None


_SECTIONS = {
    'source': SourceConfig,
    'server': ServerConfig,
    'client': ClientConfig,
    'store': StoreConfig,
    'logging': LoggingConfig,
}


@dataclass
class Config:
    """Main configuration class for NetMonitor."""
    source: SourceConfig = field(default_factory=SourceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        # Environment variable overrides
        for key, value in self.get_env_overrides().items():
            section, option = key.split('.')
            setattr(getattr(self, section), option, value)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a YAML file or return default configuration.

        Args:
            config_path: Path to configuration file

        Returns:
            Config instance
        """
        # Check for config path in environment if not provided
        if not config_path:
            env_config_path = os.getenv('NETMONITOR_CONFIG')
            if env_config_path:
                config_path = Path(env_config_path)
            else:
                config_path = Path(_SETTINGS.DEFAULT_CONFIG_PATH)

        if config_path and config_path.exists():
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
                if data is None:
                    data = {}
                return cls.from_dict(data)
        else:
            return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """
        Create Config instance from dictionary.

        Unknown sections are ignored; a section that is not a mapping
        falls back to its defaults.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance
        """
        kwargs = {}
        for name, section_class in _SECTIONS.items():
            section_data = data.get(name)
            if isinstance(section_data, dict):
                kwargs[name] = section_class(**section_data)
            else:
                kwargs[name] = section_class()
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert Config instance to dictionary.

        Returns:
            Configuration dictionary
        """
        return asdict(self)

    @staticmethod
    def get_default_config_dict() -> Dict[str, Any]:
        """Default configuration, without environment overrides applied."""
        return {name: asdict(section_class()) for name, section_class in _SECTIONS.items()}

    def save(self, config_path: Path) -> None:
        """
        Save configuration to a YAML file.

        Args:
            config_path: Path to save configuration file
        """
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    def get(self, key: str) -> Any:
        """
        Look up a dotted option such as ``server.port``.

        Raises:
            KeyError: If the section or option does not exist
        """
        section, _, option = key.partition('.')
        if section not in _SECTIONS:
            raise KeyError(key)
        section_obj = getattr(self, section)
        if not option:
            return asdict(section_obj)
        if not hasattr(section_obj, option):
            raise KeyError(key)
        return getattr(section_obj, option)

    def validate(self) -> List[str]:
        """
        Validate the configuration and return a list of errors.

        Returns:
            List of validation errors, empty if valid
        """
        errors = []

        if not self.source.command:
            errors.append("Source command must not be empty")
        if not self.source.channel_tag:
            errors.append("Source channel tag must not be empty")
        if self.source.chunk_size <= 0:
            errors.append("Source chunk size must be positive")

        if not 0 < self.server.port < 65536:
            errors.append(f"Invalid server port: {self.server.port}")
        if self.server.send_timeout <= 0:
            errors.append("Server send timeout must be positive")

        if not self.client.url.startswith(('ws://', 'wss://')):
            errors.append(f"Client URL must be a ws:// or wss:// URL: {self.client.url}")
        if self.client.reconnect_delay <= 0:
            errors.append("Client reconnect delay must be positive")

        if self.store.max_records is not None and self.store.max_records <= 0:
            errors.append("Store max records must be positive when set")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid logging level: {self.logging.level}. Valid values: {', '.join(valid_log_levels)}")

        return errors

    def get_env_overrides(self) -> Dict[str, Any]:
        """
        Get configuration values that are overridden by environment variables.

        Returns:
            Dictionary of environment variable overrides
        """
        overrides = {}

        if os.getenv('NETMONITOR_HOST'):
            overrides['server.host'] = os.getenv('NETMONITOR_HOST')
        if os.getenv('NETMONITOR_PORT'):
            overrides['server.port'] = int(os.getenv('NETMONITOR_PORT'))
        if os.getenv('NETMONITOR_URL'):
            overrides['client.url'] = os.getenv('NETMONITOR_URL')
        if os.getenv('NETMONITOR_RECONNECT_DELAY'):
            overrides['client.reconnect_delay'] = float(os.getenv('NETMONITOR_RECONNECT_DELAY'))
        if os.getenv('NETMONITOR_LOG_LEVEL'):
            overrides['logging.level'] = os.getenv('NETMONITOR_LOG_LEVEL')

        return overrides

    def apply_cli_overrides(self, cli_options: Dict[str, Any]) -> None:
        """
        Apply command-line interface options as overrides to the configuration.

        Args:
            cli_options: Dictionary of CLI options to apply
        """
        if cli_options.get('host'):
            self.server.host = cli_options['host']
        if cli_options.get('port'):
            self.server.port = cli_options['port']
        if cli_options.get('command'):
            self.source.command = list(cli_options['command'])
        if cli_options.get('url'):
            self.client.url = cli_options['url']
        if cli_options.get('reconnect_delay'):
            self.client.reconnect_delay = cli_options['reconnect_delay']
        if cli_options.get('log_level'):
            self.logging.level = cli_options['log_level']
