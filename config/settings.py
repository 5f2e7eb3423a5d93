"""
Settings management for NetMonitor.

This module provides application-wide settings and constants.
"""

from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings and constants."""

    # Application settings
    APP_NAME: str = "NetMonitor"
    APP_VERSION: str = "0.1.0"

    # Default paths
    DEFAULT_CONFIG_PATH: str = "./netmonitor_config.yaml"
    DEFAULT_LOG_FILE: str = "./netmonitor.log"

    # Log source settings
    DEFAULT_CHANNEL_TAG: str = "ReactNativeJS"
    DEFAULT_SOURCE_COMMAND: tuple = ("adb", "logcat", "-s", "ReactNativeJS:I")
    DEFAULT_CHUNK_SIZE: int = 4096  # bytes per read from the log source

    # Transport settings
    DEFAULT_HOST: str = "localhost"
    DEFAULT_PORT: int = 8082
    DEFAULT_SEND_TIMEOUT: float = 5.0  # seconds a consumer may take to accept one event
    DEFAULT_RECONNECT_DELAY: float = 3.0  # seconds

    # Logging settings
    DEFAULT_LOG_LEVEL: str = "INFO"

    # Event markers, body variants first
    REQUEST_BODY_MARKER: str = "NETWORK_REQUEST_BODY"
    RESPONSE_BODY_MARKER: str = "NETWORK_RESPONSE_BODY"
    REQUEST_MARKER: str = "NETWORK_REQUEST"
    RESPONSE_MARKER: str = "NETWORK_RESPONSE"

    def __post_init__(self):
        if not isinstance(self.DEFAULT_SOURCE_COMMAND, tuple):
            self.DEFAULT_SOURCE_COMMAND = tuple(self.DEFAULT_SOURCE_COMMAND)

    @property
    def default_url(self) -> str:
        return f"ws://{self.DEFAULT_HOST}:{self.DEFAULT_PORT}"
