"""
rdagent Configuration Module

Provides centralized configuration management with:
- Environment variable loading (RD_ prefix)
- Type validation via Pydantic
- Development overrides via .env file

The well-known document locations default to the paths used on provisioned
devices. Tests and development setups point them elsewhere through the
environment.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class AgentSettings(BaseSettings):
    """
    Agent process settings.

    Usage:
        from rdagent.utils.config import settings

        device = load_entity(Device, settings.DEVICE_FILE)
    """
    model_config = SettingsConfigDict(
        env_prefix='RD_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # ==========================================================================
    # GENERAL
    # ==========================================================================
    ENVIRONMENT: str = Field(default="development", description="Runtime environment: development, production")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # ==========================================================================
    # DOCUMENTS
    # ==========================================================================
    DEVICE_FILE: str = Field(default="/etc/rd/device.yaml", description="Device identity document")
    WIREGUARD_FILE: str = Field(default="/etc/rd/wireguard.yaml", description="WireGuard structured document")
    WIREGUARD_CONF_FILE: str = Field(default="/etc/wireguard/rd0.conf", description="Native config written for wg-quick")
    WIREGUARD_API_URL: Optional[str] = Field(default=None, description="Peer config endpoint (default: <device api_url>/wireguard)")

    # ==========================================================================
    # TUNNEL
    # ==========================================================================
    INTERFACE: Optional[str] = Field(default=None, description="Tunnel interface name (default: native config file stem)")
    WG_QUICK_BIN: str = Field(default="wg-quick", description="Executable used to bring the interface up")

    # ==========================================================================
    # NETWORKING
    # ==========================================================================
    HEARTBEAT_INTERVAL: float = Field(default=1.0, description="Seconds between heartbeats and between retries")
    HEARTBEAT_PORT: Optional[int] = Field(default=None, description="Local UDP port (default: hub port)")
    FETCH_TIMEOUT: Optional[float] = Field(default=None, description="Control plane request timeout in seconds (unset: wait indefinitely)")

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"


# Global settings instance
settings = AgentSettings()
