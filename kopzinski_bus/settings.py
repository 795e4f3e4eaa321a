"""Runtime settings for the Kopzinski service and client.

Values come from the environment (or a local .env file). The bus address
uses the standard DBUS_SYSTEM_BUS_ADDRESS variable; everything else is
namespaced with KOPZINSKI_.
"""

import re
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kopzinski_bus.constants import (
    BUS_ADDRESS_ENV,
    DEFAULT_MESSAGE,
    DEFAULT_OBSERVATION_WINDOW,
    DEFAULT_SIGNAL_TRIGGER_DELAY,
    DEFAULT_STARTUP_SIGNAL_DELAY,
    DEFAULT_VERSION,
)
from kopzinski_bus.logging import LOG_LEVELS

# transport:key=value[,key=value][;transport:...]
_BUS_ADDRESS_PATTERN = re.compile(r"^[a-z0-9-]+:([^;=,]+=[^;,]*(,[^;=,]+=[^;,]*)*)?(;.+)?$")


class Settings(BaseSettings):
    """Service and client settings."""

    # =========================================================================
    # BUS
    # =========================================================================
    dbus_system_bus_address: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(BUS_ADDRESS_ENV, "dbus_system_bus_address"),
        description="Bus endpoint; platform default system bus when unset",
    )

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = False

    # =========================================================================
    # SERVICE STATE
    # =========================================================================
    service_version: str = DEFAULT_VERSION
    initial_message: str = DEFAULT_MESSAGE
    startup_signal_delay: float = Field(
        default=DEFAULT_STARTUP_SIGNAL_DELAY,
        ge=0.0,
        le=60.0,
    )

    # =========================================================================
    # PROBE TIMING
    # =========================================================================
    signal_trigger_delay: float = Field(
        default=DEFAULT_SIGNAL_TRIGGER_DELAY,
        ge=0.0,
        le=60.0,
    )
    observation_window: float = Field(
        default=DEFAULT_OBSERVATION_WINDOW,
        ge=0.0,
        le=300.0,
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("dbus_system_bus_address", mode="after")
    @classmethod
    def validate_bus_address(cls, v: Optional[str]) -> Optional[str]:
        """Validate D-Bus address syntax (e.g. unix:path=/run/dbus/system_bus_socket)."""
        if v is None or v == "":
            return None
        if not _BUS_ADDRESS_PATTERN.match(v):
            raise ValueError(f"Invalid D-Bus address: {v}. Expected transport:key=value")
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {', '.join(LOG_LEVELS)}")
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="KOPZINSKI_",
        extra="ignore",
        populate_by_name=True,
    )

    def validate_probe_timing(self) -> None:
        """Check that the background mutations fire inside the observation window.

        Only the client runs the probe, so only the client calls this.

        Raises:
            ValueError: If signal_trigger_delay >= a non-zero observation_window.
        """
        if self.observation_window and self.signal_trigger_delay >= self.observation_window:
            raise ValueError(
                "signal_trigger_delay must be shorter than observation_window "
                f"({self.signal_trigger_delay} >= {self.observation_window})"
            )

    def log_bus_config(self, logger) -> None:
        """Log which bus endpoint will be used."""
        if self.dbus_system_bus_address:
            logger.info("bus_address_configured", address=self.dbus_system_bus_address)
        else:
            logger.warning(
                "bus_address_not_set",
                env=BUS_ADDRESS_ENV,
                fallback="default system bus",
            )


# =============================================================================
# GLOBAL SETTINGS (Lazy Initialization)
# =============================================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance, creating it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings_instance: Settings) -> None:
    """Set the global settings instance (bootstrap and tests)."""
    global _settings
    _settings = settings_instance


def reset_settings() -> None:
    """Reset the global settings instance.

    Forces re-creation on next get_settings() call.
    """
    global _settings
    _settings = None
