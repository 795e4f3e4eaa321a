"""Unit tests for Settings and the global settings accessors."""

import pytest
from pydantic import ValidationError

from kopzinski_bus.settings import Settings, get_settings, reset_settings, set_settings


class TestDefaults:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.dbus_system_bus_address is None
        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.service_version == "1.0.0"
        assert settings.initial_message == "Hello from Kopzinski!"
        assert settings.startup_signal_delay == 1.0
        assert settings.signal_trigger_delay == 1.0
        assert settings.observation_window == 3.0


class TestEnvironment:
    def test_bus_address_uses_standard_variable(self, monkeypatch):
        monkeypatch.setenv("DBUS_SYSTEM_BUS_ADDRESS", "unix:path=/tmp/dbus-system-local/system_bus_socket")

        settings = Settings(_env_file=None)

        assert settings.dbus_system_bus_address == "unix:path=/tmp/dbus-system-local/system_bus_socket"

    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("KOPZINSKI_LOG_LEVEL", "debug")
        monkeypatch.setenv("KOPZINSKI_OBSERVATION_WINDOW", "10")
        monkeypatch.setenv("KOPZINSKI_INITIAL_MESSAGE", "from env")

        settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.observation_window == 10.0
        assert settings.initial_message == "from env"

    def test_empty_address_means_default_bus(self, monkeypatch):
        monkeypatch.setenv("DBUS_SYSTEM_BUS_ADDRESS", "")

        assert Settings(_env_file=None).dbus_system_bus_address is None


class TestValidation:
    @pytest.mark.parametrize(
        "address",
        [
            "unix:path=/run/dbus/system_bus_socket",
            "unix:abstract=/tmp/dbus-abc,guid=1234",
            "tcp:host=localhost,port=12345",
            "unix:path=/tmp/a;unix:path=/tmp/b",
        ],
    )
    def test_accepts_bus_addresses(self, address):
        assert Settings(dbus_system_bus_address=address).dbus_system_bus_address == address

    @pytest.mark.parametrize("address", ["/tmp/socket", "unix", "not an address"])
    def test_rejects_malformed_addresses(self, address):
        with pytest.raises(ValidationError, match="Invalid D-Bus address"):
            Settings(dbus_system_bus_address=address)

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(log_level="LOUD")

    def test_window_bounds(self):
        with pytest.raises(ValidationError):
            Settings(observation_window=-1)


class TestProbeTiming:
    def test_loading_does_not_check_probe_timing(self, monkeypatch):
        monkeypatch.setenv("KOPZINSKI_OBSERVATION_WINDOW", "0.5")

        settings = Settings(_env_file=None)

        assert settings.observation_window == 0.5
        assert settings.signal_trigger_delay == 1.0

    def test_trigger_delay_must_fit_in_window(self):
        settings = Settings(signal_trigger_delay=2.0, observation_window=2.0)

        with pytest.raises(ValueError, match="shorter than observation_window"):
            settings.validate_probe_timing()

    def test_default_timing_is_valid(self):
        Settings(_env_file=None).validate_probe_timing()

    def test_zero_window_skips_check(self):
        Settings(signal_trigger_delay=5.0, observation_window=0).validate_probe_timing()


class TestGlobalSettings:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_set_and_reset(self):
        custom = Settings(initial_message="custom")

        set_settings(custom)
        assert get_settings() is custom

        reset_settings()
        assert get_settings() is not custom


class TestLogBusConfig:
    def test_warns_when_address_missing(self, mock_logger):
        Settings(_env_file=None).log_bus_config(mock_logger)

        mock_logger.warning.assert_called_once_with(
            "bus_address_not_set",
            env="DBUS_SYSTEM_BUS_ADDRESS",
            fallback="default system bus",
        )

    def test_logs_configured_address(self, mock_logger):
        Settings(dbus_system_bus_address="unix:path=/tmp/bus").log_bus_config(mock_logger)

        mock_logger.info.assert_called_once_with(
            "bus_address_configured", address="unix:path=/tmp/bus"
        )
