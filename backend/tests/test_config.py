"""Tests for application configuration."""

from incident_teller.config import Settings, get_settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CORRELATION_WINDOW_SECONDS", raising=False)
        settings = Settings(_env_file=None)

        assert settings.CORRELATION_WINDOW_SECONDS == 900
        assert settings.CASCADE_WINDOW_SECONDS == 600
        assert settings.MAX_ALTERNATIVE_CAUSES == 5
        assert settings.NETDATA_RETRY_ATTEMPTS == 3

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("NETDATA_URL", "http://netdata.internal:19999")
        monkeypatch.setenv("CASCADE_WINDOW_SECONDS", "120")
        settings = Settings(_env_file=None)

        assert settings.NETDATA_URL == "http://netdata.internal:19999"
        assert settings.CASCADE_WINDOW_SECONDS == 120

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
