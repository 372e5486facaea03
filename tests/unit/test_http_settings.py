"""Unit tests for environment settings and the client configuration."""

import pydantic
import pytest

from typedhttp.http.config import HttpClientConfig
from typedhttp.settings.app import HttpClientSettings, get_settings


class TestHttpClientSettings:
    """Tests for HttpClientSettings."""

    @pytest.mark.unit
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default settings."""
        monkeypatch.delenv("TYPEDHTTP_BASE_URL", raising=False)
        monkeypatch.delenv("TYPEDHTTP_CORRELATION_HEADER_NAMES", raising=False)

        settings = HttpClientSettings(_env_file=None)  # type: ignore[call-arg]

        assert settings.base_url == ""
        assert settings.timeout_seconds == 30.0
        assert settings.correlation_header_names == ["x-correlation-id"]

    @pytest.mark.unit
    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test reading settings from prefixed environment variables."""
        monkeypatch.setenv("TYPEDHTTP_BASE_URL", "https://api.example.com")
        monkeypatch.setenv("TYPEDHTTP_TIMEOUT_SECONDS", "12")
        monkeypatch.setenv(
            "TYPEDHTTP_CORRELATION_HEADER_NAMES", "x-correlation-id, x-request-id,"
        )

        settings = get_settings()

        assert settings.base_url == "https://api.example.com"
        assert settings.timeout_seconds == 12.0
        assert settings.correlation_header_names == [
            "x-correlation-id",
            "x-request-id",
        ]

    @pytest.mark.unit
    def test_timeout_bounds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that out-of-range timeouts are rejected."""
        monkeypatch.setenv("TYPEDHTTP_TIMEOUT_SECONDS", "0")

        with pytest.raises(pydantic.ValidationError):
            get_settings()

    @pytest.mark.unit
    def test_log_level_normalized(self) -> None:
        """Test that log level names are upper-cased."""
        settings = HttpClientSettings(
            _env_file=None,  # type: ignore[call-arg]
            log_level=" debug ",
        )
        assert settings.log_level == "DEBUG"

    @pytest.mark.unit
    def test_unknown_log_level_rejected(self) -> None:
        """Test that an unknown log level fails validation."""
        with pytest.raises(pydantic.ValidationError, match="log level"):
            HttpClientSettings(
                _env_file=None,  # type: ignore[call-arg]
                log_level="LOUD",
            )


class TestHttpClientConfig:
    """Tests for HttpClientConfig."""

    @pytest.mark.unit
    def test_from_settings(self) -> None:
        """Test building the configuration from settings."""
        settings = HttpClientSettings(
            _env_file=None,  # type: ignore[call-arg]
            user_agent="orders/2.0",
            timeout_seconds=5,
            correlation_header_names=["x-correlation-id", "x-request-id"],
        )

        config = HttpClientConfig.from_settings(settings)

        assert config.user_agent == "orders/2.0"
        assert config.timeout_seconds == 5.0
        assert config.correlation_header_names == ("x-correlation-id", "x-request-id")

    @pytest.mark.unit
    def test_blank_header_name_rejected(self) -> None:
        """Test that blank correlation header names are rejected."""
        with pytest.raises(pydantic.ValidationError, match="blank"):
            HttpClientConfig(correlation_header_names=("x-correlation-id", " "))

    @pytest.mark.unit
    def test_duplicate_header_name_rejected(self) -> None:
        """Test that header names are compared case-insensitively."""
        with pytest.raises(pydantic.ValidationError, match="Duplicate"):
            HttpClientConfig(
                correlation_header_names=("x-request-id", "X-Request-Id")
            )

    @pytest.mark.unit
    def test_frozen(self) -> None:
        """Test that the configuration is immutable."""
        config = HttpClientConfig()
        with pytest.raises(pydantic.ValidationError):
            config.user_agent = "other"  # type: ignore[misc]
