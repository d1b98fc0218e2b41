"""Tests for CoinGecko settings."""

from pathlib import Path

import pytest

from coingecko_plugin.config import (
    DEFAULT_BASE_URL,
    DEFAULT_PRO_BASE_URL,
    CoinGeckoSettings,
)


class TestCoinGeckoSettings:
    """Tests for CoinGeckoSettings."""

    def test_defaults(self) -> None:
        """Test default settings target the public API."""
        settings = CoinGeckoSettings()

        assert settings.api_key is None
        assert settings.timeout == 10.0
        assert settings.default_currency == "usd"
        assert settings.embedding_dimension == 384
        assert not settings.is_pro
        assert settings.active_base_url == DEFAULT_BASE_URL

    def test_pro_key_switches_host(self) -> None:
        """Test that a pro key routes requests to the pro host."""
        settings = CoinGeckoSettings(api_key="demo", pro_api_key="pro")

        assert settings.is_pro
        assert settings.active_base_url == DEFAULT_PRO_BASE_URL

    def test_create_from_dict(self) -> None:
        """Test creating settings from a dictionary."""
        settings = CoinGeckoSettings.from_dict({
            "api_key": "CG-test",
            "timeout": "5",
            "default_currency": "EUR",
            "base_url": "http://localhost:8080/api/v3/",
        })

        assert settings.api_key == "CG-test"
        assert settings.timeout == 5.0
        assert settings.default_currency == "eur"
        assert settings.active_base_url == "http://localhost:8080/api/v3"

    def test_empty_key_is_none(self) -> None:
        """Test that an empty key string counts as no key."""
        settings = CoinGeckoSettings.from_dict({"api_key": ""})
        assert settings.api_key is None

    def test_invalid_timeout(self) -> None:
        """Test that a non-positive timeout raises ValueError."""
        with pytest.raises(ValueError, match="timeout"):
            CoinGeckoSettings.from_dict({"timeout": 0})

    def test_invalid_embedding_dimension(self) -> None:
        """Test that a non-positive embedding dimension raises ValueError."""
        with pytest.raises(ValueError, match="embedding_dimension"):
            CoinGeckoSettings.from_dict({"embedding_dimension": -1})

    def test_from_env(self) -> None:
        """Test reading settings from environment variables."""
        settings = CoinGeckoSettings.from_env({
            "COINGECKO_API_KEY": "CG-env",
            "COINGECKO_TIMEOUT": "2.5",
            "EMBEDDING_DIMENSION": "1536",
        })

        assert settings.api_key == "CG-env"
        assert settings.pro_api_key is None
        assert settings.timeout == 2.5
        assert settings.embedding_dimension == 1536

    def test_from_settings(self) -> None:
        """Test reading settings through a host's setting lookup."""
        host_settings = {
            "COINGECKO_API_KEY": "CG-host",
            "COINGECKO_PRO_API_KEY": "",
            "COINGECKO_TIMEOUT": "4",
        }

        settings = CoinGeckoSettings.from_settings(host_settings.get)

        assert settings.api_key == "CG-host"
        assert settings.pro_api_key is None
        assert settings.timeout == 4.0
        assert settings.embedding_dimension == 384

    def test_from_yaml(self, tmp_path: Path) -> None:
        """Test loading settings from a YAML file."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
coingecko:
  api_key: CG-yaml
  timeout: 3
  default_currency: gbp
"""
        )

        settings = CoinGeckoSettings.from_yaml(config_file)

        assert settings.api_key == "CG-yaml"
        assert settings.timeout == 3.0
        assert settings.default_currency == "gbp"

    def test_from_yaml_missing_section(self, tmp_path: Path) -> None:
        """Test that YAML without a coingecko section raises ValueError."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("other:\n  key: value\n")

        with pytest.raises(ValueError, match="coingecko"):
            CoinGeckoSettings.from_yaml(config_file)

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CoinGeckoSettings.from_yaml(tmp_path / "nope.yaml")

    def test_to_dict_masks_keys(self) -> None:
        """Test that keys are masked in the dictionary form."""
        data = CoinGeckoSettings(api_key="secret").to_dict()

        assert data["api_key"] == "***"
        assert data["pro_api_key"] is None
        assert "secret" not in str(data)
