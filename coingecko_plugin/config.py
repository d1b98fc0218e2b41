"""Settings for the CoinGecko plugin.

Settings can be built from a dictionary, from environment variables, or from
a YAML file with a ``coingecko`` section:

```yaml
coingecko:
  api_key: CG-xxxxxxxx
  timeout: 5
  default_currency: eur
```
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

API_KEY_SETTING = "COINGECKO_API_KEY"
PRO_API_KEY_SETTING = "COINGECKO_PRO_API_KEY"
TIMEOUT_SETTING = "COINGECKO_TIMEOUT"
EMBEDDING_DIMENSION_SETTING = "EMBEDDING_DIMENSION"


@dataclass
class CoinGeckoSettings:
    """Configuration for CoinGecko access.

    Attributes:
        api_key: Demo API key, sent as ``x-cg-demo-api-key``.
        pro_api_key: Pro API key. When set, requests go to the pro host.
        base_url: Public API root.
        pro_base_url: Pro API root.
        timeout: Request timeout in seconds.
        default_currency: Currency used when none is given.
        embedding_dimension: Length of the zero-vector embedding stored with replies.
    """

    api_key: str | None = None
    pro_api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    pro_base_url: str = DEFAULT_PRO_BASE_URL
    timeout: float = 10.0
    default_currency: str = "usd"
    embedding_dimension: int = 384

    @property
    def is_pro(self) -> bool:
        """Whether a pro key is configured."""
        return bool(self.pro_api_key)

    @property
    def active_base_url(self) -> str:
        """API root matching the configured key."""
        base = self.pro_base_url if self.is_pro else self.base_url
        return base.rstrip("/")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CoinGeckoSettings:
        """Create settings from a dictionary.

        Args:
            data: Mapping with any of the dataclass field names.

        Returns:
            CoinGeckoSettings instance.

        Raises:
            ValueError: If timeout or embedding_dimension is not positive.
        """
        timeout = float(data.get("timeout", 10.0))
        if timeout <= 0:
            raise ValueError("CoinGecko timeout must be positive")

        embedding_dimension = int(data.get("embedding_dimension", 384))
        if embedding_dimension <= 0:
            raise ValueError("embedding_dimension must be positive")

        return cls(
            api_key=data.get("api_key") or None,
            pro_api_key=data.get("pro_api_key") or None,
            base_url=data.get("base_url", DEFAULT_BASE_URL),
            pro_base_url=data.get("pro_base_url", DEFAULT_PRO_BASE_URL),
            timeout=timeout,
            default_currency=str(data.get("default_currency", "usd")).lower(),
            embedding_dimension=embedding_dimension,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CoinGeckoSettings:
        """Create settings from ``COINGECKO_*`` environment variables."""
        environ = os.environ if environ is None else environ
        return cls.from_settings(environ.get)

    @classmethod
    def from_settings(cls, get_setting: Callable[[str], Any]) -> CoinGeckoSettings:
        """Create settings from a host's setting lookup, e.g. ``AgentRuntime.get_setting``."""
        data: dict[str, Any] = {
            "api_key": get_setting(API_KEY_SETTING),
            "pro_api_key": get_setting(PRO_API_KEY_SETTING),
        }
        for field_name, key in (
            ("timeout", TIMEOUT_SETTING),
            ("embedding_dimension", EMBEDDING_DIMENSION_SETTING),
        ):
            value = get_setting(key)
            if value:
                data[field_name] = value
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> CoinGeckoSettings:
        """Load settings from the ``coingecko`` section of a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file has no ``coingecko`` mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict) or not isinstance(config.get("coingecko"), dict):
            raise ValueError("Config must have a 'coingecko' mapping")

        logger.debug("Loaded CoinGecko settings from %s", path)
        return cls.from_dict(config["coingecko"])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation (keys are masked)."""
        return {
            "api_key": "***" if self.api_key else None,
            "pro_api_key": "***" if self.pro_api_key else None,
            "base_url": self.base_url,
            "pro_base_url": self.pro_base_url,
            "timeout": self.timeout,
            "default_currency": self.default_currency,
            "embedding_dimension": self.embedding_dimension,
        }


__all__ = [
    "API_KEY_SETTING",
    "CoinGeckoSettings",
    "DEFAULT_BASE_URL",
    "DEFAULT_PRO_BASE_URL",
    "EMBEDDING_DIMENSION_SETTING",
    "PRO_API_KEY_SETTING",
    "TIMEOUT_SETTING",
]
