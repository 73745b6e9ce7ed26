"""Client settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``CASHACCOUNT_``, nested via ``__``)
2. YAML config file (``CASHACCOUNT_CONFIG_PATH`` env var or ``AppConfig.from_yaml``)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class LookupServerConfig(BaseSettings):
    """Cash Account lookup server settings."""

    model_config = SettingsConfigDict(
        env_prefix="CASHACCOUNT_LOOKUP__",
        case_sensitive=False,
    )

    url: str = Field(
        default="https://api.cashaccount.info",
        description="Base URL of the lookup and registration server",
    )
    timeout: float = 30.0


class BitDBConfig(BaseSettings):
    """BitDB indexer settings."""

    model_config = SettingsConfigDict(
        env_prefix="CASHACCOUNT_BITDB__",
        case_sensitive=False,
    )

    url: str = Field(
        default="https://bitdb.bch.sx/q",
        description="BitDB query endpoint; the base64 query is appended as a path segment",
    )
    limit: int = Field(default=22, ge=1)
    timeout: float = 30.0


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level configuration for the Cash Account clients.

    Loads settings from environment variables (``CASHACCOUNT_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="CASHACCOUNT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""

    lookup: LookupServerConfig = Field(default_factory=LookupServerConfig)
    bitdb: BitDBConfig = Field(default_factory=BitDBConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        for key, val in _load_yaml(config_path).items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
