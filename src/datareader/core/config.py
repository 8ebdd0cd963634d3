"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from datareader.core.exceptions import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ClientOptions(BaseModel):
    """HTTP behavior shared by every reader.

    Constructed once per reader and never mutated. ``rate_limit`` is in
    requests per second, 0 meaning unlimited. ``cache_ttl`` is in seconds,
    0 meaning entries never expire. ``cache_dir=None`` disables caching.
    """

    model_config = ConfigDict(frozen=True)

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    max_retries: int = 3
    retry_delay: float = 1.0
    rate_limit: float = 0.0
    rate_burst: int = 1
    cache_dir: str | None = None
    cache_ttl: float = 0.0
    api_key: str | None = None

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout must be > 0, got {v}")
        return v

    @field_validator("max_retries")
    @classmethod
    def retries_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}")
        return v

    @field_validator("retry_delay")
    @classmethod
    def delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"retry_delay must be >= 0, got {v}")
        return v

    @field_validator("rate_burst")
    @classmethod
    def burst_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"rate_burst must be >= 1, got {v}")
        return v

    @field_validator("user_agent")
    @classmethod
    def user_agent_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("user_agent must not be blank")
        return v


class DataReaderConfig(BaseModel):
    """Root configuration object."""

    model_config = ConfigDict(frozen=True)

    client: ClientOptions = ClientOptions()
    api_keys: dict[str, str] = {}

    def options_for(self, source: str) -> ClientOptions:
        """Client options for one source, with its API key filled in.

        A key already set on ``client.api_key`` wins over the per-source map.
        """
        key = self.client.api_key or self.api_keys.get(source.lower())
        if key is None:
            return self.client
        return self.client.model_copy(update={"api_key": key})


DEFAULT_CONFIG_FILE = "datareader.yml"


def load_config(
    config_path: str | None = None,
    env_prefix: str = "DATAREADER_",
) -> DataReaderConfig:
    """Build a :class:`DataReaderConfig` from defaults, a YAML file and env.

    The file is ``config_path``, else ``{env_prefix}CONFIG``, else
    ``datareader.yml`` in the working directory if present. Variables such
    as ``DATAREADER_CLIENT__TIMEOUT=5`` or ``DATAREADER_API_KEYS__FRED=abc``
    override file values.

    Raises:
        ConfigError: Missing or unreadable file, or a value that fails
            validation.
    """
    path = _find_config_file(config_path, env_prefix)
    raw = _read_yaml(path) if path is not None else {}
    raw = _overlay_env(raw, env_prefix)
    try:
        return DataReaderConfig.model_validate(raw)
    except ValueError as e:
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _find_config_file(explicit: str | None, env_prefix: str) -> Path | None:
    if explicit is not None:
        if not Path(explicit).exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return Path(explicit)

    var = f"{env_prefix}CONFIG"
    from_env = os.environ.get(var)
    if from_env:
        if not Path(from_env).exists():
            raise ConfigError(
                f"Config file named by {var} not found: {from_env}",
                context={"field": var, "value": from_env},
            )
        return Path(from_env)

    fallback = Path(DEFAULT_CONFIG_FILE)
    return fallback if fallback.exists() else None


def _read_yaml(path: Path) -> dict:
    context = {"field": "config_file", "value": str(path)}
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}", context=context) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config: {e}", context=context) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"YAML config must be a mapping, got {type(data).__name__}",
            context=context,
        )
    return data


def _overlay_env(raw: dict, prefix: str) -> dict:
    """Return a copy of ``raw`` with ``{prefix}SECTION__KEY`` variables applied.

    API keys stay strings so numeric-looking tokens survive.
    """
    merged = _copy_tree(raw)
    for name, value in os.environ.items():
        if not name.startswith(prefix):
            continue
        path = name[len(prefix):].lower().split("__")
        if path == ["config"]:
            continue
        node = merged
        for section in path[:-1]:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[path[-1]] = value if path[0] == "api_keys" else _coerce(value)
    return merged


def _copy_tree(data: dict) -> dict:
    return {k: _copy_tree(v) if isinstance(v, dict) else v for k, v in data.items()}


def _coerce(value: str) -> str | int | float | bool:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for kind in (int, float):
        try:
            return kind(value)
        except ValueError:
            continue
    return value
