"""Adapter configuration.

An AdapterConfig is read-only after construction and describes one service:
base address, media types, credentials, serializer settings and the
resilience knobs used by ResilientApiAdapter.

Configs are built in code with ``build_adapter_config`` or loaded from YAML:

    adapters:
      widgets:
        base_address: https://api.example.com/v1
        bearer_token: ${WIDGETS_TOKEN}
        timeout_seconds: 10
        retry_count: 2

Environment variables ARE supported using ${VAR_NAME} and
${VAR_NAME:-default} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from apiadapter.resilience.retry import DEFAULT_RETRY_COUNT
from apiadapter.resilience.timeout import DEFAULT_TIMEOUT_SECONDS
from apiadapter.serialization import DeserializerSettings, SerializerSettings
from apiadapter.types import Policy

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/json"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass(frozen=True)
class AdapterConfig:
    """Per-service adapter configuration.

    Attributes:
        base_address: Service root, e.g. https://api.example.com/v1 (required)
        name: Label used in log context (defaults to the base address host)
        accept: Accept media type; blank disables the header
        content_type: Media type of request bodies
        encoding: Charset for request bodies; only added to Content-Type when set
        bearer_token: Sent as "Authorization: Bearer <token>"
        api_manager_token: Sent as the API-management subscription key header
        serializer_settings: Request body encoding options
        deserializer_settings: Response body decoding options
        client_timeout_seconds: Whole-exchange timeout set on each plain-adapter
            client (None disables; resilient adapters use timeout_seconds)
        timeout_seconds: Per-attempt timeout for the default resilience policy
        retry_count: Retries for the default resilience policy
        policy: Replaces the default resilience policy entirely
    """

    base_address: str
    name: Optional[str] = None
    accept: Optional[str] = DEFAULT_MEDIA_TYPE
    content_type: str = DEFAULT_MEDIA_TYPE
    encoding: Optional[str] = None
    bearer_token: Optional[str] = None
    api_manager_token: Optional[str] = None
    serializer_settings: Optional[SerializerSettings] = None
    deserializer_settings: Optional[DeserializerSettings] = None
    client_timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry_count: int = DEFAULT_RETRY_COUNT
    policy: Optional[Policy] = None

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "timeout_seconds", float(self.timeout_seconds))
        object.__setattr__(self, "retry_count", int(self.retry_count))
        if self.client_timeout_seconds is not None:
            object.__setattr__(
                self, "client_timeout_seconds", float(self.client_timeout_seconds)
            )
        self.validate()

    def validate(self) -> None:
        """Raise ValueError describing every invalid field."""
        errors = []
        if not self.base_address or not str(self.base_address).strip():
            errors.append("base_address is required")
        if not self.content_type or not self.content_type.strip():
            errors.append("content_type must not be blank")
        if self.timeout_seconds <= 0:
            errors.append(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.client_timeout_seconds is not None and self.client_timeout_seconds <= 0:
            errors.append(
                f"client_timeout_seconds must be positive, got {self.client_timeout_seconds}"
            )
        if self.retry_count < 0:
            errors.append(f"retry_count must be >= 0, got {self.retry_count}")
        if errors:
            raise ValueError("Invalid adapter configuration: " + "; ".join(errors))

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.base_address.split("://", 1)[-1].split("/", 1)[0]


_CONFIG_FIELDS = frozenset(f.name for f in fields(AdapterConfig))


def build_adapter_config(base_address: str, **overrides: Any) -> AdapterConfig:
    """Build an AdapterConfig with defaults filled in.

    Nested ``serializer_settings`` / ``deserializer_settings`` may be given
    as dicts (as they arrive from YAML).

    Raises:
        ValueError: Unknown keys or invalid values
    """
    unknown = set(overrides) - _CONFIG_FIELDS
    if unknown:
        raise ValueError(f"Unknown adapter config keys: {sorted(unknown)}")

    values = dict(overrides)
    if isinstance(values.get("serializer_settings"), dict):
        values["serializer_settings"] = SerializerSettings(**values["serializer_settings"])
    if isinstance(values.get("deserializer_settings"), dict):
        values["deserializer_settings"] = DeserializerSettings(
            **values["deserializer_settings"]
        )
    return AdapterConfig(base_address=base_address, **values)


def load_adapter_config(
    name: str,
    config_path: Path,
    overrides: Optional[Dict[str, Any]] = None,
) -> AdapterConfig:
    """Load one adapter's configuration from the ``adapters:`` section of a YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info("Loading adapter configuration from file: %s", config_path)
    yaml_data = _expand_env_vars(load_yaml(config_path))

    adapters = yaml_data.get("adapters")
    if not isinstance(adapters, dict):
        raise ValueError("Invalid config file: missing 'adapters:' section")
    if name not in adapters:
        raise ValueError(f"Adapter '{name}' not found in {config_path}")

    adapter_data = dict(adapters[name] or {})
    if overrides:
        logger.debug("Applying overrides: %s", list(overrides.keys()))
        adapter_data = _deep_merge(adapter_data, overrides)

    adapter_data.setdefault("name", name)
    base_address = adapter_data.pop("base_address", "")
    config = build_adapter_config(base_address, **adapter_data)

    if not config.bearer_token and not config.api_manager_token:
        logger.debug("Adapter '%s' configured without credentials", name)
    return config


__all__ = [
    "AdapterConfig",
    "DEFAULT_MEDIA_TYPE",
    "build_adapter_config",
    "load_adapter_config",
    "load_yaml",
]
