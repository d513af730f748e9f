"""Configuration helpers for the instol client and CLI."""

from __future__ import annotations
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from instol_sdk.errors import ConfigurationError
from instol_sdk.models import DEFAULT_REGION


API_URL_ENV = "INSTOL_API_URL"
PROFILE_ENV = "INSTOL_PROFILE"
CONFIG_DIR_ENV = "INSTOL_CONFIG_DIR"
REGION_ENV = "INSTOL_REGION"
CALLBACK_PORT_ENV = "INSTOL_CALLBACK_PORT"
HTTP_TIMEOUT_ENV = "INSTOL_HTTP_TIMEOUT"

CONFIG_FILENAME = "cli.toml"
DEFAULT_PROFILE = "default"
DEFAULT_API_URL = "http://localhost:4000"
DEFAULT_CALLBACK_PORT = 8765
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(slots=True)
class ProfileConfig:
    """Configuration declared within a named CLI profile."""

    api_url: str | None = None
    region: str | None = None
    callback_port: int | None = None


@dataclass(slots=True)
class Settings:
    """Resolved configuration after applying precedence rules."""

    api_url: str
    profile: str
    region: str
    callback_port: int
    http_timeout: float
    config_dir: Path

    @property
    def tokens_dir(self) -> Path:
        """Directory holding one credential file per profile."""
        return self.config_dir / "tokens"


def get_config_dir(env: Mapping[str, str] | None = None) -> Path:
    """Return the configuration directory honouring ``INSTOL_CONFIG_DIR``."""
    source = os.environ if env is None else env
    override = source.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    config_home = Path(source.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "instol"


def load_profiles(path: Path) -> Mapping[str, ProfileConfig]:
    """Return profiles defined in the provided configuration file."""
    if not path.exists():
        return {}

    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}.") from exc

    raw_profiles = data.get("profiles", {})
    profiles: dict[str, ProfileConfig] = {}
    for name, payload in raw_profiles.items():
        if not isinstance(payload, dict):
            continue
        profiles[name] = ProfileConfig(
            api_url=_coerce_str(payload.get("api_url")),
            region=_coerce_str(payload.get("region")),
            callback_port=_coerce_int(payload.get("callback_port")),
        )
    return profiles


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _coerce_float(value: str | None, *, name: str) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}.") from exc


def resolve_settings(
    *,
    api_url: str | None = None,
    profile: str | None = None,
    config_dir: Path | None = None,
    region: str | None = None,
    callback_port: int | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Combine explicit options, environment variables, and profiles.

    Precedence is explicit argument, then environment, then the profile entry
    in ``cli.toml``, then built-in defaults. A profile named explicitly (by
    argument or ``INSTOL_PROFILE``) must exist unless it is the default one.
    """
    source = os.environ if env is None else env

    profile_name = profile or source.get(PROFILE_ENV) or DEFAULT_PROFILE
    resolved_config_dir = config_dir or get_config_dir(source)
    config_path = resolved_config_dir / CONFIG_FILENAME

    profiles = load_profiles(config_path)
    profile_config = profiles.get(profile_name)
    if profile_config is None:
        if profile_name != DEFAULT_PROFILE:
            msg = f"Profile '{profile_name}' not found in {config_path}"
            raise ConfigurationError(msg)
        profile_config = ProfileConfig()

    env_port = _coerce_int(source.get(CALLBACK_PORT_ENV))
    http_timeout = _coerce_float(source.get(HTTP_TIMEOUT_ENV), name=HTTP_TIMEOUT_ENV)

    resolved_api_url = (
        api_url or source.get(API_URL_ENV) or profile_config.api_url or DEFAULT_API_URL
    )

    return Settings(
        api_url=resolved_api_url.rstrip("/"),
        profile=profile_name,
        region=region
        or source.get(REGION_ENV)
        or profile_config.region
        or DEFAULT_REGION,
        callback_port=callback_port
        or env_port
        or profile_config.callback_port
        or DEFAULT_CALLBACK_PORT,
        http_timeout=http_timeout or DEFAULT_HTTP_TIMEOUT,
        config_dir=resolved_config_dir,
    )


__all__ = [
    "API_URL_ENV",
    "CALLBACK_PORT_ENV",
    "CONFIG_DIR_ENV",
    "CONFIG_FILENAME",
    "DEFAULT_API_URL",
    "DEFAULT_PROFILE",
    "HTTP_TIMEOUT_ENV",
    "PROFILE_ENV",
    "REGION_ENV",
    "ProfileConfig",
    "Settings",
    "get_config_dir",
    "load_profiles",
    "resolve_settings",
]
