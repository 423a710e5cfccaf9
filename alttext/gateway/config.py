"""
Process configuration for the alt text gateway.

Settings are read once at startup from a `.env` file (python-dotenv) overlaid
with the process environment, then frozen and passed to the app and provider.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import dotenv_values

from alttext.ai_service.errors import ConfigError

PROVIDERS = ("openai", "anthropic")

OPENAI_API_URL = "https://api.openai.com/v1/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
OPENAI_MODEL = "gpt-3.5-turbo"
ANTHROPIC_MODEL = "claude-3-opus-20240229"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_UPLOAD_MB = 5
DEFAULT_CORS_ORIGINS = "http://localhost:8080"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class Settings:
    provider: str
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_model: str = OPENAI_MODEL
    anthropic_model: str = ANTHROPIC_MODEL
    openai_api_url: str = OPENAI_API_URL
    anthropic_api_url: str = ANTHROPIC_API_URL
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    cors_origins: Tuple[str, ...] = (DEFAULT_CORS_ORIGINS,)
    port: int = DEFAULT_PORT

    @property
    def max_upload_mb(self) -> float:
        return self.max_upload_bytes / (1024 * 1024)


def read_env_file(env_file: str) -> Dict[str, str]:
    """
    Parse a KEY=value file. Comments (#) and blank lines are skipped.

    Args:
        env_file (str): Path to the env file.

    Returns:
        dict: Parsed key/value pairs. Keys without a value are dropped.

    Raises:
        ConfigError: If the file does not exist.
    """
    path = Path(env_file)
    if not path.is_file():
        raise ConfigError(f"env file not found: {env_file}")

    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigError(f"expected a number, got {value!r}") from None
    if parsed <= 0:
        raise ConfigError(f"expected a positive number, got {value!r}")
    return parsed


def _parse_port(value: Optional[str]) -> int:
    if value is None:
        return DEFAULT_PORT
    try:
        port = int(value)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")
    return port


def load_settings(env_file: str, provider: str, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build the immutable settings for this process.

    Args:
        env_file (str): Path to the `.env` file. Must exist.
        provider (str): 'openai' or 'anthropic'.
        environ (Mapping, optional): Overrides taken on top of the file. Defaults to os.environ.

    Returns:
        Settings: Frozen configuration.

    Raises:
        ConfigError: Missing env file, unknown provider, or malformed numeric value or port.
    """
    if provider not in PROVIDERS:
        raise ConfigError(f"unknown provider: {provider!r}")

    values: Dict[str, str] = read_env_file(env_file)
    values.update(os.environ if environ is None else environ)

    def get(key: str) -> Optional[str]:
        value = values.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    max_upload_mb = _parse_float(get("MAX_UPLOAD_MB"), DEFAULT_MAX_UPLOAD_MB)

    return Settings(
        provider=provider,
        openai_api_key=get("OPEN_AI_API_KEY") or get("OPENAI_API_KEY"),
        anthropic_api_key=get("ANTHROPIC_API_KEY"),
        openai_model=get("OPENAI_MODEL") or OPENAI_MODEL,
        anthropic_model=get("ANTHROPIC_MODEL") or ANTHROPIC_MODEL,
        openai_api_url=get("OPENAI_API_URL") or OPENAI_API_URL,
        anthropic_api_url=get("ANTHROPIC_API_URL") or ANTHROPIC_API_URL,
        request_timeout=_parse_float(get("REQUEST_TIMEOUT_SECONDS"), DEFAULT_TIMEOUT_SECONDS),
        max_upload_bytes=int(max_upload_mb * 1024 * 1024),
        cors_origins=tuple(_split_csv(get("CORS_ORIGINS") or DEFAULT_CORS_ORIGINS)),
        port=_parse_port(get("PORT")),
    )
