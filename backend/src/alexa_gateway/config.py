"""Gateway configuration.

Settings are resolved once per process from the environment and passed
explicitly to the validator and the forwarder.

Environment:
    BASE_URL                 backend root URL, e.g. ``https://ha.example.com``
    LONG_LIVED_ACCESS_TOKEN  credential used when a directive carries none
    ALLOW_FALLBACK_TOKEN     ``true`` / ``false``; enables the credential above
    NOT_VERIFY_SSL           ``true`` disables TLS certificate verification
    LOG_LEVEL                TRACE, DEBUG, INFO, WARNING, ERROR
"""

from __future__ import annotations

import logging
import os
from typing import Mapping
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError
from pydantic import field_validator

from alexa_gateway.exceptions import ConfigurationError
from alexa_gateway.utils.logging import get_logger

logger = get_logger(__name__)

_TRUE_VALUE = "true"


class Settings(BaseModel):
    """Read-only gateway settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    long_lived_access_token: Optional[str] = None
    verify_ssl: bool = True
    allow_fallback_token: bool = False
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        parsed = urlparse(value)
        if parsed.scheme not in ("https", "http"):
            raise ValueError(f"BASE_URL must be an http(s) URL, got {value!r}")
        if not parsed.hostname:
            raise ValueError(f"cannot parse host part of BASE_URL {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def backend_host(self) -> str:
        return urlparse(self.base_url).hostname or ""


def _parse_bool(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() == _TRUE_VALUE


def _is_verbose(log_level: str) -> bool:
    level = logging.getLevelName(log_level)
    return isinstance(level, int) and level <= logging.DEBUG


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from environment variables.

    Raises:
        ConfigurationError: if BASE_URL is missing or not a usable URL.
    """
    env = os.environ if environ is None else environ

    base_url = (env.get("BASE_URL") or "").strip()
    if not base_url:
        raise ConfigurationError(
            "BASE_URL", "Please set a BASE_URL environment variable"
        )

    log_level = env.get("LOG_LEVEL") or "INFO"

    raw_allow = env.get("ALLOW_FALLBACK_TOKEN")
    if raw_allow is None or not raw_allow.strip():
        allow_fallback_token = _is_verbose(log_level.strip().upper())
        if allow_fallback_token:
            logger.warning(
                "ALLOW_FALLBACK_TOKEN is unset; enabling LONG_LIVED_ACCESS_TOKEN "
                "fallback because LOG_LEVEL=%s. Log verbosity is acting as a "
                "credential gate, set ALLOW_FALLBACK_TOKEN explicitly.",
                log_level,
            )
    else:
        allow_fallback_token = _parse_bool(raw_allow)

    try:
        settings = Settings(
            base_url=base_url,
            long_lived_access_token=env.get("LONG_LIVED_ACCESS_TOKEN") or None,
            verify_ssl=not _parse_bool(env.get("NOT_VERIFY_SSL")),
            allow_fallback_token=allow_fallback_token,
            log_level=log_level,
        )
    except ValidationError as exc:
        reason = exc.errors()[0].get("msg", str(exc))
        raise ConfigurationError("BASE_URL", reason) from exc

    if not settings.verify_ssl:
        logger.warning(
            "NOT_VERIFY_SSL is set: TLS certificates of %s will not be verified",
            settings.backend_host,
        )
    return settings


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return process-wide settings, loading them on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def clear_settings_cache() -> None:
    """Clear cached settings (useful in tests)."""
    global _SETTINGS
    _SETTINGS = None
