# itms_catalog/config.py

"""Shared configuration and environment setup."""

from __future__ import annotations

from dataclasses import dataclass
from os import getenv

from dotenv import load_dotenv

load_dotenv(override=False)

DEFAULT_ACCEPT_LANGUAGE = "en-us, en;q=0.50"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Process-level settings for a CatalogSession.

    Read-only after construction, so one instance can be shared by any number
    of sessions and entities.
    """

    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    tmpdir: str | None = None  # where spilled decompression buffers go
    show_xml: bool = False  # log every fetched document at DEBUG
    decrypt: str = "auto"  # one of skip / auto / force
    gunzip: bool = True

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            msg = "timeout must be positive."
            raise ValueError(msg)
        if self.max_retries < 0:
            msg = "max_retries must be non-negative."
            raise ValueError(msg)
        if self.decrypt not in {"skip", "auto", "force"}:
            msg = f"decrypt must be one of skip/auto/force, got {self.decrypt!r}."
            raise ValueError(msg)

    @classmethod
    def from_env(cls) -> CatalogConfig:
        """Build a config from ITMS_* environment variables (and .env)."""
        return cls(
            accept_language=getenv("ITMS_ACCEPT_LANGUAGE", DEFAULT_ACCEPT_LANGUAGE),
            timeout=_env_float("ITMS_TIMEOUT", DEFAULT_TIMEOUT),
            max_retries=_env_int("ITMS_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            tmpdir=getenv("ITMS_TMPDIR") or None,
            show_xml=_env_bool("ITMS_SHOW_XML", False),
            decrypt=getenv("ITMS_DECRYPT", "auto").strip().lower(),
            gunzip=_env_bool("ITMS_GUNZIP", True),
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = getenv(name)
    if raw is None:
        return default

    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False

    msg = f"{name} must be a boolean, got {raw!r}."
    raise ValueError(msg)


def _env_int(name: str, default: int) -> int:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got {raw!r}."
        raise ValueError(msg) from None


def _env_float(name: str, default: float) -> float:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}."
        raise ValueError(msg) from None
