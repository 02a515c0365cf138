"""Configuration settings for Charon."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from charon.sources.community import DEFAULT_BRANCH, DEFAULT_RAW_CONTENT_URL
from charon.sources.errors import ConfigError
from charon.sources.private import DEFAULT_STORAGE_TIMEOUT
from charon.sources.static import LiveSource, StagingSource
from charon.sources.storage import DEFAULT_SIGNED_URL_EXPIRY

ENV_PREFIX = "CHARON_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class Settings:
    """Application settings."""

    # Static hosts
    live_base_url: str = LiveSource.default_base_url
    staging_base_url: str = StagingSource.default_base_url

    # Community (GitHub) datasets
    community_base_url: str = DEFAULT_RAW_CONTENT_URL
    community_branch: str = DEFAULT_BRANCH

    # Object store
    signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY
    storage_timeout: float = DEFAULT_STORAGE_TIMEOUT
    list_all_pages: bool = False
    aws_region: str | None = None
    aws_profile: str | None = None

    # Files written by deployment / refresh jobs
    tenants_path: Path | None = None
    listings_path: Path | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from CHARON_* environment variables.

        Raises:
            ConfigError: If a numeric or boolean value cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> str | None:
            return env.get(ENV_PREFIX + name)

        tenants_path = get("TENANTS_PATH")
        listings_path = get("LISTINGS_PATH")

        return cls(
            live_base_url=get("LIVE_BASE_URL") or defaults.live_base_url,
            staging_base_url=get("STAGING_BASE_URL") or defaults.staging_base_url,
            community_base_url=get("COMMUNITY_BASE_URL") or defaults.community_base_url,
            community_branch=get("COMMUNITY_BRANCH") or defaults.community_branch,
            signed_url_expiry=_parse_int(
                "SIGNED_URL_EXPIRY", get("SIGNED_URL_EXPIRY"), defaults.signed_url_expiry
            ),
            storage_timeout=_parse_float(
                "STORAGE_TIMEOUT", get("STORAGE_TIMEOUT"), defaults.storage_timeout
            ),
            list_all_pages=_parse_bool(
                "LIST_ALL_PAGES", get("LIST_ALL_PAGES"), defaults.list_all_pages
            ),
            aws_region=get("AWS_REGION") or None,
            aws_profile=get("AWS_PROFILE") or None,
            tenants_path=Path(tenants_path).expanduser() if tenants_path else None,
            listings_path=Path(listings_path).expanduser() if listings_path else None,
        )


def _parse_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(
            f"Invalid {ENV_PREFIX}{name} value: expected integer, got '{raw}'"
        ) from e
    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _parse_float(name: str, raw: str | None, default: float) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(
            f"Invalid {ENV_PREFIX}{name} value: expected number, got '{raw}'"
        ) from e
    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(
        f"Invalid {ENV_PREFIX}{name} value: expected true/false, got '{raw}'"
    )
