"""Engine configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import UTC, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError

DEFAULT_LOOKAHEAD_CAP = 300
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # Longest occasion run collapsed into one row, and hard cap on expansion queries.
    lookahead_cap: int = DEFAULT_LOOKAHEAD_CAP
    default_per_page: int = DEFAULT_PER_PAGE
    max_per_page: int = MAX_PER_PAGE
    # Zone used for the local "date" field of returned rows.
    timezone: tzinfo = UTC


def _env_positive_int(name: str) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer") from exc
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1")
    return value


def resolve_engine_config(cfg: EngineConfig | None = None) -> EngineConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = EngineConfig()

    lookahead = _env_positive_int("LOG_QUERY_LOOKAHEAD_CAP")
    if lookahead is not None and lookahead != cfg.lookahead_cap:
        cfg = replace(cfg, lookahead_cap=lookahead)

    max_per_page = _env_positive_int("LOG_QUERY_MAX_PER_PAGE")
    if max_per_page is not None and max_per_page != cfg.max_per_page:
        cfg = replace(cfg, max_per_page=max_per_page)

    tz_name = os.getenv("LOG_QUERY_TIMEZONE")
    if tz_name:
        try:
            cfg = replace(cfg, timezone=ZoneInfo(tz_name))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(
                f"LOG_QUERY_TIMEZONE is not a known time zone: {tz_name}"
            ) from exc

    if cfg.default_per_page > cfg.max_per_page:
        cfg = replace(cfg, default_per_page=cfg.max_per_page)
    return cfg
