from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tomllib

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    log_level: str
    timezone: str
    watch_minutes_per_viewing: int
    top_films_limit: int
    sample_seed: int | None
    config_path: str

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    load_dotenv(override=False)

    config_path = os.getenv("CINEMA_LOG_CONFIG") or str(Path.cwd() / "config.toml")
    config_values = _load_config(Path(config_path))

    timezone = _pick_str("TIMEZONE", "stats.timezone", config_values, default="UTC")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as error:
        raise RuntimeError(f"Invalid configuration value for TIMEZONE: {timezone}") from error

    watch_minutes = _pick_int(
        "WATCH_MINUTES_PER_VIEWING",
        "stats.watch_minutes_per_viewing",
        config_values,
        default=120,
    )
    if watch_minutes < 0:
        raise RuntimeError("Invalid configuration value for WATCH_MINUTES_PER_VIEWING: must be >= 0")

    return Settings(
        log_level=_pick_str("LOG_LEVEL", "runtime.log_level", config_values, default="INFO"),
        timezone=timezone,
        watch_minutes_per_viewing=watch_minutes,
        top_films_limit=_pick_int("TOP_FILMS_LIMIT", "stats.top_films_limit", config_values, default=5),
        sample_seed=_pick_optional_int("SAMPLE_SEED", "sample.seed", config_values),
        config_path=config_path,
    )


def _load_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        parsed = tomllib.load(handle)
    return _flatten(parsed)


def _flatten(payload: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in payload.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            out.update(_flatten(value, dotted))
        else:
            out[dotted] = value
    return out


def _pick_optional(env_key: str, cfg_key: str, cfg: dict[str, Any]) -> str | None:
    env_val = os.getenv(env_key)
    if env_val not in {None, ""}:
        return env_val
    cfg_val = cfg.get(cfg_key)
    if cfg_val in {None, ""}:
        return None
    return str(cfg_val)


def _pick_str(env_key: str, cfg_key: str, cfg: dict[str, Any], default: str | None = None) -> str:
    picked = _pick_optional(env_key, cfg_key, cfg)
    if picked is None:
        return "" if default is None else default
    return picked


def _pick_int(env_key: str, cfg_key: str, cfg: dict[str, Any], default: int) -> int:
    picked = _pick_optional_int(env_key, cfg_key, cfg)
    return default if picked is None else picked


def _pick_optional_int(env_key: str, cfg_key: str, cfg: dict[str, Any]) -> int | None:
    picked = _pick_optional(env_key, cfg_key, cfg)
    if picked is None:
        return None
    try:
        return int(picked)
    except ValueError as error:
        raise RuntimeError(f"Invalid configuration value for {env_key}: {picked}") from error
