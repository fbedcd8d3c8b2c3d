"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"

DEFAULT_ESPORTS_GAMES = ["lol", "csgo", "dota2", "valorant", "starcraft-2"]
DEFAULT_ESPN_LEAGUES = [
    "soccer/eng.1",
    "soccer/usa.1",
    "soccer/esp.1",
    "soccer/ger.1",
    "soccer/ita.1",
    "soccer/fra.1",
    "soccer/uefa.champions",
    "soccer/uefa.europa",
    "football/nfl",
    "football/college-football",
    "basketball/nba",
    "basketball/mens-college-basketball",
    "baseball/mlb",
    "hockey/nhl",
]


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        api: dict[str, Any] | None = None,
        feeds: dict[str, Any] | None = None,
        dispatch: dict[str, Any] | None = None,
        schedule: dict[str, Any] | None = None,
        server: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.api = api or {}
        self.feeds = feeds or {}
        self.dispatch = dispatch or {}
        self.schedule = schedule or {}
        self.server = server or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            api=raw.get("api"),
            feeds=raw.get("feeds"),
            dispatch=raw.get("dispatch"),
            schedule=raw.get("schedule"),
            server=raw.get("server"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def api_base(self) -> str:
        return self.api.get("base_url", "https://api.0xnull.io").rstrip("/")

    @property
    def api_timeout_sec(self) -> float:
        return float(self.api.get("timeout_sec", 15.0))

    @property
    def feeds_timeout_sec(self) -> float:
        return float(self.feeds.get("timeout_sec", 10.0))

    @property
    def esports_games(self) -> list[str]:
        games = self.feeds.get("esports_games")
        return list(DEFAULT_ESPORTS_GAMES if games is None else games)

    @property
    def sports_days_from(self) -> int:
        return int(self.feeds.get("sports_days_from", 3))

    @property
    def espn_enabled(self) -> bool:
        return bool(self.feeds.get("espn_enabled", True))

    @property
    def espn_base(self) -> str:
        return self.feeds.get("espn_base", "https://site.api.espn.com/apis/site/v2/sports").rstrip("/")

    @property
    def espn_leagues(self) -> list[str]:
        leagues = self.feeds.get("espn_leagues")
        return list(DEFAULT_ESPN_LEAGUES if leagues is None else leagues)

    @property
    def lookup_missing(self) -> bool:
        return bool(self.feeds.get("lookup_missing", True))

    @property
    def lookup_concurrency(self) -> int:
        return max(1, int(self.feeds.get("lookup_concurrency", 4)))

    @property
    def dispatch_concurrency(self) -> int:
        return max(1, int(self.dispatch.get("concurrency", 4)))

    @property
    def dispatch_rate_per_sec(self) -> float:
        return float(self.dispatch.get("rate_per_sec", 5.0))

    @property
    def interval_sec(self) -> int:
        return int(self.schedule.get("interval_sec", 300))

    @property
    def cron_secret(self) -> str | None:
        return self.server.get("cron_secret") or os.environ.get("AUTORESOLVE_CRON_SECRET") or None

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
