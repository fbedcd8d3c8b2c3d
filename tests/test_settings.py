"""TOML config loading and profile overlay."""

from autoresolve.config import Settings, get_settings, load_config
from autoresolve.config.settings import DEFAULT_ESPORTS_GAMES


def _write(path, text):
    path.write_text(text, encoding="utf-8")


def test_profile_overlays_default(tmp_path):
    _write(
        tmp_path / "default.toml",
        '[api]\nbase_url = "https://store.example/"\ntimeout_sec = 20\n\n[feeds]\nespn_enabled = true\nsports_days_from = 3\n',
    )
    _write(tmp_path / "dev.toml", "[feeds]\nespn_enabled = false\n")

    raw = load_config("dev", tmp_path)
    assert raw["feeds"] == {"espn_enabled": False, "sports_days_from": 3}

    settings = get_settings("dev", tmp_path)
    assert settings.api_base == "https://store.example"
    assert settings.api_timeout_sec == 20.0
    assert settings.espn_enabled is False
    assert settings.sports_days_from == 3


def test_missing_profile_file_keeps_default(tmp_path):
    _write(tmp_path / "default.toml", "[schedule]\ninterval_sec = 120\n")
    assert get_settings("nope", tmp_path).interval_sec == 120


def test_missing_config_dir_gives_defaults(tmp_path):
    assert load_config(None, tmp_path) == {}
    settings = get_settings(None, tmp_path)
    assert settings.api_base == "https://api.0xnull.io"
    assert settings.esports_games == DEFAULT_ESPORTS_GAMES
    assert settings.dispatch_concurrency == 4
    assert settings.dispatch_rate_per_sec == 5.0
    assert settings.lookup_missing is True
    assert settings.logging_level == "INFO"


def test_empty_game_list_is_respected():
    assert Settings(feeds={"esports_games": []}).esports_games == []


def test_concurrency_floor():
    assert Settings(dispatch={"concurrency": 0}).dispatch_concurrency == 1


def test_cron_secret_from_config_or_env(monkeypatch):
    monkeypatch.delenv("AUTORESOLVE_CRON_SECRET", raising=False)
    assert Settings().cron_secret is None
    assert Settings(server={"cron_secret": "abc"}).cron_secret == "abc"
    monkeypatch.setenv("AUTORESOLVE_CRON_SECRET", "from-env")
    assert Settings(server={"cron_secret": ""}).cron_secret == "from-env"
