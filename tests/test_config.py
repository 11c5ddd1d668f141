"""Tests for postcodeapi.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
import os
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from postcodeapi.config import (
    _atomic_write,
    get_config_dir,
    load_settings,
    resolve_cache_path,
    resolve_client_config,
    resolve_credential,
    save_settings,
    settings_path,
)
from postcodeapi.exceptions import ConfigError
from postcodeapi.models import DEFAULT_ENDPOINT, Settings


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_config_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("postcodeapi.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "postcodeapi"
        assert (tmp_path / "xdg" / "postcodeapi").is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("postcodeapi.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        with patch("pathlib.Path.home", return_value=tmp_path):
            assert get_config_dir() == tmp_path / ".config" / "postcodeapi"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("postcodeapi.config._is_xdg_platform", lambda: False)
        with patch("pathlib.Path.home", return_value=tmp_path):
            assert get_config_dir() == tmp_path / ".postcodeapi"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        _atomic_write(target, "x")
        _atomic_write(target, "y")
        assert os.listdir(tmp_path) == ["file.json"]
        assert target.read_text(encoding="utf-8") == "y"

    def test_failure_cleans_up(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        with patch("postcodeapi.config.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                _atomic_write(target, "x")
        assert os.listdir(tmp_path) == []


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


class TestSettingsFile:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings == Settings()
        assert settings.cache_ttl_seconds == 30 * 24 * 60 * 60

    def test_save_and_load(self, isolated_config: Path) -> None:
        save_settings(Settings(cache_ttl_seconds=60, cache_path="/tmp/pc"))
        loaded = load_settings()
        assert loaded.cache_ttl_seconds == 60
        assert loaded.cache_path == "/tmp/pc"
        assert json.loads(settings_path().read_text())["cache_ttl_seconds"] == 60

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        settings_path().write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()

    def test_invalid_value_raises(self, isolated_config: Path) -> None:
        settings_path().write_text(json.dumps({"cache_ttl_seconds": 0}), encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings()


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_PC_TOKEN", "abc")
        assert resolve_credential("env:MY_PC_TOKEN") == "abc"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_PC_TOKEN", raising=False)
        with pytest.raises(ConfigError, match="MY_PC_TOKEN"):
            resolve_credential("env:MY_PC_TOKEN")

    def test_file(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("  secret\n", encoding="utf-8")
        assert resolve_credential(f"file:{token_file}") == "secret"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_prompt_without_tty(self) -> None:
        with patch("postcodeapi.config.sys.stdin") as stdin:
            stdin.isatty.return_value = False
            with pytest.raises(ConfigError, match="TTY"):
                resolve_credential("prompt")

    def test_prompt_with_tty(self) -> None:
        with patch("postcodeapi.config.sys.stdin") as stdin, patch(
            "postcodeapi.config.getpass.getpass", return_value="typed"
        ):
            stdin.isatty.return_value = True
            assert resolve_credential("prompt") == "typed"

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:secret/pc")


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveClientConfig:
    def test_defaults_with_env_token(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTCODEAPI_TOKEN", "env-token")
        config = resolve_client_config()
        assert config.token == "env-token"
        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.cache_ttl == timedelta(days=30)
        assert config.cache_path is None

    def test_cli_beats_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTCODEAPI_TOKEN", "env-token")
        monkeypatch.setenv("POSTCODEAPI_ENDPOINT", "https://env.example.com/v1/")
        monkeypatch.setenv("POSTCODEAPI_CACHE_TTL", "120")
        config = resolve_client_config(
            cli_token="cli-token",
            cli_endpoint="https://cli.example.com/v1",
            cli_cache_path="/tmp/cli-store",
            cli_ttl_seconds=60,
        )
        assert config.token == "cli-token"
        assert config.endpoint == "https://cli.example.com/v1/"
        assert config.cache_path == Path("/tmp/cli-store")
        assert config.cache_ttl == timedelta(seconds=60)

    def test_env_beats_settings(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTCODEAPI_TOKEN", "env-token")
        monkeypatch.setenv("POSTCODEAPI_CACHE_TTL", "120")
        monkeypatch.setenv("POSTCODEAPI_CACHE_PATH", "/tmp/env-store")
        settings = Settings(cache_ttl_seconds=999, cache_path="/tmp/settings-store")
        config = resolve_client_config(settings=settings)
        assert config.cache_ttl == timedelta(seconds=120)
        assert config.cache_path == Path("/tmp/env-store")

    def test_settings_token_source(self, tmp_path: Path, isolated_config: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("file-token", encoding="utf-8")
        settings = Settings(token_source=f"file:{token_file}", timeout=3.5)
        config = resolve_client_config(settings=settings)
        assert config.token == "file-token"
        assert config.timeout == 3.5

    def test_missing_token(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="POSTCODEAPI_TOKEN"):
            resolve_client_config()

    def test_non_numeric_env_ttl(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTCODEAPI_CACHE_TTL", "a week")
        with pytest.raises(ConfigError, match="POSTCODEAPI_CACHE_TTL"):
            resolve_client_config(cli_token="t")

    def test_zero_ttl_rejected(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            resolve_client_config(cli_token="t", cli_ttl_seconds=0)


class TestResolveCachePath:
    def test_none_by_default(self, isolated_config: Path) -> None:
        assert resolve_cache_path() is None

    def test_settings(self, isolated_config: Path) -> None:
        assert resolve_cache_path(settings=Settings(cache_path="/tmp/s")) == Path("/tmp/s")

    def test_cli_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTCODEAPI_CACHE_PATH", "/tmp/env")
        assert resolve_cache_path("/tmp/cli") == Path("/tmp/cli")
