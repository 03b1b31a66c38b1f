"""Tests for configuration helpers."""

import os
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from gcal_sum.config import (
    DEFAULT_TIMEZONE,
    ConfigurationError,
    _load_env_file,
    get_app_dir,
    get_redirect_port,
    get_redirect_uri,
    get_timezone,
)


class TestTimezone:
    """Reference timezone selection."""

    def test_default_is_utc_plus_nine(self, monkeypatch):
        """Should default to a fixed UTC+9 offset."""
        monkeypatch.delenv("GCAL_SUM_TIMEZONE", raising=False)

        assert get_timezone() is DEFAULT_TIMEZONE
        assert DEFAULT_TIMEZONE.utcoffset(None) == timedelta(hours=9)

    def test_named_zone(self, monkeypatch):
        """Should load IANA zones by name."""
        monkeypatch.setenv("GCAL_SUM_TIMEZONE", "Asia/Tokyo")

        assert str(get_timezone()) == "Asia/Tokyo"

    def test_unknown_zone(self, monkeypatch):
        """Should raise ConfigurationError for zones without tz data."""
        monkeypatch.setenv("GCAL_SUM_TIMEZONE", "Nowhere/Special")

        with pytest.raises(ConfigurationError, match="Nowhere/Special"):
            get_timezone()


class TestRedirect:
    """Redirect port and URI."""

    def test_default_port(self, monkeypatch):
        """Should use port 8080 by default."""
        monkeypatch.delenv("GCAL_SUM_REDIRECT_PORT", raising=False)

        assert get_redirect_port() == 8080
        assert get_redirect_uri() == "http://localhost:8080/"

    def test_port_override(self, monkeypatch):
        """Should honour GCAL_SUM_REDIRECT_PORT."""
        monkeypatch.setenv("GCAL_SUM_REDIRECT_PORT", "9090")

        assert get_redirect_uri() == "http://localhost:9090/"

    @pytest.mark.parametrize("value", ["http", "0", "70000"])
    def test_invalid_port(self, monkeypatch, value):
        """Should reject ports that cannot be bound."""
        monkeypatch.setenv("GCAL_SUM_REDIRECT_PORT", value)

        with pytest.raises(ConfigurationError):
            get_redirect_port()


class TestAppDir:
    """Application directory resolution."""

    def test_env_override(self, monkeypatch, tmp_path):
        """Should prefer GCAL_SUM_HOME."""
        monkeypatch.setenv("GCAL_SUM_HOME", str(tmp_path))

        assert get_app_dir() == tmp_path

    def test_script_directory(self, monkeypatch, tmp_path):
        """Should use the directory of the running script."""
        monkeypatch.delenv("GCAL_SUM_HOME", raising=False)
        script = tmp_path / "gcal-sum"
        script.write_text("")

        with patch("sys.argv", [str(script)]):
            assert get_app_dir() == tmp_path.resolve()

    def test_cwd_fallback(self, monkeypatch, tmp_path):
        """Should fall back to the working directory."""
        monkeypatch.delenv("GCAL_SUM_HOME", raising=False)
        monkeypatch.chdir(tmp_path)

        with patch("sys.argv", [""]):
            assert get_app_dir() == Path.cwd()


class TestEnvFile:
    """Loading of .env files."""

    def test_load_env_file(self, tmp_path):
        """Should load keys, strip quotes and skip comments."""
        env = tmp_path / ".env"
        env.write_text('# comment\nGCAL_SUM_TEST_A="quoted"\nnot a pair\nGCAL_SUM_TEST_B=plain\n')

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GCAL_SUM_TEST_A", None)
            os.environ.pop("GCAL_SUM_TEST_B", None)

            loaded = _load_env_file(env)

            assert loaded == {"GCAL_SUM_TEST_A": "quoted", "GCAL_SUM_TEST_B": "plain"}
            assert os.environ["GCAL_SUM_TEST_A"] == "quoted"

    def test_environment_wins(self, tmp_path, monkeypatch):
        """Should not override variables already set."""
        monkeypatch.setenv("GCAL_SUM_TEST_C", "from-env")
        env = tmp_path / ".env"
        env.write_text("GCAL_SUM_TEST_C=from-file\n")

        assert _load_env_file(env) == {}
        assert os.environ["GCAL_SUM_TEST_C"] == "from-env"

    def test_missing_file(self, tmp_path):
        """Should load nothing when there is no .env."""
        assert _load_env_file(tmp_path / ".env") == {}
