"""Tests for config module."""

import importlib

import dotenv
import pytest

import cherry_hydrate.config as config_mod


def test_missing_api_secret_exits(monkeypatch):
    monkeypatch.delenv("CHERRY_API_SECRET", raising=False)
    monkeypatch.setattr(dotenv, "load_dotenv", lambda: None)

    with pytest.raises(SystemExit):
        importlib.reload(config_mod)


def test_valid_config_loads(monkeypatch, tmp_path):
    monkeypatch.setenv("CHERRY_API_SECRET", "s3cret")
    monkeypatch.setenv("CHERRY_PORT", "9100")
    monkeypatch.setenv("CHERRY_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CHERRY_TIMEZONE", "Europe/Berlin")
    monkeypatch.delenv("CHERRY_ADMIN_SECRET", raising=False)

    importlib.reload(config_mod)
    assert config_mod.API_SECRET == "s3cret"
    assert config_mod.ADMIN_SECRET is None
    assert config_mod.PORT == 9100
    assert config_mod.DATA_DIR == tmp_path
    assert str(config_mod.TZ) == "Europe/Berlin"


def test_env_flag(monkeypatch):
    monkeypatch.delenv("CHERRY_SOME_FLAG", raising=False)
    assert config_mod.env_flag("CHERRY_SOME_FLAG", True) is True

    monkeypatch.setenv("CHERRY_SOME_FLAG", "  ")
    assert config_mod.env_flag("CHERRY_SOME_FLAG", True) is True

    monkeypatch.setenv("CHERRY_SOME_FLAG", "Yes")
    assert config_mod.env_flag("CHERRY_SOME_FLAG", False) is True

    monkeypatch.setenv("CHERRY_SOME_FLAG", "nope")
    assert config_mod.env_flag("CHERRY_SOME_FLAG", True) is False


@pytest.fixture(autouse=True)
def _restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    monkeypatch.setattr(dotenv, "load_dotenv", lambda: None)
    importlib.reload(config_mod)
