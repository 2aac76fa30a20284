import json
import os

import pytest

from archview.config import AppConfig, config_path, load_config, save_config, set_theme


def test_missing_config_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "config.json")
    assert cfg == AppConfig()
    assert cfg.server.port == 5151
    assert cfg.theme is None


def test_theme_round_trips(tmp_path):
    path = tmp_path / "config.json"
    set_theme("dark", path)
    assert load_config(path).theme == "dark"
    set_theme(None, path)
    assert load_config(path).theme is None


def test_unknown_theme_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        set_theme("blue", tmp_path / "config.json")


def test_invalid_file_contents_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(path) == AppConfig()
    path.write_text(json.dumps({"server": {"bogus": 1}}))
    assert load_config(path) == AppConfig()
    path.write_text(json.dumps({"theme": "purple"}))
    assert load_config(path).theme is None


def test_save_config_restricts_permissions(tmp_path):
    path = tmp_path / "nested" / "config.json"
    cfg = AppConfig()
    cfg.archive.messages = "/data/export.msgpack"
    save_config(cfg, path)
    assert load_config(path).archive.messages == "/data/export.msgpack"
    if os.name == "posix":
        assert path.stat().st_mode & 0o777 == 0o600


def test_config_path_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("ARCHVIEW_CONFIG", str(tmp_path / "x.json"))
    assert config_path() == tmp_path / "x.json"
