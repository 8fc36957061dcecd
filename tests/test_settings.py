import json

from nowplaying.settings import (
    DEFAULT_SETTINGS,
    default_settings_path,
    load_settings,
    normalize_settings,
    save_settings,
)


def test_normalize_settings_rejects_out_of_range_values():
    raw = {
        "playing_format": "",
        "refresh_interval_ms": 5,
        "volume_slider_width": 12,
        "volume": 101,
        "music_folders": ["~/Music", "", 3],
        "ascii": "yes",
    }
    out = normalize_settings(raw)
    assert out["playing_format"] == DEFAULT_SETTINGS["playing_format"]
    assert out["refresh_interval_ms"] == DEFAULT_SETTINGS["refresh_interval_ms"]
    assert out["volume_slider_width"] == 12
    assert out["volume"] == DEFAULT_SETTINGS["volume"]
    assert out["music_folders"] == ["~/Music"]
    assert out["ascii"] is False


def test_bool_is_not_an_int():
    assert normalize_settings({"volume": True})["volume"] == DEFAULT_SETTINGS["volume"]


def test_load_settings_invalid_file_returns_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("not-json", encoding="utf-8")
    assert load_settings(str(path)) == DEFAULT_SETTINGS


def test_load_settings_missing_file_returns_defaults(tmp_path):
    assert load_settings(str(tmp_path / "absent.json")) == DEFAULT_SETTINGS


def test_save_then_load_roundtrip(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    save_settings(str(path), {"playing_format": "$artist - $title", "volume": 35})
    loaded = load_settings(str(path))
    assert loaded["playing_format"] == "$artist - $title"
    assert loaded["volume"] == 35
    saved_json = json.loads(path.read_text(encoding="utf-8"))
    assert "settings_version" in saved_json
    assert not (tmp_path / "nested" / "settings.json.tmp").exists()


def test_settings_path_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("NOWPLAYING_SETTINGS", str(tmp_path / "custom.json"))
    assert default_settings_path() == str(tmp_path / "custom.json")


def test_settings_path_uses_xdg_config_home(monkeypatch, tmp_path):
    monkeypatch.delenv("NOWPLAYING_SETTINGS", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_settings_path() == str(tmp_path / "nowplaying" / "settings.json")
