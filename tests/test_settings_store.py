import json

from prm.settings_store import SettingsStore


def test_settings_persist_between_instances(tmp_path):
    path = tmp_path / "settings.json"
    store = SettingsStore(path=str(path))
    assert store.get("last_view", "dashboard") == "dashboard"

    store.set("last_view", "events")

    assert SettingsStore(path=str(path)).get("last_view") == "events"
    assert json.loads(path.read_text()) == {"last_view": "events"}


def test_unreadable_settings_file_starts_empty(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    store = SettingsStore(path=str(path))

    assert store.get("last_view") is None
