from __future__ import annotations

import json
from unittest import mock

import pytest

from luckytable.preferences import STORAGE_KEY, Preferences, PreferencesStore
from luckytable.storage import MemoryStore, StorageError


def test_defaults_when_nothing_saved(store):
    prefs = PreferencesStore(store).load()
    assert prefs == Preferences()
    assert prefs.theme == "dark"


def test_update_persists(store):
    prefs = PreferencesStore(store)
    assert prefs.update("sound_enabled", False)
    assert prefs.update("theme", "light")

    saved = json.loads(store.get(STORAGE_KEY))
    assert saved["sound_enabled"] is False
    assert saved["theme"] == "light"

    reloaded = PreferencesStore(store).load()
    assert not reloaded.sound_enabled
    assert reloaded.haptic_enabled


def test_unknown_keys_in_storage_are_ignored():
    store = MemoryStore({STORAGE_KEY: json.dumps({"animations_enabled": False, "isLoading": True})})
    prefs = PreferencesStore(store).load()
    assert not prefs.animations_enabled


def test_corrupt_preferences_fall_back():
    prefs = PreferencesStore(MemoryStore({STORAGE_KEY: "{not json"})).load()
    assert prefs == Preferences()


@pytest.mark.parametrize("key, value", [("volume", 3), ("theme", "blue"), ("sound_enabled", "yes")])
def test_update_rejects_unknown_fields_and_bad_values(store, key, value):
    with pytest.raises(ValueError):
        PreferencesStore(store).update(key, value)


def test_failed_save_keeps_current(store):
    prefs = PreferencesStore(store)
    with mock.patch.object(store, "set", side_effect=StorageError("full")):
        assert not prefs.update("haptic_enabled", False)
    assert prefs.current.haptic_enabled
