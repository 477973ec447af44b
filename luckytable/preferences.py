"""Persisted player preferences (sound, haptics, animations, theme)."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Union

from .storage import KeyValueStore, StorageError

log = logging.getLogger(__name__)

STORAGE_KEY = "app_settings"
THEMES = ("dark", "light")


@dataclass(frozen=True)
class Preferences:
    haptic_enabled: bool = True
    sound_enabled: bool = True
    animations_enabled: bool = True
    theme: str = "dark"


PreferenceValue = Union[bool, str]


class PreferencesStore:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.current = Preferences()

    def load(self) -> Preferences:
        try:
            raw = self.store.get(STORAGE_KEY)
            if raw:
                known = {f.name for f in fields(Preferences)}
                saved = {k: v for k, v in json.loads(raw).items() if k in known}
                self.current = replace(Preferences(), **saved)
        except (StorageError, ValueError, TypeError, AttributeError) as exc:
            log.warning("Could not load preferences, using defaults: %s", exc)
            self.current = Preferences()
        return self.current

    def update(self, key: str, value: PreferenceValue) -> bool:
        """Persist one preference. Returns False if the store could not be written."""
        known = {f.name for f in fields(Preferences)}
        if key not in known:
            raise ValueError(f"Unknown preference: {key}")
        if key == "theme":
            if value not in THEMES:
                raise ValueError(f"Theme must be one of {', '.join(THEMES)}")
        elif not isinstance(value, bool):
            raise ValueError(f"{key} expects a boolean")

        updated = replace(self.current, **{key: value})
        try:
            self.store.set(STORAGE_KEY, json.dumps(asdict(updated)))
        except StorageError as exc:
            log.warning("Could not save preference %s: %s", key, exc)
            return False
        self.current = updated
        return True
