"""Service layer helpers (settings persistence)."""

from .settings import DEFAULT_SETTINGS_PATH, Settings, SettingsStore

__all__ = ["DEFAULT_SETTINGS_PATH", "Settings", "SettingsStore"]
