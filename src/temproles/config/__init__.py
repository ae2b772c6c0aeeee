"""Configuration APIs."""

from temproles.config.settings import (
    AppSettings,
    DiscordSettings,
    RuntimeSettings,
    SettingsError,
    load_settings,
    resolve_env_secret,
    settings_summary,
)

__all__ = [
    "AppSettings",
    "DiscordSettings",
    "RuntimeSettings",
    "SettingsError",
    "load_settings",
    "resolve_env_secret",
    "settings_summary",
]
