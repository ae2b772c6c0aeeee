"""Typed settings loader for temproles."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple
import json
import os


_MISSING = object()
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class SettingsError(ValueError):
    """Raised when settings cannot be loaded or validated."""


@dataclass(frozen=True)
class DiscordSettings:
    bot_token_env: str = "DISCORD_BOT_TOKEN"
    command_guild_id: Optional[int] = None
    presence: str = "/temproles"
    ephemeral_responses: bool = False

    def __post_init__(self) -> None:
        bot_token_env = self.bot_token_env.strip()
        if not bot_token_env:
            raise SettingsError("discord.bot_token_env cannot be empty.")

        if self.command_guild_id is not None and self.command_guild_id <= 0:
            raise SettingsError("discord.command_guild_id must be a positive integer.")

        presence = self.presence.strip()
        if not presence:
            raise SettingsError("discord.presence cannot be empty.")

        object.__setattr__(self, "bot_token_env", bot_token_env)
        object.__setattr__(self, "presence", presence)


@dataclass(frozen=True)
class RuntimeSettings:
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        log_level = self.log_level.strip().upper()
        if log_level not in _VALID_LOG_LEVELS:
            raise SettingsError(
                "runtime.log_level must be one of: " + ", ".join(sorted(_VALID_LOG_LEVELS))
            )

        object.__setattr__(self, "log_level", log_level)


@dataclass(frozen=True)
class AppSettings:
    discord: DiscordSettings
    runtime: RuntimeSettings


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppSettings:
    """Load validated settings from JSON config and environment overrides."""

    env = dict(environ) if environ is not None else dict(os.environ)
    config = _load_config(config_path)

    discord = DiscordSettings(
        bot_token_env=_read_value(
            config,
            env,
            section="discord",
            key="bot_token_env",
            env_key="TEMPROLES_DISCORD_BOT_TOKEN_ENV",
            caster=_as_str,
            default="DISCORD_BOT_TOKEN",
        ),
        command_guild_id=_read_value(
            config,
            env,
            section="discord",
            key="command_guild_id",
            env_key="TEMPROLES_DISCORD_COMMAND_GUILD_ID",
            caster=_as_optional_int,
            default=None,
        ),
        presence=_read_value(
            config,
            env,
            section="discord",
            key="presence",
            env_key="TEMPROLES_DISCORD_PRESENCE",
            caster=_as_str,
            default="/temproles",
        ),
        ephemeral_responses=_read_value(
            config,
            env,
            section="discord",
            key="ephemeral_responses",
            env_key="TEMPROLES_DISCORD_EPHEMERAL_RESPONSES",
            caster=_as_bool,
            default=False,
        ),
    )

    runtime = RuntimeSettings(
        log_level=_read_value(
            config,
            env,
            section="runtime",
            key="log_level",
            env_key="TEMPROLES_RUNTIME_LOG_LEVEL",
            caster=_as_str,
            default="INFO",
        ),
    )

    return AppSettings(discord=discord, runtime=runtime)


def resolve_env_secret(env_name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a secret value from environment by indirection key."""

    env = environ if environ is not None else os.environ
    value = env.get(env_name)
    if value is None:
        raise SettingsError(f"Required secret environment variable '{env_name}' is not set.")

    if not value.strip():
        raise SettingsError(f"Secret environment variable '{env_name}' cannot be empty.")

    return value


def settings_summary(settings: AppSettings) -> dict:
    """Render redacted settings for diagnostics."""

    return {
        "discord": {
            "bot_token_env": settings.discord.bot_token_env,
            "command_guild_id": settings.discord.command_guild_id,
            "presence": settings.discord.presence,
            "ephemeral_responses": settings.discord.ephemeral_responses,
        },
        "runtime": {
            "log_level": settings.runtime.log_level,
        },
    }


def _load_config(config_path: Optional[Path]) -> Mapping[str, Any]:
    if config_path is None:
        return {}

    resolved = config_path.expanduser()
    if not resolved.exists():
        raise SettingsError(f"Config file does not exist: {resolved}")

    try:
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Config file is not valid JSON: {resolved}") from exc

    if not isinstance(loaded, dict):
        raise SettingsError("Config root must be an object.")

    return loaded


def _read_value(
    config: Mapping[str, Any],
    environ: Mapping[str, str],
    *,
    section: str,
    key: str,
    env_key: str,
    caster: Callable[[Any], Any],
    default: Any = _MISSING,
) -> Any:
    raw_value, source = _resolve_raw_value(
        config=config,
        environ=environ,
        section=section,
        key=key,
        env_key=env_key,
        default=default,
    )

    try:
        return caster(raw_value)
    except SettingsError:
        raise
    except Exception as exc:
        raise SettingsError(
            f"Invalid value for {section}.{key} from {source}: {raw_value!r}"
        ) from exc


def _resolve_raw_value(
    *,
    config: Mapping[str, Any],
    environ: Mapping[str, str],
    section: str,
    key: str,
    env_key: str,
    default: Any,
) -> Tuple[Any, str]:
    env_value = environ.get(env_key)
    if env_value not in (None, ""):
        return env_value, "environment"

    section_map = config.get(section)
    if section_map is not None and not isinstance(section_map, Mapping):
        raise SettingsError(f"Config section '{section}' must be an object.")

    if isinstance(section_map, Mapping) and key in section_map:
        return section_map[key], "config"

    if default is not _MISSING:
        return default, "default"

    raise SettingsError(
        f"Missing required setting '{section}.{key}'. "
        f"Provide it in config or via '{env_key}'."
    )


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise SettingsError("Value cannot be empty.")
        return text

    raise SettingsError("Expected string value.")


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None

    if isinstance(value, bool):
        raise SettingsError("Boolean is not a valid integer value.")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        text = value.strip()
        return int(text) if text else None

    raise SettingsError("Expected integer value.")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False

    raise SettingsError("Expected boolean value.")
