"""Discord-facing utilities."""

from temproles.discord.client import (
    DiscordClientService,
    DiscordRolePlatform,
    StartupError,
    build_command_options,
)
from temproles.discord.reactions import ReactionHandler, ReactionOutcome, ReactionSeeder
from temproles.discord.slash_commands import (
    CommandOption,
    CommandResponse,
    CommandValidationError,
    TempRolesCommandHandler,
    format_command_error,
)

__all__ = [
    "DiscordClientService",
    "DiscordRolePlatform",
    "StartupError",
    "build_command_options",
    "ReactionHandler",
    "ReactionOutcome",
    "ReactionSeeder",
    "CommandOption",
    "CommandResponse",
    "CommandValidationError",
    "TempRolesCommandHandler",
    "format_command_error",
]
