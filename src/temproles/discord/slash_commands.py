"""/temproles command handling with validation and user-facing errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence
import logging

from temproles.discord.reactions import ReactionSeeder
from temproles.grants.emoji import MAX_ROLES
from temproles.grants.registry import RegistrationError, RegistrationTable


USAGE_TEXT = "Usage: /temproles role1 message_id duration [role2] [role3] [role4] [role5]"
ROLE_ERROR_TEXT = "Error fetching role"
REQUIRED_TEXT = "Message ID and duration are required"
FETCH_ERROR_TEXT = "Error fetching message content"
GUILD_ONLY_TEXT = "This command can only be used in a server."
SUCCESS_TEXT = "Reactions added. Users can now react to get temporary roles."

OPTION_ROLE = "role"
OPTION_STRING = "string"
OPTION_INTEGER = "integer"


@dataclass(frozen=True)
class CommandResponse:
    content: str


@dataclass(frozen=True)
class CommandOption:
    name: str
    kind: str
    value: Any


class RoleResolver(Protocol):
    async def resolve_role(self, *, guild_id: int, role_id: int) -> Optional[int]:
        ...


class MessageFetcher(Protocol):
    async def fetch_message_content(self, *, channel_id: int, message_id: str) -> str:
        ...


class CommandValidationError(ValueError):
    """Raised when command input is invalid."""


def format_command_error(exc: Exception) -> str:
    if isinstance(exc, CommandValidationError):
        return f"Validation error: {exc}"
    return (
        "Command failed: internal runtime error. "
        "Please retry or inspect service logs."
    )


class TempRolesCommandHandler:
    """Backend for /temproles: validates input, registers and seeds."""

    def __init__(
        self,
        *,
        registrations: RegistrationTable,
        seeder: ReactionSeeder,
        roles: RoleResolver,
        messages: MessageFetcher,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registrations = registrations
        self._seeder = seeder
        self._roles = roles
        self._messages = messages
        self._logger = logger or logging.getLogger("temproles.discord.commands")

    async def temproles(
        self,
        *,
        guild_id: Optional[int],
        channel_id: int,
        options: Sequence[CommandOption],
    ) -> CommandResponse:
        if len(options) < 3:
            return CommandResponse(content=USAGE_TEXT)
        if guild_id is None:
            return CommandResponse(content=GUILD_ONLY_TEXT)

        try:
            return await self._register(guild_id=guild_id, channel_id=channel_id, options=options)
        except Exception as exc:
            if not isinstance(exc, CommandValidationError):
                self._logger.exception("temproles_command_failed channel_id=%s", channel_id)
            return CommandResponse(content=format_command_error(exc))

    async def _register(
        self,
        *,
        guild_id: int,
        channel_id: int,
        options: Sequence[CommandOption],
    ) -> CommandResponse:
        role_ids: list[int] = []
        message_id = ""
        duration = 0

        for option in options:
            if option.kind == OPTION_ROLE:
                role_id = await self._roles.resolve_role(guild_id=guild_id, role_id=int(option.value))
                if role_id is None:
                    self._logger.warning(
                        "role_resolution_failed option=%s value=%s guild_id=%s",
                        option.name,
                        option.value,
                        guild_id,
                    )
                    return CommandResponse(content=ROLE_ERROR_TEXT)
                role_ids.append(role_id)
            elif option.kind == OPTION_STRING:
                message_id = str(option.value).strip()
            elif option.kind == OPTION_INTEGER:
                duration = self._validate_duration(option.value)

        if len(role_ids) > MAX_ROLES:
            raise CommandValidationError(f"at most {MAX_ROLES} roles are supported.")

        if not message_id or duration <= 0:
            return CommandResponse(content=REQUIRED_TEXT)

        try:
            content = await self._messages.fetch_message_content(
                channel_id=channel_id,
                message_id=message_id,
            )
        except Exception as exc:
            self._logger.warning(
                "message_fetch_failed channel_id=%s message_id=%s error=%s",
                channel_id,
                message_id,
                exc,
            )
            return CommandResponse(content=FETCH_ERROR_TEXT)

        try:
            registration = self._registrations.register(
                message_id=message_id,
                role_ids=role_ids,
                content=content,
                duration_hours=duration,
            )
        except RegistrationError as exc:
            raise CommandValidationError(str(exc)) from exc
        self._logger.debug(
            "registration_content message_id=%s content=%r",
            registration.message_id,
            registration.content,
        )

        await self._seeder.seed(
            channel_id=channel_id,
            message_id=registration.message_id,
            role_ids=registration.role_ids,
        )
        return CommandResponse(content=SUCCESS_TEXT)

    @staticmethod
    def _validate_duration(value: Any) -> int:
        if isinstance(value, bool):
            raise CommandValidationError("duration must be an integer number of hours.")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise CommandValidationError("duration must be an integer number of hours.") from exc
