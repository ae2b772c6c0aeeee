"""Discord client service wrapping discord.py."""

from __future__ import annotations

from typing import Callable, Optional, Sequence
import asyncio
import logging

import discord
from discord import app_commands

from temproles.discord.reactions import ReactionHandler
from temproles.discord.slash_commands import (
    OPTION_INTEGER,
    OPTION_ROLE,
    OPTION_STRING,
    CommandOption,
    TempRolesCommandHandler,
)


COMMAND_NAME = "temproles"
GRANT_REASON = "temproles: reaction grant"
REVOKE_REASON = "temproles: grant expired"


class StartupError(RuntimeError):
    """Raised when the Discord session or command registration cannot start."""


class DiscordRolePlatform:
    """Platform operations used by the command and reaction handlers."""

    def __init__(self, client: discord.Client, logger: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._logger = logger or logging.getLogger("temproles.discord.platform")

    async def resolve_role(self, *, guild_id: int, role_id: int) -> Optional[int]:
        try:
            guild = await self._guild(guild_id)
        except discord.HTTPException as exc:
            self._logger.warning("guild_lookup_failed guild_id=%s error=%s", guild_id, exc)
            return None
        role = guild.get_role(role_id)
        return role.id if role is not None else None

    async def fetch_message_content(self, *, channel_id: int, message_id: str) -> str:
        channel = await self._channel(channel_id)
        message = await channel.fetch_message(int(message_id))
        return message.content

    async def add_reaction(self, *, channel_id: int, message_id: str, emoji: str) -> None:
        channel = await self._channel(channel_id)
        await channel.get_partial_message(int(message_id)).add_reaction(emoji)

    async def resolve_guild_id(self, channel_id: int) -> int:
        channel = await self._channel(channel_id)
        guild = getattr(channel, "guild", None)
        if guild is None:
            raise LookupError(f"Channel {channel_id} does not belong to a guild.")
        return guild.id

    async def add_role(self, *, guild_id: int, user_id: int, role_id: int) -> None:
        member = await self._member(guild_id, user_id)
        await member.add_roles(discord.Object(id=role_id), reason=GRANT_REASON)

    async def remove_role(self, *, guild_id: int, user_id: int, role_id: int) -> None:
        member = await self._member(guild_id, user_id)
        await member.remove_roles(discord.Object(id=role_id), reason=REVOKE_REASON)

    async def _channel(self, channel_id: int):
        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(channel_id)
        return channel

    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self._client.get_guild(guild_id)
        if guild is None:
            guild = await self._client.fetch_guild(guild_id)
        return guild

    async def _member(self, guild_id: int, user_id: int) -> discord.Member:
        guild = await self._guild(guild_id)
        member = guild.get_member(user_id)
        if member is None:
            member = await guild.fetch_member(user_id)
        return member


def build_command_options(
    *,
    role1: discord.Role,
    message_id: str,
    duration: int,
    extra_roles: Sequence[Optional[discord.Role]] = (),
) -> list[CommandOption]:
    """Flatten slash command arguments in declaration order, skipping omitted ones."""
    options = [
        CommandOption(name="role1", kind=OPTION_ROLE, value=role1.id),
        CommandOption(name="message_id", kind=OPTION_STRING, value=message_id),
        CommandOption(name="duration", kind=OPTION_INTEGER, value=duration),
    ]
    for offset, role in enumerate(extra_roles, start=2):
        if role is not None:
            options.append(CommandOption(name=f"role{offset}", kind=OPTION_ROLE, value=role.id))
    return options


class DiscordClientService:
    """Discord bot service that bridges discord.py events to the role handlers."""

    def __init__(
        self,
        *,
        bot_token: str,
        client: discord.Client,
        command_handler: TempRolesCommandHandler,
        reaction_handler: ReactionHandler,
        presence: str = "/temproles",
        command_guild_id: Optional[int] = None,
        ephemeral_responses: bool = False,
        on_ready_callback: Optional[Callable[[int], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._bot_token = bot_token
        self._client = client
        self._commands = command_handler
        self._reactions = reaction_handler
        self._presence = presence
        self._command_guild_id = command_guild_id
        self._ephemeral = ephemeral_responses
        self._on_ready_callback = on_ready_callback
        self._logger = logger or logging.getLogger("temproles.discord.client")

        self._tree = app_commands.CommandTree(self._client)
        self._ready_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        self._logger.info("Registering Discord event handlers...")

        @self._client.event
        async def on_ready():
            await self._on_ready()

        @self._client.event
        async def on_raw_reaction_add(payload):
            await self._on_raw_reaction_add(payload)

        self._setup_commands()

    @staticmethod
    def default_intents() -> discord.Intents:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_reactions = True
        return intents

    def _setup_commands(self) -> None:
        @self._tree.command(name=COMMAND_NAME, description="Assign temporary roles via reactions")
        @app_commands.describe(
            role1="First role",
            message_id="ID of the message to add reactions to",
            duration="Duration for the temporary role in hours",
            role2="Second role",
            role3="Third role",
            role4="Fourth role",
            role5="Fifth role",
        )
        @app_commands.guild_only()
        @app_commands.default_permissions(manage_roles=True)
        async def temproles_command(
            interaction: discord.Interaction,
            role1: discord.Role,
            message_id: str,
            duration: int,
            role2: Optional[discord.Role] = None,
            role3: Optional[discord.Role] = None,
            role4: Optional[discord.Role] = None,
            role5: Optional[discord.Role] = None,
        ) -> None:
            options = build_command_options(
                role1=role1,
                message_id=message_id,
                duration=duration,
                extra_roles=(role2, role3, role4, role5),
            )
            await self._on_temproles(interaction, options)

    async def start(self) -> None:
        """Open the gateway session, wait for ready and register the command."""
        self._task = asyncio.create_task(self._client.start(self._bot_token))
        ready_waiter = asyncio.create_task(self._ready_event.wait())
        done, _ = await asyncio.wait(
            {self._task, ready_waiter},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            if self._task in done:
                ready_waiter.cancel()
                exc = self._task.exception()
                raise StartupError(f"Error opening Discord session: {exc}") from exc

            await self._sync_commands()
        except StartupError:
            await self.stop()
            raise
        self._logger.info(
            "Discord client ready: bot_user_id=%s command=/%s",
            self._client.user.id if self._client.user else None,
            COMMAND_NAME,
        )

    async def stop(self) -> None:
        """Stop the Discord client gracefully."""
        await self._client.close()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                self._logger.exception("Discord client task ended with an error.")

    async def _sync_commands(self) -> None:
        try:
            if self._command_guild_id is not None:
                guild = discord.Object(id=self._command_guild_id)
                self._tree.copy_global_to(guild=guild)
                await self._tree.sync(guild=guild)
                self._logger.info("discord_commands_synced guild_id=%s", self._command_guild_id)
            else:
                await self._tree.sync()
                self._logger.info("discord_commands_synced globally")
        except discord.HTTPException as exc:
            raise StartupError(f"Error creating command: {exc}") from exc

    async def _on_ready(self) -> None:
        """Called when the bot successfully connects to Discord."""
        self._logger.info("Discord client connected as %s", self._client.user)

        try:
            await self._client.change_presence(activity=discord.Game(name=self._presence))
        except Exception:
            self._logger.exception("Failed to set presence")

        if self._on_ready_callback is not None and self._client.user is not None:
            try:
                self._on_ready_callback(self._client.user.id)
            except Exception:
                self._logger.exception("on_ready_callback failed")

        self._ready_event.set()

    async def _on_temproles(
        self,
        interaction: discord.Interaction,
        options: list[CommandOption],
    ) -> None:
        await interaction.response.defer(ephemeral=self._ephemeral, thinking=True)
        response = await self._commands.temproles(
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            options=options,
        )
        await interaction.followup.send(response.content, ephemeral=self._ephemeral)

    async def _on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        try:
            await self._reactions.handle(
                message_id=str(payload.message_id),
                channel_id=payload.channel_id,
                user_id=payload.user_id,
                emoji=payload.emoji.name,
            )
        except Exception:
            self._logger.exception("Reaction handler failed")
