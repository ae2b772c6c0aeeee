"""Factory for wiring up the complete temproles runtime."""

from __future__ import annotations

from typing import Mapping, Optional
import logging

import discord

from temproles.config.settings import AppSettings, resolve_env_secret
from temproles.discord.client import DiscordClientService, DiscordRolePlatform
from temproles.discord.reactions import ReactionHandler, ReactionSeeder
from temproles.discord.slash_commands import TempRolesCommandHandler
from temproles.grants.expiry import ExpiryScheduler
from temproles.grants.registry import RegistrationTable
from temproles.runtime.app import RuntimeService


def create_services(
    settings: AppSettings,
    *,
    logger: Optional[logging.Logger] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[RuntimeService]:
    """Create the expiry scheduler and Discord service, in startup order."""

    _logger = logger or logging.getLogger("temproles.factory")

    # Resolve Discord bot token
    bot_token = resolve_env_secret(settings.discord.bot_token_env, environ)

    client = discord.Client(intents=DiscordClientService.default_intents())
    platform = DiscordRolePlatform(client, logger=logging.getLogger("temproles.discord.platform"))

    registrations = RegistrationTable()
    expiry = ExpiryScheduler(revoker=platform)
    reaction_handler = ReactionHandler(
        registrations=registrations,
        granter=platform,
        expiry=expiry,
    )
    command_handler = TempRolesCommandHandler(
        registrations=registrations,
        seeder=ReactionSeeder(platform),
        roles=platform,
        messages=platform,
    )

    def update_bot_user_id(bot_user_id: int) -> None:
        reaction_handler.update_bot_user_id(bot_user_id)
        _logger.info("Updated reaction handler bot_user_id=%s", bot_user_id)

    discord_service = DiscordClientService(
        bot_token=bot_token,
        client=client,
        command_handler=command_handler,
        reaction_handler=reaction_handler,
        presence=settings.discord.presence,
        command_guild_id=settings.discord.command_guild_id,
        ephemeral_responses=settings.discord.ephemeral_responses,
        on_ready_callback=update_bot_user_id,
    )

    return [expiry, discord_service]
