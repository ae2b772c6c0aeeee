"""Reaction seeding and reaction-add handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence
import logging

from temproles.grants.emoji import NUMBER_EMOJIS
from temproles.grants.expiry import ExpiryScheduler, Grant
from temproles.grants.registry import RegistrationTable


class ReactionTarget(Protocol):
    async def add_reaction(self, *, channel_id: int, message_id: str, emoji: str) -> None:
        ...


class RoleGranter(Protocol):
    async def resolve_guild_id(self, channel_id: int) -> int:
        ...

    async def add_role(self, *, guild_id: int, user_id: int, role_id: int) -> None:
        ...


class ReactionSeeder:
    """Attaches 1️⃣..5️⃣ to a message, one emoji per registered role."""

    def __init__(self, target: ReactionTarget, logger: Optional[logging.Logger] = None) -> None:
        self._target = target
        self._logger = logger or logging.getLogger("temproles.discord.seeder")

    async def seed(
        self,
        *,
        channel_id: int,
        message_id: str,
        role_ids: Sequence[int],
    ) -> list[str]:
        attached: list[str] = []
        for index in range(len(role_ids)):
            if index >= len(NUMBER_EMOJIS):
                break
            emoji = NUMBER_EMOJIS[index]
            try:
                await self._target.add_reaction(
                    channel_id=channel_id,
                    message_id=message_id,
                    emoji=emoji,
                )
            except Exception as exc:
                self._logger.warning(
                    "reaction_seed_failed message_id=%s emoji=%s error=%s",
                    message_id,
                    emoji,
                    exc,
                )
                continue
            attached.append(emoji)
        return attached


@dataclass(frozen=True)
class ReactionOutcome:
    granted: bool
    reason: str
    grant: Optional[Grant] = None


class ReactionHandler:
    """Grants the role behind a number emoji and schedules its revocation."""

    def __init__(
        self,
        *,
        registrations: RegistrationTable,
        granter: RoleGranter,
        expiry: ExpiryScheduler,
        bot_user_id: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registrations = registrations
        self._granter = granter
        self._expiry = expiry
        self._bot_user_id = bot_user_id
        self._logger = logger or logging.getLogger("temproles.discord.reactions")

    def update_bot_user_id(self, bot_user_id: int) -> None:
        self._bot_user_id = bot_user_id

    async def handle(
        self,
        *,
        message_id: str,
        channel_id: int,
        user_id: int,
        emoji: Optional[str],
    ) -> ReactionOutcome:
        message_id = str(message_id).strip()
        self._logger.debug(
            "reaction_received user_id=%s emoji=%s message_id=%s",
            user_id,
            emoji,
            message_id,
        )

        if self._bot_user_id is not None and user_id == self._bot_user_id:
            return ReactionOutcome(granted=False, reason="own_reaction")

        registration = self._registrations.get(message_id)
        if registration is None:
            self._logger.debug("reaction_ignored reason=unregistered message_id=%s", message_id)
            return ReactionOutcome(granted=False, reason="unregistered")

        role_id = registration.role_for_emoji(emoji)
        if role_id is None:
            self._logger.info(
                "reaction_ignored reason=no_role_for_emoji message_id=%s emoji=%s",
                message_id,
                emoji,
            )
            return ReactionOutcome(granted=False, reason="no_role_for_emoji")

        try:
            guild_id = await self._granter.resolve_guild_id(channel_id)
        except Exception as exc:
            self._logger.warning(
                "reaction_ignored reason=channel_lookup_failed channel_id=%s error=%s",
                channel_id,
                exc,
            )
            return ReactionOutcome(granted=False, reason="channel_lookup_failed")

        self._logger.info(
            "role_grant user_id=%s role_id=%s guild_id=%s message_id=%s",
            user_id,
            role_id,
            guild_id,
            message_id,
        )
        try:
            await self._granter.add_role(guild_id=guild_id, user_id=user_id, role_id=role_id)
        except Exception as exc:
            self._logger.warning(
                "role_grant_failed user_id=%s role_id=%s guild_id=%s error=%s",
                user_id,
                role_id,
                guild_id,
                exc,
            )
            return ReactionOutcome(granted=False, reason="grant_failed")

        grant = Grant(user_id=user_id, role_id=role_id, guild_id=guild_id)
        self._expiry.schedule(grant, registration.duration_hours)
        return ReactionOutcome(granted=True, reason="granted", grant=grant)
