"""Delayed role revocation for granted temporary roles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol
import asyncio
import logging


SECONDS_PER_HOUR = 3600

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Grant:
    user_id: int
    role_id: int
    guild_id: int


class RoleRevoker(Protocol):
    async def remove_role(self, *, guild_id: int, user_id: int, role_id: int) -> None:
        ...


class ExpiryScheduler:
    """Forks one sleeping task per grant and revokes the role when it wakes.

    Tasks cannot be cancelled individually. `stop()` cancels everything still
    sleeping and is only meant for process shutdown.
    """

    def __init__(
        self,
        *,
        revoker: RoleRevoker,
        sleep: Optional[Sleeper] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._revoker = revoker
        self._sleep = sleep or asyncio.sleep
        self._logger = logger or logging.getLogger("temproles.grants.expiry")
        self._tasks: set[asyncio.Task] = set()

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    def schedule(self, grant: Grant, duration_hours: int) -> asyncio.Task:
        if duration_hours <= 0:
            raise ValueError("duration_hours must be a positive integer.")

        task = asyncio.create_task(
            self._expire(grant, duration_hours),
            name=f"temprole-expiry-{grant.guild_id}-{grant.user_id}-{grant.role_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._logger.info(
            "role_expiry_scheduled user_id=%s role_id=%s guild_id=%s hours=%s",
            grant.user_id,
            grant.role_id,
            grant.guild_id,
            duration_hours,
        )
        return task

    async def wait_idle(self) -> None:
        """Wait until every task scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def start(self) -> None:
        """No-op; present for the runtime service lifecycle."""
        return None

    async def stop(self) -> None:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._logger.warning(
                "role_expiry_abandoned count=%s (roles will not be revoked)",
                len(pending),
            )

    async def _expire(self, grant: Grant, duration_hours: int) -> None:
        await self._sleep(duration_hours * SECONDS_PER_HOUR)
        try:
            await self._revoker.remove_role(
                guild_id=grant.guild_id,
                user_id=grant.user_id,
                role_id=grant.role_id,
            )
        except Exception:
            self._logger.exception(
                "role_revoke_failed user_id=%s role_id=%s guild_id=%s",
                grant.user_id,
                grant.role_id,
                grant.guild_id,
            )
            return
        self._logger.info(
            "role_revoked user_id=%s role_id=%s guild_id=%s",
            grant.user_id,
            grant.role_id,
            grant.guild_id,
        )
