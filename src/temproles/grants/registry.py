"""In-memory registration table keyed by Discord message id."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence
import logging

from temproles.grants.emoji import MAX_ROLES, emoji_index


class RegistrationError(ValueError):
    """Raised when a registration would violate its invariants."""


@dataclass(frozen=True)
class Registration:
    message_id: str
    role_ids: tuple[int, ...]
    content: str
    duration_hours: int

    def __post_init__(self) -> None:
        message_id = self.message_id.strip()
        if not message_id:
            raise RegistrationError("message_id cannot be empty.")

        role_ids = tuple(int(role_id) for role_id in self.role_ids)
        if not role_ids:
            raise RegistrationError("At least one role is required.")
        if len(role_ids) > MAX_ROLES:
            raise RegistrationError(f"At most {MAX_ROLES} roles can be registered.")

        if isinstance(self.duration_hours, bool) or self.duration_hours <= 0:
            raise RegistrationError("duration_hours must be a positive integer.")

        object.__setattr__(self, "message_id", message_id)
        object.__setattr__(self, "role_ids", role_ids)

    def role_for_emoji(self, emoji: Optional[str]) -> Optional[int]:
        """Map a number emoji onto the role at the same position, if any."""
        index = emoji_index(emoji)
        if index is None or index >= len(self.role_ids):
            return None
        return self.role_ids[index]


class RegistrationTable:
    """Process-wide message id -> Registration map.

    Entries live for the lifetime of the process. Registering a message id
    that is already present replaces the old entry.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._entries: dict[str, Registration] = {}
        self._logger = logger or logging.getLogger("temproles.grants.registry")

    def register(
        self,
        *,
        message_id: str,
        role_ids: Sequence[int],
        content: str,
        duration_hours: int,
    ) -> Registration:
        registration = Registration(
            message_id=message_id,
            role_ids=tuple(role_ids),
            content=content,
            duration_hours=duration_hours,
        )
        replaced = registration.message_id in self._entries
        self._entries[registration.message_id] = registration
        self._logger.info(
            "registration_stored message_id=%s roles=%s duration_hours=%s replaced=%s",
            registration.message_id,
            list(registration.role_ids),
            registration.duration_hours,
            replaced,
        )
        return registration

    def get(self, message_id: str) -> Optional[Registration]:
        return self._entries.get(str(message_id).strip())

    def __contains__(self, message_id: object) -> bool:
        return str(message_id).strip() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Registration]:
        return iter(list(self._entries.values()))
