"""Registration table, emoji alphabet and expiry scheduling."""

from temproles.grants.emoji import MAX_ROLES, NUMBER_EMOJIS, emoji_index
from temproles.grants.expiry import ExpiryScheduler, Grant, RoleRevoker
from temproles.grants.registry import Registration, RegistrationError, RegistrationTable

__all__ = [
    "MAX_ROLES",
    "NUMBER_EMOJIS",
    "emoji_index",
    "ExpiryScheduler",
    "Grant",
    "RoleRevoker",
    "Registration",
    "RegistrationError",
    "RegistrationTable",
]
