"""Number emoji used to map reactions onto registered roles."""

from __future__ import annotations

from typing import Optional


NUMBER_EMOJIS: tuple[str, ...] = ("1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣")
MAX_ROLES = len(NUMBER_EMOJIS)

_INDEX_BY_EMOJI = {emoji: index for index, emoji in enumerate(NUMBER_EMOJIS)}


def emoji_index(name: Optional[str]) -> Optional[int]:
    """Return the zero-based role index for a number emoji, or None."""
    if not name:
        return None
    return _INDEX_BY_EMOJI.get(name)
