from __future__ import annotations

from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from temproles.discord.reactions import ReactionSeeder
from temproles.discord.slash_commands import (
    FETCH_ERROR_TEXT,
    GUILD_ONLY_TEXT,
    OPTION_INTEGER,
    OPTION_ROLE,
    OPTION_STRING,
    REQUIRED_TEXT,
    ROLE_ERROR_TEXT,
    SUCCESS_TEXT,
    USAGE_TEXT,
    CommandOption,
    CommandValidationError,
    TempRolesCommandHandler,
    format_command_error,
)
from temproles.grants.registry import RegistrationTable


class _FakePlatform:
    def __init__(self) -> None:
        self.known_roles = {11, 22, 33, 44, 55, 66}
        self.messages = {"1000": "React below for event roles"}
        self.fetch_error: Exception | None = None
        self.reactions: list[tuple[int, str, str]] = []

    async def resolve_role(self, *, guild_id: int, role_id: int) -> int | None:
        return role_id if role_id in self.known_roles else None

    async def fetch_message_content(self, *, channel_id: int, message_id: str) -> str:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.messages[message_id]

    async def add_reaction(self, *, channel_id: int, message_id: str, emoji: str) -> None:
        self.reactions.append((channel_id, message_id, emoji))


def _options(*role_ids: int, message_id: str = "1000", duration=4) -> list[CommandOption]:
    options = [
        CommandOption(name="role1", kind=OPTION_ROLE, value=role_ids[0]),
        CommandOption(name="message_id", kind=OPTION_STRING, value=message_id),
        CommandOption(name="duration", kind=OPTION_INTEGER, value=duration),
    ]
    for offset, role_id in enumerate(role_ids[1:], start=2):
        options.append(CommandOption(name=f"role{offset}", kind=OPTION_ROLE, value=role_id))
    return options


class TempRolesCommandTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.platform = _FakePlatform()
        self.table = RegistrationTable()
        self.handler = TempRolesCommandHandler(
            registrations=self.table,
            seeder=ReactionSeeder(self.platform),
            roles=self.platform,
            messages=self.platform,
        )

    async def _run(self, options, guild_id=7):
        return await self.handler.temproles(guild_id=guild_id, channel_id=70, options=options)

    async def test_registers_and_seeds(self) -> None:
        response = await self._run(_options(11, 22, 33))

        self.assertEqual(response.content, SUCCESS_TEXT)
        registration = self.table.get("1000")
        self.assertEqual(registration.role_ids, (11, 22, 33))
        self.assertEqual(registration.duration_hours, 4)
        self.assertEqual(registration.content, "React below for event roles")
        self.assertEqual(
            self.platform.reactions,
            [(70, "1000", "1️⃣"), (70, "1000", "2️⃣"), (70, "1000", "3️⃣")],
        )

    async def test_fewer_than_three_options_is_usage_error(self) -> None:
        self.table.register(message_id="1000", role_ids=[99], content="", duration_hours=1)

        response = await self._run(_options(11)[:2])

        self.assertEqual(response.content, USAGE_TEXT)
        self.assertEqual(self.table.get("1000").role_ids, (99,))
        self.assertEqual(self.platform.reactions, [])

    async def test_unresolved_role_stops_without_state_change(self) -> None:
        response = await self._run(_options(11, 404))

        self.assertEqual(response.content, ROLE_ERROR_TEXT)
        self.assertEqual(len(self.table), 0)
        self.assertEqual(self.platform.reactions, [])

    async def test_blank_message_id_or_bad_duration_is_rejected(self) -> None:
        for options in (
            _options(11, message_id="   "),
            _options(11, duration=0),
            _options(11, duration=-3),
        ):
            with self.subTest(options=options):
                response = await self._run(options)
                self.assertEqual(response.content, REQUIRED_TEXT)
        self.assertEqual(len(self.table), 0)

    async def test_message_fetch_failure_commits_nothing(self) -> None:
        self.platform.fetch_error = RuntimeError("Unknown Message")

        response = await self._run(_options(11))

        self.assertEqual(response.content, FETCH_ERROR_TEXT)
        self.assertEqual(len(self.table), 0)
        self.assertEqual(self.platform.reactions, [])

    async def test_outside_guild_is_rejected(self) -> None:
        response = await self._run(_options(11), guild_id=None)

        self.assertEqual(response.content, GUILD_ONLY_TEXT)
        self.assertEqual(len(self.table), 0)

    async def test_more_than_five_roles_is_validation_error(self) -> None:
        response = await self._run(_options(11, 22, 33, 44, 55, 66))

        self.assertIn("Validation error:", response.content)
        self.assertEqual(len(self.table), 0)

    async def test_options_without_any_role_get_a_validation_message(self) -> None:
        options = [
            CommandOption(name="message_id", kind=OPTION_STRING, value="1000"),
            CommandOption(name="duration", kind=OPTION_INTEGER, value=4),
            CommandOption(name="note", kind=OPTION_STRING, value="1000"),
        ]

        response = await self._run(options)

        self.assertEqual(response.content, "Validation error: At least one role is required.")
        self.assertEqual(len(self.table), 0)
        self.assertEqual(self.platform.reactions, [])

    async def test_same_message_id_overwrites_registration(self) -> None:
        await self._run(_options(11, 22, duration=2))
        await self._run(_options(33, duration=6))

        registration = self.table.get("1000")
        self.assertEqual(registration.role_ids, (33,))
        self.assertEqual(registration.duration_hours, 6)

    async def test_unexpected_failure_is_safely_formatted(self) -> None:
        handler = TempRolesCommandHandler(
            registrations=None,
            seeder=ReactionSeeder(self.platform),
            roles=self.platform,
            messages=self.platform,
        )

        with self.assertLogs("temproles.discord.commands", level="ERROR"):
            response = await handler.temproles(guild_id=7, channel_id=70, options=_options(11))

        self.assertEqual(
            response.content,
            "Command failed: internal runtime error. Please retry or inspect service logs.",
        )


class CommandErrorFormattingTests(unittest.TestCase):
    def test_validation_error_formatter(self) -> None:
        message = format_command_error(CommandValidationError("bad"))
        self.assertEqual(message, "Validation error: bad")

    def test_generic_error_formatter(self) -> None:
        message = format_command_error(RuntimeError("boom"))
        self.assertEqual(
            message,
            "Command failed: internal runtime error. Please retry or inspect service logs.",
        )


if __name__ == "__main__":
    unittest.main()
