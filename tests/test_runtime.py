import asyncio
from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from temproles.config.settings import SettingsError, load_settings
from temproles.discord.client import DiscordClientService
from temproles.grants.expiry import ExpiryScheduler
from temproles.runtime.app import RuntimeApp
from temproles.runtime.factory import create_services


class _ProbeService:
    def __init__(self, name, events, fail_start=False):
        self.name = name
        self.events = events
        self.fail_start = fail_start

    async def start(self):
        if self.fail_start:
            raise RuntimeError(f"{self.name} failed")
        self.events.append(("start", self.name))

    async def stop(self):
        self.events.append(("stop", self.name))


class RuntimeAppTests(unittest.IsolatedAsyncioTestCase):
    def _settings(self):
        return load_settings(environ={"TEMPROLES_RUNTIME_LOG_LEVEL": "DEBUG"})

    async def test_run_starts_and_stops_services_in_order(self):
        events = []
        app = RuntimeApp(
            settings=self._settings(),
            services=[_ProbeService("expiry", events), _ProbeService("discord", events)],
        )

        stop_event = asyncio.Event()
        stop_event.set()

        await app.run(shutdown_event=stop_event)

        self.assertEqual(
            events,
            [
                ("start", "expiry"),
                ("start", "discord"),
                ("stop", "discord"),
                ("stop", "expiry"),
            ],
        )

    async def test_start_failure_stops_started_services_and_propagates(self):
        events = []
        app = RuntimeApp(
            settings=self._settings(),
            services=[
                _ProbeService("expiry", events),
                _ProbeService("discord", events, fail_start=True),
            ],
        )

        with self.assertRaises(RuntimeError):
            await app.run(shutdown_event=asyncio.Event())

        self.assertEqual(events, [("start", "expiry"), ("stop", "expiry")])


class FactoryTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_token_is_a_settings_error(self):
        settings = load_settings(environ={})

        with self.assertRaises(SettingsError):
            create_services(settings, environ={})

    async def test_services_are_returned_in_startup_order(self):
        settings = load_settings(environ={"TEMPROLES_DISCORD_BOT_TOKEN_ENV": "MY_TOKEN"})

        services = create_services(settings, environ={"MY_TOKEN": "abc"})

        self.assertEqual(len(services), 2)
        self.assertIsInstance(services[0], ExpiryScheduler)
        self.assertIsInstance(services[1], DiscordClientService)


if __name__ == "__main__":
    unittest.main()
