import asyncio
import datetime
import os
import unittest
from pathlib import Path
from typing import Any, Iterable

from cf_config_client.config.models import LoadParams
from cf_config_client.descriptors import LocalDescriptor, RemoteDescriptor, RemoteNoAuthDescriptor
from cf_config_client.errors import ConfigIOError, FetchError
from cf_config_client.loaders import Loaders, load_descriptor
from cf_config_client.refresh import RefreshDriver

FIXTURES = Path(__file__).parent / "fixtures"


class FakeClock:
    """Simulated monotonic clock whose sleep parks forever once `limit` seconds would be exceeded."""

    def __init__(self, limit: float) -> None:
        self.now = 0.0
        self.limit = limit
        self.sleeps: list[float] = []
        self.exhausted = asyncio.Event()

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        if self.now + seconds > self.limit:
            self.exhausted.set()
            await asyncio.Event().wait()
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedLoader:
    """Returns (or raises) the scripted results in order, repeating the last one."""

    def __init__(self, results: Iterable[Any]) -> None:
        self._results = list(results)
        self.calls = 0

    async def __call__(self, descriptor: Any) -> Any:
        index = min(self.calls, len(self._results) - 1)
        self.calls += 1
        result = self._results[index]
        if isinstance(result, BaseException):
            raise result
        return result


async def _unused_loader(descriptor: Any) -> Any:
    raise AssertionError(f"unexpected loader call for {descriptor!r}")


def _loaders(local: Any) -> Loaders:
    return Loaders(local=local, remote=_unused_loader, remote_no_auth=_unused_loader)


def _params(**overrides: Any) -> LoadParams:
    values = {
        "app_name": "testApp",
        "profile": "test",
        "config_server_name": "test-config",
        "config_location": "local",
    }
    values.update(overrides)
    return LoadParams(**values)


DESCRIPTOR = LocalDescriptor(path="./test-config/testApp-test.yml")


class LoadDescriptorTests(unittest.IsolatedAsyncioTestCase):
    async def test_dispatches_on_descriptor_variant(self) -> None:
        seen = []

        def recorder(name: str):
            async def _load(descriptor: Any) -> str:
                seen.append((name, descriptor))
                return name

            return _load

        loaders = Loaders(local=recorder("local"), remote=recorder("remote"), remote_no_auth=recorder("no-auth"))
        remote = RemoteDescriptor("testApp", "test", "http://config", "http://token", "id", "secret")
        no_auth = RemoteNoAuthDescriptor("testApp", "test", "http://config")

        self.assertEqual(await load_descriptor(DESCRIPTOR, loaders), "local")
        self.assertEqual(await load_descriptor(remote, loaders), "remote")
        self.assertEqual(await load_descriptor(no_auth, loaders), "no-auth")
        self.assertEqual(seen, [("local", DESCRIPTOR), ("remote", remote), ("no-auth", no_auth)])

    async def test_unknown_descriptor_raises_type_error(self) -> None:
        with self.assertRaises(TypeError):
            await load_descriptor(object(), _loaders(_unused_loader))  # type: ignore[arg-type]


class RefreshDriverTests(unittest.IsolatedAsyncioTestCase):
    async def test_without_interval_sink_called_once(self) -> None:
        received = []
        clock = FakeClock(limit=10)
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(),
            received.append,
            loaders=_loaders(ScriptedLoader([{"v": 1}])),
            sleep=clock.sleep,
            clock=clock.monotonic,
        )

        handle = await driver.start()
        await asyncio.sleep(0)

        self.assertEqual(received, [{"v": 1}])
        self.assertFalse(handle.running)
        self.assertEqual(clock.sleeps, [])
        await handle.stop()

    async def test_zero_interval_disables_refresh(self) -> None:
        received = []
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=0),
            received.append,
            loaders=_loaders(ScriptedLoader([{"v": 1}])),
        )
        handle = await driver.start()
        self.assertFalse(handle.running)
        self.assertEqual(received, [{"v": 1}])

    async def test_interval_refreshes_once_per_period(self) -> None:
        received = []
        clock = FakeClock(limit=4)
        loader = ScriptedLoader([{"v": 1}, {"v": 2}, {"v": 3}, {"v": 4}, {"v": 5}])
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=1),
            received.append,
            loaders=_loaders(loader),
            sleep=clock.sleep,
            clock=clock.monotonic,
        )

        handle = await driver.start()
        self.assertEqual(received, [{"v": 1}])
        self.assertTrue(handle.running)

        await asyncio.wait_for(clock.exhausted.wait(), timeout=5)
        self.assertEqual(len(received), 5)
        self.assertEqual(received[-1], {"v": 5})
        self.assertEqual(clock.sleeps, [1.0, 1.0, 1.0, 1.0])

        await handle.stop()
        self.assertFalse(handle.running)

    async def test_failed_refresh_skips_sink_and_logs_error(self) -> None:
        received = []
        clock = FakeClock(limit=1)
        loader = ScriptedLoader([{"v": 1}, FetchError("config server unavailable")])
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=1),
            received.append,
            loaders=_loaders(loader),
            sleep=clock.sleep,
            clock=clock.monotonic,
        )

        with self.assertLogs("cf_config_client.refresh", level="ERROR") as logs:
            handle = await driver.start()
            await asyncio.wait_for(clock.exhausted.wait(), timeout=5)

        self.assertEqual(loader.calls, 2)
        self.assertEqual(received, [{"v": 1}])
        self.assertTrue(any("config server unavailable" in line for line in logs.output))
        self.assertTrue(handle.running)
        await handle.stop()

    async def test_refresh_continues_after_failure(self) -> None:
        received = []
        clock = FakeClock(limit=2)
        loader = ScriptedLoader([{"v": 1}, FetchError("boom"), {"v": 3}])
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=1),
            received.append,
            loaders=_loaders(loader),
            sleep=clock.sleep,
            clock=clock.monotonic,
        )

        with self.assertLogs("cf_config_client.refresh", level="ERROR"):
            handle = await driver.start()
            await asyncio.wait_for(clock.exhausted.wait(), timeout=5)

        self.assertEqual(received, [{"v": 1}, {"v": 3}])
        await handle.stop()

    async def test_initial_failure_propagates(self) -> None:
        received = []
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=1),
            received.append,
            loaders=_loaders(ScriptedLoader([ConfigIOError("missing file")])),
        )
        with self.assertRaises(ConfigIOError):
            await driver.start()
        self.assertEqual(received, [])

    async def test_async_sink_is_awaited(self) -> None:
        received = []

        async def sink(config: Any) -> None:
            await asyncio.sleep(0)
            received.append(config)

        driver = RefreshDriver(DESCRIPTOR, _params(), sink, loaders=_loaders(ScriptedLoader([{"v": 1}])))
        await driver.start()
        self.assertEqual(received, [{"v": 1}])

    async def test_logs_source_and_properties(self) -> None:
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(log_properties=True),
            lambda config: None,
            loaders=_loaders(ScriptedLoader([{"test-app": {"host": "www.test.com"}}])),
        )
        with self.assertLogs("cf_config_client.refresh", level="INFO") as logs:
            await driver.start()

        output = "\n".join(logs.output)
        self.assertIn("source=local server=test-config app=testApp profile=test", output)
        self.assertIn("properties={test-app: {host: www.test.com}}", output)

    async def test_logs_properties_with_mixed_keys_and_dates(self) -> None:
        cwd = os.getcwd()
        os.chdir(FIXTURES)
        self.addCleanup(os.chdir, cwd)

        received = []
        driver = RefreshDriver(
            LocalDescriptor(path="./test-config/testApp-mixed.yml"),
            _params(profile="mixed", log_properties=True),
            received.append,
            loaders=Loaders.default(),
        )
        with self.assertLogs("cf_config_client.refresh", level="INFO") as logs:
            await driver.start()

        self.assertEqual(len(received), 1)
        config = received[0]
        self.assertEqual(config["codes"], {404: "not found", "name": "errors"})
        self.assertEqual(config["released"], datetime.date(2024, 5, 1))
        self.assertEqual(config[1.5], "float-key")
        self.assertEqual(config[True], "bool-key")

        output = "\n".join(logs.output)
        self.assertIn("404: not found", output)
        self.assertIn("released: 2024-05-01", output)
        self.assertIn("ports: [80, 443]", output)

    async def test_logs_repr_for_values_yaml_cannot_represent(self) -> None:
        class Opaque:
            def __repr__(self) -> str:
                return "<opaque>"

        received = []
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(log_properties=True),
            received.append,
            loaders=_loaders(ScriptedLoader([{"value": Opaque()}])),
        )
        with self.assertLogs("cf_config_client.refresh", level="INFO") as logs:
            await driver.start()

        self.assertEqual(len(received), 1)
        self.assertIn("properties={'value': <opaque>}", "\n".join(logs.output))

    async def test_properties_not_logged_by_default(self) -> None:
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(),
            lambda config: None,
            loaders=_loaders(ScriptedLoader([{"test-app": {"host": "www.test.com"}}])),
        )
        with self.assertLogs("cf_config_client.refresh", level="INFO") as logs:
            await driver.start()
        self.assertNotIn("www.test.com", "\n".join(logs.output))

    async def test_stop_is_idempotent(self) -> None:
        clock = FakeClock(limit=0)
        driver = RefreshDriver(
            DESCRIPTOR,
            _params(interval=5),
            lambda config: None,
            loaders=_loaders(ScriptedLoader([{"v": 1}])),
            sleep=clock.sleep,
            clock=clock.monotonic,
        )
        handle = await driver.start()
        await handle.stop()
        await handle.stop()
        self.assertFalse(handle.running)


if __name__ == "__main__":
    unittest.main()
