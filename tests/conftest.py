"""Shared pytest fixtures for all test modules."""

import asyncio
import contextlib
import os
import subprocess
import sys

import pytest
from websockets.exceptions import ConnectionClosedError

from cloudconsole.config import ConsoleConfig
from cloudconsole.provider.types import WindowGeometry

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root, tmp_path_factory):
    """Return a callable that invokes the cloudconsole CLI as a subprocess."""
    home = tmp_path_factory.mktemp("home")

    def _run(*args, env=None):
        full_env = {k: v for k, v in os.environ.items() if not k.startswith("CLOUD_CONSOLE_")}
        full_env["HOME"] = str(home)
        full_env.update(env or {})
        result = subprocess.run(
            [sys.executable, "-m", "cloudconsole.cloudconsole", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=full_env,
            stdin=subprocess.DEVNULL,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture
def config():
    """Default config with no backoff so retry tests run instantly."""
    return ConsoleConfig(init_backoff=0)


# ── Fake bridge handles ─────────────────────────────────────────────


class FakeInput:
    """Async iterable yielding fixed chunks, then EOF."""

    def __init__(self, chunks=(), hold_open=False):
        self.chunks = list(chunks)
        self.hold_open = hold_open
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.hold_open:
            await asyncio.Event().wait()

    def close(self):
        self.closed = True


class FakeOutput:
    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(data)


class FakeResizeEvents:
    """Async iterable yielding fixed geometries, then waits forever."""

    def __init__(self, geometries=()):
        self.geometries = list(geometries)

    async def __aiter__(self):
        for geometry in self.geometries:
            yield geometry
        await asyncio.Event().wait()


class FakeSocket:
    """Websocket stand-in.

    Yields *inbound* frames, then waits until *expect_sends* frames were sent
    and *hold* (an asyncio.Event, if given) is set before closing.
    With *fail*, closing raises ConnectionClosedError.
    """

    def __init__(self, inbound=(), expect_sends=0, fail=False, hold=None):
        self.inbound = list(inbound)
        self.expect_sends = expect_sends
        self.fail = fail
        self.hold = hold
        self.sent = []
        self._sends_done = asyncio.Event()
        if expect_sends == 0:
            self._sends_done.set()

    async def send(self, data):
        self.sent.append(data)
        if len(self.sent) >= self.expect_sends:
            self._sends_done.set()

    async def __aiter__(self):
        for frame in self.inbound:
            yield frame
        await self._sends_done.wait()
        if self.hold is not None:
            await self.hold.wait()
        if self.fail:
            raise ConnectionClosedError(None, None)


class FakeConnect:
    """Callable replacing websockets.connect; records the URIs it opened."""

    def __init__(self, socket=None, error=None):
        self.socket = socket
        self.error = error
        self.uris = []

    def __call__(self, uri):
        self.uris.append(uri)
        return self._open()

    @contextlib.asynccontextmanager
    async def _open(self):
        if self.error is not None:
            raise self.error
        yield self.socket


class FakeTerminal:
    """LocalTerminal stand-in built from fake handles."""

    def __init__(self, input=None, output=None, resize_events=None, geometry=WindowGeometry(120, 40)):
        self.fake_input = input or FakeInput()
        self.fake_output = output or FakeOutput()
        self.fake_resize_events = resize_events or FakeResizeEvents()
        self._geometry = geometry
        self.raw_entered = 0

    def geometry(self):
        return self._geometry

    @contextlib.contextmanager
    def raw_mode(self):
        self.raw_entered += 1
        yield

    def input(self):
        return self.fake_input

    def output(self):
        return self.fake_output

    def resize_events(self):
        return self.fake_resize_events


@pytest.fixture
def fakes():
    """Namespace of fake bridge handle classes."""

    class _Fakes:
        Input = FakeInput
        Output = FakeOutput
        ResizeEvents = FakeResizeEvents
        Socket = FakeSocket
        Connect = FakeConnect
        Terminal = FakeTerminal

    return _Fakes
