"""Local terminal handles: raw mode, window size, stdin/stdout and SIGWINCH."""

import asyncio
import contextlib
import logging
import os
import signal
import stat
import sys
import termios
import tty

from cloudconsole.provider.types import WindowGeometry

logger = logging.getLogger(__name__)

FALLBACK_GEOMETRY = WindowGeometry(columns=80, rows=30)
READ_CHUNK_SIZE = 4096


def _isatty(stream):
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def get_window_size(stream=None) -> WindowGeometry:
    """Current size of the terminal behind *stream*, or 80x30 if not a tty."""
    stream = stream or sys.stdout
    if not _isatty(stream):
        return FALLBACK_GEOMETRY
    try:
        size = os.get_terminal_size(stream.fileno())
    except OSError:
        return FALLBACK_GEOMETRY
    return WindowGeometry(columns=size.columns, rows=size.lines)


@contextlib.contextmanager
def raw_mode(stream=None):
    """Put a tty in raw mode for the duration of the block.

    Does nothing when the stream is not a tty (piped input, tests).
    """
    stream = stream or sys.stdin
    if not _isatty(stream):
        yield
        return
    fd = stream.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class StdinReader:
    """Async iterator over raw chunks of a file descriptor, in arrival order.

    Ttys and pipes are read with loop.add_reader + os.read, so nothing is
    line-buffered. A regular file cannot be polled by the loop and is read
    in a worker thread instead. Iteration stops at EOF.
    """

    def __init__(self, fd=None, chunk_size=READ_CHUNK_SIZE):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.chunk_size = chunk_size
        self._queue: asyncio.Queue | None = None
        self._regular_file = False

    def _on_readable(self):
        try:
            data = os.read(self.fd, self.chunk_size)
        except BlockingIOError:
            return
        except OSError as e:
            logger.debug(f"stdin read failed: {e}")
            data = b""
        if not data:
            asyncio.get_running_loop().remove_reader(self.fd)
        self._queue.put_nowait(data)

    def __aiter__(self):
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._regular_file = stat.S_ISREG(os.fstat(self.fd).st_mode)
            if not self._regular_file:
                asyncio.get_running_loop().add_reader(self.fd, self._on_readable)
        return self

    async def __anext__(self) -> bytes:
        if self._regular_file:
            data = await asyncio.to_thread(os.read, self.fd, self.chunk_size)
        else:
            data = await self._queue.get()
        if not data:
            raise StopAsyncIteration
        return data

    def close(self):
        if self._queue is not None and not self._regular_file:
            asyncio.get_running_loop().remove_reader(self.fd)


class StdoutSink:
    """Writes remote output verbatim to a binary stream."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout.buffer

    def write(self, data: bytes):
        self.stream.write(data)
        self.stream.flush()


class ResizeEvents:
    """Async iterator of WindowGeometry, one per SIGWINCH.

    The handler stays installed for the life of the process.
    """

    def __init__(self, get_geometry=get_window_size):
        self.get_geometry = get_geometry
        self._queue: asyncio.Queue | None = None

    def _on_resize(self):
        self._queue.put_nowait(self.get_geometry())

    def __aiter__(self):
        if self._queue is None:
            self._queue = asyncio.Queue()
            asyncio.get_running_loop().add_signal_handler(signal.SIGWINCH, self._on_resize)
        return self

    async def __anext__(self) -> WindowGeometry:
        return await self._queue.get()


class LocalTerminal:
    """The process's own terminal: stdin, stdout and resize notifications."""

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def geometry(self) -> WindowGeometry:
        return get_window_size(self.stdout)

    def raw_mode(self):
        return raw_mode(self.stdin)

    def input(self):
        return StdinReader(self.stdin.fileno())

    def output(self):
        return StdoutSink(self.stdout.buffer)

    def resize_events(self):
        return ResizeEvents(self.geometry)
