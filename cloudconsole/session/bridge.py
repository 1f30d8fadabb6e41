"""Terminal Bridge: pipe a local terminal to the console's websocket."""

import asyncio
import logging
from dataclasses import dataclass

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

logger = logging.getLogger(__name__)


@dataclass
class BridgeResult:
    """How the bridge ended. error is set if a socket error was recorded.

    Failures of the local input or resize handles are logged but do not set it.
    """

    error: bool = False


class TerminalBridge:
    """Bidirectional byte pipe between local handles and one websocket.

    Args:
        socket_uri: the terminal's websocket endpoint.
        local_input: async iterable of bytes (local keystrokes).
        local_output: object with ``write(bytes)`` (local display).
        resize_events: async iterable of WindowGeometry.
        on_resize: coroutine function called with each new geometry; runs
            fire-and-forget and its outcome is never awaited by the bridge.
        connect: websocket connect factory (``websockets.connect``).
    """

    def __init__(self, socket_uri, local_input, local_output, resize_events, on_resize, connect=websockets.connect):
        if not socket_uri:
            raise ValueError("socket_uri is required to open a terminal bridge")
        self.socket_uri = socket_uri
        self.local_input = local_input
        self.local_output = local_output
        self.resize_events = resize_events
        self.on_resize = on_resize
        self.connect = connect
        self.result = BridgeResult()
        self._resize_tasks: set[asyncio.Task] = set()

    def _record_error(self, error):
        self.result.error = True
        logger.error(f"Socket error: {error!r}")

    async def _pump_input(self, ws):
        async for data in self.local_input:
            await ws.send(data)
        logger.debug("Local input closed.")

    async def _pump_output(self, ws):
        async for frame in ws:
            self.local_output.write(frame.encode("utf-8") if isinstance(frame, str) else frame)

    async def _pump_resize(self):
        async for geometry in self.resize_events:
            task = asyncio.create_task(self.on_resize(geometry))
            self._resize_tasks.add(task)
            task.add_done_callback(self._resize_done)

    def _resize_done(self, task):
        self._resize_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Resize failed: {error!r}")

    async def run(self) -> BridgeResult:
        """Bridge until the socket closes. Socket errors are recorded, not raised."""
        try:
            async with self.connect(self.socket_uri) as ws:
                await self._bridge(ws)
        except ConnectionClosedOK:
            pass
        except (OSError, WebSocketException) as e:
            self._record_error(e)
        logger.info("Socket closed")
        return self.result

    async def _bridge(self, ws):
        side_tasks = {
            "input": asyncio.create_task(self._pump_input(ws)),
            "resize": asyncio.create_task(self._pump_resize()),
        }
        try:
            await self._pump_output(ws)
        finally:
            for task in side_tasks.values():
                task.cancel()
            results = await asyncio.gather(*side_tasks.values(), return_exceptions=True)
            for name, outcome in zip(side_tasks, results):
                self._record_side_outcome(name, outcome)

    def _record_side_outcome(self, name, outcome):
        if not isinstance(outcome, Exception) or isinstance(outcome, ConnectionClosedOK):
            return
        if isinstance(outcome, WebSocketException):
            self._record_error(outcome)
        else:
            # local failures never touch the socket error flag
            logger.error(f"Local {name} error: {outcome!r}")
