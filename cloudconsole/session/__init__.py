"""Interactive session: terminal negotiation, local tty handles and the socket bridge."""

from cloudconsole.session.bridge import BridgeResult, TerminalBridge
from cloudconsole.session.local import LocalTerminal, get_window_size, raw_mode
from cloudconsole.session.terminal import initialize_terminal, make_resize_handler, resize_terminal

__all__ = [
    "BridgeResult",
    "TerminalBridge",
    "LocalTerminal",
    "get_window_size",
    "raw_mode",
    "initialize_terminal",
    "make_resize_handler",
    "resize_terminal",
]
