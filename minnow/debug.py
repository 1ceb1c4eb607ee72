"""Debug output that goes to a replaceable handler (stderr by default)."""

from __future__ import annotations

import sys
from typing import Any, Callable

DebugHandler = Callable[[str], None]


def _default_debug_handler(message: str) -> None:
    sys.stderr.write(f"DEBUG: {message}\n")


class _HandlerSlot:
    handler: DebugHandler = staticmethod(_default_debug_handler)


_slot = _HandlerSlot()


def debug_str(message: str) -> None:
    """Send a message to the current debug handler."""
    _slot.handler(message)


def debug(fmt: str, *args: Any, **kwargs: Any) -> None:
    """Format a message with ``str.format`` and send it, unless running optimised."""
    if __debug__:
        debug_str(fmt.format(*args, **kwargs))


def set_debug_handler(handler: DebugHandler) -> None:
    """Route debug messages to ``handler``."""
    _slot.handler = handler


def reset_debug_handler() -> None:
    """Route debug messages back to stderr."""
    _slot.handler = _default_debug_handler