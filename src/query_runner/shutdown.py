"""Interrupt handling for Query Runner.

This module turns SIGINT (Ctrl+C) and SIGTERM into a single shutdown request
delivered on the event loop, where the polling cycle can be stopped and the
outstanding queries cancelled.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from types import FrameType

from query_runner.logging import get_logger

logger = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Coordinates interrupt-triggered shutdown of a run.

    The ``on_shutdown`` callback runs at most once, on the event loop
    thread, no matter how many signals arrive.
    """

    def __init__(self, on_shutdown: Callable[[], None] | None = None) -> None:
        """Initialize the shutdown handler.

        Args:
            on_shutdown: Optional callback to invoke when shutdown is requested.
                        Typically this stops the polling cycle driver.
        """
        self._shutdown_requested = False
        self._on_shutdown = on_shutdown
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        self._previous: dict[signal.Signals, object] = {}

    @property
    def shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._shutdown_requested

    def request_shutdown(self) -> None:
        """Request shutdown.

        Can be called programmatically in addition to signal-based shutdown.
        Repeated requests are ignored.
        """
        if self._shutdown_requested:
            return
        logger.info("Cancelling running queries and exiting...")
        self._shutdown_requested = True

        if self._on_shutdown is not None:
            self._on_shutdown()

    def handle_signal(self, signum: int, frame: FrameType | None = None) -> None:
        """Handle SIGINT/SIGTERM.

        Args:
            signum: The signal number received.
            frame: The current stack frame (unused).
        """
        signal_name = signal.Signals(signum).name
        logger.info("Received %s, initiating shutdown...", signal_name)
        if self._loop is not None and frame is not None:
            # Called through signal.signal(): hop onto the loop thread.
            self._loop.call_soon_threadsafe(self.request_shutdown)
        else:
            self.request_shutdown()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install handlers for SIGINT and SIGTERM on ``loop``.

        Uses ``loop.add_signal_handler`` where available and falls back to
        ``signal.signal`` on platforms without it (Windows).
        """
        self._loop = loop
        for sig in HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle_signal, sig)
            except NotImplementedError:
                self._previous[sig] = signal.signal(sig, self.handle_signal)
            self._installed.append(sig)
        logger.debug("Signal handlers installed for SIGINT and SIGTERM")

    def uninstall(self) -> None:
        """Remove the handlers installed by :meth:`install`."""
        if self._loop is None:
            return
        for sig in self._installed:
            if sig in self._previous:
                signal.signal(sig, self._previous.pop(sig))  # type: ignore[arg-type]
            else:
                self._loop.remove_signal_handler(sig)
        self._installed.clear()
        self._loop = None


__all__ = [
    "HANDLED_SIGNALS",
    "ShutdownHandler",
]
