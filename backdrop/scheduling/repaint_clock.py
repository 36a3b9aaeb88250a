"""
Display repaint signal.

A one-shot request API (like a browser's animation-frame request):
each request() fires its callback once, one refresh period later, with
a monotonic timestamp in milliseconds. Callers re-request to keep going.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

RepaintCallback = Callable[[float], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class RepaintClock:
    """Repaint signal driven by the asyncio loop at a fixed refresh rate."""

    def __init__(self, refresh_hz: float = 60.0):
        """
        Args:
            refresh_hz: Display refresh rate
        """
        if refresh_hz <= 0:
            raise ValueError(f"refresh_hz must be positive, got {refresh_hz}")
        self.refresh_hz = refresh_hz
        self.period_s = 1.0 / refresh_hz
        self._handle: Optional[asyncio.TimerHandle] = None

    def now(self) -> float:
        return monotonic_ms()

    def request(self, callback: RepaintCallback) -> None:
        """Fire callback(now_ms) on the next repaint. Replaces any pending request."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.period_s, self._fire, callback)

    def cancel(self) -> None:
        """Drop the pending request, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _fire(self, callback: RepaintCallback):
        self._handle = None
        callback(self.now())
