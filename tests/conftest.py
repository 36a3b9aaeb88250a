"""
Shared fakes: no camera, no model, no display.
"""
from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import numpy as np
import pytest

from backdrop.background import BackgroundStore
from backdrop.compositing import Compositor
from backdrop.config import SchedulerConfig, SegmentationConfig
from backdrop.core.contracts import SolidFill
from backdrop.core.errors import CameraAccessError, ModelLoadError, NoFrameAvailable, SegmentationError
from backdrop.pipeline import CompositingSession
from backdrop.scheduling import FrameScheduler
from backdrop.segmentation import BaseSegmentationProvider

WIDTH = 8
HEIGHT = 6

RED = SolidFill(255, 0, 0)
BLUE = SolidFill(0, 0, 255)


def solid_raster(rgba, width=WIDTH, height=HEIGHT) -> np.ndarray:
    raster = np.empty((height, width, 4), dtype=np.uint8)
    raster[:] = rgba
    return raster


def random_raster(seed: int, width=WIDTH, height=HEIGHT) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


class FakeFrameSource:
    """Frame source returning a fixed raster."""

    def __init__(self, frame: Optional[np.ndarray] = None, start_error: bool = False):
        self.frame = frame if frame is not None else random_raster(0)
        self.start_error = start_error
        self.started = False
        self.stopped = False
        self.reads = 0

    def start(self):
        if self.start_error:
            raise CameraAccessError("camera denied")
        self.started = True

    def stop(self):
        self.stopped = True

    def get_current_frame(self) -> np.ndarray:
        if not self.started or self.frame is None:
            raise NoFrameAvailable("not started")
        self.reads += 1
        return self.frame


class FakeProvider(BaseSegmentationProvider):
    """Provider whose mask comes from a function; can fail or be held mid-flight."""

    def __init__(
        self,
        mask_fn: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        config: Optional[SegmentationConfig] = None,
        load_error: bool = False,
    ):
        super().__init__(config)
        self.mask_fn = mask_fn or (lambda frame: np.zeros(frame.shape[:2], dtype=bool))
        self.load_error = load_error
        self.fail_next = False
        self.gate: Optional[asyncio.Event] = None
        self.entered: Optional[asyncio.Event] = None
        self.calls = 0
        self.released = False

    async def segment(self, frame):
        if self.entered is not None:
            self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        return await super().segment(frame)

    def hold(self):
        """Make the next segment() calls wait until release_hold()."""
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    def release_hold(self):
        self.gate.set()

    def _load_model(self):
        if self.load_error:
            raise RuntimeError("weights missing")

    def _infer(self, frame):
        self.calls += 1
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("model exploded")
        return self.mask_fn(frame)

    def _release(self):
        self.released = True


class FakeClock:
    """Repaint clock that only records requests; tests fire ticks by hand."""

    def __init__(self):
        self.requests = 0
        self.cancelled = False
        self.callback = None

    def now(self) -> float:
        return 0.0

    def request(self, callback):
        self.requests += 1
        self.callback = callback

    def cancel(self):
        self.cancelled = True
        self.callback = None


def make_session(
    frame_source=None,
    provider=None,
    background=RED,
    width=WIDTH,
    height=HEIGHT,
    committed: Optional[List[np.ndarray]] = None,
) -> CompositingSession:
    return CompositingSession(
        frame_source or FakeFrameSource(),
        provider or FakeProvider(),
        BackgroundStore(initial=background),
        Compositor(width, height),
        on_commit=committed.append if committed is not None else None,
    )


def make_scheduler(session, target_fps=30.0, clock=None) -> FrameScheduler:
    return FrameScheduler(
        session,
        clock or FakeClock(),
        SchedulerConfig(target_fps=target_fps, alert_after_failures=3),
    )


@pytest.fixture
def compositor():
    return Compositor(WIDTH, HEIGHT)
