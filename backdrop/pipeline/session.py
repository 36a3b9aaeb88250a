"""
Compositing Session.

Owns everything one live session needs:
- Frame source, segmentation provider, background store, compositor
- Cycle state (last composite timestamp, counters)
- Lifecycle status and the liveness flag

Startup errors (model load, camera) put the session in UNAVAILABLE and
block all cycles. Teardown flips the liveness flag first, so results of
segmentation calls still in flight are discarded rather than drawn.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable, Dict, Optional

from loguru import logger

from backdrop.background.background_store import BackgroundStore
from backdrop.capture.video_capture import VideoCapture
from backdrop.compositing.compositor import Compositor
from backdrop.config import AppConfig
from backdrop.core.contracts import CycleOutcome, CycleState, Raster, SessionStatus, SolidFill
from backdrop.core.errors import BackdropError, CameraAccessError, ModelLoadError
from backdrop.segmentation import BaseSegmentationProvider, get_provider

if TYPE_CHECKING:
    from backdrop.scheduling.scheduler import FrameScheduler


class CompositingSession:
    """
    One live compositing session.

    Guarantees:
    - No cycle runs before the model is loaded and a background is set
    - A cycle reads one background reference for its whole duration
    - Nothing is committed after teardown
    """

    def __init__(
        self,
        frame_source: VideoCapture,
        provider: BaseSegmentationProvider,
        background_store: BackgroundStore,
        compositor: Compositor,
        on_commit: Optional[Callable[[Raster], None]] = None,
    ):
        """
        Initialize session.

        Args:
            frame_source: Live frame source (canvas-sized RGBA frames)
            provider: Segmentation provider (not yet loaded)
            background_store: Holder of the current background
            compositor: Canvas-sized compositor
            on_commit: Called with every committed output raster
        """
        self.frame_source = frame_source
        self.provider = provider
        self.background_store = background_store
        self.compositor = compositor
        self.on_commit = on_commit

        self.cycle_state = CycleState()
        self.status = SessionStatus.IDLE
        self.last_error: Optional[BackdropError] = None
        self.last_timings: Dict[str, float] = {}

        self._alive = True
        self._camera_started = False

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        on_commit: Optional[Callable[[Raster], None]] = None,
    ) -> CompositingSession:
        """Build a session with the configured camera, provider and default background."""
        canvas = config.canvas
        frame_source = VideoCapture(
            device_index=config.camera.device_index,
            width=canvas.width,
            height=canvas.height,
            fps=config.scheduler.target_fps,
            buffer_frames=config.camera.buffer_frames,
        )
        provider = get_provider(config.segmentation.provider, config.segmentation)
        default = config.background.default_color
        store = BackgroundStore(initial=SolidFill.from_hex(default) if default else None)
        compositor = Compositor(canvas.width, canvas.height)
        return cls(frame_source, provider, store, compositor, on_commit=on_commit)

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def is_ready(self) -> bool:
        """True when a cycle may run: model loaded, background set, not torn down."""
        return (
            self._alive
            and self.status == SessionStatus.READY
            and self.provider.is_ready
            and self.background_store.current() is not None
        )

    async def start(self):
        """
        Load the model, then open the camera.

        Raises:
            ModelLoadError: Model unavailable; session is UNAVAILABLE
            CameraAccessError: Camera unavailable; session is UNAVAILABLE
        """
        if not self._alive:
            raise RuntimeError("Session has been stopped")

        self.status = SessionStatus.LOADING
        try:
            await self.provider.load()
            if not self._alive:
                return
            await asyncio.to_thread(self.frame_source.start)
            self._camera_started = True
        except (ModelLoadError, CameraAccessError) as e:
            self.last_error = e
            if self._alive:
                self.status = SessionStatus.UNAVAILABLE
            logger.error(f"Session unavailable: {e}")
            raise

        if not self._alive:
            # Torn down while the camera was opening
            self.frame_source.stop()
            return

        self.status = SessionStatus.READY
        logger.info("Session ready")

    async def run_cycle(self) -> CycleOutcome:
        """
        Run one composite cycle: frame -> segment -> composite -> commit.

        Raises:
            NoFrameAvailable, SegmentationError, DimensionMismatchError:
                per-cycle failures; the scheduler decides what to do
        """
        if not self._alive:
            return CycleOutcome.STOPPED

        t_start = time.perf_counter()
        frame = await asyncio.to_thread(self.frame_source.get_current_frame)
        t_frame = time.perf_counter()

        # One consistent reference for the whole cycle
        background = self.background_store.current()
        if background is None:
            return CycleOutcome.NOT_READY

        mask = await self.provider.segment(frame)
        t_segment = time.perf_counter()

        if not self._alive:
            logger.debug("Session torn down during segmentation, discarding result")
            return CycleOutcome.DISCARDED

        output = self.compositor.composite(self.provider.orient(frame), mask, background)
        t_composite = time.perf_counter()

        if self.on_commit is not None:
            self.on_commit(output)

        self.last_timings = {
            "frame": (t_frame - t_start) * 1000,
            "segment": (t_segment - t_frame) * 1000,
            "composite": (t_composite - t_segment) * 1000,
            "total": (time.perf_counter() - t_start) * 1000,
        }
        return CycleOutcome.COMPOSITED

    async def stop(self, scheduler: Optional[FrameScheduler] = None):
        """
        Tear the session down.

        Order: liveness flag, scheduler, in-flight cycles, resources.
        """
        if not self._alive:
            return
        self._alive = False
        self.status = SessionStatus.STOPPED

        if scheduler is not None:
            scheduler.cancel()
            await scheduler.drain()

        self.provider.close()
        if self._camera_started:
            self.frame_source.stop()
            self._camera_started = False
        self.background_store.close()
        self.compositor.reset()

        logger.info(
            f"Session stopped: {self.cycle_state.frames_composited} composited, "
            f"{self.cycle_state.frames_skipped} skipped"
        )
        self.cycle_state.reset()
