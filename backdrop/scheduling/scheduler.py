"""
Frame Scheduler.

Drives one composite cycle per repaint signal, capped at a target rate:

    repaint -> tick(now) -> re-arm -> gate -> session.run_cycle() -> record

Re-arming happens first on every tick, so a slow segmentation call never
stalls the repaint chain. A tick that arrives while a cycle is still in
flight is a no-op, so composites never overlap.
"""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional, Set

from loguru import logger

from backdrop.config import SchedulerConfig
from backdrop.core.contracts import CycleOutcome
from backdrop.core.errors import DimensionMismatchError, NoFrameAvailable, SegmentationError
from .profiler import CycleProfiler
from .repaint_clock import RepaintClock

if TYPE_CHECKING:
    from backdrop.pipeline.session import CompositingSession


class FrameScheduler:
    """
    Rate-limited, repaint-driven cycle driver.

    Per-cycle errors are caught here and never propagate; the next
    repaint retries naturally.

    Usage:
        scheduler = FrameScheduler(session, RepaintClock(60), config)
        scheduler.start()
        ...
        scheduler.cancel()
    """

    def __init__(
        self,
        session: CompositingSession,
        clock: RepaintClock,
        config: Optional[SchedulerConfig] = None,
    ):
        self.session = session
        self.clock = clock
        self.config = config or SchedulerConfig()

        self._cancelled = False
        self._in_flight = False
        self._cycle_finished: Optional[asyncio.Event] = None
        self._tasks: Set[asyncio.Task] = set()

        self.profiler = CycleProfiler(interval=self.config.profile_interval)

    @property
    def target_interval_ms(self) -> float:
        return self.config.target_interval_ms

    @property
    def is_cycle_in_flight(self) -> bool:
        return self._in_flight

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def start(self):
        """Arm the first repaint."""
        if self._cancelled:
            raise RuntimeError("Scheduler was cancelled; create a new one")
        logger.info(
            f"Scheduler started: target {self.config.target_fps:g}fps "
            f"({self.target_interval_ms:.1f}ms interval)"
        )
        self.clock.request(self._on_repaint)

    def cancel(self):
        """Stop re-arming. An in-flight cycle finishes but is not re-armed after."""
        if self._cancelled:
            return
        self._cancelled = True
        self.clock.cancel()
        logger.info("Scheduler cancelled")

    async def drain(self):
        """Wait for the in-flight cycle and pending ticks (used during teardown)."""
        if self._in_flight and self._cycle_finished is not None:
            await self._cycle_finished.wait()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def tick(self, now: float) -> CycleOutcome:
        """
        Handle one repaint signal.

        Args:
            now: Monotonic timestamp in milliseconds

        Returns:
            What this tick did
        """
        if self._cancelled:
            return CycleOutcome.STOPPED

        # Unconditional: without this, frame production halts for good
        self.clock.request(self._on_repaint)

        if self._in_flight:
            return CycleOutcome.BUSY

        state = self.session.cycle_state
        last = state.last_composited_at
        if last is not None and now - last < self.target_interval_ms:
            return CycleOutcome.THROTTLED

        if not self.session.is_ready:
            return CycleOutcome.NOT_READY

        self._in_flight = True
        self._cycle_finished = asyncio.Event()
        try:
            outcome = await self.session.run_cycle()
        except NoFrameAvailable as e:
            state.record_failure(str(e))
            logger.debug(f"Cycle skipped, no frame: {e}")
            return CycleOutcome.NO_FRAME
        except SegmentationError as e:
            state.record_failure(str(e))
            logger.warning(f"Cycle skipped, segmentation failed: {e}")
            return CycleOutcome.SEGMENTATION_FAILED
        except DimensionMismatchError as e:
            state.record_failure(str(e), mismatch=True)
            self._report_mismatch(e, state.consecutive_mismatches)
            return CycleOutcome.DIMENSION_MISMATCH
        finally:
            self._in_flight = False
            self._cycle_finished.set()

        if outcome == CycleOutcome.COMPOSITED:
            state.record_success(now)
            self.profiler.record_cycle(self.session.last_timings)
            self.profiler.log_if_ready()
        else:
            # Ran without a mismatch
            state.consecutive_mismatches = 0
        return outcome

    def _report_mismatch(self, error: DimensionMismatchError, consecutive: int):
        threshold = self.config.alert_after_failures
        if consecutive % threshold == 0:
            logger.error(
                f"Dimension mismatch persisted for {consecutive} cycles, "
                f"check canvas/camera configuration: {error}"
            )
        else:
            logger.warning(f"Cycle abandoned: {error}")

    def _on_repaint(self, now: float):
        if self._cancelled:
            return
        task = asyncio.ensure_future(self.tick(now))
        self._tasks.add(task)
        task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("Unexpected error in composite cycle")
