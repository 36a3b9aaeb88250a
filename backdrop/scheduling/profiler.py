"""
Per-stage cycle profiling.
"""
from __future__ import annotations

import time
from collections import deque
from typing import Dict

from loguru import logger

STAGES = ("frame", "segment", "composite", "total")


class CycleProfiler:
    """Rolling stage timings, logged periodically at DEBUG level."""

    def __init__(self, interval: float = 2.0, window_size: int = 60):
        self.interval = interval
        self.window_size = window_size
        self.timings = {stage: deque(maxlen=window_size) for stage in STAGES}
        self.last_log = time.monotonic()
        self.frame_count = 0

    def record(self, stage: str, duration_ms: float):
        self.timings[stage].append(duration_ms)

    def record_cycle(self, timings: Dict[str, float]):
        for stage, duration_ms in timings.items():
            if stage in self.timings:
                self.record(stage, duration_ms)
        self.frame_count += 1

    def averages(self) -> Dict[str, float]:
        return {
            stage: (sum(times) / len(times) if times else 0.0)
            for stage, times in self.timings.items()
        }

    def log_if_ready(self) -> bool:
        now = time.monotonic()
        elapsed = now - self.last_log
        if elapsed < self.interval:
            return False

        avgs = self.averages()
        fps = self.frame_count / elapsed if elapsed > 0 else 0.0
        logger.debug(
            f"[CYCLE] frame:{avgs['frame']:.1f}ms | segment:{avgs['segment']:.1f}ms | "
            f"composite:{avgs['composite']:.1f}ms | total:{avgs['total']:.1f}ms | {fps:.1f}fps"
        )

        # Identify bottleneck
        stage, worst = max(
            ((s, v) for s, v in avgs.items() if s != "total"), key=lambda item: item[1]
        )
        if worst > 1000.0 / max(fps, 1.0):
            logger.debug(f"[BOTTLENECK] {stage}: {worst:.1f}ms")

        self.last_log = now
        self.frame_count = 0
        return True
