"""
Scheduling module.

Responsibilities:
- Repaint signal (one-shot, self re-arming)
- Target-rate limiting
- Single active-cycle discipline
- Cycle profiling
"""

from .repaint_clock import RepaintClock, monotonic_ms
from .scheduler import FrameScheduler
from .profiler import CycleProfiler
