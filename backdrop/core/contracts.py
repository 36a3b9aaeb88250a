"""
Core data contracts for Backdrop.

All components must adhere to these contracts for:
- Consistent raster layout (RGBA, row-major, contiguous)
- Index-aligned masks
- Explicit, session-owned cycle state
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple, Union
import numpy as np
from numpy.typing import NDArray


# ============================================================
# TYPE ALIASES
# ============================================================

# H x W x 4 RGBA, uint8. Pixel i (row-major) starts at byte offset i * 4.
Raster = NDArray[np.uint8]

# H x W, bool or probability. Truthy entries are foreground.
Mask = NDArray

RASTER_CHANNELS = 4
OPAQUE = 255


# ============================================================
# ENUMERATIONS
# ============================================================

class SessionStatus(Enum):
    """Lifecycle state of a compositing session."""
    IDLE = auto()
    LOADING = auto()
    READY = auto()
    UNAVAILABLE = auto()  # Fatal startup error (model or camera)
    STOPPED = auto()


class CycleOutcome(Enum):
    """What a single scheduler tick ended up doing."""
    COMPOSITED = "composited"
    THROTTLED = "throttled"
    NOT_READY = "not_ready"
    BUSY = "busy"  # Previous cycle still in flight
    NO_FRAME = "no_frame"
    SEGMENTATION_FAILED = "segmentation_failed"
    DIMENSION_MISMATCH = "dimension_mismatch"
    DISCARDED = "discarded"  # Teardown happened mid-cycle
    STOPPED = "stopped"


# ============================================================
# BACKGROUND
# ============================================================

@dataclass(frozen=True)
class SolidFill:
    """Constant-colour background. Alpha is always opaque."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Colour channel out of range: {channel}")

    @classmethod
    def from_hex(cls, value: str) -> SolidFill:
        """Parse '#rrggbb' (leading '#' optional)."""
        text = value.strip().lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Expected a #rrggbb colour, got '{value}'")
        try:
            return cls(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
        except ValueError as e:
            raise ValueError(f"Expected a #rrggbb colour, got '{value}'") from e

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, OPAQUE)


# Either a still image (any native size, stretched on render) or a fill
Background = Union[SolidFill, Raster]


# ============================================================
# CYCLE STATE
# ============================================================

@dataclass
class CycleState:
    """
    Mutable per-session cycle state.

    Owned by the session and passed to the scheduler; never global.
    Timestamps are monotonic milliseconds.
    """
    last_composited_at: Optional[float] = None

    # Counters
    frames_composited: int = 0
    frames_skipped: int = 0

    # Failure tracking
    consecutive_failures: int = 0
    last_failure_reason: Optional[str] = None
    consecutive_mismatches: int = 0  # dimension mismatches only

    def record_success(self, now: float):
        self.last_composited_at = now
        self.frames_composited += 1
        self.consecutive_failures = 0
        self.last_failure_reason = None
        self.consecutive_mismatches = 0

    def record_failure(self, reason: str, mismatch: bool = False):
        self.frames_skipped += 1
        self.consecutive_failures += 1
        self.last_failure_reason = reason
        self.consecutive_mismatches = self.consecutive_mismatches + 1 if mismatch else 0

    def reset(self):
        """Forget everything (session teardown)."""
        self.last_composited_at = None
        self.frames_composited = 0
        self.frames_skipped = 0
        self.consecutive_failures = 0
        self.last_failure_reason = None
        self.consecutive_mismatches = 0
