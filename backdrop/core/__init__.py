"""
Core contracts and error taxonomy for Backdrop.

Composite cycle order (NEVER REORDER):
1. Gate on readiness and target rate
2. Acquire the current frame
3. Segment the frame (may suspend)
4. Merge frame + background through the mask
5. Commit the merged raster
"""

from .contracts import (
    Raster,
    Mask,
    SolidFill,
    Background,
    CycleState,
    CycleOutcome,
    SessionStatus,
)
from .errors import (
    BackdropError,
    ModelLoadError,
    CameraAccessError,
    SegmentationError,
    DimensionMismatchError,
    BackgroundDecodeError,
    NoFrameAvailable,
)
