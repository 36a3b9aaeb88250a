"""
Error taxonomy.

Startup errors (fatal, block all cycles):
- ModelLoadError
- CameraAccessError

Per-cycle errors (skip the cycle, never cross the cycle boundary):
- SegmentationError
- DimensionMismatchError
- NoFrameAvailable

User input errors:
- BackgroundDecodeError (previous background stays current)
"""

from __future__ import annotations

from typing import Optional, Tuple, Union


class BackdropError(Exception):
    """Base class for all Backdrop errors."""


class ModelLoadError(BackdropError):
    """Segmentation model could not be loaded. Not retried."""


class CameraAccessError(BackdropError):
    """Camera could not be opened. Requires user action."""


class SegmentationError(BackdropError):
    """Segmentation failed for one frame. Transient."""


class NoFrameAvailable(BackdropError):
    """Frame source has not started, has ended, or the read failed."""


class BackgroundDecodeError(BackdropError):
    """An uploaded background could not be decoded."""


class DimensionMismatchError(BackdropError):
    """An input raster or mask does not match the canvas size or pixel format."""

    def __init__(
        self,
        name: str,
        expected: Union[Tuple[int, ...], str],
        actual: Optional[Union[Tuple[int, ...], str]],
        attribute: str = "shape",
    ):
        self.name = name
        self.expected = expected
        self.actual = actual
        self.attribute = attribute
        super().__init__(f"{name} has {attribute} {actual}, expected {expected}")
