"""
Compositor.

Merges three buffers into the displayed raster:
1. Render the background at canvas size (fill, or stretch an image)
2. Copy frame pixels over it wherever the mask is foreground
3. Commit the result atomically

The person/background boundary is hard-edged: no blending, no
feathering, no thresholding beyond the mask's own truthiness.
"""

from __future__ import annotations

from typing import Optional, Tuple
import numpy as np
import cv2
from loguru import logger

from backdrop.core.contracts import Background, Mask, Raster, SolidFill, RASTER_CHANNELS
from backdrop.core.errors import DimensionMismatchError


class Compositor:
    """
    Produces one output raster per composite cycle.

    Guarantees:
    - Output is always width x height, RGBA
    - Inputs are never mutated
    - Commit is atomic: a failed composite leaves the previous output in place
    """

    def __init__(self, width: int, height: int):
        """
        Initialize compositor.

        Args:
            width: Canvas width
            height: Canvas height
        """
        self.width = width
        self.height = height

        # Last committed raster
        self._output: Optional[Raster] = None
        self._commits = 0

    @property
    def raster_shape(self) -> Tuple[int, int, int]:
        return (self.height, self.width, RASTER_CHANNELS)

    @property
    def mask_shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def render_background(self, background: Background) -> Raster:
        """
        Render a background into a fresh canvas-sized buffer.

        Solid fills cover every pixel (alpha opaque). Images are stretched
        to exactly width x height, no letterboxing.

        Raises:
            DimensionMismatchError: If an image is not a 2-D RGBA raster
        """
        if isinstance(background, SolidFill):
            base = np.empty(self.raster_shape, dtype=np.uint8)
            base[:] = background.rgba
            return base

        image = np.asarray(background)
        if image.ndim != 3 or image.shape[2] != RASTER_CHANNELS or 0 in image.shape[:2]:
            raise DimensionMismatchError("background", self.raster_shape, image.shape)

        if image.shape[:2] == self.mask_shape:
            return np.array(image, dtype=np.uint8, copy=True)

        return cv2.resize(
            image.astype(np.uint8, copy=False),
            (self.width, self.height),
            interpolation=cv2.INTER_LINEAR,
        )

    def composite(self, frame: Raster, mask: Mask, background: Background) -> Raster:
        """
        Merge frame and background through the mask and commit the result.

        Args:
            frame: RGBA raster (H, W, 4) at canvas size
            mask: (H, W) mask, truthy = foreground
            background: SolidFill or image raster of any size

        Returns:
            The committed output raster

        Raises:
            DimensionMismatchError: If frame or mask is not canvas-sized,
                or the frame is not uint8
        """
        if background is None:
            raise ValueError("No background to composite over")

        frame = np.asarray(frame)
        mask = np.asarray(mask)
        if frame.shape != self.raster_shape:
            raise DimensionMismatchError("frame", self.raster_shape, frame.shape)
        if frame.dtype != np.uint8:
            raise DimensionMismatchError("frame", "uint8", str(frame.dtype), attribute="dtype")
        if mask.shape != self.mask_shape:
            raise DimensionMismatchError("mask", self.mask_shape, mask.shape)

        base = self.render_background(background)

        foreground = mask.astype(bool, copy=False)
        base[foreground] = frame[foreground]

        self._output = base
        self._commits += 1
        return base

    @property
    def output(self) -> Optional[Raster]:
        """Last committed raster, or None before the first commit."""
        return self._output

    @property
    def commits(self) -> int:
        return self._commits

    def reset(self):
        """Drop the committed output (session teardown)."""
        self._output = None
        self._commits = 0
        logger.debug("Compositor reset")


def to_bgr(raster: Raster) -> np.ndarray:
    """Convert an RGBA raster to BGR for OpenCV display."""
    return cv2.cvtColor(raster, cv2.COLOR_RGBA2BGR)
