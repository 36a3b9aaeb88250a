"""
Background Store.

Holds exactly one current background, replaceable at any time:
- Solid fills and in-memory rasters take effect immediately
- Image files and raw upload payloads are decoded off the event loop
  first; the previous background stays current until decoding completes

Replacement swaps a single reference. A composite cycle reads the
reference once and keeps it, so a swap only shows from the next cycle.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Union
import numpy as np
import cv2
from loguru import logger

from backdrop.core.contracts import Background, Raster, SolidFill
from backdrop.core.errors import BackgroundDecodeError

# Raw file payload (e.g. an uploaded image's bytes)
FilePayload = Union[bytes, bytearray, memoryview]

# Anything set_background() accepts
BackgroundSource = Union[SolidFill, np.ndarray, str, Path, bytes, bytearray, memoryview]


def decode_image(payload: FilePayload) -> Raster:
    """
    Decode an encoded image (PNG, JPEG, ...) into an RGBA raster.

    Raises:
        BackgroundDecodeError: If the payload is empty or not a readable image
    """
    data = np.frombuffer(bytes(payload), dtype=np.uint8)
    if data.size == 0:
        raise BackgroundDecodeError("Empty image payload")

    try:
        image = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise BackgroundDecodeError(f"Could not decode image: {e}") from e

    if image is None:
        raise BackgroundDecodeError("Payload is not a supported image")

    return to_rgba(image, bgr=True)


def to_rgba(image: np.ndarray, bgr: bool = False) -> Raster:
    """Promote a gray/RGB(A) or BGR(A) image to a contiguous RGBA uint8 raster."""
    if image.size == 0 or 0 in image.shape[:2]:
        raise BackgroundDecodeError(f"Empty image {image.shape}")

    if image.dtype != np.uint8:
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        else:
            raise BackgroundDecodeError(f"Unsupported image dtype {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise BackgroundDecodeError(f"Unsupported image shape {image.shape}")

    if image.shape[2] == 3:
        code = cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA
        return cv2.cvtColor(image, code)
    if bgr:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return np.ascontiguousarray(image)


class BackgroundStore:
    """
    Owner of the current background.

    The compositor only reads current(); it never mutates the returned
    background. Rasters handed in are copied so callers cannot mutate
    them behind the store's back.
    """

    def __init__(
        self,
        initial: Optional[Background] = None,
        on_change: Optional[Callable[[Background], None]] = None,
    ):
        """
        Initialize background store.

        Args:
            initial: Background to start with (None = nothing selected)
            on_change: Called after every successful swap
        """
        self._current: Optional[Background] = None
        self._on_change = on_change
        self._alive = True

        # Incremented per selection; a decode only commits if still latest
        self._generation = 0
        self._pending_decodes = 0

        if initial is not None:
            self._swap(self._prepare_immediate(initial))

    def current(self) -> Optional[Background]:
        """The current background, or None if nothing was ever selected."""
        return self._current

    async def set_background(self, source: BackgroundSource) -> None:
        """
        Replace the current background.

        Args:
            source: SolidFill, image raster, image path, or raw file payload

        Raises:
            BackgroundDecodeError: If the image cannot be read or decoded;
                the previous background stays current
        """
        if not self._alive:
            logger.debug("Background store closed, ignoring selection")
            return

        if isinstance(source, (SolidFill, np.ndarray)):
            try:
                background = self._prepare_immediate(source)
            except BackgroundDecodeError as e:
                logger.warning(f"Background rejected, keeping previous: {e}")
                raise
            self._generation += 1
            self._swap(background)
            return

        self._generation += 1
        generation = self._generation

        self._pending_decodes += 1
        try:
            if isinstance(source, (str, Path)):
                background = await asyncio.to_thread(self._read_file, Path(source))
            elif isinstance(source, (bytes, bytearray, memoryview)):
                background = await asyncio.to_thread(decode_image, source)
            else:
                raise BackgroundDecodeError(
                    f"Unsupported background source: {type(source).__name__}"
                )
        except BackgroundDecodeError as e:
            logger.warning(f"Background rejected, keeping previous: {e}")
            raise
        finally:
            self._pending_decodes -= 1

        if not self._alive:
            logger.debug("Background decoded after close, discarding")
            return
        if generation != self._generation:
            logger.debug("Background decode superseded by a newer selection, discarding")
            return

        self._swap(background)

    def close(self):
        """Stop accepting backgrounds; in-flight decodes are discarded."""
        self._alive = False
        self._current = None
        logger.debug("Background store closed")

    @property
    def has_pending_decode(self) -> bool:
        return self._pending_decodes > 0

    @staticmethod
    def _read_file(path: Path) -> Raster:
        try:
            payload = path.read_bytes()
        except OSError as e:
            raise BackgroundDecodeError(f"Could not read {path}: {e}") from e
        return decode_image(payload)

    @staticmethod
    def _prepare_immediate(source: Background) -> Background:
        if isinstance(source, SolidFill):
            return source
        return to_rgba(np.array(source, copy=True))

    def _swap(self, background: Background):
        self._current = background
        if isinstance(background, SolidFill):
            logger.info(f"Background set to solid fill {background.rgba[:3]}")
        else:
            h, w = background.shape[:2]
            logger.info(f"Background set to {w}x{h} image")
        if self._on_change is not None:
            self._on_change(background)
