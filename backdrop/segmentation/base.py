"""
Base class for segmentation providers.

To add a new segmentation model:
1. Create a new file in the segmentation/ directory
2. Inherit from BaseSegmentationProvider
3. Implement _load_model(), _infer() and _release()
4. Register in segmentation/__init__.py PROVIDERS dict

Example implementation:
    class ThresholdProvider(BaseSegmentationProvider):
        def _load_model(self):
            self.model = load_my_model()

        def _infer(self, frame):
            probabilities = self.model(frame)
            return probabilities > self.config.confidence_threshold

        def _release(self):
            self.model = None

The blocking model calls run in a worker thread so the event loop keeps
re-arming the scheduler and accepting background swaps while they run.
"""
from __future__ import annotations

import asyncio
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np
from loguru import logger

from backdrop.config import SegmentationConfig
from backdrop.core.contracts import Mask, Raster
from backdrop.core.errors import ModelLoadError, SegmentationError


class BaseSegmentationProvider(ABC):
    """Abstract base class for person segmentation providers.

    Providers are loaded once, asynchronously, and then produce one
    foreground mask per frame. Any model failure during segment() is
    reported as SegmentationError so the caller can skip the cycle.

    Attributes:
        config: Segmentation settings (fixed after load)
        is_ready: True once the model is loaded and not yet closed
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        self.config = config or SegmentationConfig()
        self._is_ready = False
        self._closed = False
        self._last_inference_ms = 0.0

        # Guards the hand-off between the loading thread and close()
        self._lock = threading.Lock()
        self._model_held = False

    async def load(self) -> None:
        """Load the model without blocking the event loop.

        Raises:
            ModelLoadError: If the model cannot be loaded
        """
        if self._is_ready:
            return
        if self._closed:
            raise ModelLoadError("Provider has been closed")

        logger.info(f"Loading {self.name} ({self.config.speed_accuracy_tradeoff})...")
        start = time.perf_counter()
        try:
            await asyncio.to_thread(self._load_and_hold)
        except ModelLoadError:
            raise
        except Exception as e:
            raise ModelLoadError(f"Failed to load {self.name}: {e}") from e

        if self._closed:
            # close() already released the model
            raise ModelLoadError("Provider closed during load")

        self._is_ready = True
        logger.info(f"{self.name} loaded in {(time.perf_counter() - start) * 1000:.0f}ms")

    async def segment(self, frame: Raster) -> Mask:
        """Compute the foreground mask for a frame.

        Args:
            frame: RGBA raster (H, W, 4)

        Returns:
            (H, W) mask, truthy = foreground. Mirrored when config.mirror
            is set, matching orient(frame).

        Raises:
            SegmentationError: If the provider is not ready or the model fails
        """
        if not self._is_ready:
            raise SegmentationError(f"{self.name} is not loaded")
        if frame is None or frame.ndim != 3:
            raise SegmentationError("Invalid frame")

        model_input = self.orient(frame)
        start = time.perf_counter()
        try:
            mask = await asyncio.to_thread(self._infer, model_input)
        except SegmentationError:
            raise
        except Exception as e:
            raise SegmentationError(f"{self.name} failed: {e}") from e
        self._last_inference_ms = (time.perf_counter() - start) * 1000

        if mask is None:
            raise SegmentationError(f"{self.name} returned no mask")
        return mask

    def orient(self, frame: Raster) -> Raster:
        """Return the frame in the orientation the mask is produced for."""
        if self.config.mirror:
            return cv2.flip(frame, 1)
        return frame

    def close(self) -> None:
        """Release the model. Later segment() calls fail.

        Safe while load() is still running, or after it was cancelled: a
        model that finishes loading afterwards is released by the loader.
        """
        with self._lock:
            self._closed = True
            self._is_ready = False
            if not self._model_held:
                return
            self._model_held = False
            self._release()
        logger.info(f"{self.name} released")

    def _load_and_hold(self) -> None:
        self._load_model()
        with self._lock:
            if self._closed:
                self._release()
                raise ModelLoadError("Provider closed during load")
            self._model_held = True

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    @property
    def last_inference_ms(self) -> float:
        return self._last_inference_ms

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def _load_model(self) -> None:
        """Load model weights (blocking, runs in a worker thread)."""
        pass

    @abstractmethod
    def _infer(self, frame: Raster) -> Mask:
        """Run the model on an already oriented frame (blocking)."""
        pass

    @abstractmethod
    def _release(self) -> None:
        """Free model resources."""
        pass


def threshold_mask(probabilities: np.ndarray, threshold: float) -> Mask:
    """Binary foreground mask from a probability map."""
    return probabilities > threshold
