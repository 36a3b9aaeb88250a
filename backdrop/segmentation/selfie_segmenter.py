"""
Person segmentation using MediaPipe Selfie Segmentation.

Produces one binary person mask per frame. Boundary softness comes
from the model; the mask is hard-thresholded here.

Requirements:
    - mediapipe
"""

from __future__ import annotations

from typing import Optional

import cv2
from loguru import logger

try:
    import mediapipe as mp
    MEDIAPIPE_AVAILABLE = True
except ImportError:
    MEDIAPIPE_AVAILABLE = False
    logger.warning("MediaPipe not available")

from backdrop.config import SegmentationConfig
from backdrop.core.contracts import Mask, Raster
from backdrop.core.errors import ModelLoadError, SegmentationError
from .base import BaseSegmentationProvider, threshold_mask


# 0 = general model (256x256, more accurate), 1 = landscape model (144x256, faster)
MODEL_SELECTION = {
    "accuracy": 0,
    "speed": 1,
}


class SelfieSegmentationProvider(BaseSegmentationProvider):
    """
    MediaPipe selfie segmentation.

    Usage:
        provider = SelfieSegmentationProvider(SegmentationConfig(mirror=True))
        await provider.load()
        mask = await provider.segment(frame)
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        super().__init__(config)
        self._model = None

    @property
    def name(self) -> str:
        return "MediaPipe selfie segmentation"

    @property
    def model_selection(self) -> int:
        return MODEL_SELECTION[self.config.speed_accuracy_tradeoff]

    def _load_model(self) -> None:
        if not MEDIAPIPE_AVAILABLE:
            raise ModelLoadError("MediaPipe is not installed")

        try:
            solutions = mp.solutions.selfie_segmentation
        except AttributeError as e:
            raise ModelLoadError(
                "This MediaPipe build does not ship the selfie segmentation solution"
            ) from e

        self._model = solutions.SelfieSegmentation(model_selection=self.model_selection)
        logger.debug(f"Selfie segmentation model_selection={self.model_selection}")

    def _infer(self, frame: Raster) -> Mask:
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_RGBA2RGB)
        results = self._model.process(rgb_frame)

        if results.segmentation_mask is None:
            raise SegmentationError("Model produced no segmentation mask")

        return threshold_mask(results.segmentation_mask, self.config.confidence_threshold)

    def _release(self) -> None:
        if self._model is not None:
            self._model.close()
            self._model = None
