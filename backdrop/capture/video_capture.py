"""
Video Capture from a live camera.

Handles:
- Webcam acquisition
- Format conversion (BGR -> RGBA)
- Canvas sizing (frames are always W x H)
"""

from __future__ import annotations

import time
from typing import Optional, Tuple
import numpy as np
import cv2
from loguru import logger

from backdrop.core.contracts import Raster
from backdrop.core.errors import CameraAccessError, NoFrameAvailable


class VideoCapture:
    """
    Live frame source of fixed width x height.

    Guarantees:
    - RGBA output
    - Every frame is exactly width x height
    """

    def __init__(
        self,
        device_index: int = 0,
        width: int = 640,
        height: int = 480,
        fps: float = 30,
        buffer_frames: int = 1,
    ):
        """
        Initialize video capture.

        Args:
            device_index: Camera device index
            width: Canvas width
            height: Canvas height
            fps: Requested camera frame rate
            buffer_frames: Number of frames the driver may buffer
        """
        self.device_index = device_index
        self.width = width
        self.height = height
        self.fps = fps
        self.buffer_frames = buffer_frames

        # State
        self._capture: Optional[cv2.VideoCapture] = None
        self._is_running = False
        self._frame_count: int = 0
        self._native_size: Tuple[int, int] = (0, 0)

        # Performance tracking
        self._frame_times: list[float] = []
        self._actual_fps: float = 0.0

    def start(self):
        """
        Start video capture.

        Raises:
            CameraAccessError: If the device cannot be opened
        """
        if self._is_running:
            return

        try:
            self._capture = cv2.VideoCapture(self.device_index)
        except cv2.error as e:
            raise CameraAccessError(f"Failed to open camera {self.device_index}: {e}") from e

        if not self._capture.isOpened():
            self._capture.release()
            self._capture = None
            raise CameraAccessError(f"Failed to open camera {self.device_index}")

        # Configure capture
        self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture.set(cv2.CAP_PROP_FPS, self.fps)
        self._capture.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_frames)

        # Read actual settings
        actual_width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._capture.get(cv2.CAP_PROP_FPS)
        self._native_size = (actual_width, actual_height)

        logger.info(
            f"Video capture started: {actual_width}x{actual_height} @ {actual_fps}fps"
        )
        if self._native_size != (self.width, self.height):
            logger.warning(
                f"Camera ignored requested size, resizing frames to {self.width}x{self.height}"
            )

        self._is_running = True

    def stop(self):
        """Stop video capture."""
        self._is_running = False

        if self._capture is not None:
            self._capture.release()
            self._capture = None

        logger.info("Video capture stopped")

    def get_current_frame(self) -> Raster:
        """
        Read the current frame.

        Returns:
            RGBA raster of shape (height, width, 4)

        Raises:
            NoFrameAvailable: If the stream has not started, has ended,
                or the read failed
        """
        if not self._is_running or self._capture is None:
            raise NoFrameAvailable("Video capture is not running")

        start_time = time.perf_counter()

        ret, frame = self._capture.read()

        if not ret or frame is None:
            raise NoFrameAvailable(f"No frame from camera {self.device_index}")

        raster = self.to_raster(frame)

        self._frame_count += 1
        self._frame_times.append(start_time)
        if len(self._frame_times) > 30:
            self._frame_times.pop(0)
        self._update_fps()

        return raster

    def to_raster(self, frame: np.ndarray) -> Raster:
        """Convert a BGR camera frame to a canvas-sized RGBA raster."""
        h, w = frame.shape[:2]
        if (w, h) != (self.width, self.height):
            frame = cv2.resize(frame, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)

    def _update_fps(self):
        """Calculate actual FPS from frame times."""
        if len(self._frame_times) < 2:
            return

        duration = self._frame_times[-1] - self._frame_times[0]
        if duration > 0:
            self._actual_fps = (len(self._frame_times) - 1) / duration

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def actual_fps(self) -> float:
        return self._actual_fps

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def frame_size(self) -> Tuple[int, int]:
        """Output frame size (width, height)."""
        return (self.width, self.height)
