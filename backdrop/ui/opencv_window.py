"""
OpenCV window UI backend.

Shows the compositor's committed output with cv2.imshow and a text
placeholder while the model loads or after a fatal startup error.
"""
from typing import Optional
import cv2
import numpy as np

from backdrop.compositing.compositor import to_bgr
from backdrop.core.contracts import Raster
from .base import BaseUI


class OpenCVWindow(BaseUI):
    """OpenCV-based UI using imshow.

    Uses cv2.imshow() for display and cv2.waitKey() for input.
    Must be driven from the main thread.
    """

    def __init__(self, width: int = 640, height: int = 480):
        """Initialize OpenCV UI.

        Args:
            width: Canvas width (placeholder size)
            height: Canvas height (placeholder size)
        """
        self.width = width
        self.height = height
        self.window_name = "Backdrop"
        self._frames_shown = 0

    def setup(self, title: str = "Backdrop") -> None:
        """Create the display window.

        Args:
            title: Window title
        """
        self.window_name = title
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)

    def show(self, raster: Raster) -> None:
        cv2.imshow(self.window_name, to_bgr(raster))
        self._frames_shown += 1

    def show_status(self, message: str) -> None:
        placeholder = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        cv2.putText(
            placeholder,
            message,
            (20, 40),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.8,
            (255, 255, 255),
            2,
            cv2.LINE_AA,
        )
        cv2.imshow(self.window_name, placeholder)

    def poll_input(self) -> Optional[int]:
        """Poll for keyboard input.

        Returns:
            Key code (0-255) or None if no key pressed
        """
        key = cv2.waitKey(1) & 0xFF
        if key == 255:  # No key pressed
            return None
        return key

    def cleanup(self) -> None:
        """Destroy the window."""
        cv2.destroyAllWindows()

    @property
    def frames_shown(self) -> int:
        return self._frames_shown


class HeadlessUI(BaseUI):
    """No display. Committed rasters are counted and dropped."""

    def __init__(self, width: int = 640, height: int = 480):
        self.width = width
        self.height = height
        self.last_status: Optional[str] = None
        self._frames_shown = 0

    def setup(self, title: str = "Backdrop") -> None:
        pass

    def show(self, raster: Raster) -> None:
        self._frames_shown += 1

    def show_status(self, message: str) -> None:
        self.last_status = message

    def poll_input(self) -> Optional[int]:
        return None

    def cleanup(self) -> None:
        pass

    @property
    def frames_shown(self) -> int:
        return self._frames_shown
