"""
Base class for UI backends.

To add a new UI backend:
1. Create a new file in the ui/ directory
2. Inherit from BaseUI
3. Implement setup(), show(), show_status(), poll_input(), cleanup()
4. Register in ui/__init__.py
"""
from abc import ABC, abstractmethod
from typing import Optional

from backdrop.core.contracts import Raster


class BaseUI(ABC):
    """Abstract base class for UI backends.

    UIs display committed output rasters and receive user input.
    """

    @abstractmethod
    def setup(self, title: str = "Backdrop") -> None:
        """Initialize the UI.

        Args:
            title: Window title
        """
        pass

    @abstractmethod
    def show(self, raster: Raster) -> None:
        """Display a committed output raster.

        Args:
            raster: RGBA output raster
        """
        pass

    @abstractmethod
    def show_status(self, message: str) -> None:
        """Display a status placeholder (loading, unavailable, ...).

        Args:
            message: Text to show in place of video
        """
        pass

    @abstractmethod
    def poll_input(self) -> Optional[int]:
        """Poll for user input.

        Returns:
            Key code or None if no input
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Cleanup UI resources."""
        pass
