"""
UI module.

Presentation glue around the compositing session: display window,
keyboard input, and background picking.
"""
from .base import BaseUI
from .opencv_window import OpenCVWindow, HeadlessUI
from .keyboard import KeyboardControl
from .background_picker import BackgroundPicker

# Registry of available UI backends
UIS = {
    "opencv": OpenCVWindow,
    "headless": HeadlessUI,
}


def get_ui(name: str, width: int = 640, height: int = 480) -> BaseUI:
    """Get a UI backend instance by name.

    Raises:
        ValueError: If UI name is not registered
    """
    if name not in UIS:
        available = ", ".join(UIS.keys())
        raise ValueError(f"Unknown UI '{name}'. Available: {available}")

    return UIS[name](width, height)


__all__ = ['BaseUI', 'OpenCVWindow', 'HeadlessUI', 'KeyboardControl',
           'BackgroundPicker', 'get_ui']
