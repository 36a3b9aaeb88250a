"""
Keyboard input control.

Handles keyboard input via OpenCV window events.
"""
from typing import Optional


class KeyboardControl:
    """Keyboard input handler.

    Uses OpenCV's waitKey() for input detection.
    Must be polled in the main loop.

    Key bindings:
        q / ESC - quit
        n       - next background image
        g       - back to the default colour
    """

    ACTIONS = {
        ord('q'): "quit",
        27: "quit",
        ord('n'): "next_background",
        ord('g'): "default_background",
    }

    def poll(self, key: Optional[int]) -> Optional[str]:
        """Translate a key press.

        Args:
            key: Key code from cv2.waitKey(), or None

        Returns:
            Action string or None
        """
        if key is None:
            return None
        return self.ACTIONS.get(key)
