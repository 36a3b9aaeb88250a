"""
Backdrop - Real-time Background Replacement

Composites a live camera feed over a substitute background image,
using a per-pixel person mask from a segmentation model.

Pipeline (per composite cycle):
1. Scheduler fires on the display repaint signal (rate limited)
2. Frame source yields the current frame
3. Segmentation provider computes the person mask
4. Compositor merges frame + background through the mask
5. Output is committed to the display
"""

__version__ = "0.1.0"
