"""
Compositing module.

Responsibilities:
- Background rendering at canvas size
- Mask-driven merge of frame over background
- Atomic output commit
"""

from .compositor import Compositor, to_bgr
