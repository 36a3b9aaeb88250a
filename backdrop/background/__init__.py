"""
Background module.

Responsibilities:
- Holding the current background (image or solid fill)
- Decoding uploaded image payloads
- Atomic replacement
"""

from .background_store import BackgroundStore, decode_image, to_rgba
