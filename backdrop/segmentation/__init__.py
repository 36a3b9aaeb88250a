"""
Segmentation module.

Provides person segmentation models behind one async contract:
load() once, then segment(frame) -> mask per frame.

To add a new provider:
1. Create a new file in this directory
2. Implement a class inheriting from BaseSegmentationProvider
3. Register it in PROVIDERS dict below
"""
from typing import Optional

from backdrop.config import SegmentationConfig
from .base import BaseSegmentationProvider, threshold_mask
from .selfie_segmenter import SelfieSegmentationProvider

# Registry of available providers
PROVIDERS = {
    "selfie": SelfieSegmentationProvider,
}


def get_provider(name: str, config: Optional[SegmentationConfig] = None) -> BaseSegmentationProvider:
    """Get a provider instance by name.

    Args:
        name: Provider name (e.g., "selfie")
        config: Segmentation settings

    Returns:
        Unloaded provider instance

    Raises:
        ValueError: If provider name is not registered
    """
    if name not in PROVIDERS:
        available = ", ".join(PROVIDERS.keys())
        raise ValueError(f"Unknown provider '{name}'. Available: {available}")

    return PROVIDERS[name](config)


def list_providers() -> list:
    """List available provider names."""
    return list(PROVIDERS.keys())


__all__ = ['BaseSegmentationProvider', 'SelfieSegmentationProvider', 'threshold_mask',
           'get_provider', 'list_providers', 'PROVIDERS']
