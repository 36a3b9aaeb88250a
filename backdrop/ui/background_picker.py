"""
Background picker.

Stands in for an upload control: cycles through image files in a folder
and hands their raw bytes to the background store, which decodes them.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".webp", ".tif", ".tiff"}


class BackgroundPicker:
    """Round-robin over the image files of a directory."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory).expanduser() if directory else None
        self._index = -1

    def list_images(self) -> List[Path]:
        """Image files in the directory, sorted by name (rescanned each call)."""
        if self.directory is None or not self.directory.is_dir():
            return []
        return sorted(
            p for p in self.directory.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        )

    def next_payload(self) -> Optional[Tuple[Path, bytes]]:
        """
        Read the next image file.

        Returns:
            (path, raw bytes), or None if there is nothing to pick
        """
        images = self.list_images()
        if not images:
            logger.warning(f"No background images found in {self.directory}")
            return None

        self._index = (self._index + 1) % len(images)
        path = images[self._index]
        try:
            return path, path.read_bytes()
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
