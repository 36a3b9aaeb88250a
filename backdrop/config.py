"""
Configuration module for Backdrop.

Settings are resolved in this order (later wins):
1. Dataclass defaults below
2. YAML settings file (config/settings.yaml by default)
3. Command-line arguments (see main.py)

To add a new preset:
1. Add entry to PRESETS dict with your settings
2. Select it with `preset:` in YAML or --preset on the command line
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


# === SPEED PRESETS ===
# Each preset balances mask quality vs throughput differently
PRESETS = {
    "QUALITY": {
        "speed_accuracy_tradeoff": "accuracy",  # MediaPipe general model
        "confidence_threshold": 0.5,
        "target_fps": 30,
    },
    "BALANCED": {
        "speed_accuracy_tradeoff": "speed",     # MediaPipe landscape model
        "confidence_threshold": 0.5,
        "target_fps": 30,
    },
    "FAST": {
        "speed_accuracy_tradeoff": "speed",
        "confidence_threshold": 0.6,
        "target_fps": 20,
    },
}

TRADEOFFS = ("accuracy", "speed")

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


@dataclass
class CanvasConfig:
    """Output canvas size. Every raster in a composite shares it."""
    width: int = 640
    height: int = 480

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Canvas size must be positive, got {self.width}x{self.height}")


@dataclass
class CameraConfig:
    """Frame source settings."""
    device_index: int = 0
    buffer_frames: int = 1  # Small buffer keeps latency low


@dataclass
class SegmentationConfig:
    """Segmentation provider settings. Fixed once the model is loaded.

    Attributes:
        provider: Registered provider name
        speed_accuracy_tradeoff: "accuracy" or "speed"
        confidence_threshold: Probability above which a pixel is foreground
        mirror: Mirror the frame horizontally before segmentation
    """
    provider: str = "selfie"
    speed_accuracy_tradeoff: str = "accuracy"
    confidence_threshold: float = 0.5
    mirror: bool = False

    def __post_init__(self):
        if self.speed_accuracy_tradeoff not in TRADEOFFS:
            raise ValueError(
                f"Unknown speed_accuracy_tradeoff '{self.speed_accuracy_tradeoff}'. "
                f"Available: {', '.join(TRADEOFFS)}"
            )
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(
                f"confidence_threshold must be within [0, 1], got {self.confidence_threshold}"
            )


@dataclass
class SchedulerConfig:
    """Frame scheduler settings.

    Attributes:
        target_fps: Upper bound on composites per second
        alert_after_failures: Consecutive dimension mismatches before escalating
        profile_interval: Seconds between profiling log lines
    """
    target_fps: float = 30.0
    alert_after_failures: int = 30
    profile_interval: float = 2.0

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if self.alert_after_failures < 1:
            raise ValueError(
                f"alert_after_failures must be at least 1, got {self.alert_after_failures}"
            )

    @property
    def target_interval_ms(self) -> float:
        return 1000.0 / self.target_fps


@dataclass
class DisplayConfig:
    """Display settings. refresh_hz drives the repaint signal."""
    refresh_hz: float = 60.0
    window_title: str = "Backdrop"
    headless: bool = False

    def __post_init__(self):
        if self.refresh_hz <= 0:
            raise ValueError(f"refresh_hz must be positive, got {self.refresh_hz}")


@dataclass
class BackgroundConfig:
    """Background selection.

    Attributes:
        default_color: Fill used when no image is selected ("#rrggbb")
        image: Optional image file to load at startup
        directory: Optional folder of images to cycle through with 'n'
    """
    default_color: str = "#00ff00"
    image: Optional[str] = None
    directory: Optional[str] = None


@dataclass
class AppConfig:
    """Main configuration for the compositing pipeline."""
    preset: Optional[str] = None
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    background: BackgroundConfig = field(default_factory=BackgroundConfig)

    def __post_init__(self):
        """Apply preset settings."""
        if self.preset is None:
            return
        if self.preset not in PRESETS:
            raise ValueError(
                f"Unknown preset '{self.preset}'. Available: {', '.join(PRESETS)}"
            )
        preset = PRESETS[self.preset]
        self.segmentation.speed_accuracy_tradeoff = preset["speed_accuracy_tradeoff"]
        self.segmentation.confidence_threshold = preset["confidence_threshold"]
        self.scheduler.target_fps = preset["target_fps"]


def _build(cls, values: Optional[Dict[str, Any]]):
    """Build a (possibly nested) config dataclass from a dict, ignoring unknown keys."""
    values = values or {}
    kwargs = {}
    for f in fields(cls):
        if f.name not in values:
            continue
        value = values[f.name]
        default = f.default_factory() if callable(f.default_factory) else None
        if is_dataclass(default) and isinstance(value, dict):
            value = _build(type(default), value)
        kwargs[f.name] = value
    unknown = set(values) - {f.name for f in fields(cls)}
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**kwargs)


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Settings file, or None for config/settings.yaml if present

    Returns:
        AppConfig with all settings
    """
    settings_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    if not settings_path.exists():
        if path:
            raise FileNotFoundError(f"Config file not found: {settings_path}")
        return AppConfig()

    with open(settings_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {settings_path}")

    logger.info(f"Loaded settings from {settings_path}")
    return _build(AppConfig, data)
