#!/usr/bin/env python3
"""
Backdrop - Real-time Background Replacement

Main entry point. Composites the camera feed over a substitute background
using a person segmentation mask.

Usage:
    python main.py [--config CONFIG_PATH] [--background IMAGE] [--mirror]

Keyboard Controls:
    N     - Next background image from --backgrounds-dir
    G     - Back to the default colour
    Q/ESC - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from backdrop.config import AppConfig, PRESETS, load_config
from backdrop.core.contracts import SolidFill
from backdrop.core.errors import BackgroundDecodeError, CameraAccessError, ModelLoadError
from backdrop.pipeline.session import CompositingSession
from backdrop.scheduling import FrameScheduler, RepaintClock
from backdrop.segmentation import list_providers
from backdrop.ui import BackgroundPicker, KeyboardControl, get_ui

UI_POLL_SECONDS = 0.01


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# MAIN APPLICATION
# ============================================================

class BackdropEngine:
    """Main application class: wires session, scheduler and UI together."""

    def __init__(self, config: AppConfig, duration: Optional[float] = None):
        self.config = config
        self.duration = duration

        canvas = config.canvas
        self.ui = get_ui(
            "headless" if config.display.headless else "opencv",
            canvas.width,
            canvas.height,
        )
        self.keyboard = KeyboardControl()
        self.picker = BackgroundPicker(config.background.directory)
        self.session = CompositingSession.from_config(config, on_commit=self.ui.show)
        self.scheduler: Optional[FrameScheduler] = None

        self._quit_requested = False
        self._tasks: set = set()

    async def run(self) -> int:
        """Run until quit. Returns a process exit code."""
        logger.info("Starting Backdrop")
        self.ui.setup(self.config.display.window_title)
        self.ui.show_status("Loading segmentation model...")

        if self.config.background.image:
            await self._set_background(Path(self.config.background.image))

        start_task = asyncio.create_task(self.session.start())
        while not start_task.done():
            self._handle_input()
            if self._quit_requested:
                start_task.cancel()
                with contextlib.suppress(asyncio.CancelledError, ModelLoadError, CameraAccessError):
                    await start_task
                await self.session.stop()
                self.ui.cleanup()
                return 0
            await asyncio.sleep(UI_POLL_SECONDS)

        try:
            start_task.result()
        except (ModelLoadError, CameraAccessError) as e:
            await self._show_unavailable(e)
            await self.session.stop()
            self.ui.cleanup()
            return 1

        self.scheduler = FrameScheduler(
            self.session,
            RepaintClock(self.config.display.refresh_hz),
            self.config.scheduler,
        )
        self.scheduler.start()
        logger.info("Press Q to quit, N for next background, G for default colour")

        started = time.monotonic()
        try:
            while not self._quit_requested:
                self._handle_input()
                if self.duration is not None and time.monotonic() - started >= self.duration:
                    break
                await asyncio.sleep(UI_POLL_SECONDS)
        finally:
            await self.session.stop(self.scheduler)
            self.ui.cleanup()
            logger.info("Backdrop stopped")
        return 0

    async def _show_unavailable(self, error: Exception):
        """Keep a persistent 'unavailable' screen up until the user quits."""
        self.ui.show_status(f"Unavailable: {error}")
        if self.config.display.headless:
            return
        while not self._quit_requested:
            self._handle_input()
            await asyncio.sleep(UI_POLL_SECONDS)

    def _handle_input(self):
        action = self.keyboard.poll(self.ui.poll_input())
        if action == "quit":
            self._quit_requested = True
        elif action == "next_background":
            picked = self.picker.next_payload()
            if picked is not None:
                path, payload = picked
                logger.info(f"Selected background {path.name}")
                self._spawn(self._set_background(payload))
        elif action == "default_background" and self.config.background.default_color:
            self._spawn(self._set_background(SolidFill.from_hex(self.config.background.default_color)))

    async def _set_background(self, source):
        try:
            await self.session.background_store.set_background(source)
        except BackgroundDecodeError as e:
            logger.warning(f"Background not changed: {e}")

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


# ============================================================
# ENTRY POINT
# ============================================================

def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Backdrop - real-time background replacement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--config", "-c", type=str, default=None,
                        help="Path to YAML settings file (default: config/settings.yaml)")
    parser.add_argument("--preset", choices=list(PRESETS.keys()), default=None,
                        help="Speed preset (overrides segmentation and fps settings)")
    parser.add_argument("--device", "-d", type=int, default=None,
                        help="Camera device index")
    parser.add_argument("--width", type=int, default=None, help="Canvas width")
    parser.add_argument("--height", type=int, default=None, help="Canvas height")
    parser.add_argument("--fps", type=float, default=None,
                        help="Target composites per second")
    parser.add_argument("--provider", choices=list_providers(), default=None,
                        help="Segmentation provider")
    parser.add_argument("--speed", action="store_true",
                        help="Prefer segmentation speed over accuracy")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Segmentation confidence threshold (0-1)")
    parser.add_argument("--mirror", action="store_true",
                        help="Mirror the camera horizontally")
    parser.add_argument("--background", "-b", type=str, default=None,
                        help="Background image file")
    parser.add_argument("--backgrounds-dir", type=str, default=None,
                        help="Folder of background images to cycle with N")
    parser.add_argument("--color", type=str, default=None,
                        help="Default background colour (#rrggbb)")
    parser.add_argument("--headless", action="store_true",
                        help="Run without a display window")
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Optional log file path")

    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command-line arguments on top of the loaded settings."""
    if args.preset:
        config.preset = args.preset
        config.__post_init__()
    if args.device is not None:
        config.camera.device_index = args.device
    if args.width is not None:
        config.canvas.width = args.width
    if args.height is not None:
        config.canvas.height = args.height
    if args.fps is not None:
        config.scheduler.target_fps = args.fps
    if args.provider:
        config.segmentation.provider = args.provider
    if args.speed:
        config.segmentation.speed_accuracy_tradeoff = "speed"
    if args.threshold is not None:
        config.segmentation.confidence_threshold = args.threshold
    if args.mirror:
        config.segmentation.mirror = True
    if args.background:
        config.background.image = args.background
    if args.backgrounds_dir:
        config.background.directory = args.backgrounds_dir
    if args.color:
        config.background.default_color = args.color
    if args.headless:
        config.display.headless = True

    # Re-validate after overrides
    for section in (config.canvas, config.segmentation, config.scheduler, config.display):
        section.__post_init__()
    if config.background.default_color:
        SolidFill.from_hex(config.background.default_color)
    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, args.log_file)

    config = apply_overrides(load_config(args.config), args)

    engine = BackdropEngine(config, duration=args.duration)
    try:
        return asyncio.run(engine.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
