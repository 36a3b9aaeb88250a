"""
Video Capture Module.

Responsibilities:
- Live camera acquisition
- RGBA conversion at canvas size
"""

from .video_capture import VideoCapture
