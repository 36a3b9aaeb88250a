"""
Session Module.

Owns the state of one live compositing session.
"""

from .session import CompositingSession
