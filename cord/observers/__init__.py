"""
Observer module for cord.

This module provides the background observers feeding a guidance session:
periodic screen capture and mouse/interaction tracking.
"""

from .observer import Observer
from .screen import Screen
from .mouse import MouseTracker

__all__ = ["Observer", "Screen", "MouseTracker"]
