"""Desktop pygame host for the crossing simulation."""

from .window import SimulatorWindow, WindowConfig

__all__ = ["SimulatorWindow", "WindowConfig"]
