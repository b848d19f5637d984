"""
Outlaw Crossing Audio System.

Synthesized chiptune effects and a saloon loop on pygame.mixer.
"""

from .engine import AudioEngine, get_audio_engine

__all__ = ["AudioEngine", "get_audio_engine"]
