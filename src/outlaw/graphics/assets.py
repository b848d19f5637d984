"""Sprite loading for entities.

Images are loaded once, in the background, and cached as RGBA numpy
arrays at the size an entity asks for. get() never blocks: it returns
None while a load is pending or after it failed, and the caller draws
its fallback shape instead.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from PIL import Image

logger = logging.getLogger(__name__)

Size = Tuple[int, int]
SpriteKey = Tuple[str, Size]


class LoadState(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class AssetLoader:
    """Caches sprites keyed by (file name, size).

    Args:
        base_path: Directory holding the image files
        background: Load on daemon threads (True) or inline on first
            request (False, used by tests and tools)
    """

    def __init__(self, base_path: Path, background: bool = True) -> None:
        self.base_path = Path(base_path)
        self.background = background
        self._lock = threading.Lock()
        self._states: Dict[SpriteKey, LoadState] = {}
        self._sprites: Dict[SpriteKey, NDArray[np.uint8]] = {}

    def get(self, name: str, size: Size) -> Optional[NDArray[np.uint8]]:
        """Return the sprite if it is loaded, requesting it otherwise."""
        key = (name, (int(size[0]), int(size[1])))
        with self._lock:
            state = self._states.get(key)
            if state == LoadState.READY:
                return self._sprites[key]
            if state is not None:
                return None
            self._states[key] = LoadState.PENDING

        if self.background:
            thread = threading.Thread(
                target=self._load,
                args=(key,),
                daemon=True,
                name=f"AssetLoader-{name}",
            )
            thread.start()
            return None

        self._load(key)
        with self._lock:
            return self._sprites.get(key)

    def state(self, name: str, size: Size) -> Optional[LoadState]:
        with self._lock:
            return self._states.get((name, (int(size[0]), int(size[1]))))

    def _load(self, key: SpriteKey) -> None:
        name, (width, height) = key
        path = self.base_path / name
        try:
            with Image.open(path) as img:
                img = img.convert("RGBA")
                img = img.resize((max(1, width), max(1, height)), Image.Resampling.LANCZOS)
                sprite = np.array(img, dtype=np.uint8)
        except (OSError, ValueError) as e:
            logger.warning(f"Sprite {name} unavailable, using fallback shape: {e}")
            with self._lock:
                self._states[key] = LoadState.FAILED
            return

        with self._lock:
            self._sprites[key] = sprite
            self._states[key] = LoadState.READY
        logger.debug(f"Loaded sprite {name} at {width}x{height}")

    def clear(self) -> None:
        """Forget every cached sprite, e.g. after a resize."""
        with self._lock:
            self._states.clear()
            self._sprites.clear()
