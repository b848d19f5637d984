"""Tests for sprite loading and its load states."""

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from outlaw.graphics.assets import AssetLoader, LoadState


class TestAssetLoader(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)
        Image.new("RGB", (8, 8), (200, 120, 40)).save(self.base / "horse.png")
        self.loader = AssetLoader(self.base, background=False)

    def tearDown(self):
        self._tmp.cleanup()

    def test_unrequested_sprite_has_no_state(self):
        self.assertIsNone(self.loader.state("horse.png", (16, 12)))

    def test_loads_at_requested_size(self):
        sprite = self.loader.get("horse.png", (16, 12))
        self.assertEqual(sprite.shape, (12, 16, 4))
        for got, want in zip(sprite[6, 8], (200, 120, 40, 255)):
            self.assertAlmostEqual(int(got), want, delta=2)
        self.assertEqual(self.loader.state("horse.png", (16, 12)), LoadState.READY)
        self.assertIsNone(self.loader.state("horse.png", (8, 8)))

    def test_missing_file_fails_once(self):
        self.assertIsNone(self.loader.get("train.png", (10, 10)))
        self.assertEqual(self.loader.state("train.png", (10, 10)), LoadState.FAILED)
        self.assertIsNone(self.loader.get("train.png", (10, 10)))

    def test_clear_forgets_sprites(self):
        self.loader.get("horse.png", (4, 4))
        self.loader.clear()
        self.assertIsNone(self.loader.state("horse.png", (4, 4)))


if __name__ == "__main__":
    unittest.main(verbosity=2)
