"""
Outlaw Crossing Audio Engine - Frontier Chiptune Sounds.

Every sound is synthesized at startup from simple oscillators, so the
game ships without audio files. The simulation asks for sounds by name
through SOUND_PLAY events; the engine never reaches into game state.
"""

import pygame
import array
import math
import random
import logging
from typing import Dict, Optional, List

from outlaw.core.events import Event

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100


def square(t: float, freq: float) -> float:
    """Square wave oscillator."""
    return 1 if (t * freq) % 1 < 0.5 else -1


def triangle(t: float, freq: float) -> float:
    """Triangle wave oscillator."""
    p = (t * freq) % 1
    return 4 * abs(p - 0.5) - 1


def sine(t: float, freq: float) -> float:
    """Sine wave oscillator."""
    return math.sin(2 * math.pi * freq * t)


def noise() -> float:
    """White noise generator."""
    return random.random() * 2 - 1


def to_pcm(value: float) -> int:
    """Clamp a -1..1 sample into signed 16-bit range."""
    return int(max(-1.0, min(1.0, value)) * 32767)


class AudioEngine:
    """
    Chiptune sound effects plus a looping saloon tune.

    Sound names match what the simulation emits:
    move, coin, badge, hit, goal, level_complete, game_over, victory.
    """

    SOUND_NAMES = [
        "move",
        "coin",
        "badge",
        "hit",
        "goal",
        "level_complete",
        "game_over",
        "victory",
    ]

    def __init__(self, volume: float = 0.8):
        self._initialized = False
        self._sounds: Dict[str, pygame.mixer.Sound] = {}
        self._volume_master = max(0.0, min(1.0, volume))
        self._volume_sfx = 1.0
        self._volume_music = 0.5
        self._muted = False
        self._music_channel: Optional[pygame.mixer.Channel] = None
        self._generated = False

    def init(self, skip_generation: bool = False) -> bool:
        """Initialize the mixer and synthesize sounds. False if audio is unavailable."""
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 2048)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(16)
        except pygame.error as e:
            logger.error(f"Failed to initialize audio: {e}")
            return False

        self._initialized = True
        logger.info("Audio engine initialized")
        if not skip_generation:
            self._generate_all_sounds()
        return True

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _create_sound(self, samples: array.array) -> pygame.mixer.Sound:
        """Create a pygame Sound from mono samples (auto-converted to stereo)."""
        stereo = array.array('h')
        for s in samples:
            stereo.append(s)
            stereo.append(s)
        return pygame.mixer.Sound(buffer=stereo)

    def _generate_all_sounds(self) -> None:
        if self._generated:
            return

        logger.info("Generating frontier chiptune sounds...")
        for name, samples in render_all().items():
            self._sounds[name] = self._create_sound(samples)

        self._generated = True
        logger.info(f"Generated {len(self._sounds)} sounds")

    # ===== PLAYBACK =====

    def play(self, sound_name: str, volume: float = 1.0, loops: int = 0) -> Optional[pygame.mixer.Channel]:
        """Play a sound effect."""
        if not self._initialized or self._muted:
            return None

        sound = self._sounds.get(sound_name)
        if not sound:
            logger.warning(f"Sound not found: {sound_name}")
            return None

        sound.set_volume(volume * self._volume_sfx * self._volume_master)
        return sound.play(loops=loops)

    def handle_sound_event(self, event: Event) -> None:
        """EventBus handler for SOUND_PLAY events."""
        name = event.data.get("sound")
        if name:
            self.play(name, volume=event.data.get("volume", 1.0))

    def play_music(self, fade_in_ms: int = 500) -> Optional[pygame.mixer.Channel]:
        """Start the looping saloon tune."""
        if not self._initialized or self._muted:
            return None
        sound = self._sounds.get("music_saloon")
        if not sound:
            return None
        self.stop_music(fade_out_ms=0)
        sound.set_volume(self._volume_music * self._volume_master)
        self._music_channel = sound.play(loops=-1, fade_ms=fade_in_ms)
        return self._music_channel

    def stop_music(self, fade_out_ms: int = 300) -> None:
        if self._music_channel is not None:
            if fade_out_ms > 0:
                self._music_channel.fadeout(fade_out_ms)
            else:
                self._music_channel.stop()
            self._music_channel = None

    def stop_all(self) -> None:
        """Stop all sounds."""
        if not self._initialized:
            return
        self.stop_music(fade_out_ms=0)
        pygame.mixer.stop()

    def set_master_volume(self, volume: float) -> None:
        """Set master volume (0.0 - 1.0)."""
        self._volume_master = max(0.0, min(1.0, volume))

    def get_volume(self) -> float:
        return self._volume_master

    def is_muted(self) -> bool:
        return self._muted

    def toggle_mute(self) -> bool:
        """Toggle mute state."""
        self._muted = not self._muted
        if self._initialized:
            if self._muted:
                pygame.mixer.pause()
            else:
                pygame.mixer.unpause()
        logger.info(f"Audio {'muted' if self._muted else 'unmuted'}")
        return self._muted

    def cleanup(self) -> None:
        """Cleanup audio resources."""
        if self._initialized:
            self.stop_all()
            pygame.mixer.quit()
            self._initialized = False
            logger.info("Audio engine cleaned up")


# ===== SYNTHESIS =====

def _gen_move() -> array.array:
    """Boot-step blip."""
    samples = array.array('h')
    for i in range(int(SAMPLE_RATE * 0.05)):
        t = i / SAMPLE_RATE
        env = max(0, 1 - t * 25)
        val = triangle(t, 440) * 0.25
        samples.append(to_pcm(val * env))
    return samples


def _gen_coin() -> array.array:
    """Two-note coin ding."""
    samples = array.array('h')
    for i in range(int(SAMPLE_RATE * 0.25)):
        t = i / SAMPLE_RATE
        freq = 988 if t < 0.07 else 1319
        env = max(0, 1 - t * 4)
        val = square(t, freq) * 0.2
        samples.append(to_pcm(val * env))
    return samples


def _gen_badge() -> array.array:
    """Rising shimmer for the sheriff badge."""
    samples = array.array('h')
    notes = [659, 784, 988, 1319]
    for i in range(int(SAMPLE_RATE * 0.5)):
        t = i / SAMPLE_RATE
        note_idx = min(int(t * 12), len(notes) - 1)
        env = max(0, 1 - t * 2)
        val = square(t, notes[note_idx]) * 0.15 + sine(t, notes[note_idx] * 2) * 0.1
        samples.append(to_pcm(val * env))
    return samples


def _gen_hit() -> array.array:
    """Thud and crunch when trampled."""
    samples = array.array('h')
    for i in range(int(SAMPLE_RATE * 0.35)):
        t = i / SAMPLE_RATE
        freq = max(40, 180 - t * 400)
        env = max(0, 1 - t * 3)
        val = sine(t, freq) * 0.4 + noise() * 0.25 * max(0, 1 - t * 8)
        samples.append(to_pcm(val * env))
    return samples


def _gen_goal() -> array.array:
    """Saloon door swing."""
    samples = array.array('h')
    for i in range(int(SAMPLE_RATE * 0.3)):
        t = i / SAMPLE_RATE
        freq = 523 if t < 0.1 else 784
        env = max(0, 1 - t * 3.3)
        val = triangle(t, freq) * 0.3 + square(t, freq / 2) * 0.08
        samples.append(to_pcm(val * env))
    return samples


def _gen_level_complete() -> array.array:
    """Triumphant arpeggio."""
    samples = array.array('h')
    notes = [523, 659, 784, 1047]
    for i in range(int(SAMPLE_RATE * 0.6)):
        t = i / SAMPLE_RATE
        note_idx = min(int(t * 8), 3)
        env = max(0, 1 - (t - note_idx * 0.125) * 4)
        val = square(t, notes[note_idx]) * 0.22
        samples.append(to_pcm(val * env))
    return samples


def _gen_game_over() -> array.array:
    """Sad descending whistle."""
    samples = array.array('h')
    for i in range(int(SAMPLE_RATE * 0.9)):
        t = i / SAMPLE_RATE
        freq = 440 - t * 220
        vibrato = sine(t, 6) * 8
        env = max(0, 1 - t * 1.1)
        val = sine(t, freq + vibrato) * 0.35
        samples.append(to_pcm(val * env))
    return samples


def _gen_victory() -> array.array:
    """Fanfare."""
    samples = array.array('h')
    notes = [392, 523, 659, 784, 659, 784, 1047]
    for i in range(int(SAMPLE_RATE * 1.2)):
        t = i / SAMPLE_RATE
        note_idx = min(int(t * 7), len(notes) - 1)
        val = square(t, notes[note_idx]) * 0.18 + triangle(t, notes[note_idx] / 2) * 0.12
        samples.append(to_pcm(val * max(0, 1 - t * 0.8)))
    return samples


def _gen_saloon_music() -> array.array:
    """Eight-bar honky-tonk loop: oom-pah bass under a pentatonic melody."""
    samples = array.array('h')
    bpm = 132
    beat = 60 / bpm
    bass = [98, 147, 110, 147, 131, 196, 98, 147]
    melody = [392, 440, 494, 587, 494, 440, 392, 330,
              294, 330, 392, 440, 392, 330, 294, 0]
    for i in range(int(SAMPLE_RATE * beat * 16)):
        t = i / SAMPLE_RATE
        step = int(t / beat)
        in_beat = t - step * beat
        bass_env = max(0, 1 - in_beat / beat * 2)
        val = triangle(t, bass[step % len(bass)]) * 0.25 * bass_env
        note = melody[step % len(melody)]
        if note:
            val += square(t, note) * 0.1 * max(0, 1 - in_beat / beat)
        samples.append(to_pcm(val))
    return samples


_GENERATORS = {
    "move": _gen_move,
    "coin": _gen_coin,
    "badge": _gen_badge,
    "hit": _gen_hit,
    "goal": _gen_goal,
    "level_complete": _gen_level_complete,
    "game_over": _gen_game_over,
    "victory": _gen_victory,
    "music_saloon": _gen_saloon_music,
}


def render_all() -> Dict[str, array.array]:
    """Synthesize every sound as mono 16-bit samples."""
    return {name: gen() for name, gen in _GENERATORS.items()}


def render(name: str) -> List[int]:
    """Synthesize one sound by name."""
    if name not in _GENERATORS:
        raise KeyError(f"Unknown sound: {name}")
    return list(_GENERATORS[name]())


# Global audio engine instance
_audio_engine: Optional[AudioEngine] = None


def get_audio_engine() -> AudioEngine:
    """Get the global audio engine instance."""
    global _audio_engine
    if _audio_engine is None:
        _audio_engine = AudioEngine()
    return _audio_engine
