"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Nested sections read their own prefixed variables, e.g.
OUTLAW_GAMEPLAY_STARTING_LIVES=5.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DisplaySettings(BaseSettings):
    """Viewport and host window settings."""

    model_config = SettingsConfigDict(env_prefix="OUTLAW_DISPLAY_", extra="ignore")

    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)
    fps: int = Field(default=60, gt=0)
    title: str = "Outlaw Crossing"
    fullscreen: bool = False


class GridSettings(BaseSettings):
    """Logical grid the player moves on."""

    model_config = SettingsConfigDict(env_prefix="OUTLAW_GRID_", extra="ignore")

    cells_x: int = Field(default=8, ge=3)
    cells_y: int = Field(default=30, ge=3)
    visible_rows: int = Field(default=8, ge=2)

    # Start row is floor(cells_y * fraction): row 27 on a 30-row grid
    start_row_fraction: float = Field(default=0.9, gt=0.0, lt=1.0)

    @property
    def start_row(self) -> int:
        return min(self.cells_y - 1, max(1, int(self.cells_y * self.start_row_fraction)))

    @property
    def start_col(self) -> int:
        return self.cells_x // 2


class GameplaySettings(BaseSettings):
    """Tuning values for lives, timers and the difficulty ramp."""

    model_config = SettingsConfigDict(env_prefix="OUTLAW_GAMEPLAY_", extra="ignore")

    starting_lives: int = Field(default=3, ge=1)

    # Player movement
    move_cooldown_ms: float = Field(default=100.0, ge=0.0)
    move_speed_cells_per_s: float = Field(default=18.0, gt=0.0)

    # Invincibility per trigger source
    respawn_invincibility_ms: float = Field(default=2000.0, ge=0.0)
    badge_invincibility_ms: float = Field(default=5000.0, ge=0.0)

    # Difficulty
    goal_difficulty_step: float = Field(default=0.5, gt=0.0)
    ramp_grace_ms: float = Field(default=30000.0, ge=0.0)
    ramp_interval_ms: float = Field(default=15000.0, gt=0.0)
    ramp_step: float = Field(default=0.1, ge=0.0)
    victory_difficulty: Optional[float] = Field(default=4.0, gt=1.0)

    # Transition pauses (0 = keep running)
    life_lost_pause_ms: float = Field(default=750.0, ge=0.0)
    level_complete_pause_ms: float = Field(default=0.0, ge=0.0)

    # Longest tick the simulation will integrate in one step
    max_frame_ms: float = Field(default=250.0, gt=0.0)


class AudioSettings(BaseSettings):
    """Sound sink settings."""

    model_config = SettingsConfigDict(env_prefix="OUTLAW_AUDIO_", extra="ignore")

    enabled: bool = True
    volume: float = Field(default=0.8, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="OUTLAW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Fixed seed makes level generation and spawn jitter reproducible
    seed: Optional[int] = None

    # Paths
    assets_path: Path = Field(default_factory=lambda: Path(__file__).parent.parent / "assets")

    # Nested settings
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    grid: GridSettings = Field(default_factory=GridSettings)
    gameplay: GameplaySettings = Field(default_factory=GameplaySettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
