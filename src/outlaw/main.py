"""
Main entry point for Outlaw Crossing.

Builds the event bus, simulation, audio and window, wires keyboard
events to the simulation, and runs the window loop.
"""

import asyncio
import logging
import sys
from typing import Callable, List

from outlaw.config.settings import Settings, get_settings
from outlaw.core.events import Event, EventBus, EventType
from outlaw.core.state import State
from outlaw.game.player import Direction
from outlaw.game.simulation import CrossingSimulation, GameCallbacks

logger = logging.getLogger(__name__)

MOVE_EVENTS = {
    EventType.MOVE_UP: Direction.UP,
    EventType.MOVE_DOWN: Direction.DOWN,
    EventType.MOVE_LEFT: Direction.LEFT,
    EventType.MOVE_RIGHT: Direction.RIGHT,
}


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )
    # Per-spawn lane chatter stays hidden unless debugging
    logging.getLogger("outlaw.game.lane").setLevel(logging.NOTSET if debug else logging.INFO)


def bind_controls(event_bus: EventBus, simulation: CrossingSimulation) -> List[Callable[[], None]]:
    """Route input and tick events into the simulation.

    Returns:
        Unsubscribe functions for every binding
    """

    def on_move(event: Event) -> None:
        simulation.handle_input(MOVE_EVENTS[event.type])

    def on_start(event: Event) -> None:
        if simulation.state == State.NOT_STARTED:
            simulation.start_level(1)

    def on_restart(event: Event) -> None:
        if simulation.state != State.NOT_STARTED:
            simulation.start_level(1)

    def on_tick(event: Event) -> None:
        delta = event.data.get("delta", 0.016)
        simulation.update(delta * 1000)

    unsubscribers = [event_bus.subscribe(event_type, on_move) for event_type in MOVE_EVENTS]
    unsubscribers.append(event_bus.subscribe(EventType.START, on_start))
    unsubscribers.append(event_bus.subscribe(EventType.RESTART, on_restart))
    unsubscribers.append(event_bus.subscribe(EventType.TICK, on_tick))
    return unsubscribers


def create_simulation(settings: Settings, event_bus: EventBus) -> CrossingSimulation:
    """Build and set up the simulation with logging callbacks."""
    from outlaw.graphics.assets import AssetLoader

    callbacks = GameCallbacks(
        on_life_lost=lambda lives: logger.info(f"Ouch! {lives} lives left"),
        on_game_over=lambda: logger.info("Game over"),
        on_level_complete=lambda bonus: logger.info(f"Level complete, bonus {bonus}"),
        on_victory=lambda score: logger.info(f"Victory! Final score {score}"),
    )
    simulation = CrossingSimulation(
        callbacks=callbacks,
        event_bus=event_bus,
        settings=settings,
        assets=AssetLoader(settings.assets_path),
    )
    simulation.setup(settings.display.width, settings.display.height)
    return simulation


async def run_game(settings: Settings) -> None:
    """Run the desktop version."""
    from outlaw.audio.engine import get_audio_engine
    from outlaw.simulator.window import SimulatorWindow, WindowConfig

    event_bus = EventBus()
    simulation = create_simulation(settings, event_bus)
    bind_controls(event_bus, simulation)

    audio = None
    if settings.audio.enabled:
        audio = get_audio_engine()
        audio.set_master_volume(settings.audio.volume)
        if audio.init():
            event_bus.subscribe(EventType.SOUND_PLAY, audio.handle_sound_event)
            audio.play_music()
        else:
            logger.warning("Audio unavailable, running silent")

    config = WindowConfig(
        width=settings.display.width,
        height=settings.display.height,
        title=settings.display.title,
        fullscreen=settings.display.fullscreen,
        fps=settings.display.fps,
    )
    window = SimulatorWindow(simulation, config=config, event_bus=event_bus)

    await window.run()

    if audio is not None:
        audio.cleanup()


def main() -> None:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    settings = get_settings()
    setup_logging(settings.debug)

    logger.info("Outlaw Crossing starting...")

    try:
        asyncio.run(run_game(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("Outlaw Crossing stopped")


if __name__ == "__main__":
    main()
