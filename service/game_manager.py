"""Top-level game session: grid, score, flags and the collaborators around them."""

import asyncio
import logging
import random
from typing import Awaitable, Callable, ContextManager, Dict, Optional

import numpy as np

from actuator import Actuator
from autoplay import DEFAULT_DELAY, AutoPlayController, AutoPlayState
from directions import parse_direction
from grid import Grid
from move_engine import WIN_VALUE, apply_move, spawn_tile
from move_engine import moves_available as _moves_available
from storage import MemoryStorage
from strategies import create_strategy

logger = logging.getLogger(__name__)


class GameManager:
    def __init__(
        self,
        size: int = 4,
        storage=None,
        actuator: Optional[Actuator] = None,
        rng: Optional[random.Random] = None,
        strategy="score",
        start_tiles: int = 2,
        ai_delay: float = DEFAULT_DELAY,
        win_value: int = WIN_VALUE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        guard: Optional[ContextManager] = None,
    ) -> None:
        self.size = size
        self.storage = storage if storage is not None else MemoryStorage()
        self.actuator = actuator if actuator is not None else Actuator()
        self.rng = rng if rng is not None else random.Random()
        self.start_tiles = start_tiles
        self.win_value = win_value

        if isinstance(strategy, str):
            strategy = create_strategy(strategy)
        self.autoplay = AutoPlayController(
            self, strategy, delay=ai_delay, sleep=sleep, guard=guard
        )

        self.setup()

    # Restart the game
    def restart(self) -> None:
        self.autoplay.stop()
        self.storage.clear_game_state()
        self.actuator.continue_game()
        self.setup()

    # Keep playing after winning (allows going over 2048)
    def set_keep_playing(self) -> None:
        self.keep_playing = True
        self.actuator.continue_game()

    # Return true if the game is lost, or has won and the user hasn't kept playing
    def is_game_terminated(self) -> bool:
        return self.over or (self.won and not self.keep_playing)

    def setup(self) -> None:
        previous_state = self.storage.get_game_state()

        # Reload the game from a previous game if present
        if previous_state:
            self.grid = Grid(previous_state["grid"]["size"], previous_state["grid"]["cells"])
            self.size = self.grid.size
            self.score = previous_state["score"]
            self.over = previous_state["over"]
            self.won = previous_state["won"]
            self.keep_playing = previous_state["keepPlaying"]
            self.movecount_ai = previous_state.get("movecountAI", 0)
            self.movecount_human = previous_state.get("movecountHuman", 0)
            logger.info("restored game with score %d", self.score)
        else:
            self.grid = Grid(self.size)
            self.score = 0
            self.over = False
            self.won = False
            self.keep_playing = False
            self.movecount_ai = 0
            self.movecount_human = 0

            self.add_start_tiles()

        self.actuate()
        self.actuator.debug_clear()

    def add_start_tiles(self) -> None:
        for _ in range(self.start_tiles):
            spawn_tile(self.grid, self.rng)

    def actuate(self) -> None:
        """Update the best score, store the session and hand the board to the actuator."""
        if self.storage.get_best_score() < self.score:
            self.storage.set_best_score(self.score)

        # Clear the state when the game is over (game over only, not win)
        if self.over:
            self.storage.clear_game_state()
        else:
            self.storage.set_game_state(self.serialize())

        self.actuator.actuate(self.grid, self.metadata())

    def metadata(self) -> Dict:
        return {
            "score": self.score,
            "over": self.over,
            "won": self.won,
            "bestScore": self.storage.get_best_score(),
            "terminated": self.is_game_terminated(),
            "movecountAI": self.movecount_ai,
            "movecountHuman": self.movecount_human,
        }

    def serialize(self) -> Dict:
        return {
            "grid": self.grid.serialize(),
            "score": self.score,
            "over": self.over,
            "won": self.won,
            "keepPlaying": self.keep_playing,
            "movecountAI": self.movecount_ai,
            "movecountHuman": self.movecount_human,
        }

    def move(self, direction, is_ai: bool = False) -> bool:
        """Apply ``direction`` (0: up, 1: right, 2: down, 3: left); returns whether anything moved."""
        direction = parse_direction(direction)

        # Don't do anything if the game's over
        if self.is_game_terminated():
            return False

        result = apply_move(self.grid, direction, self.rng, self.win_value)
        if not result.moved:
            return False

        self.score += result.score
        if result.won:
            self.won = True
            logger.info("reached %d with score %d", self.win_value, self.score)
        if result.over:
            self.over = True
            logger.info("game over with score %d", self.score)

        if is_ai:
            self.movecount_ai += 1
        else:
            self.actuator.debug_clear()
            self.movecount_human += 1

        self.actuate()
        return True

    def moves_available(self) -> bool:
        return _moves_available(self.grid)

    def load_board(self) -> np.ndarray:
        """Detached value snapshot of the live grid (rows = y)."""
        return self.grid.to_matrix()

    # Autoplay controls

    @property
    def ai_state(self) -> AutoPlayState:
        return self.autoplay.state

    def ai_start(self):
        """Enter RUNNING now and return the coroutine that drives the loop.

        Raises RuntimeError when autoplay is not idle.
        """
        self.autoplay.begin()
        self.actuator.debug_clear()
        return self.autoplay.run()

    def ai_stop(self) -> None:
        self.autoplay.stop()

    def ai_step(self):
        self.actuator.debug_clear()
        return self.autoplay.step()


__all__ = ["GameManager"]
