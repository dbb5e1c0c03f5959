"""Cooperative run/step/stop control over the autoplay loop."""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Awaitable, Callable, ContextManager, Optional

from directions import Direction
from strategies import ScoreStrategy

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.05


class AutoPlayState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STEP_PENDING = "step_pending"
    STOPPED = "stopped"


class AutoPlayController:
    """Drives a GameManager with a strategy.

    ``begin`` claims the loop synchronously, so a ``stop`` issued before the
    ``run`` coroutine is first scheduled is still honoured. ``run`` iterates
    until one moves nothing, the game terminates, or ``stop`` is observed at
    the top of an iteration. The only suspension point is the
    ``sleep(delay)`` between iterations. ``start`` is ``begin`` then ``run``.
    ``step`` runs exactly one iteration synchronously. ``guard`` is held
    around every iteration.
    """

    def __init__(
        self,
        manager,
        strategy=None,
        delay: float = DEFAULT_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        guard: Optional[ContextManager] = None,
    ) -> None:
        self.manager = manager
        self.strategy = strategy or ScoreStrategy()
        self.delay = delay
        self._sleep = sleep
        self._guard = guard if guard is not None else contextlib.nullcontext()
        self._state = AutoPlayState.IDLE

    @property
    def state(self) -> AutoPlayState:
        return self._state

    def _iterate(self) -> Optional[Direction]:
        with self._guard:
            if self.manager.is_game_terminated():
                return None
            return self.strategy.play(self.manager)

    def begin(self) -> None:
        """Claim the loop: IDLE -> RUNNING, before ``run`` is scheduled."""
        if self._state is not AutoPlayState.IDLE:
            raise RuntimeError(f"Cannot start autoplay from state {self._state.value}")
        self._state = AutoPlayState.RUNNING
        logger.info("autoplay started with %s strategy", self.strategy.name)

    async def run(self) -> int:
        """Iterate until the loop settles; returns the number of moves made."""
        moves = 0
        try:
            while self._state is AutoPlayState.RUNNING:
                direction = self._iterate()
                if direction is None:
                    break
                moves += 1
                if self.manager.is_game_terminated():
                    break
                await self._sleep(self.delay)
        finally:
            self._state = AutoPlayState.IDLE
            logger.info("autoplay idle after %d moves", moves)
        return moves

    async def start(self) -> int:
        self.begin()
        return await self.run()

    def stop(self) -> None:
        if self._state is AutoPlayState.RUNNING:
            self._state = AutoPlayState.STOPPED
            logger.info("autoplay stop requested")

    def step(self) -> Optional[Direction]:
        if self._state is not AutoPlayState.IDLE:
            raise RuntimeError(f"Cannot step autoplay from state {self._state.value}")

        self._state = AutoPlayState.STEP_PENDING
        try:
            return self._iterate()
        finally:
            self._state = AutoPlayState.IDLE


__all__ = ["AutoPlayController", "AutoPlayState", "DEFAULT_DELAY"]
