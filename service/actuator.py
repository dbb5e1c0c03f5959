"""Render collaborators invoked after every settled move."""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


class Actuator:
    """Does nothing; hosts that render override the hooks they need."""

    def actuate(self, grid, metadata: Dict) -> None:
        pass

    # Clear the game won/lost message
    def continue_game(self) -> None:
        pass

    def debug_clear(self) -> None:
        pass


class LoggingActuator(Actuator):
    """Logs each settled board at ``level``."""

    def __init__(self, level: int = logging.DEBUG) -> None:
        self.level = level

    def actuate(self, grid, metadata: Dict) -> None:
        if logger.isEnabledFor(self.level):
            rows: List[str] = [
                " ".join(f"{value:>5}" for value in row) for row in grid.to_matrix().tolist()
            ]
            logger.log(
                self.level,
                "score=%d over=%s won=%s\n%s",
                metadata["score"],
                metadata["over"],
                metadata["won"],
                "\n".join(rows),
            )

    def continue_game(self) -> None:
        logger.log(self.level, "message cleared, game continues")


__all__ = ["Actuator", "LoggingActuator"]
