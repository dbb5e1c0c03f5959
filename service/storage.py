"""Persistence collaborators: best score and the serialized session."""

import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "bestScore"
GAME_STATE_KEY = "gameState"


class MemoryStorage:
    """Key/value storage held in a dict, for tests and throwaway sessions."""

    def __init__(self) -> None:
        self.data: Dict[str, object] = {}

    def _get(self, key: str):
        return self.data.get(key)

    def _set(self, key: str, value) -> None:
        self.data[key] = value

    def _remove(self, key: str) -> None:
        self.data.pop(key, None)

    # Best score getters/setters
    def get_best_score(self) -> int:
        return int(self._get(BEST_SCORE_KEY) or 0)

    def set_best_score(self, score: int) -> None:
        self._set(BEST_SCORE_KEY, int(score))

    # Game state getters/setters and clearing
    def get_game_state(self) -> Optional[Dict]:
        state = self._get(GAME_STATE_KEY)
        return json.loads(state) if state else None

    def set_game_state(self, game_state: Dict) -> None:
        self._set(GAME_STATE_KEY, json.dumps(game_state))

    def clear_game_state(self) -> None:
        self._remove(GAME_STATE_KEY)


class JsonFileStorage(MemoryStorage):
    """MemoryStorage mirrored to a single JSON file after every write."""

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = os.path.abspath(path)
        if os.path.exists(self.path):
            with open(self.path, "r", encoding="utf-8") as fh:
                self.data = json.load(fh)
            logger.info("loaded game storage from %s", self.path)

    def _flush(self) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(self.data, fh)
        os.replace(tmp_path, self.path)

    def _set(self, key: str, value) -> None:
        super()._set(key, value)
        self._flush()

    def _remove(self, key: str) -> None:
        super()._remove(key)
        self._flush()


__all__ = ["BEST_SCORE_KEY", "GAME_STATE_KEY", "JsonFileStorage", "MemoryStorage"]
