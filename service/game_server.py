import asyncio
import logging
import threading
from typing import Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
from actuator import LoggingActuator
from board_rules import as_matrix, is_terminal, simulate_move, simulate_score, valid_moves
from game_manager import GameManager
from storage import JsonFileStorage, MemoryStorage
from strategies import FALLBACK_ORDER, ScoreStrategy


app = Flask(__name__)
CORS(app, resources={r"/*": {"origins": config.allowed_origins()}})

# Serialises HTTP handlers and autoplay iterations over the one session
_lock = threading.RLock()
_manager: Optional[GameManager] = None
_ai_thread: Optional[threading.Thread] = None


def build_storage():
    path = config.state_path()
    return JsonFileStorage(path) if path else MemoryStorage()


def get_manager() -> GameManager:
    global _manager
    with _lock:
        if _manager is None:
            _manager = GameManager(
                size=config.grid_size(),
                storage=build_storage(),
                actuator=LoggingActuator(),
                strategy=config.strategy_name(),
                start_tiles=config.start_tiles(),
                ai_delay=config.ai_delay(),
                guard=_lock,
            )
        return _manager


def _ai_active() -> bool:
    return _ai_thread is not None and _ai_thread.is_alive()


def _state_payload(manager: GameManager) -> Dict:
    payload = manager.serialize()
    payload.update(manager.metadata())
    payload["board"] = manager.load_board().tolist()
    payload["movesAvailable"] = manager.moves_available()
    payload["aiState"] = "running" if _ai_active() else manager.ai_state.value
    return payload


def _busy():
    return jsonify({"error": "Autoplay is running"}), 409


def _run_autoplay(loop) -> None:
    try:
        moves = asyncio.run(loop)
        app.logger.info("autoplay finished after %d moves", moves)
    except Exception:
        app.logger.exception("autoplay loop failed")
        raise


@app.get("/state")
def state():
    with _lock:
        return jsonify(_state_payload(get_manager()))


@app.post("/move")
def move():
    payload: Dict = request.get_json(force=True, silent=True) or {}
    direction = payload.get("direction")
    if direction is None:
        return jsonify({"error": "Payload must include 'direction' key"}), 400

    with _lock:
        if _ai_active():
            return _busy()
        manager = get_manager()
        try:
            moved = manager.move(direction)
        except ValueError as exc:
            app.logger.warning("rejected move %r: %s", direction, exc)
            return jsonify({"error": str(exc)}), 400

        response = _state_payload(manager)
        response["moved"] = moved
        return jsonify(response)


@app.post("/restart")
def restart():
    with _lock:
        if _ai_active():
            return _busy()
        manager = get_manager()
        manager.restart()
        return jsonify(_state_payload(manager))


@app.post("/keep-playing")
def keep_playing():
    with _lock:
        manager = get_manager()
        manager.set_keep_playing()
        return jsonify(_state_payload(manager))


@app.post("/ai/start")
def ai_start():
    global _ai_thread
    with _lock:
        if _ai_active():
            return _busy()
        manager = get_manager()
        try:
            loop = manager.ai_start()
        except RuntimeError:
            return _busy()
        _ai_thread = threading.Thread(
            target=_run_autoplay, args=(loop,), name="autoplay", daemon=True
        )
        _ai_thread.start()
        return jsonify(_state_payload(manager)), 202


@app.post("/ai/stop")
def ai_stop():
    with _lock:
        manager = get_manager()
        manager.ai_stop()
        return jsonify(_state_payload(manager))


@app.post("/ai/step")
def ai_step():
    with _lock:
        if _ai_active():
            return _busy()
        manager = get_manager()
        direction = manager.ai_step()
        response = _state_payload(manager)
        response["move"] = direction.name if direction is not None else None
        return jsonify(response)


@app.post("/suggest")
def suggest():
    payload: Dict = request.get_json(force=True, silent=False) or {}
    grid = payload.get("grid")
    if grid is None:
        return jsonify({"error": "Payload must include 'grid' key"}), 400

    try:
        board = as_matrix(grid)
        decision = ScoreStrategy().choose(board)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    allowed = valid_moves(board.tolist())
    chosen = decision.direction
    invalid_choice = chosen.name not in allowed

    # The live loop falls back in a fixed order when the scored choice is illegal
    if invalid_choice and allowed:
        chosen = next(d for d in FALLBACK_ORDER if d.name in allowed)

    response = {
        "move": chosen.name,
        "move_index": int(chosen),
        "predicted_invalid": invalid_choice,
        "valid_moves": allowed,
        "scores": {direction.name: score for direction, score in decision.scores.items()},
        "merge_scores": {
            direction.name: simulate_score(board, direction) for direction in decision.scores
        },
        "terminal": is_terminal(board),
    }

    if payload.get("include_next_grid", False):
        next_grid, _ = simulate_move(board, chosen)
        response["next_grid"] = next_grid.tolist()

    return jsonify(response)


if __name__ == "__main__":
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Use 0.0.0.0 so the web app can reach it from another process on the same machine.
    app.run(host="0.0.0.0", port=config.port(), debug=config.flask_debug())
