"""
Adventure game JSON API.

Sessions live in a process-local registry keyed by an id stored in the
Flask cookie session. One request runs one logical turn; the registry lock
serialises access so concurrent requests never interleave on a session.

Endpoints:
    POST /api/game/new       { seed?, difficulty?, name? }
    POST /api/game/command   { command }
    GET  /api/game/state
    GET  /api/game/map
    POST /api/game/save      { name? }
    GET  /api/game/saves
    POST /api/game/load      { save_name }
"""

import hashlib
import random
import threading
from collections import OrderedDict

from flask import Blueprint, current_app, jsonify, request, session
from werkzeug.exceptions import BadRequest

from delve.dungeon.config import Difficulty
from delve.dungeon.errors import ConfigurationError
from delve.logging_utils import get_logger
from delve.services.save_service import SaveNotFoundError, list_saves, load_session, save_session
from delve.services.session_service import AdventureSession, new_game

bp_game = Blueprint("game_api", __name__)
log = get_logger("delve.api")

SQLITE_MAX_INT = 9223372036854775807

_sessions: "OrderedDict[str, AdventureSession]" = OrderedDict()
_sessions_lock = threading.Lock()


def _coerce_seed(payload_seed):
    """Convert provided seed (int or str) into bounded 64-bit signed int."""
    if payload_seed is None or isinstance(payload_seed, bool):
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, int):
        return payload_seed % SQLITE_MAX_INT
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if s.isdigit():
            return int(s) % SQLITE_MAX_INT
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % SQLITE_MAX_INT
    raise BadRequest("seed must be an integer or a string")


def _register(game: AdventureSession) -> None:
    cap = current_app.config.get("DELVE_MAX_SESSIONS", 256)
    with _sessions_lock:
        _sessions[game.id] = game
        _sessions.move_to_end(game.id)
        while len(_sessions) > cap:
            _sessions.popitem(last=False)
    session["game_id"] = game.id


def _current():
    game_id = session.get("game_id")
    if not game_id:
        return None
    with _sessions_lock:
        return _sessions.get(game_id)


def _no_session():
    return jsonify({"error": "no active game; POST /api/game/new first"}), 409


def _payload():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("expected a JSON object")
    return data


@bp_game.errorhandler(BadRequest)
def _bad_request(e):
    return jsonify({"error": e.description}), 400


@bp_game.route("/api/game/new", methods=["POST"])
def new_game_route():
    """Start a new adventure.

    With a difficulty the session is returned already RUNNING; without one
    it waits in SELECTING for the next command to pick 1-3.
    """
    data = _payload()
    seed = _coerce_seed(data.get("seed"))
    name = str(data.get("name") or "Adventurer")[:80]
    difficulty = data.get("difficulty")
    if difficulty is None:
        game = AdventureSession(seed=seed, player_name=name)
        result = game.start()
    else:
        try:
            Difficulty.parse(difficulty)
        except ConfigurationError as exc:
            raise BadRequest(str(exc))
        game, result = new_game(difficulty, seed=seed, player_name=name)
    _register(game)
    log.info(event="game_created", session=game.id[:8], seed=seed, difficulty=difficulty)
    return jsonify({"result": result.to_dict(), "state": game.snapshot()})


@bp_game.route("/api/game/command", methods=["POST"])
def command_route():
    data = _payload()
    command = data.get("command")
    if not isinstance(command, str) or not command.strip():
        raise BadRequest("command must be a non-empty string")
    game = _current()
    if game is None:
        return _no_session()
    with _sessions_lock:
        result = game.handle(command)
    return jsonify({"result": result.to_dict(), "state": game.snapshot()})


@bp_game.route("/api/game/state", methods=["GET"])
def state_route():
    game = _current()
    if game is None:
        return _no_session()
    return jsonify(game.snapshot())


@bp_game.route("/api/game/map", methods=["GET"])
def map_route():
    game = _current()
    if game is None:
        return _no_session()
    return jsonify(game.map_view())


@bp_game.route("/api/game/save", methods=["POST"])
def save_route():
    data = _payload()
    game = _current()
    if game is None:
        return _no_session()
    name = data.get("name")
    if name is not None and (not isinstance(name, str) or not name.strip()):
        raise BadRequest("name must be a non-empty string")
    row = save_session(game, name.strip() if name else None)
    return jsonify(row.summary())


@bp_game.route("/api/game/saves", methods=["GET"])
def saves_route():
    return jsonify({"saves": list_saves()})


@bp_game.route("/api/game/load", methods=["POST"])
def load_route():
    data = _payload()
    save_name = data.get("save_name")
    if not isinstance(save_name, str) or not save_name.strip():
        raise BadRequest("save_name is required")
    try:
        game = load_session(save_name.strip())
    except SaveNotFoundError:
        return jsonify({"error": f"no save named {save_name!r}"}), 404
    _register(game)
    return jsonify(game.snapshot())
