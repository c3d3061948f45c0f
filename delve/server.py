"""
Server bootstrap and terminal play shell.

Exposes helpers to start the Flask JSON API and an interactive terminal
session that drives an `AdventureSession` directly, with save/load backed
by the same database the API uses.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from colorama import Fore, Style

from delve import app, create_app, db
from delve.services.save_service import SaveNotFoundError, list_saves, load_session, save_session
from delve.services.session_service import AdventureSession, SessionState

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    """Create tables, route stdlib logging to instance/app.log and serve the API."""
    create_app()
    with app.app_context():
        _configure_logging()
    try:
        print(f"[INFO] Starting Delve API on {host}:{port}")
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Delve API stopped")
        sys.exit(0)


def _configure_logging() -> str:
    """Send root logging to the console and a size-capped file in the instance folder.

    Safe to call repeatedly: existing root handlers are replaced. Returns the
    log file path.
    """
    log_dir = Path(app.instance_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = str(log_dir / "app.log")

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [
        RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3),
        logging.StreamHandler(),
    ]
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(logging.INFO)
    for handler in handlers:
        handler.setLevel(logging.INFO)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return log_path


def _colored(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{Style.RESET_ALL}" if enabled else text


def start_play_shell(seed=None, player_name="Adventurer", color: bool = True):  # pragma: no cover (interactive)
    """Initialize the database and run the terminal game loop on stdin/stdout."""
    create_app()
    with app.app_context():
        play_shell(AdventureSession(seed=seed, player_name=player_name), input, print, color=color)


def play_shell(game: AdventureSession, read, write, color: bool = False) -> AdventureSession:
    """Drive `game` from `read()` lines until it ends or input runs out.

    Besides the in-game commands the shell understands:
      save [name]     Save the current game
      load <name>     Replace the current game with a saved one
      saves           List saved games
    Must be called inside an application context.
    """
    write(_colored(game.start().text, Fore.CYAN, color))
    while game.state is not SessionState.ENDED:
        try:
            line = read("> ").strip()
        except (EOFError, KeyboardInterrupt):
            write("\nLeaving the dungeon.")
            break
        parts = line.split(None, 1)
        head = parts[0].lower() if parts else ""
        arg = parts[1].strip() if len(parts) > 1 else None
        if head == "save" and game.state is SessionState.RUNNING:
            row = save_session(game, arg)
            write(_colored(f"Game saved as {row.save_name}.", Fore.GREEN, color))
            continue
        if head == "load":
            if not arg:
                write("Load which save? Type 'saves' to list them.")
                continue
            try:
                game = load_session(arg)
            except SaveNotFoundError:
                write(_colored(f"No save named {arg}.", Fore.RED, color))
                continue
            write(_colored("Game loaded successfully.", Fore.GREEN, color))
            write(game.handle("look").text)
            continue
        if head == "saves":
            saves = list_saves()
            if not saves:
                write("No saved games.")
            for s in saves:
                write(f"{s['save_name']:40} level {s['level']}  {s['difficulty'] or '-'}  {s['created_at']}")
            continue
        result = game.handle(line)
        tint = Fore.RED if result.depleted else (Fore.YELLOW if result.level_completed else Fore.WHITE)
        write(_colored(result.text, tint, color))
    db.session.remove()
    return game
