"""Delve CLI entry point.

Provides subcommands for running the JSON API server, playing in the
terminal, previewing generated levels and listing saved games. Accepts
configuration via flags and environment variables, with optional .env
loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent
from types import SimpleNamespace

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()
# Disable colors if output is not a real terminal (e.g., during pytest capture)
try:
    _COLOR_ENABLED = sys.stdout.isatty()
except (AttributeError, ValueError):  # pragma: no cover
    _COLOR_ENABLED = False


def _load_version() -> str:
    try:
        with open("VERSION", "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Delve Dungeon Server

    Run the JSON API server, play a session in the terminal, or preview a
    generated level. Configuration can be provided via CLI flags or environment
    variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                  Bind address for the web server (default: 0.0.0.0)
          PORT                  Port for the web server (default: 5000)
          DATABASE_URL          SQLAlchemy database URI (default: sqlite:///instance/delve.db)
          DELVE_LEVELS          Levels per adventure (default: 3)
          DELVE_LOG_LEVEL       debug|info|warn|error for structured event logs
          DELVE_LOG_JSON        1 to emit structured logs as JSON

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Play in the terminal with a fixed seed
          python run.py play --seed 42

          # Preview a hard level and its generation metrics
          python run.py generate --difficulty hard --seed 7

          # List saved games
          python run.py saves
        """
    )

    parser = argparse.ArgumentParser(
        prog="Delve",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Delve Dungeon Server {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the JSON API web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask JSON API server",
    )
    server_parser.add_argument("--host", default=None, help="Host interface to bind (default: env HOST or 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: env PORT or 5000)")
    server_parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/delve.db)",
    )
    server_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode with verbose error pages")
    server_parser.set_defaults(command="server")

    play_parser = subparsers.add_parser(
        "play",
        help="Play an adventure in the terminal",
        formatter_class=argparse.RawTextHelpFormatter,
        description=dedent(
            """
            Start an interactive adventure. Besides the in-game commands
            (type 'help' once the game starts) the shell accepts:
              save [name]   Save the current game
              load <name>   Load a saved game
              saves         List saved games
            """
        ),
    )
    play_parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible adventure")
    play_parser.add_argument("--name", default="Adventurer", help="Player name used for save names")
    play_parser.add_argument("--db", dest="db_uri", default=None, help="Database URI for saves")
    play_parser.set_defaults(command="play")

    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate one level and print a summary",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    gen_parser.add_argument("--difficulty", default="normal", help="easy|normal|hard or 1-3 (default: normal)")
    gen_parser.add_argument("--seed", type=int, default=None, help="Seed for the generator RNG")
    gen_parser.add_argument("--level", type=int, default=1, help="Level number recorded on the level")
    gen_parser.add_argument("--json", action="store_true", help="Print the full level as JSON")
    gen_parser.set_defaults(command="generate")

    saves_parser = subparsers.add_parser(
        "saves",
        help="List saved games, newest first",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    saves_parser.add_argument("--db", dest="db_uri", default=None, help="Database URI for saves")
    saves_parser.set_defaults(command="saves")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    return parser.parse_args(argv)


def _label(text: str) -> str:
    return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text


def _value(val) -> str:
    return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)


def _banner(mode: str, rows: list[tuple[str, object]]) -> str:
    title = f"{Fore.CYAN}{Style.BRIGHT}Delve {mode.title()}{Style.RESET_ALL}" if _COLOR_ENABLED else f"Delve {mode.title()}"
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [divider, f"  {title}", divider]
    lines.extend(f"  {_label(k + ':'):12} {_value(v)}" for k, v in rows)
    lines.extend([divider, ""])
    return "\n".join(lines)


def _render_level_summary(level) -> str:
    from delve.services.session_service import render_map

    rooms = level.rooms
    rows = [
        ("Difficulty", level.difficulty.name),
        ("Level", level.level_number),
        ("Size", f"{level.width}x{level.height}"),
        ("Rooms", len(rooms)),
        ("Start", level.start_id),
        ("Treasure", level.treasure_id),
        ("Barriers", sum(1 for r in rooms if r.has_barrier)),
        ("Traps", sum(len(r.active_traps) for r in rooms)),
        ("Puzzles", sum(1 for r in rooms if r.has_puzzle)),
        ("Hidden", sum(1 for r in rooms if r.has_hidden_passages)),
    ]
    out = [_banner("generate", rows)]

    # every room shown as explored so the layout is visible
    viewer = SimpleNamespace(current_room_id=level.start_id, visited={r.id for r in rooms})
    out.append(render_map(level, viewer))
    metrics = level.metrics or {}
    if metrics:
        out.append("")
        out.append("Metrics: " + ", ".join(f"{k}={v}" for k, v in metrics.items() if k != "phase_ms"))
        if metrics.get("phase_ms"):
            out.append("Phases (ms): " + ", ".join(f"{k}={v}" for k, v in metrics["phase_ms"].items()))
    return "\n".join(out)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    env_db = os.getenv("DATABASE_URL")

    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)
    db_uri_cli = getattr(args, "db_uri", None)

    # Make DATABASE_URL available to the Flask app BEFORE importing it
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli
    db_banner = db_uri_cli or env_db or "auto (instance/delve.db)"

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    mode = (getattr(args, "command", None) or "server").lower()

    if mode == "generate":
        import random

        from delve.dungeon import ConfigurationError, generate_level

        seed = args.seed if args.seed is not None else random.randint(1, 1_000_000)
        try:
            level = generate_level(args.difficulty, args.level, rng=random.Random(seed))
        except ConfigurationError as exc:
            print(f"[ERROR] {exc}")
            return 1
        if args.json:
            from delve.dungeon.serialization import level_to_dict

            print(json.dumps({"seed": seed, "level": level_to_dict(level)}, indent=2))
        else:
            print(f"Seed: {seed}")
            print(_render_level_summary(level))
        return 0

    # Import server entrypoints only after environment is ready
    from delve.logging_utils import log
    from delve.server import start_play_shell, start_server

    if mode == "server":
        print(
            _banner(
                "server",
                [("Mode", mode.upper()), ("Host", host), ("Port", port), ("Database", db_banner)],
            )
        )
        log.info(event="startup", mode=mode, host=host, port=port, db=db_banner)
        start_server(host=host, port=port, debug=bool(getattr(args, "debug", False)))
        return 0
    if mode == "play":
        print(_banner("play", [("Player", args.name), ("Seed", args.seed or "random"), ("Database", db_banner)]))
        start_play_shell(seed=args.seed, player_name=args.name, color=_COLOR_ENABLED)
        return 0
    if mode == "saves":
        from delve import create_app
        from delve.services.save_service import list_saves

        app = create_app()
        with app.app_context():
            saves = list_saves()
        if not saves:
            print("No saved games.")
        for s in saves:
            print(f"{s['save_name']:40} level {s['level']}  {s['difficulty'] or '-'}  {s['created_at']}")
        return 0

    print(f"[ERROR] Unknown command: {mode}")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
