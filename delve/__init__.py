"""
Delve web application and database handle.

Importing this package builds the module-level Flask ``app`` and the
Flask-SQLAlchemy ``db`` bound to it. Settings come from the environment
(a `.env` file is honoured) and the instance folder keeps the SQLite
database plus the server log.

Game settings read from ``app.config``:
    DELVE_LEVELS          levels per adventure (default 3)
    DELVE_ENABLE_METRICS  record per-phase generation metrics (default on)
    DELVE_MAX_SESSIONS    live API sessions kept in memory (default 256)
"""

import logging
import os
import sqlite3
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

load_dotenv()

app = Flask(__name__, instance_relative_config=True)
Path(app.instance_path).mkdir(parents=True, exist_ok=True)


def _database_url() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    # pytest runs never touch the development database
    name = "delve_test.db" if os.getenv("PYTEST_CURRENT_TEST") else "delve.db"
    return f"sqlite:///{(Path(app.instance_path) / name).as_posix()}"


def _sqlite_engine_options(url: str) -> dict:
    if not url.startswith("sqlite:///"):
        return {}
    return {"connect_args": {"timeout": 10, "check_same_thread": False}}


_db_url = _database_url()
app.config.from_mapping(
    SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
    SQLALCHEMY_DATABASE_URI=_db_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    DELVE_LEVELS=int(os.getenv("DELVE_LEVELS", "3")),
    DELVE_ENABLE_METRICS=os.getenv("DELVE_ENABLE_METRICS", "1") == "1",
    DELVE_MAX_SESSIONS=int(os.getenv("DELVE_MAX_SESSIONS", "256")),
)
app.json.sort_keys = False

db = SQLAlchemy(
    app,
    session_options={"expire_on_commit": False},
    engine_options=_sqlite_engine_options(_db_url),
)


@event.listens_for(Engine, "connect")
def _sqlite_pragmas(dbapi_connection, connection_record):
    """Write-ahead journal and a busy timeout so the API and the shell can share one file."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cur = dbapi_connection.cursor()
    for pragma in ("journal_mode=WAL", "synchronous=NORMAL", "busy_timeout=10000"):
        cur.execute(f"PRAGMA {pragma}")
    cur.close()


# Blueprints import `db`, so they are registered last
from delve.routes.game_api import bp_game  # noqa: E402

app.register_blueprint(bp_game)


def create_app():
    """Create missing tables and return the shared app."""
    from delve.models import models as _models  # noqa: F401

    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(500)
def _server_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": "internal error", "error_id": error_id}), 500
