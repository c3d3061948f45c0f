import os
import sys
import tempfile

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# The engine is bound when `delve` is imported, so the test database must be
# chosen first.
_DB_DIR = tempfile.mkdtemp(prefix="delve-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db").replace(os.sep, "/")

from delve import create_app, db  # noqa: E402
from delve.models.models import GameSave  # noqa: E402
from delve.routes import game_api  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True})
    return app


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    ctx = test_app.app_context()
    ctx.push()
    try:
        yield
    finally:
        ctx.pop()


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture(autouse=True)
def _clean_state(_push_app_context):
    """Drop in-memory API sessions and saved games between tests."""
    game_api._sessions.clear()
    yield
    game_api._sessions.clear()
    db.session.rollback()
    GameSave.query.delete()
    db.session.commit()
