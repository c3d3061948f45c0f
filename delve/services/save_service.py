"""Save and load adventure sessions through Flask-SQLAlchemy.

Callers must run inside an application context.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from delve import db
from delve.models.models import GameSave

from ..logging_utils import get_logger
from .session_service import AdventureSession

logger = get_logger("delve.saves")


class SaveNotFoundError(LookupError):
    pass


def _default_name(player_name: str) -> str:
    return f"{player_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"


def _unique_name(base: str) -> str:
    name = base
    n = 1
    while GameSave.query.filter_by(save_name=name).first() is not None:
        n += 1
        name = f"{base}_{n}"
    return name


def save_session(session: AdventureSession, save_name: Optional[str] = None) -> GameSave:
    """Persist `session`; an existing save with the same explicit name is overwritten."""
    data = session.to_dict()
    row = None
    if save_name:
        row = GameSave.query.filter_by(save_name=save_name).first()
    else:
        save_name = _unique_name(_default_name(session.player_name))
    if row is None:
        row = GameSave(save_name=save_name)
        db.session.add(row)
    row.player_name = session.player_name
    row.difficulty = session.difficulty.value if session.difficulty else None
    row.level_index = session.level_index
    row.seed = session.seed
    row.data = data
    row.created_at = datetime.utcnow()
    db.session.commit()
    logger.info(event="game_saved", save=save_name, level_number=session.level_index + 1)
    return row


def load_session(save_name: str) -> AdventureSession:
    row = GameSave.query.filter_by(save_name=save_name).first()
    if row is None:
        raise SaveNotFoundError(save_name)
    session = AdventureSession.from_dict(row.data)
    logger.info(event="game_loaded", save=save_name, level_number=session.level_index + 1)
    return session


def list_saves() -> List[Dict[str, Any]]:
    rows = GameSave.query.order_by(GameSave.created_at.desc(), GameSave.id.desc()).all()
    return [r.summary() for r in rows]


def delete_save(save_name: str) -> bool:
    row = GameSave.query.filter_by(save_name=save_name).first()
    if row is None:
        return False
    db.session.delete(row)
    db.session.commit()
    return True


__all__ = ["SaveNotFoundError", "save_session", "load_session", "list_saves", "delete_save"]
