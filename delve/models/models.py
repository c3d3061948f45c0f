"""
Database models used by Delve.

Notes:
- A save stores the whole session snapshot (player, current level, RNG
  state) as one JSON column; the scalar columns exist for listing saves.
"""

import datetime

from delve import db


class GameSave(db.Model):
    """One named snapshot of an adventure session.

    Attributes:
        save_name: Unique handle, ``<player>_<YYYYmmdd_HHMMSS>`` unless given.
        data: Output of ``AdventureSession.to_dict()``.
    """

    __tablename__ = "game_saves"
    id = db.Column(db.Integer, primary_key=True)
    save_name = db.Column(db.String(120), unique=True, nullable=False)
    player_name = db.Column(db.String(80), nullable=False, default="Adventurer")
    difficulty = db.Column(db.String(20), nullable=True)
    level_index = db.Column(db.Integer, nullable=False, default=0)
    seed = db.Column(db.BigInteger, nullable=True)
    data = db.Column(db.JSON, nullable=False, default={})
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, nullable=False)

    def summary(self):
        return {
            "save_name": self.save_name,
            "player_name": self.player_name,
            "difficulty": self.difficulty,
            "level": self.level_index + 1,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<GameSave {self.save_name} level={self.level_index + 1}>"
