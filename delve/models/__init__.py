# Model package init
from .models import GameSave  # noqa: F401 re-export

__all__ = ["GameSave"]
