"""Exceptions raised by the dungeon core.

Player-facing failures (wrong answers, blocked paths, missing tools) are
reported through result objects; only configuration mistakes and broken
generation invariants surface as exceptions.
"""


class DelveError(Exception):
    """Base class for dungeon core errors."""


class ConfigurationError(DelveError, ValueError):
    """Invalid difficulty or grid dimensions passed to the generator."""


class DuplicateRoomError(DelveError, ValueError):
    """A room was created twice at the same coordinates."""


class GenerationInvariantError(DelveError, RuntimeError):
    """Path synthesis finished but the treasure room is still unreachable."""


__all__ = ["DelveError", "ConfigurationError", "DuplicateRoomError", "GenerationInvariantError"]
