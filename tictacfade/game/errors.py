"""Recoverable errors raised when a move is rejected.

A rejected move never modifies the game state it was attempted on.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for all rejected-move errors."""


class InvalidIndexError(GameError):
    def __init__(self, index: object) -> None:
        super().__init__(f"Cell {index!r} is off the board (expected 0-8)")
        self.index = index


class CellOccupiedError(GameError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Cell {index} is already occupied")
        self.index = index


class GameAlreadyOverError(GameError):
    def __init__(self) -> None:
        super().__init__("Game is already over")


class WrongTurnError(GameError):
    def __init__(self, message: str = "It's not your turn") -> None:
        super().__init__(message)


class ModeNotSelectedError(GameError):
    def __init__(self) -> None:
        super().__init__("Select a game mode first")
