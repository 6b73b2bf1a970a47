from __future__ import annotations

import enum
from typing import NamedTuple, Optional


class Player(enum.Enum):
    X = "X"
    O = "O"

    @property
    def other(self) -> Player:
        return Player.O if self is Player.X else Player.X

    def __str__(self) -> str:
        return self.value


class MoveRecord(NamedTuple):
    index: int  # board cell 0-8
    order: int  # sequence number; smaller = placed earlier


class Outcome(enum.Enum):
    IN_PROGRESS = "in_progress"
    WINNER = "winner"
    DRAW = "draw"


class GameMode(enum.Enum):
    SINGLE_BOT = "single"
    TWO_HUMAN = "two-player"

    def __str__(self) -> str:
        return "Play vs Bot" if self is GameMode.SINGLE_BOT else "Two Players"


class Status(NamedTuple):
    outcome: Outcome
    current_player: Optional[Player]  # None once the game is over
    winner: Optional[Player] = None
