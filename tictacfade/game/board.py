from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .errors import CellOccupiedError, GameAlreadyOverError, InvalidIndexError
from .types import GameMode, MoveRecord, Outcome, Player, Status

logger = logging.getLogger(__name__)

BOARD_CELLS = 9
MAX_PIECES = 4
CENTER = 4
CORNERS = (0, 2, 6, 8)
FALLBACK_ORDER = (4, 0, 2, 6, 8, 1, 3, 5, 7)

# Rows, then columns, then diagonals. check_winner reports the first match.
WINNING_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

# Winning lines passing through each cell (3 for edges, 3 for corners, 4 for center)
LINES_THROUGH: tuple[tuple[tuple[int, int, int], ...], ...] = tuple(
    tuple(line for line in WINNING_LINES if i in line) for i in range(BOARD_CELLS)
)

# Column labels A-C, row numbers 1-3 from the top
COL_LABELS = "ABC"

Cells = Sequence[Optional[Player]]
History = dict[Player, tuple[MoveRecord, ...]]


def parse_cell(text: str) -> Optional[int]:
    """Parse 'B2' or a bare index like '4' into a cell index.

    Returns None if the string is invalid.
    """
    text = text.strip().upper()
    if text.isdigit():
        index = int(text)
        return index if 0 <= index < BOARD_CELLS else None
    if len(text) != 2 or text[0] not in COL_LABELS or text[1] not in "123":
        return None
    return (int(text[1]) - 1) * 3 + COL_LABELS.index(text[0])


def format_cell(index: int) -> str:
    """Format a cell index as a label like 'B2'."""
    return f"{COL_LABELS[index % 3]}{index // 3 + 1}"


# ---------------------------------------------------------------------------
# Rule queries (pure functions over a cell sequence)
# ---------------------------------------------------------------------------

def find_winning_line(cells: Cells) -> Optional[tuple[int, int, int]]:
    """Return the first line fully owned by one player, or None."""
    for line in WINNING_LINES:
        a, b, c = line
        if cells[a] is not None and cells[a] is cells[b] is cells[c]:
            return line
    return None


def check_winner(cells: Cells) -> Optional[Player]:
    line = find_winning_line(cells)
    return None if line is None else cells[line[0]]


def empty_cells(cells: Cells) -> list[int]:
    return [i for i, cell in enumerate(cells) if cell is None]


def pieces_of(cells: Cells, player: Player) -> list[int]:
    return [i for i, cell in enumerate(cells) if cell is player]


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class GameState:
    """Immutable snapshot of a game: board, side to move and piece history.

    apply_move() returns a new GameState and never modifies the receiver.
    Each player's history lists their live pieces oldest first, so its length
    always equals that player's piece count on the board.
    """

    def __init__(
        self,
        cells: Optional[Iterable[Optional[Player]]] = None,
        current_player: Player = Player.X,
        history: Optional[dict[Player, Iterable[MoveRecord]]] = None,
        next_order: Optional[int] = None,
        mode: Optional[GameMode] = None,
    ) -> None:
        self.cells: tuple[Optional[Player], ...] = (
            tuple(cells) if cells is not None else (None,) * BOARD_CELLS
        )
        assert len(self.cells) == BOARD_CELLS, "Board must have 9 cells"
        self.current_player = current_player

        if history is None:
            # No ledger given: treat pieces as placed in ascending index order
            history = {}
            order = 0
            for player in Player:
                records = []
                for index in pieces_of(self.cells, player):
                    records.append(MoveRecord(index, order))
                    order += 1
                history[player] = records
        self.history: History = {
            player: tuple(history.get(player, ())) for player in Player
        }

        self._winning_line = find_winning_line(self.cells)
        winner = self.winner
        for player in Player:
            owned = sorted(pieces_of(self.cells, player))
            recorded = sorted(rec.index for rec in self.history[player])
            assert owned == recorded, f"History for {player} does not match the board"
            # A winning placement may leave the winner one piece over the cap
            cap = MAX_PIECES + 1 if player is winner else MAX_PIECES
            assert len(owned) <= cap, f"{player} has more than {MAX_PIECES} pieces"

        if next_order is None:
            orders = [rec.order for recs in self.history.values() for rec in recs]
            next_order = max(orders) + 1 if orders else 0
        self.next_order = next_order
        # None for bare positions built outside a session
        self.mode = mode

    def __repr__(self) -> str:
        board = "".join("." if c is None else c.value for c in self.cells)
        return f"GameState({board!r}, to_move={self.current_player})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return (
            self.cells == other.cells
            and self.current_player is other.current_player
            and self.history == other.history
            and self.next_order == other.next_order
            and self.mode is other.mode
        )

    @property
    def is_over(self) -> bool:
        return self._winning_line is not None

    @property
    def winner(self) -> Optional[Player]:
        if self._winning_line is None:
            return None
        return self.cells[self._winning_line[0]]

    @property
    def is_draw(self) -> bool:
        # A cell is always freed by eviction, so the capped rule never stalemates
        return False

    @property
    def winning_line(self) -> Optional[tuple[int, int, int]]:
        return self._winning_line

    @property
    def status(self) -> Status:
        if self.winner is not None:
            return Status(Outcome.WINNER, None, self.winner)
        if self.is_draw:
            return Status(Outcome.DRAW, None)
        return Status(Outcome.IN_PROGRESS, self.current_player)

    def legal_moves(self) -> list[int]:
        if self.is_over:
            return []
        return empty_cells(self.cells)

    def pieces_of(self, player: Player) -> list[int]:
        return pieces_of(self.cells, player)

    def oldest_piece(self, player: Player) -> Optional[int]:
        records = self.history[player]
        return records[0].index if records else None

    def apply_move(self, index: int) -> GameState:
        """Place a mark for the current player and return the resulting state.

        If the placement does not win and leaves the mover with more than
        MAX_PIECES pieces, their oldest piece is removed. A winning placement
        is never followed by eviction.
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndexError(index)
        if not 0 <= index < BOARD_CELLS:
            raise InvalidIndexError(index)
        if self.is_over:
            raise GameAlreadyOverError()
        if self.cells[index] is not None:
            raise CellOccupiedError(index)

        player = self.current_player
        cells = list(self.cells)
        cells[index] = player
        records = list(self.history[player])
        records.append(MoveRecord(index, self.next_order))

        winner = check_winner(cells)
        if winner is None and len(records) > MAX_PIECES:
            evicted = records.pop(0)
            cells[evicted.index] = None
            logger.debug("%s places %d, evicting %d", player, index, evicted.index)
        else:
            logger.debug("%s places %d", player, index)

        history = dict(self.history)
        history[player] = tuple(records)
        return GameState(
            cells,
            current_player=player.other,
            history=history,
            next_order=self.next_order + 1,
            mode=self.mode,
        )


def replay(moves: Iterable[int], state: Optional[GameState] = None) -> GameState:
    """Apply a sequence of cell indices, alternating players, from `state`."""
    state = state if state is not None else GameState()
    for index in moves:
        state = state.apply_move(index)
    return state
