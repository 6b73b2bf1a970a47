"""Minimax agent with alpha-beta pruning for capped-piece tic-tac-toe.

Root decision order:
  1. Take an immediate win.
  2. Block the opponent's immediate win.
  3. Opening: take the centre, or a corner if the opponent holds the centre.
  4. Otherwise search SEARCH_DEPTH plies with alpha-beta and move ordering.

Inside the search a side with fewer than MAX_PIECES pieces places a new mark;
a side already at MAX_PIECES relocates one of its pieces instead (every live
piece, oldest first, to every empty cell). Board and history are mutated in
place and restored from an undo token after each child, so the caller's
position is untouched when the search returns.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from tictacfade.agent.base import Agent
from tictacfade.agent.evaluation import cell_value, evaluate
from tictacfade.game.board import (
    CENTER,
    CORNERS,
    FALLBACK_ORDER,
    MAX_PIECES,
    GameState,
    check_winner,
    empty_cells,
)
from tictacfade.game.types import MoveRecord, Player

logger = logging.getLogger(__name__)

SEARCH_DEPTH = 7

INF = math.inf

Cells = list[Optional[Player]]
MutableHistory = dict[Player, list[MoveRecord]]


# ---------------------------------------------------------------------------
# Make / unmake
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Candidate:
    """A simulated move: optionally lift the piece at history slot `lift`, then mark `dest`."""

    dest: int
    lift: Optional[int] = None


@dataclass(frozen=True)
class MoveUndo:
    player: Player
    dest: int
    lifted: Optional[MoveRecord] = None
    lift_slot: Optional[int] = None


def make_move(
    cells: Cells,
    history: MutableHistory,
    player: Player,
    candidate: Candidate,
    order: int,
) -> MoveUndo:
    """Apply `candidate` for `player` in place and return the token that reverts it."""
    records = history[player]
    lifted = None
    if candidate.lift is not None:
        lifted = records.pop(candidate.lift)
        cells[lifted.index] = None
    cells[candidate.dest] = player
    records.append(MoveRecord(candidate.dest, order))
    return MoveUndo(player, candidate.dest, lifted, candidate.lift)


def unmake_move(cells: Cells, history: MutableHistory, undo: MoveUndo) -> None:
    records = history[undo.player]
    records.pop()
    cells[undo.dest] = None
    if undo.lifted is not None:
        cells[undo.lifted.index] = undo.player
        records.insert(undo.lift_slot, undo.lifted)


# ---------------------------------------------------------------------------
# Candidate generation and ordering
# ---------------------------------------------------------------------------

def generate_candidates(cells: Cells, history: MutableHistory, player: Player) -> list[Candidate]:
    empties = empty_cells(cells)
    if len(history[player]) < MAX_PIECES:
        return [Candidate(dest) for dest in empties]
    return [
        Candidate(dest, lift=slot)
        for slot in range(len(history[player]))
        for dest in empties
    ]


def order_moves(
    cells: Cells,
    candidates: list[Candidate],
    player: Player,
    maximizing: bool,
) -> list[Candidate]:
    """Stable sort by destination value: best first for the maximizer, worst first otherwise."""
    return sorted(
        candidates,
        key=lambda c: cell_value(cells, c.dest, player),
        reverse=maximizing,
    )


# ---------------------------------------------------------------------------
# Root short-circuits
# ---------------------------------------------------------------------------

def find_winning_cell(cells: Sequence[Optional[Player]], player: Player) -> Optional[int]:
    """First empty cell (ascending) where `player` would complete a line."""
    board = list(cells)
    for index in empty_cells(board):
        board[index] = player
        won = check_winner(board) is player
        board[index] = None
        if won:
            return index
    return None


def opening_move(cells: Sequence[Optional[Player]], player: Player) -> Optional[int]:
    if cells[CENTER] is None:
        return CENTER
    if cells[CENTER] is player.other:
        for corner in CORNERS:
            if cells[corner] is None:
                return corner
    return None


def fallback_move(cells: Sequence[Optional[Player]]) -> int:
    for index in FALLBACK_ORDER:
        if cells[index] is None:
            return index
    empties = empty_cells(cells)
    assert empties, "No empty cell to play"
    return empties[0]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class MinimaxAgent(Agent):
    """Depth-limited minimax + alpha-beta agent playing `player`."""

    def __init__(self, player: Player = Player.O, depth: int = SEARCH_DEPTH) -> None:
        self.player = player
        self.depth = depth
        self.nodes_searched = 0

    @property
    def name(self) -> str:
        return f"MinimaxAgent(d={self.depth})"

    def select_move(self, game_state: GameState) -> int:
        assert not game_state.is_over, "Game is already over"
        assert game_state.current_player is self.player, (
            f"It is {game_state.current_player}'s turn, not {self.player}'s"
        )
        return self.best_move(
            game_state.cells, game_state.history, next_order=game_state.next_order
        )

    def best_move(
        self,
        cells: Sequence[Optional[Player]],
        history: Mapping[Player, Sequence[MoveRecord]],
        next_order: Optional[int] = None,
    ) -> int:
        """Choose a destination cell for `self.player` on a scratch copy of the position."""
        bot = self.player
        opponent = bot.other
        assert check_winner(cells) is None, "Position is already won"
        assert empty_cells(cells), "Board is full"

        self.nodes_searched = 0

        win = find_winning_cell(cells, bot)
        if win is not None:
            logger.debug("%s takes immediate win at %d", bot, win)
            return win

        block = find_winning_cell(cells, opponent)
        if block is not None:
            logger.debug("%s blocks %s at %d", bot, opponent, block)
            return block

        opening = opening_move(cells, bot)
        if opening is not None:
            logger.debug("%s plays opening move %d", bot, opening)
            return opening

        board: Cells = list(cells)
        scratch: MutableHistory = {p: list(history.get(p, ())) for p in Player}
        if next_order is None:
            orders = [rec.order for recs in scratch.values() for rec in recs]
            next_order = max(orders) + 1 if orders else 0

        alpha = -INF
        beta = INF
        best_score = -INF
        best_move: Optional[int] = None

        candidates = order_moves(
            board, generate_candidates(board, scratch, bot), bot, maximizing=True
        )
        for candidate in candidates:
            undo = make_move(board, scratch, bot, candidate, next_order)
            score = self._minimax(board, scratch, 1, False, alpha, beta, next_order + 1)
            unmake_move(board, scratch, undo)

            if score > best_score:
                best_score = score
                best_move = candidate.dest
                alpha = max(alpha, score)

        if best_move is None:
            best_move = fallback_move(board)
            logger.debug("%s search found nothing, falling back to %d", bot, best_move)

        logger.debug(
            "%s searched %d nodes, chose %d (score %s)",
            bot, self.nodes_searched, best_move, best_score,
        )
        return best_move

    def _minimax(
        self,
        cells: Cells,
        history: MutableHistory,
        depth: int,
        maximizing: bool,
        alpha: float,
        beta: float,
        order: int,
    ) -> float:
        self.nodes_searched += 1

        if depth >= self.depth or check_winner(cells) is not None:
            return evaluate(cells, history, depth, perspective=self.player)

        player = self.player if maximizing else self.player.other
        candidates = order_moves(
            cells, generate_candidates(cells, history, player), player, maximizing
        )
        if not candidates:
            return evaluate(cells, history, depth, perspective=self.player)

        best = -INF if maximizing else INF
        for candidate in candidates:
            undo = make_move(cells, history, player, candidate, order)
            score = self._minimax(cells, history, depth + 1, not maximizing, alpha, beta, order + 1)
            unmake_move(cells, history, undo)

            if maximizing and score > best:
                best = score
                alpha = max(alpha, score)
            elif not maximizing and score < best:
                best = score
                beta = min(beta, score)

            if beta <= alpha:
                break

        return best


def best_move(
    cells: Sequence[Optional[Player]],
    history: Mapping[Player, Sequence[MoveRecord]],
    player: Player = Player.O,
    depth: int = SEARCH_DEPTH,
) -> int:
    """Convenience wrapper: best cell for `player` with a fresh agent."""
    return MinimaxAgent(player=player, depth=depth).best_move(cells, history)
