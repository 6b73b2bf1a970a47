"""Static evaluation for capped-piece tic-tac-toe.

Scores are from the bot's viewpoint (`perspective`, "O" by default):
positive favours the bot, negative favours its opponent. The weights are
hand-tuned and the search's move choices depend on every one of them.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from tictacfade.game.board import (
    CENTER,
    CORNERS,
    LINES_THROUGH,
    WINNING_LINES,
    Cells,
    check_winner,
)
from tictacfade.game.types import MoveRecord, Player

# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

WIN_SCORE = 1000

# (a) open two-in-a-line threats
THREAT_BONUS = 15
THREAT_PENALTY = 20   # blocking weighs more than attacking

# (b) per-cell strategic value
MUST_BLOCK_VALUE = 5

# (c) piece age / position
RECENT_CENTER_BONUS = 8
RECENT_CORNER_BONUS = 5
WEAK_OLDEST_PENALTY = 3
WEAK_OLDEST_THRESHOLD = 3     # oldest piece is "weak" below this value
OPPONENT_STRONG_PENALTY = 10
OPPONENT_STRONG_THRESHOLD = 3  # opponent's latest piece is "strong" above this value

# (d) line formations
OPP_TWO_PENALTY = 25
OPP_THREE_PENALTY = 50
OWN_TWO_BONUS = 20
OWN_THREE_BONUS = 40


def cell_value(cells: Cells, index: int, player: Player) -> int:
    """Strategic value of `index` for `player`, counted on the board as it stands.

    Each winning line through the cell earns (own marks + 1) if the opponent
    has no mark on it, or MUST_BLOCK_VALUE if the opponent has two marks and
    `player` none.
    """
    opponent = player.other
    value = 0
    for line in LINES_THROUGH[index]:
        own = 0
        opp = 0
        for i in line:
            if cells[i] is player:
                own += 1
            elif cells[i] is opponent:
                opp += 1
        if opp == 0:
            value += own + 1
        elif opp == 2 and own == 0:
            value += MUST_BLOCK_VALUE
    return value


def evaluate(
    cells: Cells,
    history: Mapping[Player, Sequence[MoveRecord]],
    depth_reached: int,
    perspective: Player = Player.O,
) -> int:
    """Score the position for `perspective`.

    Terminal positions score WIN_SCORE - depth_reached for a bot win and
    -WIN_SCORE + depth_reached for a loss, so faster wins and slower losses
    are preferred.
    """
    bot = perspective
    opponent = bot.other

    winner = check_winner(cells)
    if winner is bot:
        return WIN_SCORE - depth_reached
    if winner is opponent:
        return -WIN_SCORE + depth_reached

    score = 0

    # (a) threats and (d) formations share the per-line counts
    for line in WINNING_LINES:
        mine = theirs = empty = 0
        for i in line:
            cell = cells[i]
            if cell is None:
                empty += 1
            elif cell is bot:
                mine += 1
            else:
                theirs += 1

        if mine == 2 and empty == 1:
            score += THREAT_BONUS + OWN_TWO_BONUS
        elif mine == 3:
            score += OWN_THREE_BONUS

        if theirs == 2 and empty == 1:
            score -= THREAT_PENALTY + OPP_TWO_PENALTY
        elif theirs == 3:
            score -= OPP_THREE_PENALTY

    # (b) strategic value of every occupied cell
    for index, cell in enumerate(cells):
        if cell is bot:
            score += cell_value(cells, index, bot)
        elif cell is opponent:
            score -= cell_value(cells, index, opponent)

    # (c) age and position of the newest / oldest pieces
    bot_moves = history.get(bot, ())
    if bot_moves:
        latest = bot_moves[-1].index
        if latest == CENTER and cells[CENTER] is bot:
            score += RECENT_CENTER_BONUS
        if latest in CORNERS:
            score += RECENT_CORNER_BONUS
        oldest = bot_moves[0].index
        if (
            oldest != CENTER
            and oldest not in CORNERS
            and cell_value(cells, oldest, bot) < WEAK_OLDEST_THRESHOLD
        ):
            score -= WEAK_OLDEST_PENALTY

    opp_moves = history.get(opponent, ())
    if opp_moves:
        latest = opp_moves[-1].index
        if cell_value(cells, latest, opponent) > OPPONENT_STRONG_THRESHOLD:
            score -= OPPONENT_STRONG_PENALTY

    return score
