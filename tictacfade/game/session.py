"""Game session: mode selection, turn handling and the bot's delayed reply.

The session owns the current GameState and replaces it on every accepted
move. Human and bot moves go through the same apply path, so the bot gets
no special-cased validation.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from tictacfade.agent.base import Agent
from tictacfade.agent.minimax_agent import MinimaxAgent
from tictacfade.game.board import GameState
from tictacfade.game.errors import (
    GameAlreadyOverError,
    ModeNotSelectedError,
    WrongTurnError,
)
from tictacfade.game.types import GameMode, Outcome, Player, Status

logger = logging.getLogger(__name__)

HUMAN_PLAYER = Player.X
BOT_PLAYER = Player.O

# Seconds the bot "thinks" before its reply is applied
BOT_DELAY = 0.5


class Phase(enum.Enum):
    MODE_UNSELECTED = "mode_unselected"
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"


# ---------------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------------

def new_game(mode: GameMode) -> GameState:
    logger.info("New game (%s)", mode)
    return GameState(mode=mode)


def apply_human_move(
    state: GameState,
    index: int,
    player: Optional[Player] = None,
) -> GameState:
    """Apply a human move, rejecting moves made out of turn.

    The mode comes from the state itself (see new_game). In single-bot mode a
    human may never move for the bot. If `player` is given it must be the side
    to move.
    """
    if state.is_over:
        raise GameAlreadyOverError()
    if state.mode is None:
        raise ModeNotSelectedError()
    if state.mode is GameMode.SINGLE_BOT and state.current_player is BOT_PLAYER:
        raise WrongTurnError("Wait, it's the bot's turn")
    if player is not None and player is not state.current_player:
        raise WrongTurnError(f"It's {state.current_player}'s turn, not {player}'s")
    return state.apply_move(index)


def request_bot_move(state: GameState, agent: Optional[Agent] = None) -> int:
    """Return the bot's chosen cell. Pure: the caller decides when to apply it."""
    agent = agent if agent is not None else MinimaxAgent(player=BOT_PLAYER)
    return agent.select_move(state)


def status(state: GameState) -> Status:
    return state.status


# ---------------------------------------------------------------------------
# Stateful session
# ---------------------------------------------------------------------------

@dataclass
class GameSession:
    """Per-tab session held in gr.State.

    Resets and move application run under `_lock`, so a bot move computed
    for one game can never land on the game that replaced it.
    """

    agent: Agent = field(default_factory=MinimaxAgent)
    mode: Optional[GameMode] = None
    game: GameState = field(default_factory=GameState)
    # Bumped on every reset; a scheduled bot move only lands if it still matches
    generation: int = 0
    _timer: Optional[threading.Timer] = field(default=None, repr=False, compare=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    # gr.State deep-copies its initial value; locks and timers can't be copied
    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        state["_timer"] = None
        state["_lock"] = None
        return state

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._lock = threading.RLock()

    @property
    def phase(self) -> Phase:
        if self.mode is None:
            return Phase.MODE_UNSELECTED
        if self.game.is_over:
            return Phase.TERMINAL
        return Phase.IN_PROGRESS

    @property
    def bot_to_move(self) -> bool:
        return (
            self.mode is GameMode.SINGLE_BOT
            and not self.game.is_over
            and self.game.current_player is BOT_PLAYER
        )

    @property
    def status(self) -> Status:
        return self.game.status

    @property
    def status_text(self) -> str:
        if self.mode is None:
            return "Choose a game mode"
        s = self.status
        if s.outcome is Outcome.WINNER:
            return f"Player {s.winner} wins!"
        if s.outcome is Outcome.DRAW:
            return "Draw!"
        if self.mode is GameMode.SINGLE_BOT:
            return "Your turn" if s.current_player is HUMAN_PLAYER else "Bot's turn"
        return f"Player {s.current_player}'s turn"

    def select_mode(self, mode: GameMode) -> None:
        with self._lock:
            self._reset()
            self.mode = mode
            self.game = new_game(mode)

    def new_game(self) -> None:
        """Start over in the current mode."""
        with self._lock:
            if self.mode is None:
                raise ModeNotSelectedError()
            self._reset()
            self.game = new_game(self.mode)

    def change_mode(self) -> None:
        with self._lock:
            self._reset()
            self.mode = None
            self.game = GameState()

    def cancel_pending(self) -> None:
        """Drop any scheduled bot move without touching the game."""
        with self._lock:
            self.generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _reset(self) -> None:
        with self._lock:
            self.cancel_pending()
            logger.debug("Session reset (generation %d)", self.generation)

    def apply_human_move(self, index: int) -> None:
        with self._lock:
            if self.mode is None:
                raise ModeNotSelectedError()
            self._apply(apply_human_move(self.game, index))

    def play_bot_move(self) -> int:
        assert self.bot_to_move, "It is not the bot's turn"
        index = self.play_bot_move_if_current(self.generation)
        assert index is not None, "Session was reset during the bot's move"
        return index

    def play_bot_move_if_current(self, generation: int) -> Optional[int]:
        """Play the bot's reply unless the session was reset since `generation`.

        The search runs outside the lock. The result is applied only if the
        same game is still current, otherwise None is returned.
        """
        with self._lock:
            if generation != self.generation or not self.bot_to_move:
                logger.debug("Discarding stale bot move (generation %d)", generation)
                return None
            game = self.game
        index = request_bot_move(game, self.agent)
        with self._lock:
            if generation != self.generation or self.game is not game:
                logger.debug("Session reset while the bot was thinking")
                return None
            self._apply(game.apply_move(index))
        return index

    def _apply(self, game: GameState) -> None:
        with self._lock:
            self.game = game
        if game.is_over:
            logger.info("Game over: %s wins", game.winner)

    def schedule_bot_move(
        self,
        delay: float = BOT_DELAY,
        on_done: Optional[Callable[[int], None]] = None,
    ) -> Optional[threading.Timer]:
        """Play the bot's reply after `delay` seconds on a timer thread.

        Returns the timer, or None if it is not the bot's turn. A reset before
        the move is applied (new_game, change_mode, cancel_pending) discards it.
        """
        with self._lock:
            if not self.bot_to_move:
                return None
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(delay, self._run_scheduled, args=(self.generation, on_done))
            timer.daemon = True
            self._timer = timer
            timer.start()
        return timer

    def _run_scheduled(
        self,
        generation: int,
        on_done: Optional[Callable[[int], None]],
    ) -> None:
        index = self.play_bot_move_if_current(generation)
        with self._lock:
            if generation == self.generation:
                self._timer = None
        if index is not None and on_done is not None:
            on_done(index)
