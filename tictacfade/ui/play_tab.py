"""Play tab: mode selection, then human vs bot or human vs human on an SVG board."""

from __future__ import annotations

import time as _time
from typing import Callable

import gradio as gr

from tictacfade.agent.base import Agent
from tictacfade.agent.minimax_agent import SEARCH_DEPTH, MinimaxAgent
from tictacfade.agent.random_agent import RandomAgent
from tictacfade.game.board import GameState, format_cell, parse_cell
from tictacfade.game.errors import GameError
from tictacfade.game.session import BOT_DELAY, BOT_PLAYER, GameSession, Phase
from tictacfade.game.types import GameMode, Player
from tictacfade.ui.board_component import render_board_svg

# Factories: every session gets its own agent (nodes_searched is per instance)
AGENT_CHOICES: dict[str, Callable[[], Agent]] = {
    f"Minimax bot (d={SEARCH_DEPTH})": lambda: MinimaxAgent(player=BOT_PLAYER),
    "Minimax bot (d=3)": lambda: MinimaxAgent(player=BOT_PLAYER, depth=3),
    "Random bot": RandomAgent,
}

_DEFAULT_CHOICE = next(iter(AGENT_CHOICES))


def _make_board_html(session: GameSession) -> str:
    clickable = session.phase is Phase.IN_PROGRESS and not session.bot_to_move
    banner = session.status_text if session.phase is Phase.TERMINAL else ""
    return render_board_svg(session.game, clickable=clickable, game_over_message=banner)


def _live_pieces_table(game: GameState) -> list[list[str]]:
    rows: list[list[str]] = []
    for player in Player:
        cells = ", ".join(format_cell(rec.index) for rec in game.history[player])
        rows.append([str(player), cells or "—"])
    return rows


def _board_outputs(session: GameSession, message: str = ""):
    return (
        _make_board_html(session),
        message or session.status_text,
        _live_pieces_table(session.game),
        session,
    )


def _panel_updates(session: GameSession):
    selected = session.phase is not Phase.MODE_UNSELECTED
    return gr.update(visible=not selected), gr.update(visible=selected)


def _select_mode(mode: GameMode, agent_choice: str, session: GameSession):
    make_agent = AGENT_CHOICES.get(agent_choice, AGENT_CHOICES[_DEFAULT_CHOICE])
    session.agent = make_agent()
    session.select_mode(mode)
    return _board_outputs(session) + _panel_updates(session)


def _apply_human_move(cell_text: str, session: GameSession):
    """Process a human move, then let the bot reply after a short pause."""
    index = parse_cell(cell_text)
    if index is None:
        yield _board_outputs(session, f"Invalid cell: '{cell_text}'.") + ("",)
        return

    try:
        session.apply_human_move(index)
    except GameError as exc:
        yield _board_outputs(session, str(exc)) + ("",)
        return

    if not session.bot_to_move:
        yield _board_outputs(session) + ("",)
        return

    generation = session.generation
    yield _board_outputs(session, "Bot is thinking...") + ("",)
    _time.sleep(BOT_DELAY)
    # New Game / Change Mode while sleeping or searching invalidates this reply
    session.play_bot_move_if_current(generation)
    yield _board_outputs(session) + ("",)


def _new_game(session: GameSession):
    session.new_game()
    return _board_outputs(session)


def _change_mode(session: GameSession):
    session.change_mode()
    return _board_outputs(session) + _panel_updates(session)


def build_play_tab() -> None:
    """Construct the Play tab UI inside a gr.Blocks context."""

    session_state = gr.State(GameSession())

    with gr.Column(visible=True) as mode_panel:
        gr.Markdown("### Choose a mode")
        agent_choice = gr.Dropdown(
            choices=list(AGENT_CHOICES.keys()),
            value=_DEFAULT_CHOICE,
            label="Bot",
        )
        vs_bot_btn = gr.Button(str(GameMode.SINGLE_BOT), variant="primary")
        two_player_btn = gr.Button(str(GameMode.TWO_HUMAN))

    with gr.Row(visible=False) as game_panel:
        with gr.Column(scale=3):
            board_html = gr.HTML(
                value=render_board_svg(GameState(), clickable=False),
                label="Board",
            )
        with gr.Column(scale=1):
            status_text = gr.Textbox(
                value="Choose a game mode",
                label="Status",
                interactive=False,
                lines=2,
            )
            with gr.Row():
                new_game_btn = gr.Button("New Game", variant="primary")
                change_mode_btn = gr.Button("Change Mode")

            cell_input = gr.Textbox(
                label="Cell (e.g. B2 or 4)",
                placeholder="B2",
                elem_id="cell-input",
                lines=1,
            )
            cell_submit = gr.Button("Submit Move", elem_id="cell-submit")

            gr.Markdown("### Live pieces (oldest first)")
            pieces_table = gr.Dataframe(
                headers=["Player", "Cells"],
                datatype=["str", "str"],
                interactive=False,
                column_count=2,
            )

    board_outputs = [board_html, status_text, pieces_table, session_state]
    panel_outputs = [mode_panel, game_panel]

    vs_bot_btn.click(
        fn=lambda agent, s: _select_mode(GameMode.SINGLE_BOT, agent, s),
        inputs=[agent_choice, session_state],
        outputs=board_outputs + panel_outputs,
    )
    two_player_btn.click(
        fn=lambda agent, s: _select_mode(GameMode.TWO_HUMAN, agent, s),
        inputs=[agent_choice, session_state],
        outputs=board_outputs + panel_outputs,
    )

    cell_submit.click(
        fn=_apply_human_move,
        inputs=[cell_input, session_state],
        outputs=board_outputs + [cell_input],
    )

    new_game_btn.click(
        fn=_new_game,
        inputs=[session_state],
        outputs=board_outputs,
    )

    change_mode_btn.click(
        fn=_change_mode,
        inputs=[session_state],
        outputs=board_outputs + panel_outputs,
    )
