"""TicTacFade — Gradio web app entry point."""

import logging

import gradio as gr

from tictacfade.ui.board_component import BOARD_CLICK_JS
from tictacfade.ui.play_tab import build_play_tab

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

with gr.Blocks(title="TicTacFade") as demo:
    gr.Markdown("# TicTacFade")
    gr.Markdown(
        "Tic-tac-toe where each player keeps at most 4 pieces: "
        "a 5th placement removes your oldest one (faded on the board)."
    )

    build_play_tab()

    # Bind board click handler JS on page load
    demo.load(fn=None, js=BOARD_CLICK_JS)

if __name__ == "__main__":
    demo.launch(theme=gr.themes.Soft())
