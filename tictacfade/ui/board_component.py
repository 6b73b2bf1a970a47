"""SVG board renderer + JavaScript click handler for Gradio."""

from __future__ import annotations

from typing import Optional

from tictacfade.game.board import BOARD_CELLS, MAX_PIECES, GameState, format_cell
from tictacfade.game.types import Player

# Layout constants
CELL_SIZE = 110
MARGIN = 20
BOARD_PX = MARGIN * 2 + CELL_SIZE * 3
MARK_INSET = 25

# Colors
BG_COLOR = "#F8FAFC"
LINE_COLOR = "#334155"
X_COLOR = "#2563EB"
O_COLOR = "#DC2626"
WIN_FILL = "#BBF7D0"
FADING_OPACITY = "0.35"


def _cell_origin(index: int) -> tuple[int, int]:
    """Top-left pixel of a cell (row-major, index 0 at the top left)."""
    return MARGIN + (index % 3) * CELL_SIZE, MARGIN + (index // 3) * CELL_SIZE


def _mark_svg(index: int, player: Player, opacity: str) -> str:
    x, y = _cell_origin(index)
    if player is Player.X:
        x1, y1 = x + MARK_INSET, y + MARK_INSET
        x2, y2 = x + CELL_SIZE - MARK_INSET, y + CELL_SIZE - MARK_INSET
        return (
            f'<g opacity="{opacity}" class="mark-x">'
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
            f'stroke="{X_COLOR}" stroke-width="10" stroke-linecap="round"/>'
            f'<line x1="{x2}" y1="{y1}" x2="{x1}" y2="{y2}" '
            f'stroke="{X_COLOR}" stroke-width="10" stroke-linecap="round"/>'
            f"</g>"
        )
    cx, cy = x + CELL_SIZE // 2, y + CELL_SIZE // 2
    return (
        f'<circle cx="{cx}" cy="{cy}" r="{CELL_SIZE // 2 - MARK_INSET}" '
        f'fill="none" stroke="{O_COLOR}" stroke-width="10" '
        f'opacity="{opacity}" class="mark-o"/>'
    )


def render_board_svg(
    game_state: GameState,
    clickable: bool = True,
    game_over_message: str = "",
) -> str:
    """Render the board as an SVG string.

    The side to move's oldest piece is drawn faded once they hold MAX_PIECES,
    since it disappears on their next non-winning placement.
    """
    parts: list[str] = []

    parts.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{BOARD_PX}" height="{BOARD_PX}" '
        f'viewBox="0 0 {BOARD_PX} {BOARD_PX}" '
        f'id="tictacfade-board">'
    )
    parts.append(
        f'<rect width="{BOARD_PX}" height="{BOARD_PX}" fill="{BG_COLOR}" rx="8"/>'
    )

    # Winning line highlight
    winning = game_state.winning_line or ()
    for index in winning:
        x, y = _cell_origin(index)
        parts.append(
            f'<rect x="{x}" y="{y}" width="{CELL_SIZE}" height="{CELL_SIZE}" '
            f'fill="{WIN_FILL}" class="win-cell"/>'
        )

    # Grid lines
    for i in (1, 2):
        offset = MARGIN + i * CELL_SIZE
        end = MARGIN + 3 * CELL_SIZE
        parts.append(
            f'<line x1="{offset}" y1="{MARGIN}" x2="{offset}" y2="{end}" '
            f'stroke="{LINE_COLOR}" stroke-width="3"/>'
        )
        parts.append(
            f'<line x1="{MARGIN}" y1="{offset}" x2="{end}" y2="{offset}" '
            f'stroke="{LINE_COLOR}" stroke-width="3"/>'
        )

    fading: Optional[int] = None
    mover = game_state.current_player
    if not game_state.is_over and len(game_state.history[mover]) >= MAX_PIECES:
        fading = game_state.oldest_piece(mover)

    for index, player in enumerate(game_state.cells):
        if player is None:
            continue
        opacity = FADING_OPACITY if index == fading else "1"
        parts.append(_mark_svg(index, player, opacity))

    # Invisible click targets on empty cells
    if clickable and not game_state.is_over:
        for index in range(BOARD_CELLS):
            if game_state.cells[index] is not None:
                continue
            x, y = _cell_origin(index)
            label = format_cell(index)
            parts.append(
                f'<rect x="{x}" y="{y}" width="{CELL_SIZE}" height="{CELL_SIZE}" '
                f'fill="transparent" class="board-click" '
                f'data-cell="{index}" style="cursor:pointer">'
                f"<title>{label}</title></rect>"
            )

    if game_over_message:
        color = "#FFFFFF" if game_over_message == "Draw!" else "#4ADE80"
        parts.append(
            f'<rect x="0" y="{BOARD_PX // 2 - 30}" width="{BOARD_PX}" height="60" '
            f'fill="rgba(15, 23, 42, 0.75)"/>'
        )
        parts.append(
            f'<text x="{BOARD_PX // 2}" y="{BOARD_PX // 2 + 10}" text-anchor="middle" '
            f'font-size="28" font-family="sans-serif" fill="{color}">'
            f"{game_over_message}</text>"
        )

    parts.append("</svg>")
    return "\n".join(parts)


# JavaScript that handles clicks on the SVG and writes the cell index to
# a hidden Gradio Textbox, then triggers the submit button.
BOARD_CLICK_JS = """
() => {
    if (window._tictacfadeClickBound) return;
    window._tictacfadeClickBound = true;

    document.addEventListener('click', function(e) {
        const target = e.target.closest('.board-click');
        if (!target) return;
        const cell = target.getAttribute('data-cell');
        if (cell === null) return;

        const input = document.querySelector('#cell-input textarea, #cell-input input');
        if (input) {
            const proto = input.tagName === 'TEXTAREA'
                ? window.HTMLTextAreaElement.prototype
                : window.HTMLInputElement.prototype;
            const nativeSetter = Object.getOwnPropertyDescriptor(proto, 'value')?.set;
            if (nativeSetter) {
                nativeSetter.call(input, cell);
            } else {
                input.value = cell;
            }
            input.dispatchEvent(new Event('input', { bubbles: true }));
            const btn = document.querySelector('#cell-submit');
            if (btn) btn.click();
        }
    });
}
"""
