import itertools

import pytest

from tictacfade.agent.random_agent import RandomAgent
from tictacfade.game.board import (
    BOARD_CELLS,
    MAX_PIECES,
    WINNING_LINES,
    GameState,
    check_winner,
    empty_cells,
    find_winning_line,
    format_cell,
    parse_cell,
    pieces_of,
    replay,
)
from tictacfade.game.errors import (
    CellOccupiedError,
    GameAlreadyOverError,
    GameError,
    InvalidIndexError,
)
from tictacfade.game.types import GameMode, MoveRecord, Outcome, Player

X, O, _ = Player.X, Player.O, None

# No line is completed along the way; after 8 moves one cell (1) is left empty.
#   X . O
#   O O X
#   X O X
EIGHT_MOVES = [0, 4, 8, 2, 6, 3, 5, 7]


class TestParseCell:
    def test_valid(self):
        assert parse_cell("A1") == 0
        assert parse_cell("B2") == 4
        assert parse_cell("c3") == 8  # case insensitive
        assert parse_cell("4") == 4
        assert parse_cell(" 0 ") == 0

    def test_invalid(self):
        assert parse_cell("") is None
        assert parse_cell("D1") is None
        assert parse_cell("A4") is None
        assert parse_cell("9") is None
        assert parse_cell("B22") is None


class TestFormatCell:
    def test_basic(self):
        assert format_cell(0) == "A1"
        assert format_cell(4) == "B2"
        assert format_cell(5) == "C2"
        assert format_cell(8) == "C3"

    def test_round_trip_labels(self):
        assert [parse_cell(format_cell(i)) for i in range(BOARD_CELLS)] == list(range(9))


class TestCheckWinner:
    @pytest.mark.parametrize("line", WINNING_LINES)
    def test_every_line_wins(self, line):
        cells = [None] * 9
        for i in line:
            cells[i] = O
        assert check_winner(cells) is O
        assert find_winning_line(cells) == line

    def test_no_winner(self):
        assert check_winner([None] * 9) is None
        assert check_winner([X, X, _, _, O, _, _, _, _]) is None

    def test_mixed_line_is_not_a_win(self):
        assert check_winner([X, X, O, _, _, _, _, _, _]) is None

    def test_first_line_in_enumeration_order(self):
        # X owns row 0 and column 0; rows come first
        cells = [X, X, X, X, _, _, X, _, _]
        assert find_winning_line(cells) == (0, 1, 2)

    def test_winner_iff_a_line_is_uniform(self):
        # Every board with 3 X and 3 O marks
        for xs in itertools.combinations(range(9), 3):
            rest = [i for i in range(9) if i not in xs]
            for os_ in itertools.combinations(rest, 3):
                cells = [None] * 9
                for i in xs:
                    cells[i] = X
                for i in os_:
                    cells[i] = O
                expected = None
                for line in WINNING_LINES:
                    if all(cells[i] is X for i in line):
                        expected = X
                        break
                    if all(cells[i] is O for i in line):
                        expected = O
                        break
                assert check_winner(cells) is expected


class TestCellQueries:
    def test_empty_cells_ascending(self):
        cells = [X, X, _, _, O, _, _, _, _]
        assert empty_cells(cells) == [2, 3, 5, 6, 7, 8]

    def test_pieces_of(self):
        cells = [O, X, _, X, O, _, _, _, X]
        assert pieces_of(cells, X) == [1, 3, 8]
        assert pieces_of(cells, O) == [0, 4]


class TestGameState:
    def test_initial_state(self):
        g = GameState()
        assert g.current_player is X
        assert not g.is_over
        assert g.winner is None
        assert g.legal_moves() == list(range(BOARD_CELLS))
        assert g.history == {X: (), O: ()}
        assert g.status.outcome is Outcome.IN_PROGRESS

    def test_alternating_turns(self):
        g = GameState().apply_move(4)
        assert g.current_player is O
        g = g.apply_move(0)
        assert g.current_player is X

    def test_apply_move_is_pure(self):
        g = GameState()
        after = g.apply_move(4)
        assert g.cells == (None,) * 9
        assert g.current_player is X
        assert after.cells[4] is X

    def test_mode_is_carried_by_moves(self):
        g = replay([4, 0, 8], GameState(mode=GameMode.SINGLE_BOT))
        assert g.mode is GameMode.SINGLE_BOT
        assert GameState().mode is None
        assert GameState(mode=GameMode.TWO_HUMAN) != GameState(mode=GameMode.SINGLE_BOT)

    def test_history_records_order(self):
        g = replay([4, 0, 8])
        assert g.history[X] == (MoveRecord(4, 0), MoveRecord(8, 2))
        assert g.history[O] == (MoveRecord(0, 1),)
        assert g.next_order == 3

    def test_derived_history_follows_index_order(self):
        g = GameState([X, X, _, _, O, _, _, _, _], current_player=O)
        assert [r.index for r in g.history[X]] == [0, 1]
        assert [r.index for r in g.history[O]] == [4]
        assert g.next_order == 3

    def test_mismatched_history_rejected(self):
        with pytest.raises(AssertionError):
            GameState([X, _, _, _, _, _, _, _, _], history={X: [MoveRecord(1, 0)]})


class TestApplyMoveErrors:
    @pytest.mark.parametrize("index", [-1, 9, 100, "4", 4.0, True, None])
    def test_invalid_index(self, index):
        with pytest.raises(InvalidIndexError):
            GameState().apply_move(index)

    def test_cell_occupied(self):
        g = GameState().apply_move(4)
        with pytest.raises(CellOccupiedError):
            g.apply_move(4)

    def test_game_over(self):
        g = replay([0, 3, 1, 4, 2])  # X wins the top row
        assert g.is_over
        with pytest.raises(GameAlreadyOverError):
            g.apply_move(8)

    def test_errors_share_a_base_class(self):
        with pytest.raises(GameError):
            GameState().apply_move(42)

    def test_rejected_move_leaves_state_unchanged(self):
        g = replay([4, 0])
        snapshot = GameState(g.cells, g.current_player, g.history, g.next_order)
        with pytest.raises(CellOccupiedError):
            g.apply_move(0)
        assert g == snapshot


class TestEviction:
    def test_no_eviction_up_to_cap(self):
        g = replay(EIGHT_MOVES)
        assert not g.is_over
        assert len(g.pieces_of(X)) == MAX_PIECES
        assert len(g.pieces_of(O)) == MAX_PIECES
        assert g.legal_moves() == [1]

    def test_fifth_piece_evicts_oldest(self):
        g = replay(EIGHT_MOVES)
        assert g.oldest_piece(X) == 0
        g = g.apply_move(1)
        assert not g.is_over
        assert g.cells[1] is X
        assert g.cells[0] is None
        assert [r.index for r in g.history[X]] == [8, 6, 5, 1]
        assert g.current_player is O

    def test_eviction_continues_for_next_player(self):
        g = replay(EIGHT_MOVES + [1, 0])
        # O's oldest piece (4) leaves when O fills cell 0
        assert not g.is_over
        assert g.cells[0] is O
        assert g.cells[4] is None
        assert [r.index for r in g.history[O]] == [2, 3, 7, 0]

    def test_winning_fifth_piece_is_not_evicted(self):
        # X: 0, 3, 5, 7 live; placing 6 completes column 0
        g = replay([0, 1, 3, 2, 5, 4, 7, 8])
        assert len(g.pieces_of(X)) == MAX_PIECES
        g = g.apply_move(6)
        assert g.is_over
        assert g.winner is X
        assert g.cells[0] is X
        assert g.pieces_of(X) == [0, 3, 5, 6, 7]
        assert len(g.history[X]) == 5
        assert g.current_player is O

    def test_eviction_can_break_own_line_but_never_wins_by_removal(self):
        g = replay(EIGHT_MOVES + [1])
        assert check_winner(g.cells) is None


class TestRandomPlayInvariants:
    @pytest.mark.parametrize("seed", range(20))
    def test_piece_cap_and_history_length(self, seed):
        agents = {X: RandomAgent(seed=seed), O: RandomAgent(seed=seed + 1000)}
        g = GameState()
        for _ in range(80):
            if g.is_over:
                break
            mover = g.current_player
            g = g.apply_move(agents[mover].select_move(g))
            assert g.current_player is mover.other
            for player in Player:
                count = len(g.pieces_of(player))
                assert count == len(g.history[player])
                cap = MAX_PIECES + 1 if g.winner is player else MAX_PIECES
                assert count <= cap
            orders = [r.order for r in g.history[mover]]
            assert orders == sorted(orders)
        assert len(empty_cells(g.cells)) >= 1 or g.is_over
