import pytest

from retilab.connect_four import (
    COLUMNS,
    DRAW,
    ROWS,
    Cell,
    ConnectFour,
    InvalidMove,
    is_final_message,
)


def play_all(game, columns):
    for column in columns:
        game.play(column)
    return game


def test_new_game_is_empty_and_red_starts():
    game = ConnectFour()
    assert game.turn == 0
    assert game.winner is None
    assert all(cell == Cell.EMPTY for row in game.grid for cell in row)


def test_render_empty_grid():
    expected = ("|" + "   |" * 7 + "\n") * 6 + "  1   2   3   4   5   6   7\n"
    assert ConnectFour().render() == expected


def test_pieces_fall_to_lowest_free_row():
    game = ConnectFour()
    assert game.play(3) == 0
    assert game.play(3) == 1
    assert game.grid[0][2] == Cell.RED
    assert game.grid[1][2] == Cell.YELLOW
    assert game.turn == 0


def test_render_shows_pieces_on_bottom_row():
    game = play_all(ConnectFour(), [1, 2])
    lines = game.render().splitlines()
    assert len(lines) == ROWS + 1
    assert lines[ROWS - 1].startswith("| R | Y |")
    assert "R" not in "".join(lines[: ROWS - 1])


def test_vertical_win():
    game = play_all(ConnectFour(), [1, 2, 1, 2, 1, 2, 1])
    assert game.winner == 0
    assert game.finished


def test_horizontal_win():
    game = play_all(ConnectFour(), [1, 1, 2, 2, 3, 3, 4])
    assert game.winner == 0


def test_second_player_can_win():
    game = play_all(ConnectFour(), [1, 2, 1, 2, 1, 2, 7, 2])
    assert game.winner == 1


def test_diagonal_win():
    game = play_all(ConnectFour(), [1, 2, 2, 3, 3, 4, 3, 4, 4, 7])
    assert game.winner is None
    game.play(4)
    assert game.winner == 0


def test_anti_diagonal_win():
    game = play_all(ConnectFour(), [7, 6, 6, 5, 5, 4, 5, 4, 4, 1])
    assert game.winner is None
    game.play(4)
    assert game.winner == 0


def test_full_board_without_line_is_draw():
    game = ConnectFour()
    for row in range(ROWS):
        for column in range(COLUMNS):
            game.grid[row][column] = Cell((row // 3 + column) % 2)
    game.grid[ROWS - 1][COLUMNS - 1] = Cell.EMPTY
    game.turn = 1
    game.play(COLUMNS)
    assert game.winner == DRAW


@pytest.mark.parametrize("column", [0, 8, -1])
def test_column_out_of_range_is_rejected(column):
    game = ConnectFour()
    with pytest.raises(InvalidMove):
        game.play(column)
    assert game.turn == 0


def test_full_column_is_rejected_and_turn_kept():
    game = play_all(ConnectFour(), [1] * ROWS)
    assert game.winner is None
    with pytest.raises(InvalidMove):
        game.play(1)
    assert game.turn == 0


def test_no_moves_after_game_over():
    game = play_all(ConnectFour(), [1, 2, 1, 2, 1, 2, 1])
    with pytest.raises(InvalidMove):
        game.play(5)


def test_outcome_messages_for_winner_and_loser():
    game = play_all(ConnectFour(), [1, 2, 1, 2, 1, 2, 1])
    assert game.outcome_message(0) == game.render() + "Hai vinto!\n"
    assert game.outcome_message(1) == game.render() + "Hai perso!\n"


def test_outcome_message_for_draw():
    game = ConnectFour()
    game.winner = DRAW
    assert game.outcome_message(0).endswith("Pareggio!\n")
    assert game.outcome_message(1).endswith("Pareggio!\n")


def test_outcome_message_requires_finished_game():
    with pytest.raises(ValueError):
        ConnectFour().outcome_message(0)


def test_final_messages_are_recognised():
    game = play_all(ConnectFour(), [1, 2, 1, 2, 1, 2, 1])
    assert is_final_message(game.outcome_message(0))
    assert is_final_message(game.outcome_message(1))
    assert not is_final_message(ConnectFour().render())