import itertools

import pytest

from retilab.rps import (
    GAME_OVER_MARK,
    Move,
    Outcome,
    RockPaperScissors,
    client_main,
    move_name,
    outcome_name,
    round_winner,
    server_main,
)


@pytest.mark.parametrize(
    "winner, loser",
    [(Move.ROCK, Move.SCISSORS), (Move.PAPER, Move.ROCK), (Move.SCISSORS, Move.PAPER)],
)
def test_round_winner_table(winner, loser):
    assert round_winner(winner, loser) is Outcome.PLAYER_1
    assert round_winner(loser, winner) is Outcome.PLAYER_2


@pytest.mark.parametrize("move", list(Move))
def test_same_move_is_a_tie(move):
    assert round_winner(move, move) is Outcome.NONE


def test_round_winner_is_antisymmetric():
    swap = {Outcome.PLAYER_1: Outcome.PLAYER_2, Outcome.PLAYER_2: Outcome.PLAYER_1,
            Outcome.NONE: Outcome.NONE}
    for first, second in itertools.product(Move, repeat=2):
        assert round_winner(second, first) is swap[round_winner(first, second)]


def test_round_winner_accepts_characters():
    assert round_winner("r", "s") is Outcome.PLAYER_1


def test_round_winner_rejects_unknown_move():
    with pytest.raises(ValueError):
        round_winner("x", "r")


@pytest.mark.parametrize(
    "move, name",
    [(Move.ROCK, "Sasso"), (Move.PAPER, "Carta"), (Move.SCISSORS, "Forbice"), ("x", "Errore")],
)
def test_move_name(move, name):
    assert move_name(move) == name


@pytest.mark.parametrize(
    "outcome, name",
    [
        (Outcome.PLAYER_1, "Giocatore 1"),
        (Outcome.PLAYER_2, "Giocatore 2"),
        (Outcome.NONE, "Nessuno"),
        (7, "Errore"),
    ],
)
def test_outcome_name(outcome, name):
    assert outcome_name(outcome) == name


def test_round_takes_from_the_winner():
    lives = 3
    game = RockPaperScissors(lives)
    assert game.play_round(Move.ROCK, Move.SCISSORS) is Outcome.PLAYER_1
    assert game.lives == [lives - 1, lives]
    assert game.rounds == 1


def test_tie_keeps_lives_and_counts_round():
    lives = 3
    game = RockPaperScissors(lives)
    game.play_round(Move.PAPER, Move.PAPER)
    assert game.lives == [lives, lives]
    assert game.rounds == 1
    assert game.winner is Outcome.NONE
    assert not game.finished


def test_round_message():
    game = RockPaperScissors(3)
    game.play_round(Move.ROCK, Move.SCISSORS)
    assert game.round_message() == (
        "Giocatore 1 ha vinto il round 1.\nIl giocatore 1 ha 2 vite, il giocatore 2 ha 3 vite"
    )


def test_match_ends_when_a_counter_reaches_zero():
    game = RockPaperScissors(2)
    game.play_round(Move.ROCK, Move.PAPER)
    assert not game.finished
    game.play_round(Move.SCISSORS, Move.ROCK)
    assert game.finished
    assert game.winner is Outcome.PLAYER_2
    message = game.final_message()
    assert message == (
        "Giocatore 2 ha vinto il round 2. "
        "E con quest'ultima mossa, Giocatore 2 ha vinto la partita!"
    )
    assert GAME_OVER_MARK in message


def test_final_message_before_end_raises():
    game = RockPaperScissors(2)
    with pytest.raises(ValueError):
        game.final_message()


def test_no_round_after_the_end():
    game = RockPaperScissors(1)
    game.play_round(Move.PAPER, Move.ROCK)
    with pytest.raises(ValueError):
        game.play_round(Move.PAPER, Move.ROCK)


def test_invalid_move_leaves_score_untouched():
    game = RockPaperScissors(2)
    with pytest.raises(ValueError):
        game.play_round("x", Move.ROCK)
    assert game.rounds == 0
    assert game.lives == [2, 2]


def test_lives_must_be_positive():
    with pytest.raises(ValueError):
        RockPaperScissors(0)


def test_server_main_rejects_bad_arguments():
    assert server_main([]) == 1
    assert server_main(["4000"]) == 1
    assert server_main(["4000", "0"]) == 1


def test_client_main_rejects_bad_arguments():
    assert client_main(["127.0.0.1"]) == 1
    assert client_main(["127.0.0.1", "porta"]) == 1