import socket
import threading

import pytest

from retilab.hangman_client import describe_attempt, is_game_over, main


def test_describe_single_letter():
    assert describe_attempt("a") == "Hai scelto di inviare la lettera a"


def test_describe_word():
    assert describe_attempt("casa") == "Hai scelto di inviare la parola casa"


@pytest.mark.parametrize(
    "text",
    [
        "Hai vinto, partita finita.\nLa parola era: casa",
        "Game over, partita finita.\nUltimo stato: c_sa",
    ],
)
def test_final_messages_end_game(text):
    assert is_game_over(text) is True


def test_state_message_does_not_end_game():
    assert is_game_over("Parola corrente: ____ | Vite Anna: 3 - Bruno: 3") is False


@pytest.mark.parametrize("argv", [[], ["127.0.0.1"], ["127.0.0.1", "x"]])
def test_main_rejects_bad_arguments(argv):
    assert main(argv) == 1


def test_main_plays_until_game_over(monkeypatch, capsys):
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(5)
    port = server.getsockname()[1]
    received = []

    def referee():
        name, address = server.recvfrom(1024)
        received.append(name)
        server.sendto(b"Parola corrente: ____\0", address)
        attempt, address = server.recvfrom(1024)
        received.append(attempt)
        server.sendto(b"Hai vinto, partita finita.\0", address)

    thread = threading.Thread(target=referee)
    thread.start()
    answers = iter(["Anna", "casa"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    try:
        assert main(["127.0.0.1", str(port)]) == 0
    finally:
        thread.join(5)
        server.close()
    assert received == [b"Anna\0", b"casa\0"]
    assert "Hai scelto di inviare la parola casa" in capsys.readouterr().out