"""Rock-paper-scissors between two UDP clients, refereed by the server."""

from __future__ import annotations

import socket
import struct
import sys
from enum import Enum, IntEnum

PLAYERS = 2
MAX_BUFFER_SIZE = 1024
REQUEST_MOVE = "Fai la tua mossa"
INVALID_MOVE_MSG = "Mossa non valida, turno da rifare"
GAME_OVER_MARK = "vinto la partita"

_MOVE = struct.Struct("<i")


class Move(str, Enum):
    """A player's move, as the character typed."""

    ROCK = "r"
    PAPER = "p"
    SCISSORS = "s"


class Outcome(IntEnum):
    """Who won a round; the player values index the lives."""

    PLAYER_1 = 0
    PLAYER_2 = 1
    NONE = 2


_BEATS = {Move.ROCK: Move.SCISSORS, Move.PAPER: Move.ROCK, Move.SCISSORS: Move.PAPER}
_MOVE_NAMES = {Move.ROCK: "Sasso", Move.PAPER: "Carta", Move.SCISSORS: "Forbice"}
_OUTCOME_NAMES = {
    Outcome.PLAYER_1: "Giocatore 1",
    Outcome.PLAYER_2: "Giocatore 2",
    Outcome.NONE: "Nessuno",
}
_VALID = {move.value for move in Move}


def round_winner(first, second) -> Outcome:
    """Judge one round; raises ValueError on an unknown move."""
    first, second = Move(first), Move(second)
    if first is second:
        return Outcome.NONE
    return Outcome.PLAYER_1 if _BEATS[first] is second else Outcome.PLAYER_2


def move_name(move) -> str:
    """Readable name of a move, ``Errore`` for anything else."""
    try:
        return _MOVE_NAMES[Move(move)]
    except ValueError:
        return "Errore"


def outcome_name(outcome) -> str:
    """Readable name of a round's winner, ``Errore`` for anything else."""
    try:
        return _OUTCOME_NAMES[Outcome(outcome)]
    except ValueError:
        return "Errore"


class RockPaperScissors:
    """Score keeping for a match.

    Every round won takes one from the winner's counter; the first player
    whose counter reaches zero wins the match.
    """

    def __init__(self, lives: int):
        if lives < 1:
            raise ValueError(f"lives must be positive, got {lives}")
        self.lives = [lives, lives]
        self.rounds = 0
        self.winner = Outcome.NONE

    @property
    def finished(self) -> bool:
        """Whether a player's counter has reached zero."""
        return 0 in self.lives

    def play_round(self, first, second) -> Outcome:
        """Play a round with both moves and return its winner.

        Raises ValueError on an unknown move or when the match is over.
        """
        if self.finished:
            raise ValueError("la partita è finita")
        outcome = round_winner(first, second)
        self.rounds += 1
        self.winner = outcome
        if outcome is not Outcome.NONE:
            self.lives[outcome] -= 1
        return outcome

    def round_message(self) -> str:
        """The result of the last round, sent to both players."""
        return (
            f"{outcome_name(self.winner)} ha vinto il round {self.rounds}.\n"
            f"Il giocatore 1 ha {self.lives[Outcome.PLAYER_1]} vite, "
            f"il giocatore 2 ha {self.lives[Outcome.PLAYER_2]} vite"
        )

    def final_message(self) -> str:
        """The result of the match; raises ValueError while it is still running."""
        if not self.finished:
            raise ValueError("la partita è ancora in corso")
        name = outcome_name(self.winner)
        return (
            f"{name} ha vinto il round {self.rounds}. "
            f"E con quest'ultima mossa, {name} ha vinto la partita!"
        )


def _encode(text: str) -> bytes:
    return text.encode("utf-8")[: MAX_BUFFER_SIZE - 1] + b"\0"


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _decode_move(data: bytes) -> str:
    if len(data) < _MOVE.size:
        return ""
    (code,) = _MOVE.unpack(data[: _MOVE.size])
    try:
        return chr(code)
    except (ValueError, OverflowError):
        return ""


def serve(port: int, lives: int) -> Outcome:
    """Register two players, referee one match and return its winner."""
    game = RockPaperScissors(lives)
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("", port))
        players = []
        for number in range(1, PLAYERS + 1):
            _, address = sock.recvfrom(MAX_BUFFER_SIZE)
            players.append(address)
            print(f"Giocatore {number} connesso\nIp: {address[0]}, port {address[1]}")
        print("Inizio della partita")
        while True:
            print("Attesa della mossa dei giocatori")
            moves = []
            for address in players:
                sock.sendto(_encode(REQUEST_MOVE), address)
                data, _ = sock.recvfrom(MAX_BUFFER_SIZE)
                moves.append(_decode_move(data))
            print(
                f"Round {game.rounds + 1}\nMossa giocatore 1: {move_name(moves[0])}\n"
                f"Mossa giocatore 2: {move_name(moves[1])}"
            )
            invalid = False
            for address, move in zip(players, moves):
                if move not in _VALID:
                    invalid = True
                if invalid:
                    sock.sendto(_encode(INVALID_MOVE_MSG), address)
            if invalid:
                continue
            game.play_round(moves[0], moves[1])
            if game.finished:
                break
            for address in players:
                sock.sendto(_encode(game.round_message()), address)
        print("Fine della partita")
        for address in players:
            sock.sendto(_encode(game.final_message()), address)
    return game.winner


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def server_main(argv=None) -> int:
    """Command entry point: ``rps-server <port> <lives per player>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[0]) == 0 or _port(args[1]) < 1:
        print("Usage: rps-server <port> <lives per player>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]), _port(args[1]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv=None) -> int:
    """Command entry point: ``rps-client <server ip> <server port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[1]) == 0:
        print("Usage: rps-client <server ip> <server port>", file=sys.stderr)
        return 1
    server = (args[0], _port(args[1]))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.sendto(b"", server)
            print(f"Connessione al server {args[0]}:{args[1]} effettuata con successo")
            print("Avvio della partita")
            while True:
                sock.recvfrom(MAX_BUFFER_SIZE)
                line = input("Inserisci la tua mossa (r = rock, p = paper, s = scissors): ")
                move = line[:1] or "\n"
                sock.sendto(_MOVE.pack(ord(move)), server)
                data, _ = sock.recvfrom(MAX_BUFFER_SIZE)
                text = _cstring(data)
                print(text)
                if GAME_OVER_MARK in text:
                    break
        except (EOFError, KeyboardInterrupt):
            pass
        except OSError as exc:
            print(f"socket: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(server_main())