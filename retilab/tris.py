"""Tic-tac-toe over TCP, refereed by the server."""

from __future__ import annotations

import socket
import struct
import sys
from enum import IntEnum

from retilab.connect_four import InvalidMove

GRID_SIZE = 9
PLAYERS = 2
MAX_BUFFER_SIZE = 1024
STATE_HEADER = "Stato della partita:\n"

_MOVE = struct.Struct("<i")
_LINES = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Winner(IntEnum):
    """State of the game; the player values also mark their cells."""

    NONE = 0
    PLAYER_1 = 1
    PLAYER_2 = 2
    DRAW = 3


_SYMBOLS = {Winner.PLAYER_1: " X ", Winner.PLAYER_2: " O ", Winner.NONE: "   "}


class TicTacToe:
    """A 3x3 grid, cells numbered 1-9 from the top left."""

    def __init__(self):
        self.grid = [Winner.NONE] * GRID_SIZE

    def play(self, position: int, player: int) -> None:
        """Mark ``position`` for ``player`` (0 or 1).

        Raises InvalidMove when the position is off the grid or taken.
        """
        if player not in range(PLAYERS):
            raise ValueError(f"invalid player: {player}")
        if not 1 <= position <= GRID_SIZE:
            raise InvalidMove(f"posizione fuori dalla griglia: {position}")
        if self.grid[position - 1] != Winner.NONE:
            raise InvalidMove(f"posizione occupata: {position}")
        self.grid[position - 1] = Winner(player + 1)

    def outcome(self) -> Winner:
        """The winner, DRAW on a full grid without a line, otherwise NONE."""
        for a, b, c in _LINES:
            if self.grid[a] != Winner.NONE and self.grid[a] == self.grid[b] == self.grid[c]:
                return Winner(self.grid[a])
        if Winner.NONE in self.grid:
            return Winner.NONE
        return Winner.DRAW

    def render(self) -> str:
        """The grid as three lines of ``|``-separated cells."""
        rows = []
        for start in range(0, GRID_SIZE, 3):
            cells = self.grid[start : start + 3]
            rows.append("".join("|" + _SYMBOLS[Winner(cell)] for cell in cells) + "|\n")
        return "".join(rows)


def result_text(winner) -> str:
    """Who won, as shown to the players; raises ValueError while the game runs."""
    winner = Winner(winner)
    if winner is Winner.PLAYER_1:
        return "Il giocatore 1"
    if winner is Winner.PLAYER_2:
        return "Il giocatore 2"
    if winner is Winner.DRAW:
        return "Nessuno"
    raise ValueError("la partita è ancora in corso")


def _frame(text: str) -> bytes:
    raw = text.encode("utf-8")[: MAX_BUFFER_SIZE - 1]
    return raw.ljust(MAX_BUFFER_SIZE, b"\0")


def _recv_exact(conn: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            raise ConnectionError("connessione chiusa dal giocatore")
        data += chunk
    return data


def judge(connections, game: TicTacToe) -> Winner:
    """Referee a game between two connected players and return the result.

    Each message is a NUL-padded block of MAX_BUFFER_SIZE bytes; each move is
    a little-endian 32-bit cell number. An invalid move is asked again.
    """
    print("Inizio della partita")
    turn = 0
    while True:
        winner = game.outcome()
        grid = game.render()
        if winner is not Winner.NONE:
            final = _frame(f"{result_text(winner)} ha vinto la partita\n{grid}")
            for conn in connections:
                conn.sendall(final)
            return winner
        conn = connections[turn]
        conn.sendall(_frame(f"{STATE_HEADER}{grid}"))
        print(f"Attesa della mossa del giocatore {turn + 1}")
        (position,) = _MOVE.unpack(_recv_exact(conn, _MOVE.size))
        print(f"Il giocatore {turn + 1} ha scelto la posizione {position}")
        try:
            game.play(position, turn)
        except InvalidMove:
            print("Mossa non valida")
            continue
        turn = 1 - turn


def serve(port: int) -> Winner:
    """Wait for two players, referee one game and return its result."""
    if socket.has_dualstack_ipv6():
        server = socket.create_server(("", port), family=socket.AF_INET6, dualstack_ipv6=True)
    else:
        server = socket.create_server(("", port))
    connections: list[socket.socket] = []
    with server:
        try:
            for number in range(1, PLAYERS + 1):
                print("Attesa di connessione")
                conn, _ = server.accept()
                connections.append(conn)
                print(f"Connessione stabilita con il giocatore {number}")
            return judge(connections, TicTacToe())
        finally:
            for conn in connections:
                conn.close()


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``tris-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("Usage: tris-server <port>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())