"""Two-player Connect Four over TCP, refereed by the server."""

from __future__ import annotations

import re
import socket
import struct
import sys
from enum import IntEnum

ROWS = 6
COLUMNS = 7
PLAYERS = 2
DRAW = 2
MAX_BUFFER_SIZE = 1024
MAX_NAME_SIZE = 32

WIN_MESSAGE = "Hai vinto!"
LOSS_MESSAGE = "Hai perso!"
DRAW_MESSAGE = "Pareggio!"
_FOOTER = "  1   2   3   4   5   6   7\n"

_MOVE = struct.Struct("<i")
_INTEGER = re.compile(r"\s*([+-]?\d+)")


class Cell(IntEnum):
    """Content of a grid cell; a player's index is the colour of their pieces."""

    RED = 0
    YELLOW = 1
    EMPTY = 2


_SYMBOLS = {Cell.RED: " R |", Cell.YELLOW: " Y |", Cell.EMPTY: "   |"}
_DIRECTIONS = ((1, 0), (0, 1), (1, 1), (1, -1))


class InvalidMove(ValueError):
    """A move that the rules do not allow."""


class ConnectFour:
    """A 6x7 game; row 0 is the bottom row, player 0 plays red and moves first.

    ``winner`` is None while the game runs, then the winning player's index,
    or ``DRAW`` when the grid filled up with no winner.
    """

    def __init__(self):
        self.grid = [[Cell.EMPTY] * COLUMNS for _ in range(ROWS)]
        self.turn = 0
        self.winner: int | None = None

    @property
    def finished(self) -> bool:
        """Whether the game is over."""
        return self.winner is not None

    def _run(self, x: int, y: int, dx: int, dy: int, piece: Cell) -> int:
        count = 0
        x, y = x + dx, y + dy
        while 0 <= x < COLUMNS and 0 <= y < ROWS and self.grid[y][x] == piece:
            count += 1
            x, y = x + dx, y + dy
        return count

    def _connects(self, x: int, y: int, piece: Cell) -> bool:
        return any(
            1 + self._run(x, y, dx, dy, piece) + self._run(x, y, -dx, -dy, piece) >= 4
            for dx, dy in _DIRECTIONS
        )

    def play(self, column: int) -> int:
        """Drop the current player's piece in ``column`` (1-7); return the row it lands on.

        Raises InvalidMove when the column is out of range or full, or the game is over.
        """
        if self.finished:
            raise InvalidMove("la partita è finita")
        if not 1 <= column <= COLUMNS:
            raise InvalidMove(f"colonna fuori dalla griglia: {column}")
        x = column - 1
        row = next((y for y in range(ROWS) if self.grid[y][x] == Cell.EMPTY), None)
        if row is None:
            raise InvalidMove(f"colonna piena: {column}")
        piece = Cell(self.turn)
        self.grid[row][x] = piece
        if self._connects(x, row, piece):
            self.winner = self.turn
        elif all(cell != Cell.EMPTY for line in self.grid for cell in line):
            self.winner = DRAW
        self.turn = (self.turn + 1) % PLAYERS
        return row

    def render(self) -> str:
        """The grid as text, top row first, with column numbers underneath."""
        rows = (
            "|" + "".join(_SYMBOLS[Cell(cell)] for cell in self.grid[y]) + "\n"
            for y in reversed(range(ROWS))
        )
        return "".join(rows) + _FOOTER

    def outcome_message(self, player: int) -> str:
        """The final grid and the result as seen by ``player``.

        Raises ValueError while the game is still running.
        """
        if not self.finished:
            raise ValueError("la partita è ancora in corso")
        if self.winner == player:
            verdict = WIN_MESSAGE
        elif self.winner == 1 - player:
            verdict = LOSS_MESSAGE
        else:
            verdict = DRAW_MESSAGE
        return f"{self.render()}{verdict}\n"


def is_final_message(text: str) -> bool:
    """Tell whether a server message ends the game."""
    return any(word in text for word in (WIN_MESSAGE, LOSS_MESSAGE, DRAW_MESSAGE))


def _recv_exact(conn: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            raise ConnectionError("connessione chiusa dal giocatore")
        data += chunk
    return data


def _send_text(conn: socket.socket, text: str) -> None:
    conn.sendall(text.encode("utf-8") + b"\0")


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _play(players, names, game: ConnectFour) -> None:
    while not game.finished:
        conn = players[game.turn]
        _send_text(conn, game.render())
        print(f"Sent grid to player {names[game.turn]}")
        (column,) = _MOVE.unpack(_recv_exact(conn, _MOVE.size))
        print(f"Player {names[game.turn]} moved in column {column}")
        try:
            game.play(column)
        except InvalidMove:
            print("Invalid move")
    print(game.render(), end="")
    for index, conn in enumerate(players):
        _send_text(conn, game.outcome_message(index))


def serve(port: int) -> None:
    """Wait for two players, referee one game, then stop."""
    with socket.create_server(("", port)) as server:
        players: list[socket.socket] = []
        names: list[str] = []
        try:
            for _ in range(PLAYERS):
                conn, _ = server.accept()
                players.append(conn)
                name = _cstring(conn.recv(MAX_NAME_SIZE))
                names.append(name)
                print(f"Player {name} connected")
            _play(players, names, ConnectFour())
        finally:
            for conn in players:
                conn.close()


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def _atoi(text: str) -> int:
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


def server_main(argv=None) -> int:
    """Command entry point: ``connect-four-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: connect-four-server <port server>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"server: {exc}", file=sys.stderr)
        return 1
    return 0


class _MessageReader:
    """Splits the byte stream into NUL-terminated messages."""

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._pending = b""

    def read(self) -> str:
        while b"\0" not in self._pending:
            chunk = self._sock.recv(MAX_BUFFER_SIZE)
            if not chunk:
                raise ConnectionError("il server ha chiuso la connessione")
            self._pending += chunk
        message, _, self._pending = self._pending.partition(b"\0")
        return message.decode("utf-8", errors="replace")


def _session(sock: socket.socket) -> None:
    name = input("Inserisci il tuo nome: ")
    raw = name.encode("utf-8")[: MAX_NAME_SIZE - 1]
    sock.sendall(raw + b"\0")
    reader = _MessageReader(sock)
    while True:
        text = reader.read()
        print(text)
        if is_final_message(text):
            return
        column = 0
        while not 1 <= column <= COLUMNS:
            column = _atoi(input("Inserisci la colonna: "))
            print(f"Hai scelto la colonna {column}")
        sock.sendall(_MOVE.pack(column))


def client_main(argv=None) -> int:
    """Command entry point: ``connect-four-client <ip server> <port server>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[1]) == 0:
        print("use: connect-four-client <ip server> <port server>", file=sys.stderr)
        return 1
    try:
        with socket.create_connection((args[0], _port(args[1]))) as sock:
            try:
                _session(sock)
            except (EOFError, KeyboardInterrupt):
                pass
    except OSError as exc:
        print(f"connect: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(server_main())