"""Chat relay that forwards each message to the clients of the nearest languages."""

from __future__ import annotations

import random
import socket
import sys
import threading
from enum import IntEnum
from pathlib import Path

MSG_SIZE = 21
DATABASE_FILE = "database.txt"
_MIN_DISTANCE = 10
_DISTANCE_SPAN = 245


class Language(IntEnum):
    """Programming languages a chat client can register as."""

    C = 0
    CPP = 1
    JAVA = 2
    PYTHON = 3
    MATLAB = 4
    R = 5

    @property
    def label(self) -> str:
        """Name used on the wire and in the registry file."""
        return _LABELS[self]


_LABELS = {
    Language.C: "c",
    Language.CPP: "c++",
    Language.JAVA: "java",
    Language.PYTHON: "python",
    Language.MATLAB: "matlab",
    Language.R: "R",
}


def language_from_name(name: str) -> Language:
    """Look up a language by its wire name; raises ValueError if unknown."""
    for language in Language:
        if language.label == name:
            return language
    raise ValueError(f"unknown language: {name!r}")


def _label(language) -> str:
    return language.label if isinstance(language, Language) else str(language)


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def random_distance_matrix(rng=None) -> list[list[int]]:
    """Build a symmetric distance matrix with zero diagonal and values in [10, 254]."""
    rng = random.Random() if rng is None else rng
    size = len(Language)
    matrix = [[0] * size for _ in range(size)]
    for i in range(size):
        for j in range(i + 1):
            value = 0 if i == j else rng.randrange(_DISTANCE_SPAN) + _MIN_DISTANCE
            matrix[i][j] = matrix[j][i] = value
    return matrix


def format_matrix(matrix) -> str:
    """Render the matrix one row per line, each value followed by a space."""
    return "".join(
        "".join(f"{column[row]} " for column in matrix) + "\n"
        for row in range(len(matrix))
    )


def find_closest_languages(matrix, start, n: int) -> list[Language]:
    """Return the ``n`` languages nearest to ``start``, nearest first.

    Ties go to the language listed first.
    """
    start = Language(start)
    if not 0 <= n <= len(Language) - 1:
        raise ValueError(f"n must be between 0 and {len(Language) - 1}, got {n}")
    chosen: list[Language] = []
    for _ in range(n):
        candidates = [lang for lang in Language if lang != start and lang not in chosen]
        chosen.append(min(candidates, key=lambda lang: matrix[start][lang]))
    return chosen


def parse_registration(data: bytes) -> tuple[Language, int]:
    """Parse ``<language> <port>`` sent by a client when it connects."""
    tokens = [token for token in _cstring(data).split(" ") if token]
    if len(tokens) < 2:
        raise ValueError(f"malformed registration: {data!r}")
    try:
        port = int(tokens[1])
    except ValueError as exc:
        raise ValueError(f"invalid port: {tokens[1]!r}") from exc
    return language_from_name(tokens[0]), port


def parse_chat_message(data: bytes) -> tuple[int, str]:
    """Parse ``<n> <message>``; only the first word after ``n`` is the message."""
    tokens = [token for token in _cstring(data).split(" ") if token]
    if len(tokens) < 2:
        raise ValueError(f"malformed chat message: {data!r}")
    try:
        count = int(tokens[0])
    except ValueError as exc:
        raise ValueError(f"invalid count: {tokens[0]!r}") from exc
    return count, tokens[1]


class Registry:
    """Registered clients, one ``<language> <ip> <port>`` line each."""

    def __init__(self, path):
        self.path = Path(path)
        self.path.touch(exist_ok=True)
        self._lock = threading.Lock()

    def register(self, language, ip: str, port) -> None:
        """Append a client to the registry."""
        with self._lock, self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"{_label(language)} {ip} {port}\n")

    def addresses_for(self, languages) -> list[tuple[str, int]]:
        """Return, in file order, the addresses of clients of the given languages."""
        wanted = {_label(language) for language in languages}
        with self._lock:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        addresses = []
        for line in lines:
            fields = line.split()
            if len(fields) < 3 or fields[0] not in wanted:
                continue
            try:
                addresses.append((fields[1], int(fields[2])))
            except ValueError:
                continue
        return addresses


def _deliver(addresses, message: str) -> None:
    payload = message.encode("utf-8") + b"\0"
    for ip, port in addresses:
        try:
            with socket.create_connection((ip, port), timeout=5) as sock:
                sock.sendall(payload)
        except OSError as exc:
            print(f"Invio a {ip}:{port} fallito: {exc}", file=sys.stderr)


def _serve_client(conn: socket.socket, ip: str, matrix, registry: Registry) -> None:
    with conn:
        data = conn.recv(MSG_SIZE - 1)
        if not data:
            return
        print(f"Messaggio ricevuto dal client: {_cstring(data)}")
        try:
            language, client_port = parse_registration(data)
        except ValueError as exc:
            print(f"Registrazione non valida: {exc}", file=sys.stderr)
            return
        registry.register(language, ip, client_port)
        while data := conn.recv(MSG_SIZE - 1):
            try:
                count, message = parse_chat_message(data)
                closest = find_closest_languages(matrix, language, count)
            except ValueError as exc:
                print(f"Messaggio non valido: {exc}", file=sys.stderr)
                continue
            print(f"Messaggio ricevuto: {_cstring(data)}\nn: {count}, messaggio {message}")
            for position, target in enumerate(closest):
                print(f"linguaggio {position}: {target.label}")
            _deliver(registry.addresses_for(closest), message)


def serve(port: int, matrix, registry: Registry) -> None:
    """Accept clients forever, each served in its own thread."""
    with socket.create_server(("", port)) as server:
        while True:
            conn, address = server.accept()
            threading.Thread(
                target=_serve_client,
                args=(conn, address[0], matrix, registry),
                daemon=True,
            ).start()


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``chatvm-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    matrix = random_distance_matrix()
    print(format_matrix(matrix), end="")
    if not args or _port(args[0]) == 0:
        print("use: chatvm-server <porta server>", file=sys.stderr)
        return 1
    try:
        registry = Registry(DATABASE_FILE)
    except OSError as exc:
        print(f"database: {exc}", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]), matrix, registry)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"bind: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())