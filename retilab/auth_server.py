"""TCP authentication server backed by a plain-text user database."""

from __future__ import annotations

import socket
import struct
import sys
import threading
from enum import Enum
from pathlib import Path
from typing import Iterator

SEPARATOR = ","
FIELD_SIZE = 20
DATABASE_FILE = "database.txt"

RESP_REGISTER_SUCCESS = "Registrazione effettuata con successo!"
RESP_REGISTER_ERROR = "L'utente è già registrato"
RESP_LOGIN_SUCCESS = "Login effettuato con successo! Benvenuto!"
RESP_LOGIN_ERROR = "Username o password errati"
RESP_DELETE_SUCCESS = "Utente eliminato con successo!"
RESP_DELETE_ERROR = "L'utente non è registrato"
ILLEGAL_CHAR_MESSAGE = (
    "Il simbolo '" + SEPARATOR + "' non può essere usato all'intero di nome utente o password"
)

_REQUEST = struct.Struct(f"<i{FIELD_SIZE}s{FIELD_SIZE}s")
REQUEST_SIZE = _REQUEST.size


class Operation(str, Enum):
    """Operations a client may request."""

    REGISTER = "r"
    LOGIN = "l"
    DELETE = "d"


class UserDatabase:
    """Users stored one per line as ``username,password``."""

    def __init__(self, path):
        self.path = Path(path)
        self.path.touch(exist_ok=True)

    def _lines(self) -> list[str]:
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return handle.readlines()

    def _records(self) -> Iterator[tuple[str, str]]:
        for line in self._lines():
            name, _, stored = line.rstrip("\n").partition(SEPARATOR)
            yield name, stored

    def exists(self, username: str) -> bool:
        """Tell whether a user with this name is registered."""
        return any(name == username for name, _ in self._records())

    def login(self, username: str, password: str) -> bool:
        """Tell whether the username and password match a registered user."""
        return any(
            name == username and stored == password for name, stored in self._records()
        )

    def register(self, username: str, password: str) -> bool:
        """Add a user unless the name is already taken."""
        if self.exists(username):
            return False
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            handle.write(f"{username}{SEPARATOR}{password}\n")
        return True

    def delete(self, username: str, password: str) -> bool:
        """Remove a user whose credentials are correct."""
        if not self.login(username, password):
            return False
        kept = [
            line for line in self._lines() if line.partition(SEPARATOR)[0] != username
        ]
        with self.path.open("w", encoding="utf-8", newline="") as handle:
            handle.writelines(kept)
        return True


def validate_input(text: str) -> bool:
    """Reject text holding the field separator or a newline."""
    return SEPARATOR not in text and "\n" not in text


def _field(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > FIELD_SIZE - 1:
        raise ValueError(f"field longer than {FIELD_SIZE - 1} bytes: {text!r}")
    return raw


def encode_request(operation: Operation, username: str, password: str) -> bytes:
    """Pack a request into its fixed-size wire form."""
    op = Operation(operation)
    return _REQUEST.pack(ord(op.value), _field(username), _field(password))


def _cstring(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def decode_request(data: bytes) -> tuple[Operation, str, str]:
    """Unpack a request; raises ValueError on a malformed one."""
    if len(data) != REQUEST_SIZE:
        raise ValueError(f"request must be {REQUEST_SIZE} bytes, got {len(data)}")
    code, raw_name, raw_word = _REQUEST.unpack(data)
    try:
        operation = Operation(chr(code))
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"unknown operation code {code}") from exc
    return operation, _cstring(raw_name), _cstring(raw_word)


def handle_operation(
    database: UserDatabase, operation: Operation, username: str, password: str
) -> str:
    """Run an operation against the database and return the reply text."""
    operation = Operation(operation)
    if operation is Operation.REGISTER:
        ok = database.register(username, password)
        return RESP_REGISTER_SUCCESS if ok else RESP_REGISTER_ERROR
    if operation is Operation.LOGIN:
        ok = database.login(username, password)
        return RESP_LOGIN_SUCCESS if ok else RESP_LOGIN_ERROR
    ok = database.delete(username, password)
    return RESP_DELETE_SUCCESS if ok else RESP_DELETE_ERROR


def _recv_request(conn: socket.socket) -> bytes:
    data = b""
    while len(data) < REQUEST_SIZE:
        chunk = conn.recv(REQUEST_SIZE - len(data))
        if not chunk:
            break
        data += chunk
    return data


def handle_connection(conn: socket.socket, database: UserDatabase, lock) -> str | None:
    """Serve one request on a connection; return the reply sent, if any."""
    data = _recv_request(conn)
    if not data:
        return None
    try:
        operation, username, supplied = decode_request(data)
    except ValueError as exc:
        print(f"Richiesta non valida: {exc}", file=sys.stderr)
        return None
    if not validate_input(username) or not validate_input(supplied):
        response = ILLEGAL_CHAR_MESSAGE
    else:
        with lock:
            print(f"Avvio operazione {operation.value}")
            response = handle_operation(database, operation, username, supplied)
            print(f"Operazione {operation.value} completata")
    conn.sendall(response.encode("utf-8") + b"\0")
    return response


def _serve_connection(conn: socket.socket, database: UserDatabase, lock) -> None:
    with conn:
        try:
            handle_connection(conn, database, lock)
        except OSError as exc:
            print(f"Errore nella risposta al client: {exc}", file=sys.stderr)


def serve(port: int, database_path=DATABASE_FILE) -> None:
    """Accept connections until interrupted, one thread per client."""
    database = UserDatabase(database_path)
    lock = threading.Lock()
    workers: list[threading.Thread] = []
    with socket.create_server(("", port)) as server:
        try:
            while True:
                conn, _ = server.accept()
                worker = threading.Thread(
                    target=_serve_connection, args=(conn, database, lock)
                )
                worker.start()
                workers.append(worker)
        except KeyboardInterrupt:
            print("\nChiusura server in corso...")
    for worker in workers:
        worker.join()


def main(argv=None) -> int:
    """Command entry point: ``auth-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Use: listening_PORT")
        return 0
    try:
        port = int(args[0])
    except ValueError:
        print("Use: listening_PORT")
        return 1
    try:
        serve(port)
    except OSError as exc:
        print(f"Binding error! {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())