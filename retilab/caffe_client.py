"""Interactive client for the vending server."""

from __future__ import annotations

import socket
import sys

MAX_BUFFER_SIZE = 1024
_CONTINUE = "c"
_QUIT = "q"


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


def order_request(product_id, quantity) -> bytes:
    """Build the ``id,quantity`` order sent to the server."""
    return f"{product_id},{quantity}".encode("utf-8")[: MAX_BUFFER_SIZE - 1] + b"\0"


def _order(sock: socket.socket, reader: _MessageReader) -> None:
    product_id = input("Inserisci l'id del prodotto che vuoi ordinare: ")
    quantity = input("Inserisci la quantità del prodotto che vuoi ordinare: ")
    print(f"Invio ordine per {quantity} unità del prodotto con id {product_id}")
    sock.sendall(order_request(product_id, quantity))
    print(f"Il server ha risposto con: {reader.read()}")
    print(f"Elenco prodotti:\n{reader.read()}")


def _session(sock: socket.socket) -> None:
    reader = _MessageReader(sock)
    print(f"Elenco prodotti:\n{reader.read()}")
    _order(sock, reader)
    while True:
        action = input("Che operazione vuoi effettuare? [c|q]\n")[:1]
        if action == _QUIT:
            return
        if action == _CONTINUE:
            _order(sock, reader)


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``caffe-client <ip server> <port server>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[1]) == 0:
        print("use: caffe-client <ip server> <port server>", file=sys.stderr)
        return 1
    try:
        with socket.create_connection((args[0], _port(args[1]))) as sock:
            try:
                _session(sock)
            except EOFError:
                pass
    except OSError as exc:
        print(f"connect: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())