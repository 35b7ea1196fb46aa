"""UDP relay: clients send ``<ip> <port> <message>`` and the server forwards the message."""

from __future__ import annotations

import socket
import sys
import threading
from typing import Iterator

MAX_PORT_SIZE = 8
MAX_MSG_SIZE = 1024
INET_ADDRSTRLEN = 16
MAX_MSG_TO_SERVER_SIZE = INET_ADDRSTRLEN + MAX_PORT_SIZE + MAX_MSG_SIZE
EXIT_MESSAGE = "exit"


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def format_route_message(ip: str, port, message: str) -> bytes:
    """Build the datagram a client sends to the relay."""
    return f"{ip} {port} {message}".encode("utf-8") + b"\0"


def parse_route_message(data: bytes) -> tuple[str, int, str]:
    """Split a relay datagram into destination ip, port and message.

    Only the first word after the port is the message.
    """
    tokens = [token for token in _cstring(data).split(" ") if token]
    if len(tokens) < 3:
        raise ValueError(f"malformed route message: {data!r}")
    ip, port_text, message = tokens[:3]
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"invalid port: {port_text!r}") from exc
    return ip, port, message


def forward_datagram(sock: socket.socket, data: bytes) -> tuple[str, int, str]:
    """Forward the message in ``data`` to its destination; return what was routed."""
    ip, port, message = parse_route_message(data)
    print(f"Ricevuto un messaggio:\nip: {ip}, port: {port}, message {message}")
    sock.sendto(message.encode("utf-8") + b"\0", (ip, port))
    return ip, port, message


def serve(port: int) -> None:
    """Relay datagrams forever."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("", port))
        while True:
            print("In attesa di messaggi")
            data, _ = sock.recvfrom(MAX_MSG_TO_SERVER_SIZE)
            try:
                forward_datagram(sock, data)
            except (ValueError, OSError) as exc:
                print(f"Messaggio scartato: {exc}", file=sys.stderr)


def receive_messages(sock: socket.socket) -> Iterator[str]:
    """Yield incoming messages, stopping after an ``exit`` message."""
    while True:
        data, _ = sock.recvfrom(MAX_MSG_SIZE)
        message = _cstring(data)
        yield message
        if message == EXIT_MESSAGE:
            return


def _print_incoming(sock: socket.socket) -> None:
    try:
        print("In attesa di messaggi")
        for message in receive_messages(sock):
            print(f"Messaggio ricevuto: {message}")
            if message != EXIT_MESSAGE:
                print("In attesa di messaggi")
    except OSError:
        pass


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def server_main(argv=None) -> int:
    """Command entry point: ``routing-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: routing-server <porta di ascolto server>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"bind(): {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv=None) -> int:
    """Command entry point: ``routing-client <listen port> <server ip> <server port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 3 or _port(args[0]) == 0 or _port(args[2]) == 0:
        print(
            "use: routing-client <porta di ascolto client> <ip server di riferimento> "
            "<porta server di riferimento>",
            file=sys.stderr,
        )
        return 1
    server_address = (args[1], _port(args[2]))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.bind(("", _port(args[0])))
        except OSError as exc:
            print(f"bind(): {exc}", file=sys.stderr)
            return 1
        threading.Thread(target=_print_incoming, args=(sock,), daemon=True).start()
        while True:
            try:
                ip = input("Qual è l'ip del client a cui vuoi mandare un messaggio?\n")
                port = input("Su quale porta ascolterà il client destinatario?\n")
                message = input("Quale messaggio vuoi inviare?\n")
            except (EOFError, KeyboardInterrupt):
                break
            try:
                sock.sendto(format_route_message(ip, port, message), server_address)
            except OSError as exc:
                print(f"sendto: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(server_main())