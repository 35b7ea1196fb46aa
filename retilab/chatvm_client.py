"""Chat client: registers with the relay, sends messages and prints what arrives."""

from __future__ import annotations

import socket
import sys
import threading
from typing import Iterator

MSG_SIZE = 21


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def registration_message(language: str, port) -> bytes:
    """Build the registration datagram ``<language> <port>``."""
    raw = f"{language} {port}".encode("utf-8")
    if len(raw) > MSG_SIZE - 1:
        raise ValueError(f"registration longer than {MSG_SIZE - 1} bytes")
    return raw + b"\0"


def receive_messages(port: int) -> Iterator[str]:
    """Listen on ``port`` and yield the message of each incoming connection."""
    with socket.create_server(("", port)) as server:
        while True:
            conn, _ = server.accept()
            with conn:
                data = conn.recv(MSG_SIZE - 1)
            yield _cstring(data)


def _print_incoming(port: int) -> None:
    try:
        for message in receive_messages(port):
            print(f"Messaggio ricevuto: '{message}'")
    except OSError as exc:
        print(f"Ricezione interrotta: {exc}", file=sys.stderr)


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``chatvm-client <language> <client port> <server ip> <server port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 4 or _port(args[1]) == 0 or _port(args[3]) == 0:
        print(
            "use: chatvm-client <linguaggio di programmazione> <porta client> "
            "<ip server> <porta server>",
            file=sys.stderr,
        )
        return 1
    language, listen_port, server_ip, server_port = args[0], args[1], args[2], _port(args[3])
    try:
        registration = registration_message(language, listen_port)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(
        f"Messaggio di registrazione: {_cstring(registration)}\n"
        f"Costruito con language {language} e port {listen_port}"
    )
    threading.Thread(target=_print_incoming, args=(_port(listen_port),), daemon=True).start()
    try:
        with socket.create_connection((server_ip, server_port)) as sock:
            sock.sendall(registration)
            while True:
                try:
                    line = input("Inserire la stringa 'n messaggio' > \n")
                except (EOFError, KeyboardInterrupt):
                    break
                sock.sendall(line[: MSG_SIZE + 3].encode("utf-8") + b"\0")
    except OSError as exc:
        print(f"connect: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())