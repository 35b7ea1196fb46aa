"""UDP client for the two-player hangman game."""

from __future__ import annotations

import socket
import sys

MAX_BUFFER_SIZE = 1024
MAX_NAME_SIZE = 32
_GAME_OVER = "partita finita"


def describe_attempt(attempt: str) -> str:
    """Say whether the attempt is a single letter or a whole word."""
    kind = "lettera" if len(attempt.encode("utf-8")) == 1 else "parola"
    return f"Hai scelto di inviare la {kind} {attempt}"


def is_game_over(text: str) -> bool:
    """Tell whether a server message ends the game."""
    return _GAME_OVER in text


def _cstring(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _encode(text: str, limit: int) -> bytes:
    return text.encode("utf-8")[: limit - 1] + b"\0"


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``hangman-client <ip server> <port server>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[1]) == 0:
        print("use: hangman-client <ip server> <port server>", file=sys.stderr)
        return 1
    server = (args[0], _port(args[1]))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            name = input("Inserire nome: ")
            name_bytes = _encode(name, MAX_NAME_SIZE)
            print(f"Connessione al server: io sono '{_cstring(name_bytes)}'")
            sock.sendto(name_bytes, server)
            while True:
                data, server = sock.recvfrom(MAX_BUFFER_SIZE)
                text = _cstring(data)
                print(text)
                if is_game_over(text):
                    break
                attempt = input("Inserisci una lettera o prova ad indovinare la parola\n")
                print(describe_attempt(attempt))
                sock.sendto(_encode(attempt, MAX_BUFFER_SIZE), server)
        except (EOFError, KeyboardInterrupt):
            pass
        except OSError as exc:
            print(f"socket: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())