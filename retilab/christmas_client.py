"""Interactive client for the Christmas notes server."""

from __future__ import annotations

import re
import socket
import sys

from retilab.christmas import MAX_BUFFER_SIZE, MESSAGE_SIZE, Action, Message

_REQUESTS = (Action.INSERT, Action.UPDATE, Action.DELETE, Action.LIST)
_INTEGER = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


def build_request(action, message_id=0, text="") -> Message:
    """Build a request; only the fields the action uses are kept."""
    action = Action(action)
    if action not in _REQUESTS:
        raise ValueError(f"not a request action: {action.value!r}")
    keep_id = action in (Action.UPDATE, Action.DELETE, Action.LIST)
    keep_text = action in (Action.INSERT, Action.UPDATE)
    return Message(message_id if keep_id else 0, text if keep_text else "", action)


def send_request(sock: socket.socket, address, message: Message) -> list[Message]:
    """Send a request and return the replies; a list ends with END or FAIL."""
    sock.sendto(message.pack(), address)
    is_list = Action(message.action) is Action.LIST
    replies: list[Message] = []
    while True:
        data, _ = sock.recvfrom(MESSAGE_SIZE)
        reply = Message.unpack(data)
        replies.append(reply)
        if not is_list or reply.action in (Action.END, Action.FAIL):
            return replies


def _truncate(text: str) -> str:
    return text.encode("utf-8")[: MAX_BUFFER_SIZE - 1].decode("utf-8", errors="ignore")


def _read_request(action: Action) -> Message:
    message_id = 0
    text = ""
    if action in (Action.DELETE, Action.UPDATE):
        message_id = _atoi(input("Inserisci l'id del messaggio da modificare/eliminare: "))
    if action is Action.LIST:
        message_id = _atoi(
            input("Inserisci l'id del client a cui sei interessato o 0 per indicare te stesso: ")
        )
    if action in (Action.INSERT, Action.UPDATE):
        text = _truncate(input("Inserisci il nuovo messaggio: "))
    return build_request(action, message_id, text)


def _session(sock: socket.socket, address) -> None:
    while True:
        choice = input("Che operazione vuoi effettuare? [i|u|d|l|q]\n")[:1]
        if choice == Action.QUIT.value:
            print("Termino il programma")
            return
        try:
            action = Action(choice)
        except ValueError:
            continue
        if action not in _REQUESTS:
            continue
        replies = send_request(sock, address, _read_request(action))
        if action is Action.LIST:
            print("Elenco messaggi:")
            for reply in replies:
                if reply.action is Action.FAIL:
                    print("Il server non è riuscito ad adempiere alla richiesta")
                elif reply.action is Action.LIST:
                    print(f"id: {reply.message_id}, message: {reply.text}")
        else:
            outcome = "completato" if replies[-1].action is Action.SUCCESS else "fallito"
            print(f"Il server ha {outcome} la richiesta")


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``christmas-client <ip server> <port server>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2 or _port(args[1]) == 0:
        print("use: christmas-client <ip server> <port server>", file=sys.stderr)
        return 1
    address = (args[0], _port(args[1]))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            _session(sock, address)
        except (EOFError, KeyboardInterrupt):
            pass
        except OSError as exc:
            print(f"socket: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())