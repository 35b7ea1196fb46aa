"""UDP server keeping per-client Christmas notes: insert, update, delete and list."""

from __future__ import annotations

import ipaddress
import socket
import struct
import sys
from dataclasses import dataclass
from enum import Enum

MAX_BUFFER_SIZE = 1024
_MESSAGE = struct.Struct(f"<q{MAX_BUFFER_SIZE}si4x")
MESSAGE_SIZE = _MESSAGE.size


class Action(str, Enum):
    """Requests a client makes and the replies the server gives."""

    INSERT = "i"
    DELETE = "d"
    LIST = "l"
    UPDATE = "u"
    SUCCESS = "s"
    END = "e"
    FAIL = "f"
    QUIT = "q"


@dataclass
class Message:
    """One datagram exchanged between client and server."""

    message_id: int = 0
    text: str = ""
    action: Action = Action.INSERT

    def pack(self) -> bytes:
        """Encode into the fixed-size wire form; raises ValueError if it does not fit."""
        action = Action(self.action)
        raw = self.text.encode("utf-8")
        if len(raw) > MAX_BUFFER_SIZE - 1:
            raise ValueError(f"text longer than {MAX_BUFFER_SIZE - 1} bytes")
        try:
            return _MESSAGE.pack(self.message_id, raw, ord(action.value))
        except struct.error as exc:
            raise ValueError(f"message id out of range: {self.message_id}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "Message":
        """Decode the wire form; raises ValueError on a malformed datagram."""
        if len(data) != MESSAGE_SIZE:
            raise ValueError(f"message must be {MESSAGE_SIZE} bytes, got {len(data)}")
        message_id, raw, code = _MESSAGE.unpack(data)
        try:
            action = Action(chr(code))
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"unknown action code {code}") from exc
        text = raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return cls(message_id, text, action)


class MessageStore:
    """Notes of every client, indexed by position; deleted notes leave a gap."""

    def __init__(self):
        self._clients: dict[int, list[str | None]] = {}

    def _notes(self, client_id: int) -> list[str | None]:
        return self._clients.setdefault(client_id, [])

    def insert(self, client_id: int, text: str) -> int:
        """Store a new note and return its id."""
        notes = self._notes(client_id)
        notes.append(text)
        return len(notes) - 1

    def update(self, client_id: int, message_id: int, text: str) -> bool:
        """Replace a note; False when the id was never issued."""
        notes = self._notes(client_id)
        if not 0 <= message_id < len(notes):
            return False
        notes[message_id] = text
        return True

    def delete(self, client_id: int, message_id: int) -> bool:
        """Remove a note; False when the id was never issued."""
        notes = self._notes(client_id)
        if not 0 <= message_id < len(notes):
            return False
        notes[message_id] = None
        return True

    def messages(self, client_id: int) -> list[tuple[int, str]]:
        """The client's live notes as ``(id, text)`` pairs, in id order."""
        notes = self._clients.get(client_id, [])
        return [(index, text) for index, text in enumerate(notes) if text is not None]


def client_id(ip: str, port: int) -> int:
    """Identify a client by its IPv4 address and port: ``ip << 16 | port``."""
    return int(ipaddress.IPv4Address(ip)) << 16 | (int(port) & 0xFFFF)


def handle_message(store: MessageStore, message: Message, sender_id: int) -> list[Message]:
    """Apply a request from ``sender_id`` and return the replies to send, in order."""
    store._notes(sender_id)
    action = Action(message.action)
    if action is Action.INSERT:
        new_id = store.insert(sender_id, message.text)
        return [Message(new_id, message.text, Action.SUCCESS)]
    if action is Action.UPDATE:
        ok = store.update(sender_id, message.message_id, message.text)
        return [Message(message.message_id, message.text, Action.SUCCESS if ok else Action.FAIL)]
    if action is Action.DELETE:
        ok = store.delete(sender_id, message.message_id)
        return [Message(message.message_id, message.text, Action.SUCCESS if ok else Action.FAIL)]
    if action is Action.LIST:
        target = sender_id if message.message_id == 0 else message.message_id
        replies = [Message(index, text, Action.LIST) for index, text in store.messages(target)]
        replies.append(Message(message.message_id, "", Action.END))
        return replies
    return [message]


def serve(port: int) -> None:
    """Answer requests forever."""
    store = MessageStore()
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("0.0.0.0", port))
        while True:
            data, address = sock.recvfrom(MESSAGE_SIZE)
            try:
                message = Message.unpack(data)
            except ValueError as exc:
                print(f"Messaggio scartato: {exc}", file=sys.stderr)
                continue
            sender = client_id(address[0], address[1])
            print(f"Client {address[0]}:{address[1]} has id {sender}")
            for reply in handle_message(store, message, sender):
                sock.sendto(reply.pack(), address)


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``christmas-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: christmas-server <port server>", file=sys.stderr)
        return 1
    try:
        serve(_port(args[0]))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"bind: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())