"""Wine shop server: companies manage their wines, customers list and buy them."""

from __future__ import annotations

import os
import re
import socket
import struct
import sys
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path

MAX_NAME_SIZE = 128
MAX_COMPANY_PRODUCTS = 128
DATABASE_FILE = "database.txt"

_MESSAGE = struct.Struct(f"<iI{MAX_NAME_SIZE}s{MAX_NAME_SIZE}sIIi")
MESSAGE_SIZE = _MESSAGE.size
_IDS = struct.Struct(f"<{MAX_COMPANY_PRODUCTS}i")
PRODUCT_IDS_SIZE = _IDS.size

_INTEGER = re.compile(r"\s*([+-]?\d+)")


class Action(str, Enum):
    """Requests and replies exchanged with the server."""

    INSERT = "i"
    DELETE = "d"
    LIST = "l"
    BUY = "b"
    UPDATE = "u"
    SUCCESS = "s"
    FAIL = "f"
    EXIT = "e"


class ClientType(IntEnum):
    """Who is talking to the server."""

    COMPANY = 0
    CLIENT = 1


@dataclass
class Wine:
    """A wine on sale."""

    product_id: int = 0
    company_name: str = ""
    wine_name: str = ""
    quantity: int = 0
    cost: int = 0

    def line(self) -> str:
        """The database line for this wine."""
        return (
            f"{self.product_id},{self.company_name},{self.wine_name},"
            f"{self.quantity},{self.cost}\n"
        )


def _name(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > MAX_NAME_SIZE - 1:
        raise ValueError(f"name longer than {MAX_NAME_SIZE - 1} bytes: {text!r}")
    return raw


def _cstring(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass
class Message:
    """A request or reply carrying one wine."""

    client_type: ClientType = ClientType.CLIENT
    wine: Wine = field(default_factory=Wine)
    action: Action = Action.LIST

    def pack(self) -> bytes:
        """Encode into the fixed-size wire form; raises ValueError if it does not fit."""
        wine = self.wine
        try:
            return _MESSAGE.pack(
                int(ClientType(self.client_type)),
                wine.product_id,
                _name(wine.company_name),
                _name(wine.wine_name),
                wine.quantity,
                wine.cost,
                ord(Action(self.action).value),
            )
        except struct.error as exc:
            raise ValueError(f"value out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "Message":
        """Decode the wire form; raises ValueError on a malformed message."""
        if len(data) != MESSAGE_SIZE:
            raise ValueError(f"message must be {MESSAGE_SIZE} bytes, got {len(data)}")
        kind, product_id, company, name, quantity, cost, code = _MESSAGE.unpack(data)
        try:
            client_type = ClientType(kind)
        except ValueError as exc:
            raise ValueError(f"invalid client type {kind}") from exc
        try:
            action = Action(chr(code))
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"unknown action code {code}") from exc
        wine = Wine(product_id, _cstring(company), _cstring(name), quantity, cost)
        return cls(client_type, wine, action)


def _atoi(text: str) -> int:
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else 0


def _line_id(line: str) -> int:
    return _atoi(line.split(",", 1)[0])


class WineDatabase:
    """Wines stored one per line as ``id,company,wine,quantity,cost``."""

    def __init__(self, path):
        self.path = Path(path)
        self.path.touch(exist_ok=True)
        self._lock = threading.RLock()

    def _lines(self) -> list[str]:
        with self.path.open("r", encoding="utf-8", newline="") as handle:
            return handle.readlines()

    def _rewrite(self, lines) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8", newline="") as handle:
            handle.writelines(lines)
        os.replace(tmp, self.path)

    def reset(self) -> None:
        """Empty the database."""
        with self._lock:
            self.path.write_text("", encoding="utf-8")

    def save(self, wine: Wine) -> None:
        """Append a wine."""
        with self._lock, self.path.open("a", encoding="utf-8", newline="") as handle:
            handle.write(wine.line())

    def update(self, product_id: int, new_wine=None) -> None:
        """Replace the wine with this id by ``new_wine``, or remove it when None."""
        with self._lock:
            kept = []
            for line in self._lines():
                if _line_id(line) != product_id:
                    kept.append(line)
                elif new_wine is not None:
                    kept.append(new_wine.line())
            self._rewrite(kept)

    def buy(self, product_id: int, quantity: int) -> tuple[bool, int]:
        """Buy ``quantity`` bottles; return whether it worked and the quantity left.

        When there are too few bottles the stock is untouched and the available
        quantity is returned; when the id is unknown the request comes back as is.
        """
        with self._lock:
            bought = False
            result = quantity
            kept = []
            for line in self._lines():
                if _line_id(line) != product_id:
                    kept.append(line)
                    continue
                fields = line.rstrip("\n").split(",")
                available = _atoi(fields[3]) if len(fields) > 3 else 0
                if available >= quantity:
                    fields[3] = str(available - quantity)
                    result = available - quantity
                    bought = True
                    kept.append(",".join(fields) + "\n")
                else:
                    print(
                        f"Not enough quantity: requested {quantity}, available {available}",
                        file=sys.stderr,
                    )
                    result = available
                    kept.append(line)
            self._rewrite(kept)
            return bought, result

    def product_ids(self) -> list[int]:
        """Ids of all wines, in file order."""
        with self._lock:
            return [_line_id(line) for line in self._lines()]


def pack_product_ids(ids) -> bytes:
    """Encode ids as the fixed, zero-padded array sent to customers."""
    ids = list(ids)
    if len(ids) > MAX_COMPANY_PRODUCTS:
        raise ValueError(f"at most {MAX_COMPANY_PRODUCTS} product ids fit")
    try:
        return _IDS.pack(*ids, *([0] * (MAX_COMPANY_PRODUCTS - len(ids))))
    except struct.error as exc:
        raise ValueError(f"product id out of range: {exc}") from exc


def handle_company(database: WineDatabase, message: Message) -> bool:
    """Apply a company request; an insert stores the new id in the message."""
    action = Action(message.action)
    if action is Action.INSERT:
        message.wine.product_id = int(time.time())
        database.save(message.wine)
        return True
    if action is Action.DELETE:
        database.update(message.wine.product_id, None)
        return True
    if action is Action.UPDATE:
        database.update(message.wine.product_id, message.wine)
        return True
    print(f"Invalid action: '{action.value}'\nNothing to do", file=sys.stderr)
    return False


def handle_customer(database: WineDatabase, message: Message) -> bool:
    """Apply a customer request; a purchase stores the quantity left in the message.

    For a list request the caller sends the packed product ids first.
    """
    action = Action(message.action)
    if action is Action.LIST:
        return True
    if action is Action.BUY:
        bought, remaining = database.buy(message.wine.product_id, message.wine.quantity)
        message.wine.quantity = remaining
        return bought
    print(f"Invalid action: '{action.value}'\nNothing to do", file=sys.stderr)
    return False


def _recv_message(conn: socket.socket) -> bytes:
    data = b""
    while len(data) < MESSAGE_SIZE:
        chunk = conn.recv(MESSAGE_SIZE - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _serve_connection(conn: socket.socket, database: WineDatabase) -> None:
    with conn:
        try:
            while len(data := _recv_message(conn)) == MESSAGE_SIZE:
                try:
                    message = Message.unpack(data)
                except ValueError as exc:
                    print(f"Invalid client type: {exc}", file=sys.stderr)
                    return
                if message.client_type is ClientType.COMPANY:
                    ok = handle_company(database, message)
                else:
                    if message.action is Action.LIST:
                        ids = database.product_ids()[:MAX_COMPANY_PRODUCTS]
                        conn.sendall(pack_product_ids(ids))
                    ok = handle_customer(database, message)
                message.action = Action.SUCCESS if ok else Action.FAIL
                conn.sendall(message.pack())
        except (OSError, ValueError) as exc:
            print(f"Connessione interrotta: {exc}", file=sys.stderr)


def serve(port: int, database_path=DATABASE_FILE) -> None:
    """Reset the database and accept clients forever, one thread each."""
    database = WineDatabase(database_path)
    database.reset()
    if socket.has_dualstack_ipv6():
        server = socket.create_server(
            ("", port), family=socket.AF_INET6, dualstack_ipv6=True
        )
    else:
        server = socket.create_server(("", port))
    with server:
        while True:
            conn, _ = server.accept()
            threading.Thread(
                target=_serve_connection, args=(conn, database), daemon=True
            ).start()


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``enoteca-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: enoteca-server <port>", file=sys.stderr)
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