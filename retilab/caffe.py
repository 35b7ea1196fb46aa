"""Vending server that, by design, serves a different product and quantity than ordered."""

from __future__ import annotations

import random
import socket
import sys
import threading
from dataclasses import dataclass

MAX_BUFFER_SIZE = 1024


@dataclass
class Product:
    """A product on sale and how many are left."""

    product_id: int
    name: str
    price: int
    quantity: int


def default_products() -> list[Product]:
    """The machine's initial stock."""
    return [
        Product(0, "Caffè", 50, 10),
        Product(1, "Cappuccino", 100, 5),
        Product(2, "Cioccolata", 150, 3),
        Product(3, "Tè", 200, 2),
    ]


def format_product_list(products) -> str:
    """One ``id, name, price, quantity`` line per product."""
    return "".join(
        f"{p.product_id}, {p.name}, {p.price}, {p.quantity}\n" for p in products
    )


def parse_order(text) -> tuple[int, int]:
    """Parse an ``id,quantity`` order; raises ValueError when malformed."""
    if isinstance(text, bytes):
        text = text.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    fields = [field for field in text.split(",") if field]
    if len(fields) < 2:
        raise ValueError(f"malformed order: {text!r}")
    try:
        return int(fields[0]), int(fields[1])
    except ValueError as exc:
        raise ValueError(f"malformed order: {text!r}") from exc


class Shop:
    """Stock shared between all clients."""

    def __init__(self, products=None, rng=None):
        self.products = default_products() if products is None else list(products)
        self._rng = random.Random() if rng is None else rng
        self._lock = threading.Lock()

    def product_list(self) -> str:
        """Current stock as text."""
        with self._lock:
            return format_product_list(self.products)

    @staticmethod
    def _can_serve(index: int, product: Product, product_id: int, quantity: int) -> bool:
        if index == product_id or product.quantity == 0:
            return False
        return product.quantity >= 2 or quantity != 0

    def order(self, product_id: int, quantity: int) -> tuple[str, int]:
        """Serve some other product in some other quantity; return its name and amount.

        Raises ValueError when no product can be served differently.
        """
        with self._lock:
            if not any(
                self._can_serve(index, product, product_id, quantity)
                for index, product in enumerate(self.products)
            ):
                raise ValueError("nessun prodotto alternativo disponibile")
            while True:
                index = self._rng.randrange(len(self.products))
                product = self.products[index]
                if index == product_id or product.quantity == 0:
                    continue
                served = self._rng.randrange(product.quantity)
                if served != quantity:
                    break
            product.quantity -= served
            return product.name, served


def _send(conn: socket.socket, text: str) -> None:
    conn.sendall(text.encode("utf-8") + b"\0")


def handle_client(conn: socket.socket, shop: Shop) -> int:
    """Serve one client until it disconnects; return the number of orders served."""
    print("Invio dell'elenco dei prodotti")
    _send(conn, shop.product_list())
    served_orders = 0
    while data := conn.recv(MAX_BUFFER_SIZE):
        for request in (part for part in data.split(b"\0") if part):
            try:
                product_id, quantity = parse_order(request)
                print(
                    f"Il client ha ordinato {quantity} unità del prodotto con id {product_id}"
                )
                name, served = shop.order(product_id, quantity)
            except ValueError as exc:
                print(f"Ordine non gestibile: {exc}", file=sys.stderr)
                return served_orders
            reply = f"{name}, {served}"
            print(f"Invio del prodotto scelto (piu o meno): {reply}")
            _send(conn, reply)
            _send(conn, shop.product_list())
            served_orders += 1
    return served_orders


def _serve_connection(conn: socket.socket, shop: Shop) -> None:
    with conn:
        try:
            handle_client(conn, shop)
        except OSError as exc:
            print(f"Connessione interrotta: {exc}", file=sys.stderr)


def serve(port: int) -> None:
    """Accept clients forever on IPv6 (and IPv4 where possible)."""
    shop = Shop()
    if socket.has_dualstack_ipv6():
        server = socket.create_server(
            ("", port), family=socket.AF_INET6, dualstack_ipv6=True
        )
    else:
        server = socket.create_server(("", port))
    with server:
        while True:
            conn, _ = server.accept()
            threading.Thread(target=_serve_connection, args=(conn, shop), daemon=True).start()


def _port(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def main(argv=None) -> int:
    """Command entry point: ``caffe-server <port>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or _port(args[0]) == 0:
        print("use: caffe-server <port>", file=sys.stderr)
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