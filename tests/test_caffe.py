import random
import socket
import threading

import pytest

from retilab.caffe import (
    Product,
    Shop,
    default_products,
    format_product_list,
    handle_client,
    main,
    parse_order,
)


def test_default_products_match_stock():
    products = default_products()
    assert [p.name for p in products] == ["Caffè", "Cappuccino", "Cioccolata", "Tè"]
    assert [p.product_id for p in products] == [0, 1, 2, 3]


def test_format_product_list_line():
    text = format_product_list(default_products())
    assert text.startswith("0, Caffè, 50, 10\n")
    assert len(text.splitlines()) == 4


def test_parse_order():
    assert parse_order("1,3") == (1, 3)
    assert parse_order(b"2,4\0") == (2, 4)


@pytest.mark.parametrize("text", ["x", "1", "a,b"])
def test_parse_order_malformed(text):
    with pytest.raises(ValueError):
        parse_order(text)


@pytest.mark.parametrize("seed", range(10))
def test_order_serves_something_else(seed):
    shop = Shop(rng=random.Random(seed))
    before = {p.name: p.quantity for p in shop.products}
    name, served = shop.order(0, 1)
    assert name != "Caffè"
    assert served != 1
    after = {p.name: p.quantity for p in shop.products}
    assert after[name] == before[name] - served
    assert sum(before.values()) - sum(after.values()) == served


def test_order_impossible_raises():
    shop = Shop([Product(0, "A", 1, 5), Product(1, "B", 1, 0)], random.Random(0))
    with pytest.raises(ValueError):
        shop.order(0, 1)


def test_product_list_reflects_stock():
    shop = Shop(rng=random.Random(2))
    shop.order(1, 0)
    assert shop.product_list() == format_product_list(shop.products)


def test_handle_client_over_socketpair():
    server_end, client_end = socket.socketpair()
    shop = Shop(rng=random.Random(4))
    results = []
    worker = threading.Thread(target=lambda: results.append(handle_client(server_end, shop)))
    worker.start()
    client_end.sendall(b"0,1\0")
    client_end.shutdown(socket.SHUT_WR)
    data = b""
    while chunk := client_end.recv(4096):
        data += chunk
        if data.count(b"\0") >= 3:
            break
    worker.join(5)
    server_end.close()
    client_end.close()
    parts = data.split(b"\0")
    assert parts[0].decode("utf-8") == format_product_list(default_products())
    name, served = parts[1].decode("utf-8").split(", ")
    assert name in {p.name for p in shop.products}
    assert parts[2].decode("utf-8") == format_product_list(shop.products)
    assert results == [1]


def test_main_rejects_bad_port():
    assert main(["abc"]) == 1