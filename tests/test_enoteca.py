import struct

import pytest

from retilab.enoteca import (
    MAX_COMPANY_PRODUCTS,
    MESSAGE_SIZE,
    PRODUCT_IDS_SIZE,
    Action,
    ClientType,
    Message,
    Wine,
    WineDatabase,
    handle_company,
    handle_customer,
    main,
    pack_product_ids,
)


@pytest.fixture
def database(tmp_path):
    return WineDatabase(tmp_path / "database.txt")


def test_message_round_trip():
    message = Message(ClientType.COMPANY, Wine(42, "Cantina", "Nero", 5, 12), Action.UPDATE)
    packed = message.pack()
    assert len(packed) == MESSAGE_SIZE
    assert Message.unpack(packed) == message


def test_unpack_rejects_wrong_size():
    with pytest.raises(ValueError):
        Message.unpack(b"\0" * (MESSAGE_SIZE - 1))


def test_unpack_rejects_unknown_client_type():
    data = bytearray(Message().pack())
    data[0:4] = struct.pack("<i", 7)
    with pytest.raises(ValueError):
        Message.unpack(bytes(data))


def test_pack_rejects_long_name():
    with pytest.raises(ValueError):
        Message(wine=Wine(wine_name="x" * 200)).pack()


def test_save_writes_line_format(database):
    database.save(Wine(7, "Cantina", "Nero", 5, 12))
    assert database.path.read_text(encoding="utf-8") == "7,Cantina,Nero,5,12\n"


def test_product_ids_in_file_order(database):
    database.save(Wine(3, "A", "x", 1, 1))
    database.save(Wine(1, "B", "y", 1, 1))
    assert database.product_ids() == [3, 1]


def test_update_replaces_and_removes(database):
    database.save(Wine(1, "A", "x", 1, 1))
    database.save(Wine(2, "B", "y", 2, 2))
    database.update(1, Wine(1, "A", "z", 9, 4))
    assert database.path.read_text(encoding="utf-8").splitlines()[0] == Wine(1, "A", "z", 9, 4).line().rstrip("\n")
    database.update(2, None)
    assert database.product_ids() == [1]


def test_buy_success_decrements_stock(database):
    database.save(Wine(5, "A", "x", 10, 3))
    assert database.buy(5, 4) == (True, 6)
    assert database.path.read_text(encoding="utf-8") == "5,A,x,6,3\n"


def test_buy_too_many_reports_available(database):
    database.save(Wine(5, "A", "x", 2, 3))
    assert database.buy(5, 4) == (False, 2)
    assert database.path.read_text(encoding="utf-8") == "5,A,x,2,3\n"


def test_buy_unknown_id_returns_request(database):
    database.save(Wine(5, "A", "x", 2, 3))
    assert database.buy(9, 4) == (False, 4)


def test_reset_empties(database):
    database.save(Wine(5, "A", "x", 2, 3))
    database.reset()
    assert database.product_ids() == []


def test_pack_product_ids_pads_with_zeros():
    packed = pack_product_ids([4, 9])
    assert len(packed) == PRODUCT_IDS_SIZE
    values = struct.unpack(f"<{MAX_COMPANY_PRODUCTS}i", packed)
    assert values[:2] == (4, 9)
    assert set(values[2:]) == {0}


def test_pack_product_ids_rejects_too_many():
    with pytest.raises(ValueError):
        pack_product_ids(range(1, MAX_COMPANY_PRODUCTS + 2))


def test_company_insert_assigns_id(database):
    message = Message(ClientType.COMPANY, Wine(0, "A", "x", 3, 2), Action.INSERT)
    assert handle_company(database, message) is True
    assert message.wine.product_id > 0
    assert database.product_ids() == [message.wine.product_id]


def test_company_update_and_delete(database):
    database.save(Wine(8, "A", "x", 3, 2))
    update = Message(ClientType.COMPANY, Wine(8, "A", "y", 7, 2), Action.UPDATE)
    assert handle_company(database, update) is True
    assert database.buy(8, 7) == (True, 0)
    delete = Message(ClientType.COMPANY, Wine(8), Action.DELETE)
    assert handle_company(database, delete) is True
    assert database.product_ids() == []


def test_company_rejects_buy(database):
    assert handle_company(database, Message(ClientType.COMPANY, Wine(1), Action.BUY)) is False


def test_customer_buy_sets_remaining(database):
    database.save(Wine(8, "A", "x", 3, 2))
    message = Message(ClientType.CLIENT, Wine(8, quantity=5), Action.BUY)
    assert handle_customer(database, message) is False
    assert message.wine.quantity == 3
    message = Message(ClientType.CLIENT, Wine(8, quantity=1), Action.BUY)
    assert handle_customer(database, message) is True
    assert message.wine.quantity == 2


def test_customer_list_and_invalid(database):
    assert handle_customer(database, Message(ClientType.CLIENT, Wine(), Action.LIST)) is True
    assert handle_customer(database, Message(ClientType.CLIENT, Wine(), Action.INSERT)) is False


@pytest.mark.parametrize("argv", [[], ["abc"], ["0"]])
def test_main_rejects_bad_arguments(argv):
    assert main(argv) == 1