import ipaddress
import struct

import pytest

from retilab import christmas
from retilab.christmas import Action, Message, MessageStore, handle_message


def test_pack_wire_layout():
    data = Message(7, "ciao", Action.INSERT).pack()
    assert len(data) == christmas.MESSAGE_SIZE
    assert struct.unpack_from("<q", data, 0)[0] == 7
    assert data[8:13] == b"ciao\0"
    assert data[8 + christmas.MAX_BUFFER_SIZE] == ord("i")


def test_pack_unpack_round_trip():
    original = Message(42, "Oggi supererò il laboratorio di Reti", Action.UPDATE)
    assert Message.unpack(original.pack()) == original


def test_unpack_wrong_size():
    with pytest.raises(ValueError):
        Message.unpack(b"\0" * 10)


def test_unpack_unknown_action():
    data = bytearray(Message(1, "x", Action.LIST).pack())
    data[8 + christmas.MAX_BUFFER_SIZE] = ord("z")
    with pytest.raises(ValueError):
        Message.unpack(bytes(data))


def test_pack_rejects_long_text():
    with pytest.raises(ValueError):
        Message(0, "a" * christmas.MAX_BUFFER_SIZE, Action.INSERT).pack()


def test_store_insert_assigns_sequential_ids():
    store = MessageStore()
    assert store.insert(1, "a") == 0
    assert store.insert(1, "b") == 1
    assert store.insert(2, "c") == 0
    assert store.messages(1) == [(0, "a"), (1, "b")]


def test_store_update_and_delete():
    store = MessageStore()
    store.insert(1, "a")
    store.insert(1, "b")
    assert store.update(1, 0, "z") is True
    assert store.delete(1, 1) is True
    assert store.messages(1) == [(0, "z")]
    assert store.update(1, 5, "q") is False
    assert store.delete(1, -1) is False


def test_store_unknown_client_is_empty():
    assert MessageStore().messages(99) == []


def test_client_id_combines_ip_and_port():
    ident = christmas.client_id("10.0.0.2", 4321)
    assert ident & 0xFFFF == 4321
    assert ident >> 16 == int(ipaddress.IPv4Address("10.0.0.2"))
    assert christmas.client_id("10.0.0.2", 4322) != ident


def test_handle_insert_and_list_own():
    store = MessageStore()
    replies = handle_message(store, Message(0, "uno", Action.INSERT), 5)
    assert replies == [Message(0, "uno", Action.SUCCESS)]
    handle_message(store, Message(0, "due", Action.INSERT), 5)
    listing = handle_message(store, Message(0, "", Action.LIST), 5)
    assert [(m.message_id, m.text, m.action) for m in listing[:-1]] == [
        (0, "uno", Action.LIST),
        (1, "due", Action.LIST),
    ]
    assert listing[-1].action is Action.END


def test_handle_list_other_client():
    store = MessageStore()
    handle_message(store, Message(0, "nota", Action.INSERT), 77)
    listing = handle_message(store, Message(77, "", Action.LIST), 5)
    assert [m.text for m in listing if m.action is Action.LIST] == ["nota"]


def test_handle_list_unknown_client_only_end():
    listing = handle_message(MessageStore(), Message(123, "", Action.LIST), 5)
    assert [m.action for m in listing] == [Action.END]


def test_handle_update_missing_fails():
    replies = handle_message(MessageStore(), Message(3, "x", Action.UPDATE), 5)
    assert [m.action for m in replies] == [Action.FAIL]


def test_handle_delete_hides_note():
    store = MessageStore()
    handle_message(store, Message(0, "a", Action.INSERT), 5)
    replies = handle_message(store, Message(0, "", Action.DELETE), 5)
    assert [m.action for m in replies] == [Action.SUCCESS]
    listing = handle_message(store, Message(0, "", Action.LIST), 5)
    assert [m.action for m in listing] == [Action.END]


def test_main_rejects_missing_port():
    assert christmas.main([]) == 1