import ipaddress

import pytest

from minnow.arp import ARPMessage
from minnow.ethernet import ethernet_address_to_string
from minnow.parser import Parser, Serializer

LOCAL = bytes([0x02, 0x10, 0x20, 0x30, 0x40, 0x50])
REMOTE = bytes([0x06, 0x11, 0x22, 0x33, 0x44, 0x55])


def _numeric(dotted):
    return int(ipaddress.IPv4Address(dotted))


def _make_arp(opcode, sender_eth, sender_ip, target_eth, target_ip):
    return ARPMessage(
        opcode=opcode,
        sender_ethernet_address=sender_eth,
        sender_ip_address=_numeric(sender_ip),
        target_ethernet_address=target_eth,
        target_ip_address=_numeric(target_ip),
    )


def _wire(obj):
    serializer = Serializer()
    obj.serialize(serializer)
    return b"".join(serializer.finish())


def test_default_message_is_unsupported():
    message = ARPMessage()
    assert message.supported() is False
    with pytest.raises(ValueError):
        _wire(message)


def test_request_wire_layout():
    request = _make_arp(ARPMessage.OPCODE_REQUEST, LOCAL, "4.3.2.1", bytes(6), "192.168.0.1")
    wire = _wire(request)
    assert len(wire) == ARPMessage.LENGTH
    assert wire[:8] == b"\x00\x01\x08\x00\x06\x04\x00\x01"
    assert wire[8:14] == LOCAL
    assert wire[14:18] == ipaddress.IPv4Address("4.3.2.1").packed
    assert wire[18:24] == bytes(6)
    assert wire[24:] == ipaddress.IPv4Address("192.168.0.1").packed


def test_reply_round_trip():
    reply = _make_arp(ARPMessage.OPCODE_REPLY, LOCAL, "5.5.5.5", REMOTE, "10.0.1.1")
    parser = Parser([_wire(reply)])
    parsed = ARPMessage()
    parsed.parse(parser)
    assert not parser.has_error()
    assert parsed == reply
    assert parsed.supported()


def test_parse_rejects_unknown_hardware_type():
    wire = bytearray(_wire(_make_arp(ARPMessage.OPCODE_REQUEST, LOCAL, "1.2.3.4", bytes(6), "10.0.0.1")))
    wire[1] = 0x07
    parser = Parser([bytes(wire)])
    parsed = ARPMessage()
    parsed.parse(parser)
    assert parser.has_error()
    assert not parsed.supported()


def test_parse_rejects_unknown_opcode():
    wire = bytearray(_wire(_make_arp(ARPMessage.OPCODE_REQUEST, LOCAL, "1.2.3.4", bytes(6), "10.0.0.1")))
    wire[7] = 0x09
    parser = Parser([bytes(wire)])
    ARPMessage().parse(parser)
    assert parser.has_error()


def test_parse_of_truncated_message_is_an_error():
    wire = _wire(_make_arp(ARPMessage.OPCODE_REPLY, LOCAL, "1.2.3.4", REMOTE, "10.0.0.1"))
    parser = Parser([wire[:-1]])
    ARPMessage().parse(parser)
    assert parser.has_error()


def test_string_form():
    reply = _make_arp(ARPMessage.OPCODE_REPLY, LOCAL, "5.5.5.5", REMOTE, "10.0.1.1")
    assert str(reply) == (
        f"opcode=REPLY, sender={ethernet_address_to_string(LOCAL)}/5.5.5.5"
        f", target={ethernet_address_to_string(REMOTE)}/10.0.1.1"
    )
    request = _make_arp(ARPMessage.OPCODE_REQUEST, LOCAL, "5.5.5.5", REMOTE, "10.0.1.1")
    assert str(request).startswith("opcode=REQUEST, ")


def test_string_form_of_unknown_opcode():
    message = _make_arp(7, LOCAL, "5.5.5.5", REMOTE, "10.0.1.1")
    assert str(message).startswith("opcode=(unknown type), ")