"""Conveniences for serialising, parsing, printing and copying frames and datagrams."""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable, Protocol, TypeVar, Union

from .arp import ARPMessage
from .ethernet import EthernetFrame, EthernetHeader
from .ipv4 import InternetDatagram, IPv4Datagram
from .parser import Parser, Serializer

BytesLike = Union[bytes, bytearray, memoryview]


class _Serializable(Protocol):
    def serialize(self, serializer: Serializer) -> None: ...


class _Parseable(Protocol):
    def parse(self, parser: Parser, *args: Any) -> None: ...


_Cloneable = TypeVar("_Cloneable", EthernetFrame, IPv4Datagram)


def serialize(obj: _Serializable) -> list[bytes]:
    """Serialise an object into a list of buffers."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.finish()


def parse(obj: _Parseable, buffers: BytesLike | Iterable[BytesLike], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return whether parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()


def concat(buffers: Iterable[BytesLike]) -> bytes:
    """Join a sequence of buffers into one."""
    return b"".join(bytes(buffer) for buffer in buffers)


def pretty_print(data: BytesLike, max_length: int = 32) -> str:
    """Escape unprintable bytes and double quotes, cutting the result near ``max_length``."""
    pieces: list[str] = []
    length = 0
    truncated = False
    for byte in bytes(data):
        if length >= max_length:
            truncated = True
            break
        piece = chr(byte) if 0x20 <= byte <= 0x7E and byte != ord('"') else f"\\x{byte:02x}"
        pieces.append(piece)
        length += len(piece)
    text = "".join(pieces)
    if truncated:
        text = text[:-3] + "..." if len(text) >= 3 else text + "..."
    return text


def summary(frame: EthernetFrame) -> str:
    """A one-line description of an Ethernet frame and what it carries."""
    out = f"{frame.header} payload: "
    if frame.header.type == EthernetHeader.TYPE_IPV4:
        datagram = InternetDatagram()
        if parse(datagram, list(frame.payload)):
            return out + f'{datagram.header} payload="{pretty_print(concat(datagram.payload))}"'
        return out + "bad IPv4 datagram"
    if frame.header.type == EthernetHeader.TYPE_ARP:
        message = ARPMessage()
        if parse(message, list(frame.payload)):
            return out + str(message)
        return out + "bad ARP message"
    return out + "unknown frame type"


def clone(obj: _Cloneable) -> _Cloneable:
    """Copy a frame or datagram, header and payload list included."""
    if not isinstance(obj, (EthernetFrame, IPv4Datagram)):
        raise TypeError(f"cannot clone {type(obj).__name__}")
    return dataclasses.replace(obj, header=dataclasses.replace(obj.header), payload=list(obj.payload))