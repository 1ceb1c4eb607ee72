"""Ethernet addresses, frame headers and frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable

from .parser import Parser, Serializer

ADDRESS_LENGTH = 6

EthernetAddress = bytes

ETHERNET_BROADCAST: EthernetAddress = b"\xff" * ADDRESS_LENGTH


def _checked_address(address: Iterable[int] | bytes) -> bytes:
    data = bytes(address)
    if len(data) != ADDRESS_LENGTH:
        raise ValueError(f"an Ethernet address has {ADDRESS_LENGTH} bytes, not {len(data)}")
    return data


def ethernet_address_to_string(address: Iterable[int] | bytes) -> str:
    """Render an Ethernet address as colon-separated lower-case hex pairs."""
    return ":".join(f"{byte:02x}" for byte in _checked_address(address))


@dataclass
class EthernetHeader:
    """An Ethernet frame header: destination, source and frame type."""

    LENGTH: ClassVar[int] = 14
    TYPE_IPV4: ClassVar[int] = 0x800
    TYPE_ARP: ClassVar[int] = 0x806

    dst: EthernetAddress = bytes(ADDRESS_LENGTH)
    src: EthernetAddress = bytes(ADDRESS_LENGTH)
    type: int = 0

    def __post_init__(self) -> None:
        self.dst = _checked_address(self.dst)
        self.src = _checked_address(self.src)

    def __str__(self) -> str:
        names = {self.TYPE_IPV4: "IPv4", self.TYPE_ARP: "ARP"}
        type_name = names.get(self.type, f"[unknown type {self.type:x}!]")
        return (
            f"dst={ethernet_address_to_string(self.dst)}"
            f" src={ethernet_address_to_string(self.src)}"
            f" type={type_name}"
        )

    def parse(self, parser: Parser) -> None:
        self.dst = parser.string(ADDRESS_LENGTH)
        self.src = parser.string(ADDRESS_LENGTH)
        self.type = parser.integer(2)

    def serialize(self, serializer: Serializer) -> None:
        for byte in _checked_address(self.dst):
            serializer.integer(byte, 1)
        for byte in _checked_address(self.src):
            serializer.integer(byte, 1)
        serializer.integer(self.type, 2)


@dataclass
class EthernetFrame:
    """An Ethernet header followed by a payload held as a list of buffers."""

    header: EthernetHeader = field(default_factory=EthernetHeader)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        self.header.parse(parser)
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)