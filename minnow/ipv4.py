"""IPv4 headers and datagrams (IP options are skipped, not interpreted)."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import ClassVar

from .checksum import InternetChecksum
from .parser import Parser, Serializer


def _dotted(address: int) -> str:
    return str(ipaddress.IPv4Address(address & 0xFFFFFFFF))


@dataclass
class IPv4Header:
    """An IPv4 header; ``total_length`` counts header and payload in bytes."""

    LENGTH: ClassVar[int] = 20
    DEFAULT_TTL: ClassVar[int] = 128
    PROTO_TCP: ClassVar[int] = 6

    ver: int = 4
    hlen: int = 5
    tos: int = 0
    total_length: int = 0
    ident: int = 0
    df: bool = True
    mf: bool = False
    offset: int = 0
    ttl: int = 128
    proto: int = 6
    cksum: int = 0
    src: int = 0
    dst: int = 0

    @classmethod
    def serialized_length(cls) -> int:
        return cls.LENGTH

    def payload_length(self) -> int:
        """Length of the payload that follows the header."""
        return (self.total_length - 4 * self.hlen) & 0xFFFF

    def pseudo_checksum(self) -> int:
        """The pseudo-header's contribution to a TCP checksum."""
        total = (self.src >> 16) + (self.src & 0xFFFF)
        total += (self.dst >> 16) + (self.dst & 0xFFFF)
        total += self.proto
        total += self.payload_length()
        return total & 0xFFFFFFFF

    def compute_checksum(self) -> None:
        """Set ``cksum`` to the checksum of the header."""
        self.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        check = InternetChecksum()
        check.add(serializer.finish())
        self.cksum = check.value()

    def __str__(self) -> str:
        return (
            f"IPv{self.ver:x} len={self.total_length} proto={self.proto}"
            f" ttl={self.ttl} src={_dotted(self.src)} dst={_dotted(self.dst)}"
        )

    def parse(self, parser: Parser) -> None:
        first_byte = parser.integer(1)
        self.ver = first_byte >> 4
        self.hlen = first_byte & 0x0F
        self.tos = parser.integer(1)
        self.total_length = parser.integer(2)
        self.ident = parser.integer(2)

        flags_and_offset = parser.integer(2)
        self.df = bool(flags_and_offset & 0x4000)
        self.mf = bool(flags_and_offset & 0x2000)
        self.offset = flags_and_offset & 0x1FFF

        self.ttl = parser.integer(1)
        self.proto = parser.integer(1)
        self.cksum = parser.integer(2)
        self.src = parser.integer(4)
        self.dst = parser.integer(4)

        if self.ver != 4 or self.hlen < 5:
            parser.set_error()
        if parser.has_error():
            return

        parser.remove_prefix(self.hlen * 4 - self.LENGTH)

        given = self.cksum
        self.compute_checksum()
        if self.cksum != given:
            parser.set_error()

    def serialize(self, serializer: Serializer) -> None:
        """Write the header as it stands; the checksum is not recomputed."""
        if self.ver != 4:
            raise ValueError("wrong IP version")
        serializer.integer((self.ver << 4) | (self.hlen & 0x0F), 1)
        serializer.integer(self.tos, 1)
        serializer.integer(self.total_length, 2)
        serializer.integer(self.ident, 2)
        flags_and_offset = (
            (0x4000 if self.df else 0) | (0x2000 if self.mf else 0) | (self.offset & 0x1FFF)
        )
        serializer.integer(flags_and_offset, 2)
        serializer.integer(self.ttl, 1)
        serializer.integer(self.proto, 1)
        serializer.integer(self.cksum, 2)
        serializer.integer(self.src, 4)
        serializer.integer(self.dst, 4)


@dataclass
class IPv4Datagram:
    """An IPv4 header followed by its payload, held as a list of buffers."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        self.header.parse(parser)
        parser.truncate(self.header.payload_length())
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)


InternetDatagram = IPv4Datagram


@dataclass
class UserDatagramInfo:
    """Ports and checksum of a UDP datagram, or the UDP-like part of a TCP header."""

    src_port: int
    dst_port: int
    cksum: int