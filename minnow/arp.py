"""ARP messages for Ethernet and IPv4."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import ClassVar

from .ethernet import ADDRESS_LENGTH, EthernetAddress, EthernetHeader, ethernet_address_to_string
from .parser import Parser, Serializer

_IPV4_ADDRESS_LENGTH = 4


def _dotted(address: int) -> str:
    return str(ipaddress.IPv4Address(address & 0xFFFFFFFF))


@dataclass
class ARPMessage:
    """An ARP request or reply mapping IPv4 addresses to Ethernet addresses."""

    LENGTH: ClassVar[int] = 28
    TYPE_ETHERNET: ClassVar[int] = 1
    OPCODE_REQUEST: ClassVar[int] = 1
    OPCODE_REPLY: ClassVar[int] = 2

    hardware_type: int = 1
    protocol_type: int = EthernetHeader.TYPE_IPV4
    hardware_address_size: int = ADDRESS_LENGTH
    protocol_address_size: int = _IPV4_ADDRESS_LENGTH
    opcode: int = 0

    sender_ethernet_address: EthernetAddress = bytes(ADDRESS_LENGTH)
    sender_ip_address: int = 0

    target_ethernet_address: EthernetAddress = bytes(ADDRESS_LENGTH)
    target_ip_address: int = 0

    def __post_init__(self) -> None:
        self.sender_ethernet_address = bytes(self.sender_ethernet_address)
        self.target_ethernet_address = bytes(self.target_ethernet_address)

    def supported(self) -> bool:
        """Whether this is an Ethernet/IPv4 request or reply."""
        return (
            self.hardware_type == self.TYPE_ETHERNET
            and self.protocol_type == EthernetHeader.TYPE_IPV4
            and self.hardware_address_size == ADDRESS_LENGTH
            and self.protocol_address_size == _IPV4_ADDRESS_LENGTH
            and self.opcode in (self.OPCODE_REQUEST, self.OPCODE_REPLY)
        )

    def __str__(self) -> str:
        opcode_names = {self.OPCODE_REQUEST: "REQUEST", self.OPCODE_REPLY: "REPLY"}
        opcode = opcode_names.get(self.opcode, "(unknown type)")
        return (
            f"opcode={opcode}"
            f", sender={ethernet_address_to_string(self.sender_ethernet_address)}"
            f"/{_dotted(self.sender_ip_address)}"
            f", target={ethernet_address_to_string(self.target_ethernet_address)}"
            f"/{_dotted(self.target_ip_address)}"
        )

    def parse(self, parser: Parser) -> None:
        self.hardware_type = parser.integer(2)
        self.protocol_type = parser.integer(2)
        self.hardware_address_size = parser.integer(1)
        self.protocol_address_size = parser.integer(1)
        self.opcode = parser.integer(2)

        if not self.supported():
            parser.set_error()
            return

        self.sender_ethernet_address = parser.string(ADDRESS_LENGTH)
        self.sender_ip_address = parser.integer(4)
        self.target_ethernet_address = parser.string(ADDRESS_LENGTH)
        self.target_ip_address = parser.integer(4)

    def serialize(self, serializer: Serializer) -> None:
        if not self.supported():
            raise ValueError(
                "ARPMessage: unsupported field combination (must be Ethernet/IP, and request or reply)"
            )
        if len(self.sender_ethernet_address) != ADDRESS_LENGTH or len(
            self.target_ethernet_address
        ) != ADDRESS_LENGTH:
            raise ValueError(f"an Ethernet address has {ADDRESS_LENGTH} bytes")

        serializer.integer(self.hardware_type, 2)
        serializer.integer(self.protocol_type, 2)
        serializer.integer(self.hardware_address_size, 1)
        serializer.integer(self.protocol_address_size, 1)
        serializer.integer(self.opcode, 2)

        for byte in self.sender_ethernet_address:
            serializer.integer(byte, 1)
        serializer.integer(self.sender_ip_address, 4)

        for byte in self.target_ethernet_address:
            serializer.integer(byte, 1)
        serializer.integer(self.target_ip_address, 4)