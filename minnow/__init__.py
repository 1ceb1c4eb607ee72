"""Building blocks for a user-space TCP/IP stack: wire formats, sockets, TUN/TAP devices and an event loop."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "arp",
    "checksum",
    "debug",
    "errors",
    "ethernet",
    "eventloop",
    "file_descriptor",
    "helpers",
    "ipv4",
    "parser",
    "rng",
    "sockets",
    "tun",
]