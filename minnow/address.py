"""IPv4/IPv6 socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any

from .errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)
_NON_INTERNET = "(non-Internet address)"


def _normalise(family: int, sockaddr: Any) -> Any:
    if family == socket.AF_INET:
        host, port = sockaddr[:2]
        return (str(host), int(port))
    if family == socket.AF_INET6:
        host, port, *rest = sockaddr
        flowinfo, scope_id = (list(rest) + [0, 0])[:2]
        return (str(host), int(port), int(flowinfo), int(scope_id))
    return tuple(sockaddr) if isinstance(sockaddr, list) else sockaddr


class Address:
    """A socket address: an address family together with its sockaddr value."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build an IPv4 address from a numeric host string and port, without any lookup."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port {port} out of range")
        flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        family, sockaddr = self._lookup(ip, str(port), socket.AF_INET, flags)
        self._family = family
        self._sockaddr = sockaddr

    @staticmethod
    def _lookup(node: str, service: str, family: int, flags: int) -> tuple[int, Any]:
        try:
            results = socket.getaddrinfo(node, service, family, 0, 0, flags)
        except socket.gaierror as exc:
            raise TaggedError(
                f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror or str(exc)
            ) from exc
        if not results:
            raise RuntimeError("getaddrinfo returned successfully but with no results")
        found_family, _type, _proto, _name, sockaddr = results[0]
        return int(found_family), _normalise(found_family, sockaddr)

    @classmethod
    def _make(cls, family: int, sockaddr: Any) -> Address:
        address = cls.__new__(cls)
        address._family = family
        address._sockaddr = _normalise(family, sockaddr)
        return address

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and a service name (or numeric port) to an IPv4 address."""
        family, sockaddr = cls._lookup(hostname, service, socket.AF_INET, socket.AI_ALL)
        return cls._make(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> Address:
        """Wrap a sockaddr value as returned by the socket module for ``family``."""
        return cls._make(family, sockaddr)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build an IPv4 address (port 0) from its 32-bit numeric value."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"{ip_address} is not a 32-bit IPv4 address")
        return cls._make(socket.AF_INET, (str(ipaddress.IPv4Address(ip_address)), 0))

    @property
    def family(self) -> int:
        return self._family

    @property
    def sockaddr(self) -> Any:
        """The address in the form the socket module accepts."""
        return self._sockaddr

    def _is_internet(self) -> bool:
        return self._family in _INTERNET_FAMILIES

    def ip_port(self) -> tuple[str, int]:
        """The numeric host string and the port."""
        if not self._is_internet():
            raise RuntimeError("Address::ip_port() called on non-Internet address")
        flags = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
        try:
            host, port = socket.getnameinfo(self._sockaddr, flags)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno or 0, exc.strerror or str(exc)) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    def __str__(self) -> str:
        if self._is_internet():
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return _NON_INTERNET

    def __repr__(self) -> str:
        return f"Address(family={self._family}, sockaddr={self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))