"""Network sockets built on shared file-descriptor handles."""

from __future__ import annotations

import socket
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, TypeVar, Union

from .address import Address
from .errors import UnixError
from .file_descriptor import FileDescriptor

BytesLike = Union[bytes, bytearray, memoryview]
R = TypeVar("R")

_SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
_SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)
_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_AF_PACKET = getattr(socket, "AF_PACKET", 17)


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(self, domain: int, type_: int, protocol: int = 0) -> None:
        try:
            sock = socket.socket(domain, type_, protocol)
        except OSError as exc:
            raise UnixError("socket", exc.errno or 0) from exc
        super().__init__(sock.detach())

    def _adopt(self, fd: FileDescriptor, domain: int, type_: int, protocol: int = 0) -> None:
        """Take over ``fd``, checking that it is a socket of the expected kind."""
        self._internal = fd._internal
        expectations = (
            (_SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, type_, "type"),
            (_SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, name in expectations:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {name} mismatch")

    @contextmanager
    def _borrowed(self) -> Iterator[socket.socket]:
        """A socket object over this descriptor that does not own it."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno or 0) from exc
        try:
            yield sock
        finally:
            sock.detach()

    @staticmethod
    def _checked(what: str, func: Callable[..., R], *args: Any) -> R:
        try:
            return func(*args)
        except OSError as exc:
            raise UnixError(what, exc.errno or 0) from exc

    def _getsockopt(self, level: int, option: int) -> int:
        with self._borrowed() as sock:
            return self._checked("getsockopt", sock.getsockopt, level, option)

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        with self._borrowed() as sock:
            self._checked("setsockopt", sock.setsockopt, level, option, value)

    def _get_address(self, name_of_function: str, peer: bool) -> Address:
        with self._borrowed() as sock:
            func = sock.getpeername if peer else sock.getsockname
            name = self._checked(name_of_function, func)
            return Address.from_sockaddr(sock.family, name)

    def local_address(self) -> Address:
        """The address this socket is bound to."""
        return self._get_address("getsockname", peer=False)

    def peer_address(self) -> Address:
        """The address of the peer this socket is connected to."""
        return self._get_address("getpeername", peer=True)

    def bind(self, address: Address) -> None:
        """Bind to a local address."""
        with self._borrowed() as sock:
            self._checked("bind", sock.bind, address.sockaddr)

    def bind_to_device(self, device_name: str) -> None:
        """Bind to a named network device."""
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer; on a non-blocking socket an in-progress connect is not an error."""
        with self._borrowed() as sock:
            self._attempt("connect", sock.connect, address.sockaddr, would_block=None)

    def shutdown(self, how: int) -> None:
        """Shut down reading, writing or both (``socket.SHUT_RD``, ``SHUT_WR``, ``SHUT_RDWR``)."""
        with self._borrowed() as sock:
            self._checked("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket::shutdown() called with invalid `how`")

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def throw_if_error(self) -> None:
        """Raise the socket's pending error, if there is one."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self, size: int = 0) -> tuple[Optional[Address], bytes]:
        """Receive one datagram of at most ``size`` bytes (a default size if 0).

        Returns the sender's address and the payload; on a non-blocking socket
        with nothing waiting, returns ``(None, b"")``.
        """
        size = size or self.READ_BUFFER_SIZE
        buffer = bytearray(size)
        with self._borrowed() as sock:
            result = self._attempt(
                "recvfrom", sock.recvfrom_into, buffer, 0, socket.MSG_TRUNC, would_block=None
            )
            family = sock.family
        self._register_read()
        if result is None:
            return None, b""
        length, source = result
        if length > size:
            raise RuntimeError(f"recvfrom (oversized datagram of length {length})")
        if source is None:
            raise RuntimeError("recvfrom gave invalid namelen")
        return Address.from_sockaddr(family, source), bytes(buffer[:length])

    def recv_buffers(self, sizes: Sequence[int]) -> tuple[Optional[Address], list[bytes]]:
        """Receive one datagram scattered into buffers of the given sizes.

        A zero last size means a default-sized buffer. Each returned piece is cut
        to what was received into it.
        """
        sizes = list(sizes)
        if not sizes:
            raise RuntimeError("DatagramSocket::recv called with no payload buffers")
        if sizes[-1] == 0:
            sizes[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        total = self._check_buffers(buffers)
        with self._borrowed() as sock:
            result = self._attempt(
                "recvmsg", sock.recvmsg_into, buffers, 0, socket.MSG_TRUNC, would_block=None
            )
            family = sock.family
        self._register_read()
        if result is None:
            return None, [b"" for _ in sizes]
        length, _ancdata, flags, source = result
        if length > total:
            raise RuntimeError(f"recvmsg (oversized datagram of length {length})")
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvmsg (oversized datagram indicated only by MSG_TRUNC)")
        if source is None:
            raise RuntimeError("recvmsg gave invalid namelen")
        return Address.from_sockaddr(family, source), self._split(b"".join(buffers)[:length], sizes)

    def send(
        self,
        payload: Union[BytesLike, Iterable[BytesLike]],
        destination: Optional[Address] = None,
    ) -> None:
        """Send one datagram, from a buffer or a sequence of buffers.

        Without a destination, the datagram goes to the connected peer.
        """
        if isinstance(payload, (bytes, bytearray, memoryview)):
            with self._borrowed() as sock:
                if destination is None:
                    sent = self._attempt("sendto", sock.send, payload)
                else:
                    sent = self._attempt("sendto", sock.sendto, payload, destination.sockaddr)
            self._register_write()
            if sent != len(payload):
                raise RuntimeError("sendto sent some length other than that of payload")
            return

        buffers = list(payload)
        total = self._check_buffers(buffers)
        with self._borrowed() as sock:
            if destination is None:
                sent = self._attempt("sendmsg", sock.sendmsg, buffers)
            else:
                sent = self._attempt("sendmsg", sock.sendmsg, buffers, [], 0, destination.sockaddr)
        self._register_write()
        if sent != total:
            raise RuntimeError("sendmsg sent some length other than that of payload")


class UDPSocket(DatagramSocket):
    """An IPv4 UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        with self._borrowed() as sock:
            self._checked("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Wait for and return a new connection."""
        self._register_read()
        with self._borrowed() as sock:
            connection, _peer = self._checked("accept", sock.accept)
        accepted = TCPSocket.__new__(TCPSocket)
        accepted._adopt(
            FileDescriptor(connection.detach()), socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP
        )
        return accepted


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type_: int, protocol: int) -> None:
        super().__init__(_AF_PACKET, type_, protocol)


class RawSocket(DatagramSocket):
    """A raw IPv4 socket for sending whole datagrams."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket taken over from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        self._adopt(fd, socket.AF_UNIX, socket.SOCK_STREAM)


class LocalDatagramSocket(DatagramSocket):
    """A Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)