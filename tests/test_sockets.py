import errno
import os
import select
import socket

import pytest

from minnow.address import Address
from minnow.errors import UnixError
from minnow.file_descriptor import FileDescriptor
from minnow.sockets import (
    LocalDatagramSocket,
    LocalStreamSocket,
    TCPSocket,
    UDPSocket,
)


def _bound_udp():
    sock = UDPSocket()
    sock.bind(Address("127.0.0.1", 0))
    return sock


def test_udp_round_trip():
    with _bound_udp() as receiver, UDPSocket() as sender:
        sender.send(b"hello", receiver.local_address())
        source, payload = receiver.recv()
        assert payload == b"hello"
        assert source.ip() == "127.0.0.1"
        assert source.port() == sender.local_address().port()
        assert receiver.read_count() == 1
        assert sender.write_count() == 1


def test_unbound_udp_local_address():
    with UDPSocket() as sock:
        assert str(sock.local_address()) == "0.0.0.0:0"


def test_udp_recv_oversized_raises():
    with _bound_udp() as receiver, UDPSocket() as sender:
        sender.send(b"hello", receiver.local_address())
        with pytest.raises(RuntimeError, match="oversized datagram"):
            receiver.recv(2)


def test_udp_send_buffers_and_recv_buffers():
    with _bound_udp() as receiver, UDPSocket() as sender:
        sender.send([b"ab", b"cd"], receiver.local_address())
        source, pieces = receiver.recv_buffers([2, 0])
        assert pieces == [b"ab", b"cd"]
        assert source.port() == sender.local_address().port()


def test_send_empty_buffer_list_raises():
    with _bound_udp() as receiver, UDPSocket() as sender:
        with pytest.raises(RuntimeError, match="empty buffer list"):
            sender.send([], receiver.local_address())


def test_connected_udp_send_without_destination():
    with _bound_udp() as receiver, UDPSocket() as sender:
        sender.connect(receiver.local_address())
        sender.send(b"xyz")
        _source, payload = receiver.recv()
        assert payload == b"xyz"
        assert sender.peer_address() == receiver.local_address()


def test_nonblocking_recv_with_nothing_waiting():
    with _bound_udp() as receiver:
        receiver.set_blocking(False)
        assert receiver.recv() == (None, b"")
        assert receiver.read_count() == 1


def test_bind_in_use_raises():
    with _bound_udp() as first, UDPSocket() as second:
        with pytest.raises(UnixError) as info:
            second.bind(first.local_address())
        assert info.value.error_code == errno.EADDRINUSE
        assert info.value.attempt == "bind"


def test_tcp_connect_accept_and_transfer():
    with TCPSocket() as server, TCPSocket() as client:
        server.set_reuseaddr()
        server.bind(Address("127.0.0.1", 0))
        server.listen()
        client.connect(server.local_address())
        with server.accept() as connection:
            assert server.read_count() == 1
            assert connection.peer_address() == client.local_address()
            connection.write_all(b"hi there")
            assert client.read() == b"hi there"


def test_set_reuseaddr_sets_option():
    with TCPSocket() as sock:
        sock.set_reuseaddr()
        probe = socket.socket(fileno=os.dup(sock.fd_num()))
        try:
            assert probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) == 1
        finally:
            probe.close()


def test_shutdown_write_gives_peer_eof():
    with TCPSocket() as server, TCPSocket() as client:
        server.bind(Address("127.0.0.1", 0))
        server.listen()
        client.connect(server.local_address())
        with server.accept() as connection:
            client.shutdown(socket.SHUT_WR)
            assert client.write_count() == 1
            assert connection.read() == b""
            assert connection.eof()


def test_shutdown_invalid_how_raises():
    with TCPSocket() as server, TCPSocket() as client:
        server.bind(Address("127.0.0.1", 0))
        server.listen()
        client.connect(server.local_address())
        with pytest.raises(UnixError) as info:
            client.shutdown(99)
        assert info.value.error_code == errno.EINVAL


def _unused_port_address():
    with TCPSocket() as probe:
        probe.bind(Address("127.0.0.1", 0))
        return probe.local_address()


def test_connect_refused_raises():
    target = _unused_port_address()
    with TCPSocket() as client:
        with pytest.raises(UnixError) as info:
            client.connect(target)
        assert info.value.error_code == errno.ECONNREFUSED
        assert info.value.attempt == "connect"


def test_throw_if_error_reports_refused_nonblocking_connect():
    target = _unused_port_address()
    with TCPSocket() as client:
        client.set_blocking(False)
        client.connect(target)
        select.select([], [client.fd_num()], [], 5)
        with pytest.raises(UnixError) as info:
            client.throw_if_error()
        assert info.value.error_code == errno.ECONNREFUSED
        assert info.value.attempt == "socket error"


def test_local_stream_socket_from_socketpair():
    left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    with LocalStreamSocket(FileDescriptor(left.detach())) as a, LocalStreamSocket(
        FileDescriptor(right.detach())
    ) as b:
        a.write_all(b"ping")
        assert b.read() == b"ping"
        assert str(a.local_address()) == "(non-Internet address)"


def test_local_stream_socket_rejects_wrong_domain():
    udp = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    fd = FileDescriptor(udp.detach())
    with pytest.raises(RuntimeError, match="socket domain mismatch"):
        LocalStreamSocket(fd)
    fd.close()


def test_local_stream_socket_rejects_wrong_type():
    left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    right.close()
    fd = FileDescriptor(left.detach())
    with pytest.raises(RuntimeError, match="socket type mismatch"):
        LocalStreamSocket(fd)
    fd.close()


def test_local_stream_socket_rejects_non_socket():
    read_end, write_end = os.pipe()
    os.close(write_end)
    fd = FileDescriptor(read_end)
    with pytest.raises(UnixError) as info:
        LocalStreamSocket(fd)
    assert info.value.error_code == errno.ENOTSOCK
    fd.close()


def test_local_datagram_round_trip(tmp_path):
    receiver_address = Address.from_sockaddr(socket.AF_UNIX, str(tmp_path / "receiver"))
    sender_address = Address.from_sockaddr(socket.AF_UNIX, str(tmp_path / "sender"))
    with LocalDatagramSocket() as receiver, LocalDatagramSocket() as sender:
        receiver.bind(receiver_address)
        sender.bind(sender_address)
        sender.send(b"local", receiver_address)
        source, payload = receiver.recv()
        assert payload == b"local"
        assert source == sender_address