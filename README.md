# minnow

Pieces for building a small TCP/IP stack in user space on Linux: wire
formats for Ethernet, ARP and IPv4, shared file-descriptor handles, sockets,
TUN/TAP devices and a poll-based event loop.

## What is inside

- `minnow.parser`: `Parser` reads big-endian integers (`integer(size)` with a
  size of 1, 2, 4 or 8 bytes) and byte strings from a list of buffers. A read
  past the end sets a sticky error flag (`has_error()`) instead of raising.
  `Serializer` writes integers and buffers and returns them from `finish()`
  as a list of `bytes`.
- `minnow.checksum`: `InternetChecksum`, the ones' complement Internet
  checksum; data may be added in any split.
- `minnow.ethernet`: `EthernetHeader`, `EthernetFrame`,
  `ethernet_address_to_string` and `ETHERNET_BROADCAST`. Ethernet addresses
  are 6-byte `bytes` values.
- `minnow.ipv4`: `IPv4Header` (with `payload_length`, `compute_checksum` and
  `pseudo_checksum`; the total length field is `total_length`),
  `IPv4Datagram` (also named `InternetDatagram`) and `UserDatagramInfo`.
  Parsing checks the version, header length and checksum; options are skipped.
- `minnow.arp`: `ARPMessage` for Ethernet/IPv4 requests and replies.
- `minnow.helpers`: `serialize`, `parse` (returns whether parsing succeeded),
  `concat`, `pretty_print`, `summary` and `clone`.
- `minnow.address`: `Address`, built from a numeric IPv4 string and port,
  by name resolution (`Address.resolve`), from a 32-bit number
  (`Address.from_ipv4_numeric`) or from a socket-module sockaddr
  (`Address.from_sockaddr`).
- `minnow.file_descriptor`: `FileDescriptor`, a handle on a kernel file
  descriptor shared between copies made with `duplicate()`. It counts reads
  and writes, tracks EOF, and offers `read`, `read_buffers`, `write`,
  `write_buffers` and `write_all`. It can be used as a context manager.
- `minnow.sockets`: `UDPSocket`, `TCPSocket`, `PacketSocket`, `RawSocket`,
  `LocalStreamSocket` and `LocalDatagramSocket`. Datagram sockets have
  `recv`, `recv_buffers` and `send`.
- `minnow.tun`: `TunFD` and `TapFD` open existing persistent TUN and TAP
  devices.
- `minnow.eventloop`: `EventLoop` with `add_rule` (callbacks run while an
  interest function holds) and `add_fd_rule` (callbacks run when a descriptor
  is readable or writable). `wait_next_event` serves at most one rule and
  returns a `Result`; it raises `RuntimeError` when a rule is caught in a busy
  loop.
- `minnow.debug`: `debug` formats a message with `str.format` and sends it to
  a handler (stderr by default, changed with `set_debug_handler`). Nothing is
  sent when Python runs with `-O`.
- `minnow.rng`: `get_random_engine`, a `random.Random` seeded from the
  system's entropy source.
- `minnow.errors`: `TaggedError`, `UnixError`, `check_system_call` and
  `notnull`.

## Example

```python
from minnow.address import Address
from minnow.ipv4 import IPv4Datagram
from minnow.helpers import serialize, parse, concat

dgram = IPv4Datagram()
dgram.header.src = Address("5.6.7.8", 0).ipv4_numeric()
dgram.header.dst = Address("13.12.11.10", 0).ipv4_numeric()
dgram.payload = [b"hello"]
dgram.header.total_length = dgram.header.hlen * 4 + 5
dgram.header.compute_checksum()

wire = serialize(dgram)

copy = IPv4Datagram()
assert parse(copy, wire)
assert concat(copy.payload) == b"hello"
print(copy.header)
```

## What it does not do

This package supplies the parts a user-space stack is made from, not the
stack itself. It has no TCP sender or receiver, no byte stream or reassembly,
no network interface with an ARP cache, no routing, and no command-line
program. Those have to be written on top of these modules.

## Running the tests

```
pip install -e ".[test]"
pytest
```

The TUN/TAP, raw-socket and packet-socket classes need a Linux host, and
opening them usually needs the matching privileges.