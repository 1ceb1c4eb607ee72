"""Handles on existing Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from .errors import UnixError
from .file_descriptor import FileDescriptor

CLONE_DEVICE = "/dev/net/tun"

IFNAMSIZ = 16
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
TUNSETIFF = 0x400454CA

_IFREQ_FORMAT = f"{IFNAMSIZ}sH22x"


def _ifreq(devname: str, is_tun: bool) -> bytes:
    """The interface request naming the device, with packet information turned off."""
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    name = devname.encode()[: IFNAMSIZ - 1]
    return struct.pack(_IFREQ_FORMAT, name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor on a persistent TUN (IP datagrams) or TAP (Ethernet frames) device."""

    def __init__(self, devname: str, is_tun: bool) -> None:
        try:
            fd = os.open(CLONE_DEVICE, os.O_RDWR | os.O_CLOEXEC)
        except OSError as exc:
            raise UnixError("open", exc.errno or 0) from exc
        super().__init__(fd)
        try:
            fcntl.ioctl(self.fd_num(), TUNSETIFF, _ifreq(devname, is_tun))
        except OSError as exc:
            raise UnixError("ioctl", exc.errno or 0) from exc


class TunFD(TunTapFD):
    """A descriptor on a persistent TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor on a persistent TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)