"""Reference-counted handles on kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from typing import Any, Callable, Iterable, Sequence, TypeVar, Union

from .errors import UnixError

BytesLike = Union[bytes, bytearray, memoryview]
R = TypeVar("R")

_WOULD_BLOCK = {errno.EAGAIN, errno.EWOULDBLOCK, errno.EINPROGRESS}


class _FDWrapper:
    """The shared state behind one kernel file descriptor; closes it when dropped."""

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            self.closed = True
            raise UnixError("fcntl", exc.errno or 0) from exc

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno or 0) from exc
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finaliser
            if sys.stderr is not None:
                sys.stderr.write(f"Exception destructing FDWrapper: {exc}\n")


class FileDescriptor:
    """A handle on a file descriptor; copies made with ``duplicate`` share it.

    The descriptor is closed when ``close`` is called or the last handle is dropped.
    """

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._internal = _FDWrapper(fd)

    @classmethod
    def _from_wrapper(cls, wrapper: _FDWrapper) -> FileDescriptor:
        handle = cls.__new__(cls)
        handle._internal = wrapper
        return handle

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if not self.closed():
            self.close()

    # accessors
    def fd_num(self) -> int:
        return self._internal.fd

    def eof(self) -> bool:
        return self._internal.eof

    def closed(self) -> bool:
        return self._internal.closed

    def blocking(self) -> bool:
        return not self._internal.non_blocking

    def read_count(self) -> int:
        return self._internal.read_count

    def write_count(self) -> int:
        return self._internal.write_count

    # helpers for subclasses
    def _set_eof(self) -> None:
        self._internal.eof = True

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def _attempt(self, what: str, func: Callable[..., R], *args: Any, would_block: Any = 0) -> R:
        """Run a system call; on a non-blocking descriptor that would block, return ``would_block``."""
        try:
            return func(*args)
        except OSError as exc:
            if self._internal.non_blocking and exc.errno in _WOULD_BLOCK:
                return would_block
            raise UnixError(what, exc.errno or 0) from exc

    @staticmethod
    def _check_buffers(buffers: Sequence[BytesLike]) -> int:
        if not buffers:
            raise RuntimeError("to_iovecs called with empty buffer list")
        total = 0
        for buffer in buffers:
            if not len(buffer):
                raise RuntimeError("to_iovecs called with empty buffer in buffer list")
            total += len(buffer)
        return total

    @staticmethod
    def _split(data: bytes, sizes: Sequence[int]) -> list[bytes]:
        pieces = []
        start = 0
        for size in sizes:
            pieces.append(data[start:start + size])
            start += len(pieces[-1])
        return pieces

    # I/O
    def read(self, size: int = 0) -> bytes:
        """Read up to ``size`` bytes (a default-sized chunk if 0); b"" at EOF or if it would block."""
        size = size or self.READ_BUFFER_SIZE
        data = self._attempt("read", os.read, self.fd_num(), size, would_block=None)
        if data is not None and not data:
            self._set_eof()
        self._register_read()
        if data is None:
            return b""
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        return data

    def read_buffers(self, sizes: Sequence[int]) -> list[bytes]:
        """Scatter-read into buffers of the given sizes (a zero last size means a default-sized chunk).

        Returns one bytes object per buffer, each cut to what was read into it.
        """
        sizes = list(sizes)
        if not sizes:
            raise RuntimeError("FileDescriptor::read called with no buffers")
        if sizes[-1] == 0:
            sizes[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        total = self._check_buffers(buffers)
        count = self._attempt("readv", os.readv, self.fd_num(), buffers)
        if count == 0:
            # a would-block result also reports zero but does not mean EOF
            if self._internal.non_blocking is False:
                self._set_eof()
        self._register_read()
        if count > total:
            raise RuntimeError("read() read more than requested")
        return self._split(b"".join(buffers)[:count], sizes)

    def write(self, data: BytesLike) -> int:
        """Write from ``data`` and return the number of bytes written."""
        written = self._attempt("write", os.write, self.fd_num(), data)
        self._register_write()
        if written == 0 and len(data):
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > len(data):
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def write_buffers(self, buffers: Iterable[BytesLike]) -> int:
        """Gather-write a sequence of non-empty buffers; return the number of bytes written."""
        buffers = list(buffers)
        total = self._check_buffers(buffers)
        written = self._attempt("writev", os.writev, self.fd_num(), buffers)
        self._register_write()
        if written == 0 and total != 0:
            raise RuntimeError("writev returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("writev wrote more than length of input buffer")
        return written

    def write_all(self, data: BytesLike) -> None:
        """Write all of ``data``; the descriptor must be blocking."""
        if not self.blocking():
            raise RuntimeError("write_all requires a blocking file descriptor")
        view = memoryview(bytes(data))
        while len(view):
            view = view[self.write(view):]

    def close(self) -> None:
        self._internal.close()

    def set_blocking(self, blocking: bool) -> None:
        try:
            os.set_blocking(self.fd_num(), blocking)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno or 0) from exc
        self._internal.non_blocking = not blocking

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        return self._from_wrapper(self._internal)