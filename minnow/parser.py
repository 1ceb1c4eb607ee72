"""Big-endian parsing from, and serialisation to, lists of byte buffers."""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Iterable, Union

BytesLike = Union[bytes, bytearray, memoryview]

_INTEGER_SIZES = (1, 2, 4, 8)


def _check_integer_size(size: int) -> None:
    if size not in _INTEGER_SIZES:
        raise ValueError(f"unsupported integer size {size}; expected one of {_INTEGER_SIZES}")


def _as_buffers(buffers: BytesLike | Iterable[BytesLike]) -> list[bytes]:
    if isinstance(buffers, (bytes, bytearray, memoryview)):
        return [bytes(buffers)]
    return [bytes(buffer) for buffer in buffers]


class Parser:
    """Reads fields from a sequence of buffers.

    A read past the end sets a sticky error flag instead of raising; reads made
    while the flag is set return zero-valued results and consume nothing.
    """

    def __init__(self, buffers: BytesLike | Iterable[BytesLike]) -> None:
        self._buffers: deque[bytes] = deque(b for b in _as_buffers(buffers) if b)
        self._size = sum(len(b) for b in self._buffers)
        self._skip = 0
        self._error = False

    def __len__(self) -> int:
        return self._size

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def _check_size(self, size: int) -> None:
        if size > self._size:
            self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front."""
        if n < 0:
            raise ValueError("cannot remove a negative number of bytes")
        while n and self._buffers:
            front = self._buffers[0]
            step = min(n, len(front) - self._skip)
            self._skip += step
            self._size -= step
            n -= step
            if self._skip == len(front):
                self._buffers.popleft()
                self._skip = 0

    def _take(self, n: int) -> bytes:
        pieces = []
        while n:
            front = self._buffers[0]
            piece = front[self._skip:self._skip + n]
            pieces.append(piece)
            self.remove_prefix(len(piece))
            n -= len(piece)
        return b"".join(pieces)

    def truncate(self, length: int) -> None:
        """Drop everything after the first ``length`` remaining bytes."""
        if self._size <= length:
            return
        kept: deque[bytes] = deque()
        remaining = length
        for segment in self.buffer():
            if remaining == 0:
                break
            piece = segment[:remaining]
            kept.append(piece)
            remaining -= len(piece)
        self._buffers = kept
        self._skip = 0
        self._size = length

    def all_remaining(self) -> list[bytes]:
        """Consume and return the remaining buffers."""
        segments = self.buffer()
        self._buffers.clear()
        self._skip = 0
        self._size = 0
        return segments

    def buffer(self) -> list[bytes]:
        """The remaining buffers, without consuming them."""
        if not self._buffers:
            return []
        return [self._buffers[0][self._skip:], *islice(self._buffers, 1, None)]

    def string(self, length: int) -> bytes:
        """Read exactly ``length`` bytes (all zero if that many are not available)."""
        self._check_size(length)
        if self._error:
            return bytes(length)
        return self._take(length)

    def concatenate_all_remaining(self) -> bytes:
        """Consume the rest of the input as one bytes object."""
        return b"".join(self.all_remaining())

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes (0 on error)."""
        _check_integer_size(size)
        self._check_size(size)
        if self._error:
            return 0
        return int.from_bytes(self._take(size), "big")


class Serializer:
    """Writes fields into a list of buffers, merging adjacent integers into one buffer."""

    def __init__(self) -> None:
        self._output: list[bytes] = []
        self._pending = bytearray()

    def _flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending.clear()

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as an unsigned big-endian integer of ``size`` bytes, truncating."""
        _check_integer_size(size)
        mask = (1 << (8 * size)) - 1
        self._pending += (value & mask).to_bytes(size, "big")

    def buffer(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Append a buffer, or each of a sequence of buffers; empty buffers are skipped."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            if len(data):
                self._flush()
                self._output.append(bytes(data))
            return
        for chunk in data:
            self.buffer(chunk)

    def finish(self) -> list[bytes]:
        """Return everything written so far and start afresh."""
        self._flush()
        output, self._output = self._output, []
        return output