"""The Internet checksum (ones' complement sum of 16-bit words)."""

from __future__ import annotations

from typing import Iterable, Union

BytesLike = Union[bytes, bytearray, memoryview]

_MASK32 = 0xFFFFFFFF


class InternetChecksum:
    """Accumulates data and yields its Internet checksum; data may arrive in any split."""

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & _MASK32
        self._odd = False

    def add(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Add one buffer, or each buffer of an iterable of buffers."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            for chunk in data:
                self.add(chunk)
            return
        total = self._sum
        odd = self._odd
        for byte in bytes(data):
            total += byte if odd else byte << 8
            odd = not odd
        self._sum = total & _MASK32
        self._odd = odd

    def value(self) -> int:
        """The checksum of everything added so far."""
        folded = self._sum
        while folded > 0xFFFF:
            folded = (folded >> 16) + (folded & 0xFFFF)
        return ~folded & 0xFFFF