#!/usr/bin/env python3
"""
Scoped secret buffers

Seeds, account private keys and commitment secrets live in a SecretBytes
for as long as they are needed and are overwritten with zeros on every exit
path when the buffer is used as a context manager.
"""

import hmac
from typing import Union

from .errors import PrivatePaymentError


class SecretBytes:
    """Mutable secret buffer that can be wiped in place"""

    __slots__ = ("_buf", "_wiped")

    def __init__(self, data: Union[bytes, bytearray, "SecretBytes"]):
        if isinstance(data, SecretBytes):
            data = data.buffer
        self._buf = bytearray(data)
        self._wiped = False

    @classmethod
    def from_int(cls, value: int, length: int = 32) -> "SecretBytes":
        """Wrap a scalar as fixed-width big-endian bytes"""
        return cls(value.to_bytes(length, 'big'))

    @property
    def wiped(self) -> bool:
        return self._wiped

    @property
    def buffer(self) -> bytearray:
        """The live buffer (not a copy)"""
        if self._wiped:
            raise PrivatePaymentError("Secret has been wiped")
        return self._buf

    def to_int(self) -> int:
        return int.from_bytes(self.buffer, 'big')

    def hex(self) -> str:
        return self.buffer.hex()

    def wipe(self) -> None:
        """Overwrite the buffer with zeros"""
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._wiped = True

    def __bytes__(self) -> bytes:
        return bytes(self.buffer)

    def __len__(self) -> int:
        return len(self._buf)

    def __eq__(self, other):
        if not isinstance(other, SecretBytes):
            return NotImplemented
        return hmac.compare_digest(bytes(self.buffer), bytes(other.buffer))

    __hash__ = None

    def __enter__(self) -> "SecretBytes":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self):
        state = "wiped" if self._wiped else f"{len(self._buf)} bytes"
        return f"SecretBytes(<{state}>)"
