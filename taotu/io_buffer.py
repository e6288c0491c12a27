"""Growable byte buffer for socket I/O with a reserved header area."""

from __future__ import annotations

import socket
from typing import Optional, Union

RESERVED_CAPACITY = 8
INITIAL_CAPACITY = 1024
EXTRA_READ_BYTES = 64 * 1024
MIN_SHRINK_BYTES = 32

_CRLF = b"\r\n"
_EOL = b"\n"
_INT_SIZES = (1, 2, 4, 8)
_SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)

BytesLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _check_int_size(size: int) -> None:
    if size not in _INT_SIZES:
        raise ValueError(f"integer size must be one of {_INT_SIZES}, not {size}")


class IoBuffer:
    """Contiguous buffer with separate reading and writing positions.

    ``RESERVED_CAPACITY`` bytes are always kept in front of the readable data
    so that a message header can be prepended without moving the body.
    Integers are stored big-endian and signed.
    """

    def __init__(self, initial_capacity: int = INITIAL_CAPACITY) -> None:
        if initial_capacity < 0:
            raise ValueError("initial capacity must not be negative")
        self._buffer = bytearray(RESERVED_CAPACITY + initial_capacity)
        self._read = RESERVED_CAPACITY
        self._write = RESERVED_CAPACITY

    def swap(self, other: "IoBuffer") -> None:
        """Exchange contents and positions with ``other``."""
        self._buffer, other._buffer = other._buffer, self._buffer
        self._read, other._read = other._read, self._read
        self._write, other._write = other._write, self._write

    @property
    def readable_bytes(self) -> int:
        return self._write - self._read

    @property
    def writable_bytes(self) -> int:
        return len(self._buffer) - self._write

    @property
    def reserved_bytes(self) -> int:
        """Bytes in front of the readable data, usable by ``prepend``."""
        return self._read

    @property
    def size(self) -> int:
        """Total size of the underlying storage."""
        return len(self._buffer)

    def __len__(self) -> int:
        return self.readable_bytes

    def __bytes__(self) -> bytes:
        return self.peek()

    def peek(self) -> bytes:
        """The readable data, without consuming it."""
        return bytes(self._buffer[self._read:self._write])

    def _find(self, needle: bytes, start: int) -> Optional[int]:
        if not 0 <= start <= self.readable_bytes:
            raise ValueError(f"start offset out of range: {start}")
        index = self._buffer.find(needle, self._read + start, self._write)
        return None if index < 0 else index - self._read

    def find_crlf(self, start: int = 0) -> Optional[int]:
        """Offset of the first CRLF at or after ``start``, or None."""
        return self._find(_CRLF, start)

    def find_eol(self, start: int = 0) -> Optional[int]:
        """Offset of the first newline at or after ``start``, or None."""
        return self._find(_EOL, start)

    def clear(self) -> None:
        """Discard all readable data and reset both positions."""
        self._read = RESERVED_CAPACITY
        self._write = RESERVED_CAPACITY

    def advance(self, length: int) -> None:
        """Consume ``length`` readable bytes; consuming all of them resets."""
        if length < 0:
            raise ValueError("length must not be negative")
        if length < self.readable_bytes:
            self._read += length
        else:
            self.clear()

    def retrieve(self, length: int) -> bytes:
        """Consume and return ``length`` readable bytes."""
        if length < 0:
            raise ValueError("length must not be negative")
        if length > self.readable_bytes:
            raise ValueError("read too many bytes from the buffer")
        data = bytes(self._buffer[self._read:self._read + length])
        self.advance(length)
        return data

    def retrieve_all(self) -> bytes:
        """Consume and return all readable bytes."""
        return self.retrieve(self.readable_bytes)

    def peek_int(self, size: int) -> int:
        """Read a big-endian signed integer of ``size`` bytes without consuming it."""
        _check_int_size(size)
        if size > self.readable_bytes:
            raise ValueError("not enough readable bytes for the integer")
        return int.from_bytes(
            self._buffer[self._read:self._read + size], "big", signed=True
        )

    def retrieve_int(self, size: int) -> int:
        """Consume a big-endian signed integer of ``size`` bytes."""
        value = self.peek_int(size)
        self.advance(size)
        return value

    def prepend(self, data: BytesLike) -> None:
        """Put ``data`` in front of the readable data, using reserved space."""
        payload = _as_bytes(data)
        if len(payload) > self.reserved_bytes:
            raise ValueError("reserved head space is not enough")
        self._read -= len(payload)
        self._buffer[self._read:self._read + len(payload)] = payload

    def prepend_int(self, value: int, size: int) -> None:
        """Prepend ``value`` as a big-endian signed integer of ``size`` bytes."""
        _check_int_size(size)
        self.prepend(value.to_bytes(size, "big", signed=True))

    def append(self, data: BytesLike) -> None:
        """Add ``data`` after the readable data, growing as needed."""
        payload = _as_bytes(data)
        self.ensure_writable(len(payload))
        self._buffer[self._write:self._write + len(payload)] = payload
        self._write += len(payload)

    def append_int(self, value: int, size: int) -> None:
        """Append ``value`` as a big-endian signed integer of ``size`` bytes."""
        _check_int_size(size)
        self.append(value.to_bytes(size, "big", signed=True))

    def ensure_writable(self, length: int) -> None:
        """Make sure at least ``length`` bytes can be written without growing."""
        if length > self.writable_bytes:
            self._reserve(length)

    def _reserve(self, length: int) -> None:
        spare = self.writable_bytes + self._read - RESERVED_CAPACITY
        if spare < length:
            self._buffer.extend(bytes(self._write + length - len(self._buffer)))
        else:
            # Enough room once the readable data is moved to the front.
            readable = self.readable_bytes
            self._buffer[RESERVED_CAPACITY:RESERVED_CAPACITY + readable] = (
                self._buffer[self._read:self._write]
            )
            self._read = RESERVED_CAPACITY
            self._write = RESERVED_CAPACITY + readable

    def shrink(self, length: int) -> None:
        """Rebuild the storage to hold the readable data plus ``length`` spare bytes."""
        if length <= MIN_SHRINK_BYTES:
            raise ValueError(f"shrinking buffer to {length} bytes is too little")
        replacement = IoBuffer()
        replacement.ensure_writable(RESERVED_CAPACITY + self.readable_bytes + length)
        replacement.append(self._buffer[self._read:self._write])
        self.swap(replacement)

    def read_from(self, sock: socket.socket) -> int:
        """Receive once from ``sock`` into the buffer; returns bytes read (0 at EOF).

        When the writable space is small, up to ``EXTRA_READ_BYTES`` more are
        accepted in the same call and the buffer grows to take them.
        Socket errors propagate as ``OSError``.
        """
        writable = self.writable_bytes
        if writable >= EXTRA_READ_BYTES:
            with memoryview(self._buffer) as view, view[self._write:] as target:
                received = sock.recv_into(target)
            self._write += received
            return received
        data = sock.recv(writable + EXTRA_READ_BYTES)
        received = len(data)
        if received <= writable:
            self._buffer[self._write:self._write + received] = data
            self._write += received
        else:
            self._buffer[self._write:] = data[:writable]
            self._write = len(self._buffer)
            self.append(data[writable:])
        return received

    def write_to(self, sock: socket.socket) -> int:
        """Send readable data to ``sock`` once and consume what was sent."""
        sent = sock.send(self._buffer[self._read:self._write], _SEND_FLAGS)
        if sent > 0:
            self.advance(sent)
        return sent

    def __repr__(self) -> str:
        return (
            f"IoBuffer(readable={self.readable_bytes}, "
            f"writable={self.writable_bytes}, reserved={self.reserved_bytes})"
        )