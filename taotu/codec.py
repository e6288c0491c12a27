"""Length-prefixed message framing: a 4-byte big-endian length, then the body."""

from __future__ import annotations

from typing import Any, Callable, Protocol, Union

from .io_buffer import IoBuffer
from .logger import LogLevel, log

HEAD_LENGTH = 4
MAX_MESSAGE_LENGTH = 65536

CodecMessageCallback = Callable[[Any, bytes, Any], None]


class _Connection(Protocol):
    def send(self, message: IoBuffer) -> None: ...

    def shutdown_write(self) -> None: ...


def _payload(message: Union[bytes, bytearray, memoryview, str]) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


def _frame(message: Union[bytes, bytearray, memoryview, str]) -> IoBuffer:
    payload = _payload(message)
    buffer = IoBuffer()
    buffer.append(payload)
    buffer.prepend_int(len(payload), HEAD_LENGTH)
    return buffer


def encode_message(message: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Wire form of ``message``: its length as a 4-byte header, then its bytes."""
    return _frame(message).peek()


class LengthHeaderCodec:
    """Splits incoming data into whole messages and frames outgoing ones.

    ``message_callback(connection, message, time_point)`` is called with the
    body of every complete message.
    """

    def __init__(self, message_callback: CodecMessageCallback) -> None:
        self._message_callback = message_callback

    def on_message(self, connection: _Connection, io_buffer: IoBuffer, time_point: Any) -> None:
        """Deliver every complete message in ``io_buffer``; keep the rest."""
        while io_buffer.readable_bytes >= HEAD_LENGTH:
            length = io_buffer.peek_int(HEAD_LENGTH)
            if length > MAX_MESSAGE_LENGTH or length < 0:
                log(LogLevel.ERROR, "Invalid length!!!")
                connection.shutdown_write()
                break
            if io_buffer.readable_bytes < HEAD_LENGTH + length:
                break
            io_buffer.advance(HEAD_LENGTH)
            message = io_buffer.retrieve(length)
            self._message_callback(connection, message, time_point)

    def send(self, connection: _Connection, message: Union[bytes, bytearray, memoryview, str]) -> None:
        """Send ``message`` framed with its length header."""
        connection.send(_frame(message))